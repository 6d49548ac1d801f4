"""
Mobile authentication API: API-key gate, envelope format, login,
registration, refresh and the current user.
"""

import pytest

from conftest import MOBILE_API_KEY, unique_email

MOBILE = "/api/v1/mobile"
KEY = {"X-API-Key": MOBILE_API_KEY}


async def _register(client, email: str, tenant_slug: str | None = None) -> dict:
    body = {"name": "Pablo Garcia", "email": email, "password": "Secreta123"}
    if tenant_slug:
        body["tenant_slug"] = tenant_slug
    resp = await client.post(f"{MOBILE}/auth/register", json=body, headers=KEY)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# API key
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_missing_api_key(client):
    resp = await client.post(f"{MOBILE}/auth/login", json={"email": "a@example.com", "password": "Secreta123"})
    assert resp.status_code == 401
    assert resp.json() == {
        "success": False,
        "error": {"code": "MISSING_API_KEY", "message": "API key is required"},
    }


@pytest.mark.asyncio
async def test_invalid_api_key(client):
    resp = await client.post(
        f"{MOBILE}/auth/login",
        json={"email": "a@example.com", "password": "Secreta123"},
        headers={"X-API-Key": "wrong"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_API_KEY"


@pytest.mark.asyncio
async def test_validation_errors_use_the_envelope(client):
    resp = await client.post(f"{MOBILE}/auth/login", json={"email": "not-an-email"}, headers=KEY)
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert set(body["error"]["details"]) == {"email", "password"}


# ---------------------------------------------------------------------------
# Register / login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_and_login(client):
    email = unique_email("mobile")
    data = await _register(client, email)
    assert data["user"]["email"] == email
    assert data["user"]["name"] == "Pablo Garcia"
    assert data["user"]["tenant_id"] is None
    assert data["tokens"]["token_type"] == "Bearer"
    assert isinstance(data["tokens"]["expires_at"], int)
    assert data["tokens"]["expires_in"] == 15 * 60

    resp = await client.post(f"{MOBILE}/auth/login", json={"email": email, "password": "Secreta123"}, headers=KEY)
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["data"]["tokens"]["access_token"]


@pytest.mark.asyncio
async def test_register_requires_mixed_case_and_digit(client):
    resp = await client.post(
        f"{MOBILE}/auth/register",
        json={"name": "Pablo", "email": unique_email("weak"), "password": "secreta123"},
        headers=KEY,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert "password" in resp.json()["error"]["details"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    email = unique_email("twice")
    await _register(client, email)
    resp = await client.post(
        f"{MOBILE}/auth/register",
        json={"name": "Pablo", "email": email, "password": "Secreta123"},
        headers=KEY,
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_register_into_gym_creates_client_role(client, gym):
    data = await _register(client, unique_email("joiner"), tenant_slug=gym.slug)
    assert data["user"]["tenant_id"] == gym.org["id"]
    assert data["user"]["role"] == "client"


@pytest.mark.asyncio
async def test_register_into_unknown_gym(client):
    resp = await client.post(
        f"{MOBILE}/auth/register",
        json={"name": "Pablo", "email": unique_email("lost"), "password": "Secreta123", "tenant_slug": "nowhere"},
        headers=KEY,
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_login_with_wrong_password(client):
    email = unique_email("wrong")
    await _register(client, email)
    resp = await client.post(f"{MOBILE}/auth/login", json={"email": email, "password": "Otra12345"}, headers=KEY)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_login_scoped_to_gym(client, gym):
    resp = await client.post(
        f"{MOBILE}/auth/login",
        json={"email": gym.admin_email, "password": "password123", "tenant_slug": gym.slug},
        headers=KEY,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["role"] == "admin"

    outsider = unique_email("outsider")
    await _register(client, outsider)
    resp = await client.post(
        f"{MOBILE}/auth/login",
        json={"email": outsider, "password": "Secreta123", "tenant_slug": gym.slug},
        headers=KEY,
    )
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"


# ---------------------------------------------------------------------------
# Refresh / me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_refresh_rotates_tokens(client):
    tokens = (await _register(client, unique_email("rotate")))["tokens"]

    resp = await client.post(f"{MOBILE}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}, headers=KEY)
    assert resp.status_code == 200
    assert resp.json()["data"]["refresh_token"] != tokens["refresh_token"]

    resp = await client.post(f"{MOBILE}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}, headers=KEY)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "EXPIRED_TOKEN"


@pytest.mark.asyncio
async def test_me(client, gym):
    data = await _register(client, unique_email("me"), tenant_slug=gym.slug)
    headers = {**KEY, "Authorization": f"Bearer {data['tokens']['access_token']}"}

    resp = await client.get(f"{MOBILE}/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == data["user"]["id"]
    assert resp.json()["data"]["tenant_id"] == gym.org["id"]


@pytest.mark.asyncio
async def test_me_token_errors(client):
    resp = await client.get(f"{MOBILE}/auth/me", headers=KEY)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "MISSING_TOKEN"

    resp = await client.get(f"{MOBILE}/auth/me", headers={**KEY, "Authorization": "Bearer junk"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_TOKEN"
