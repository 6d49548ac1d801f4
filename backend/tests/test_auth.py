"""
Authentication flows: register, login, refresh rotation, logout and
password reset.
"""

import pytest

from conftest import auth, unique_email


@pytest.mark.asyncio
async def test_register_returns_token_pair(client):
    resp = await client.post("/api/v1/auth/register", json={
        "email": unique_email("reg"),
        "password": "password123",
        "display_name": "Maria Lopez",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_register_duplicate_email_is_rejected(client, api):
    email = unique_email("dup")
    await api.register(email)
    resp = await client.post("/api/v1/auth/register", json={
        "email": email.upper(),
        "password": "password123",
        "display_name": "Someone Else",
    })
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "EMAIL_TAKEN"


@pytest.mark.asyncio
async def test_register_requires_a_number_in_password(client):
    resp = await client.post("/api/v1/auth/register", json={
        "email": unique_email("weak"),
        "password": "onlyletters",
        "display_name": "Weak Password",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, api):
    email = unique_email("login")
    await api.register(email)
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": "wrongpass1"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_me_lists_gym_memberships(client, gym):
    resp = await client.get("/api/v1/auth/me", headers=gym.headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == gym.admin_email
    assert data["preferred_view"] == "dashboard"
    assert [(o["org_slug"], o["role"]) for o in data["organizations"]] == [(gym.slug, "admin")]


@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "MISSING_TOKEN"


@pytest.mark.asyncio
async def test_garbage_token_is_rejected(client):
    resp = await client.get("/api/v1/auth/me", headers=auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


# ---------------------------------------------------------------------------
# Refresh / logout
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_refresh_tokens_are_single_use(client, api):
    email = unique_email("refresh")
    await api.register(email)
    tokens = await api.login(email)

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    assert resp.json()["refresh_token"] != tokens["refresh_token"]

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "TOKEN_REVOKED"


@pytest.mark.asyncio
async def test_access_token_cannot_be_used_as_refresh_token(client, api):
    email = unique_email("wrongtype")
    await api.register(email)
    tokens = await api.login(email)
    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_logout_revokes_access_and_refresh_tokens(client, api):
    email = unique_email("logout")
    await api.register(email)
    tokens = await api.login(email)

    resp = await client.post(
        "/api/v1/auth/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers=auth(tokens["access_token"]),
    )
    assert resp.status_code == 200

    resp = await client.get("/api/v1/auth/me", headers=auth(tokens["access_token"]))
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "TOKEN_REVOKED"

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_forgot_password_for_unknown_email_sends_nothing(client, email_outbox):
    resp = await client.post("/api/v1/auth/forgot-password", json={"email": unique_email("ghost")})
    assert resp.status_code == 200
    assert email_outbox["password_reset"].calls == []


@pytest.mark.asyncio
async def test_password_reset_flow(client, api, email_outbox):
    email = unique_email("reset")
    await api.register(email)

    resp = await client.post("/api/v1/auth/forgot-password", json={"email": email})
    assert resp.status_code == 200
    call = email_outbox["password_reset"].calls[-1]
    assert call["to_email"] == email

    resp = await client.post("/api/v1/auth/reset-password", json={
        "token": call["reset_token"],
        "new_password": "newpassword9",
    })
    assert resp.status_code == 200

    await api.login(email, "newpassword9")

    resp = await client.post("/api/v1/auth/reset-password", json={
        "token": call["reset_token"],
        "new_password": "another12345",
    })
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"
