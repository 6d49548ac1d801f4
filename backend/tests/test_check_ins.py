"""
Front-desk check-ins by access code and manual check-ins.
"""

import pytest

from conftest import auth, unique_email


async def _member_with_code(client, api, gym, **fields) -> tuple[dict, str]:
    member = await api.create_member(gym.admin_token, gym.slug, **fields)
    resp = await client.post(gym.url(f"/members/{member['id']}/access-code"), headers=gym.headers)
    return member, resp.json()["access_code"]


@pytest.mark.asyncio
async def test_check_in_by_access_code(client, api, gym):
    member, code = await _member_with_code(client, api, gym, full_name="Sofia Herrera")

    resp = await client.post(gym.url("/check-ins"), json={"access_code": code, "method": "pin"}, headers=gym.headers)
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["member_id"] == member["id"]
    assert data["member_name"] == "Sofia Herrera"
    assert data["check_in_method"] == "pin"

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.json()["check_in_count"] == 1
    assert resp.json()["last_check_in"] is not None


@pytest.mark.asyncio
async def test_second_check_in_same_day_is_rejected(client, api, gym):
    _, code = await _member_with_code(client, api, gym)
    resp = await client.post(gym.url("/check-ins"), json={"access_code": code}, headers=gym.headers)
    assert resp.status_code == 201

    resp = await client.post(gym.url("/check-ins"), json={"access_code": code}, headers=gym.headers)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "ALREADY_CHECKED_IN"


@pytest.mark.asyncio
async def test_unknown_access_code(client, gym):
    resp = await client.post(gym.url("/check-ins"), json={"access_code": "000000"}, headers=gym.headers)
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "INVALID_ACCESS_CODE"


@pytest.mark.asyncio
async def test_inactive_member_cannot_check_in(client, api, gym):
    _, code = await _member_with_code(client, api, gym, status="suspended")
    resp = await client.post(gym.url("/check-ins"), json={"access_code": code}, headers=gym.headers)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "MEMBER_INACTIVE"


@pytest.mark.asyncio
async def test_access_codes_do_not_cross_gyms(client, api, gym):
    _, code = await _member_with_code(client, api, gym)

    other_token = await api.register(unique_email("frontdesk"))
    other = await api.create_org(other_token, f"{gym.slug}-x")
    resp = await client.post(
        f"/api/v1/organizations/{other['slug']}/check-ins", json={"access_code": code}, headers=auth(other_token)
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_manual_check_in_and_history(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)

    resp = await client.post(
        gym.url("/check-ins/manual"),
        json={"member_id": member["id"], "notes": "Olvido su tarjeta"},
        headers=gym.headers,
    )
    assert resp.status_code == 201
    assert resp.json()["check_in_method"] == "manual"
    assert resp.json()["notes"] == "Olvido su tarjeta"

    resp = await client.get(gym.url("/check-ins/today"), headers=gym.headers)
    assert resp.json()["total"] == 1

    resp = await client.get(gym.url(f"/members/{member['id']}/check-ins"), headers=gym.headers)
    history = resp.json()
    assert history["total"] == 1
    assert history["check_ins"][0]["member_email"] == member["email"]


@pytest.mark.asyncio
async def test_trainer_can_check_in_but_not_see_log(client, api, gym):
    trainer = await api.add_staff(gym.admin_token, gym.slug, "trainer")
    _, code = await _member_with_code(client, api, gym)

    resp = await client.post(gym.url("/check-ins"), json={"access_code": code}, headers=auth(trainer))
    assert resp.status_code == 201

    resp = await client.get(gym.url("/check-ins/today"), headers=auth(trainer))
    assert resp.status_code == 403
