"""
Members and membership plans.
"""

from datetime import date, timedelta
from uuid import UUID

import pytest
from sqlalchemy import select

from app.models.member import Member
from app.models.user import User
from app.services.member_service import find_member_for_user
from conftest import auth, unique_email


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_member_crud(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug, email=unique_email("Crud").upper())
    assert member["email"] == member["email"].lower()
    assert member["status"] == "active"
    assert member["check_in_count"] == 0
    assert member["access_code"] is None

    resp = await client.patch(
        gym.url(f"/members/{member['id']}"),
        json={"phone": "5512345678", "fitness_goals": ["fuerza", "movilidad"]},
        headers=gym.headers,
    )
    assert resp.status_code == 200
    assert resp.json()["phone"] == "5512345678"
    assert resp.json()["fitness_goals"] == ["fuerza", "movilidad"]

    resp = await client.delete(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json() == {}

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "MEMBER_NOT_FOUND"


@pytest.mark.asyncio
async def test_member_email_is_unique_per_gym(client, api, gym):
    email = unique_email("unique")
    await api.create_member(gym.admin_token, gym.slug, email=email)

    resp = await client.post(
        gym.url("/members"), json={"email": email.upper(), "full_name": "Otra Persona"}, headers=gym.headers
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "MEMBER_EMAIL_TAKEN"


@pytest.mark.asyncio
async def test_member_search_and_status_filter(client, api, gym):
    await api.create_member(gym.admin_token, gym.slug, full_name="Carla Mendez")
    await api.create_member(gym.admin_token, gym.slug, full_name="Diego Ruiz", status="inactive")

    resp = await client.get(gym.url("/members"), params={"search": "carla"}, headers=gym.headers)
    assert [m["full_name"] for m in resp.json()["members"]] == ["Carla Mendez"]

    resp = await client.get(gym.url("/members"), params={"status": "inactive"}, headers=gym.headers)
    assert [m["full_name"] for m in resp.json()["members"]] == ["Diego Ruiz"]

    resp = await client.get(gym.url("/members"), params={"per_page": 1}, headers=gym.headers)
    data = resp.json()
    assert data["total"] == 2
    assert len(data["members"]) == 1


@pytest.mark.asyncio
async def test_access_code_is_six_digits(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)

    resp = await client.post(gym.url(f"/members/{member['id']}/access-code"), headers=gym.headers)
    assert resp.status_code == 200
    code = resp.json()["access_code"]
    assert len(code) == 6
    assert code.isdigit()

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.json()["access_code"] == code


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "end_offset, expected",
    [(None, "no_membership"), (-3, "expired"), (3, "expiring_soon"), (45, "active")],
)
async def test_membership_status(client, api, gym, end_offset, expected):
    end = None if end_offset is None else (date.today() + timedelta(days=end_offset)).isoformat()
    member = await api.create_member(gym.admin_token, gym.slug, membership_end_date=end)

    resp = await client.get(gym.url(f"/members/{member['id']}/membership-status"), headers=gym.headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == expected
    assert data["is_expiring_soon"] is (expected == "expiring_soon")
    assert data["last_payment_date"] is None


@pytest.mark.asyncio
async def test_trainer_can_view_but_not_create_members(client, api, gym):
    trainer = await api.add_staff(gym.admin_token, gym.slug, "trainer")
    member = await api.create_member(gym.admin_token, gym.slug)

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=auth(trainer))
    assert resp.status_code == 200

    resp = await client.post(
        gym.url("/members"), json={"email": unique_email("nope"), "full_name": "No Permitido"}, headers=auth(trainer)
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_PERMISSION"


@pytest.mark.asyncio
@pytest.mark.parametrize("plan, limit", [("starter", 50), ("growth", 150), ("pro", None), ("enterprise", None)])
async def test_subscription_sets_member_limit(client, gym, plan, limit):
    resp = await client.post(gym.url("/subscription"), json={"plan": plan}, headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["max_members"] == limit


@pytest.mark.asyncio
async def test_member_limit_of_starter_plan(client, api, gym, db):
    await client.post(gym.url("/subscription"), json={"plan": "starter"}, headers=gym.headers)
    db.add_all(
        Member(org_id=UUID(gym.org["id"]), email=unique_email("seat"), full_name="Cupo Ocupado")
        for _ in range(49)
    )
    await db.commit()

    await api.create_member(gym.admin_token, gym.slug)
    resp = await client.post(
        gym.url("/members"), json={"email": unique_email("extra"), "full_name": "Sin Cupo"}, headers=gym.headers
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "PLAN_LIMIT_EXCEEDED"
    assert resp.json()["detail"]["limit"] == 50
    assert resp.json()["detail"]["current"] == 50

    resp = await client.post(gym.url("/subscription"), json={"plan": "pro"}, headers=gym.headers)
    assert resp.json()["max_members"] is None
    await api.create_member(gym.admin_token, gym.slug)


@pytest.mark.asyncio
async def test_linked_member_row_wins_over_email_match(api, gym, db):
    email = unique_email("linked")
    other_email = unique_email("other")
    await api.register(email)
    await api.register(other_email)
    user = (await db.execute(select(User).where(User.email == email))).scalar_one()
    other = (await db.execute(select(User).where(User.email == other_email))).scalar_one()

    org_id = UUID(gym.org["id"])
    claimed = Member(org_id=org_id, email=email, full_name="Ya Vinculado", profile_id=other.id)
    linked = Member(org_id=org_id, email=unique_email("alias"), full_name="Cuenta Propia", profile_id=user.id)
    db.add_all([claimed, linked])
    await db.commit()

    found = await find_member_for_user(db, org_id, user)
    assert found.id == linked.id


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

async def _create_plan(client, gym, **extra) -> dict:
    body = {"name": "Mensual", "price": "650.00", "currency": "mxn", **extra}
    resp = await client.post(gym.url("/plans"), json=body, headers=gym.headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_plan_crud(client, gym):
    plan = await _create_plan(client, gym, features=["Acceso ilimitado"])
    assert plan["currency"] == "MXN"
    assert plan["price"] == 650.0
    assert plan["duration_days"] == 30

    resp = await client.patch(gym.url(f"/plans/{plan['id']}"), json={"price": "700"}, headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["price"] == 700.0

    resp = await client.delete(gym.url(f"/plans/{plan['id']}"), headers=gym.headers)
    assert resp.json() == {"id": plan["id"], "deleted": True, "deactivated": False}

    resp = await client.get(gym.url(f"/plans/{plan['id']}"), headers=gym.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_plan_in_use_is_deactivated_instead_of_deleted(client, api, gym):
    plan = await _create_plan(client, gym)
    await api.create_member(gym.admin_token, gym.slug, current_plan_id=plan["id"])

    resp = await client.delete(gym.url(f"/plans/{plan['id']}"), headers=gym.headers)
    assert resp.json()["deactivated"] is True

    resp = await client.get(gym.url("/plans"), params={"active_only": True}, headers=gym.headers)
    assert resp.json()["total"] == 0


@pytest.mark.asyncio
async def test_member_plan_must_belong_to_gym(client, api, gym):
    other = await api.register(unique_email("otherowner"))
    other_org = await api.create_org(other, f"{gym.slug}-b")
    resp = await client.post(
        f"/api/v1/organizations/{other_org['slug']}/plans",
        json={"name": "Ajeno", "price": "100"},
        headers=auth(other),
    )
    foreign_plan = resp.json()

    resp = await client.post(
        gym.url("/members"),
        json={"email": unique_email("x"), "full_name": "Plan Ajeno", "current_plan_id": foreign_plan["id"]},
        headers=gym.headers,
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "PLAN_NOT_FOUND"
