"""
Membership payments, expenses, other income and the period summary.
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from app.core.clock import add_months, today_in
from conftest import auth


def _now() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


@pytest.mark.asyncio
async def test_payment_starts_membership_for_new_member(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug, membership_end_date=None)

    resp = await client.post(
        gym.url("/finances/membership-payments"),
        json={"member_id": member["id"], "amount": "650", "period_type": "quarterly"},
        headers=gym.headers,
    )
    assert resp.status_code == 201, resp.text
    payment = resp.json()
    today = today_in("America/Mexico_City")
    assert payment["period_months"] == 3
    assert payment["period_start_date"] == today.isoformat()
    assert payment["period_end_date"] == add_months(today, 3).isoformat()

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    data = resp.json()
    assert data["membership_status"] == "active"
    assert data["membership_start_date"] == today.isoformat()
    assert data["membership_end_date"] == add_months(today, 3).isoformat()


@pytest.mark.asyncio
async def test_payment_extends_active_membership(client, api, gym):
    current_end = date.today() + timedelta(days=10)
    member = await api.create_member(gym.admin_token, gym.slug, membership_end_date=current_end.isoformat())

    resp = await client.post(
        gym.url("/finances/membership-payments"),
        json={"member_id": member["id"], "amount": "650"},
        headers=gym.headers,
    )
    assert resp.status_code == 201
    assert resp.json()["period_start_date"] == current_end.isoformat()
    assert resp.json()["period_end_date"] == add_months(current_end, 1).isoformat()

    resp = await client.get(gym.url(f"/members/{member['id']}/membership-status"), headers=gym.headers)
    assert resp.json()["status"] == "active"
    assert resp.json()["last_payment_amount"] == 650.0


@pytest.mark.asyncio
async def test_custom_period_needs_months(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    resp = await client.post(
        gym.url("/finances/membership-payments"),
        json={"member_id": member["id"], "amount": "100", "period_type": "custom"},
        headers=gym.headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_payment_with_plan_sets_current_plan(client, api, gym):
    plan = (
        await client.post(gym.url("/plans"), json={"name": "Anual", "price": "6000"}, headers=gym.headers)
    ).json()
    member = await api.create_member(gym.admin_token, gym.slug)

    resp = await client.post(
        gym.url("/finances/membership-payments"),
        json={"member_id": member["id"], "plan_id": plan["id"], "amount": "6000", "period_type": "annual"},
        headers=gym.headers,
    )
    assert resp.status_code == 201
    assert resp.json()["period_months"] == 12

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.json()["current_plan_id"] == plan["id"]

    resp = await client.get(
        gym.url("/finances/membership-payments"), params={"member_id": member["id"]}, headers=gym.headers
    )
    assert resp.json()["total"] == 1


@pytest.mark.asyncio
async def test_expense_crud(client, gym):
    resp = await client.post(
        gym.url("/finances/expenses"),
        json={"description": "Renta del local", "amount": "15000", "category": "rent", "expense_date": _now()},
        headers=gym.headers,
    )
    assert resp.status_code == 201, resp.text
    expense = resp.json()

    resp = await client.patch(
        gym.url(f"/finances/expenses/{expense['id']}"), json={"vendor": "Inmobiliaria Sur"}, headers=gym.headers
    )
    assert resp.status_code == 200
    assert resp.json()["vendor"] == "Inmobiliaria Sur"
    assert resp.json()["amount"] == 15000.0

    resp = await client.get(gym.url("/finances/expenses"), params={"category": "rent"}, headers=gym.headers)
    assert resp.json()["total"] == 1

    resp = await client.delete(gym.url(f"/finances/expenses/{expense['id']}"), headers=gym.headers)
    assert resp.status_code == 200

    resp = await client.patch(
        gym.url(f"/finances/expenses/{expense['id']}"), json={"vendor": "x"}, headers=gym.headers
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "EXPENSE_NOT_FOUND"


@pytest.mark.asyncio
async def test_expense_requires_description_and_date(client, gym):
    resp = await client.post(
        gym.url("/finances/expenses"), json={"description": "ab", "amount": "10"}, headers=gym.headers
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_summary_aggregates_current_month(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    await client.post(
        gym.url("/finances/membership-payments"),
        json={"member_id": member["id"], "amount": "800"},
        headers=gym.headers,
    )
    await client.post(
        gym.url("/finances/income"),
        json={"description": "Venta de proteina", "amount": "300", "income_date": _now()},
        headers=gym.headers,
    )
    for description, amount, category in (
        ("Recibo de luz", "400", "utilities"),
        ("Mancuernas", "250.50", "equipment"),
        ("Reparacion de caminadora", "150", "equipment"),
    ):
        resp = await client.post(
            gym.url("/finances/expenses"),
            json={"description": description, "amount": amount, "category": category, "expense_date": _now()},
            headers=gym.headers,
        )
        assert resp.status_code == 201

    resp = await client.get(gym.url("/finances/summary"), headers=gym.headers)
    assert resp.status_code == 200
    summary = resp.json()
    assert summary["total_membership_income"] == 800.0
    assert summary["total_other_income"] == 300.0
    assert summary["total_income"] == 1100.0
    assert summary["total_expenses"] == 800.5
    assert summary["net"] == 299.5
    assert summary["expenses_by_category"] == {"utilities": 400.0, "equipment": 400.5}


@pytest.mark.asyncio
async def test_assistant_cannot_see_finances(client, api, gym):
    assistant = await api.add_staff(gym.admin_token, gym.slug, "assistant")
    resp = await client.get(gym.url("/finances/expenses"), headers=auth(assistant))
    assert resp.status_code == 403
