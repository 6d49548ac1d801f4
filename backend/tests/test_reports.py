"""
Staff dashboard and the activity report.
"""

from datetime import UTC, datetime, timedelta

import pytest

from app.core.clock import today_in
from conftest import auth


def _at(delta: timedelta) -> str:
    return (datetime.now(UTC) + delta).replace(microsecond=0).isoformat()


async def _seed(client, api, gym) -> dict:
    """Two members (one suspended), a check-in, a class tomorrow, a payment and other income."""
    member = await api.create_member(gym.admin_token, gym.slug, full_name="Carla Ruiz")
    await api.create_member(gym.admin_token, gym.slug, full_name="Mario Diaz", status="suspended")

    resp = await client.post(gym.url("/check-ins/manual"), json={"member_id": member["id"]}, headers=gym.headers)
    assert resp.status_code == 201
    await api.create_class(
        gym.admin_token,
        gym.slug,
        name="Spinning",
        class_type="cardio",
        start_time=_at(timedelta(days=1)),
        end_time=_at(timedelta(days=1, hours=1)),
    )
    resp = await client.post(
        gym.url("/finances/membership-payments"),
        json={"member_id": member["id"], "amount": "800"},
        headers=gym.headers,
    )
    assert resp.status_code == 201
    resp = await client.post(
        gym.url("/finances/income"),
        json={"description": "Venta de agua", "amount": "150", "income_date": _at(timedelta())},
        headers=gym.headers,
    )
    assert resp.status_code == 201
    return member


@pytest.mark.asyncio
async def test_dashboard(client, api, gym):
    await _seed(client, api, gym)

    resp = await client.get(gym.url("/dashboard"), headers=gym.headers)
    assert resp.status_code == 200
    data = resp.json()
    metrics = data["metrics"]
    assert metrics["total_members"] == 2
    assert metrics["active_members"] == 1
    assert metrics["today_check_ins"] == 1
    assert metrics["upcoming_classes"] == 1
    assert metrics["monthly_revenue"] == 800.0
    assert metrics["members_trend"] == 0

    assert {m["full_name"] for m in data["recent_members"]} == {"Carla Ruiz", "Mario Diaz"}
    assert [c["name"] for c in data["upcoming_classes"]] == ["Spinning"]


@pytest.mark.asyncio
async def test_empty_dashboard(client, gym):
    resp = await client.get(gym.url("/dashboard"), headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["metrics"]["total_members"] == 0
    assert resp.json()["recent_members"] == []
    assert resp.json()["upcoming_classes"] == []


@pytest.mark.asyncio
async def test_monthly_summary(client, api, gym):
    await _seed(client, api, gym)

    resp = await client.get(gym.url("/reports/summary"), headers=gym.headers)
    assert resp.status_code == 200
    report = resp.json()
    today = today_in("America/Mexico_City")
    assert report["period"] == "month"
    assert report["start_date"] == today.replace(day=1).isoformat()
    assert report["end_date"] == today.isoformat()
    assert report["total_members"] == 2
    assert report["active_members"] == 1
    assert report["new_members"] == 2
    assert report["total_check_ins"] == 1
    assert report["total_classes"] == 1
    assert report["total_revenue"] == 950.0
    assert report["popular_class_types"] == [{"class_type": "cardio", "count": 1}]
    assert report["members_by_status"] == [
        {"status": "active", "count": 1},
        {"status": "inactive", "count": 0},
        {"status": "suspended", "count": 1},
        {"status": "cancelled", "count": 0},
    ]

    months = report["revenue_by_month"]
    assert len(months) == 6
    assert months[-1] == {"month": today.strftime("%Y-%m"), "revenue": 950.0}
    assert all(m["revenue"] == 0.0 for m in months[:-1])


@pytest.mark.asyncio
async def test_weekly_summary_window(client, gym):
    resp = await client.get(gym.url("/reports/summary"), params={"period": "week"}, headers=gym.headers)
    assert resp.status_code == 200
    today = today_in("America/Mexico_City")
    assert resp.json()["start_date"] == (today - timedelta(days=7)).isoformat()
    assert resp.json()["avg_check_ins_per_day"] == 0

    resp = await client.get(gym.url("/reports/summary"), params={"period": "decade"}, headers=gym.headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_report_permissions(client, api, gym):
    trainer = await api.add_staff(gym.admin_token, gym.slug, "trainer")
    resp = await client.get(gym.url("/reports/summary"), headers=auth(trainer))
    assert resp.status_code == 403

    assistant = await api.add_staff(gym.admin_token, gym.slug, "assistant")
    resp = await client.get(gym.url("/reports/summary"), headers=auth(assistant))
    assert resp.status_code == 200

    member = await api.add_staff(gym.admin_token, gym.slug, "client")
    resp = await client.get(gym.url("/dashboard"), headers=auth(member))
    assert resp.status_code == 403
