"""
Class templates: weekday math and class generation through the API.
"""

from datetime import date, timedelta

import pytest

from app.services.template_service import dates_for_weekday, day_of_week


# ---------------------------------------------------------------------------
# Weekday math
# ---------------------------------------------------------------------------

def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2025, 6, 8)) == 0  # Sunday
    assert day_of_week(date(2025, 6, 9)) == 1  # Monday
    assert day_of_week(date(2025, 6, 14)) == 6  # Saturday


def test_dates_for_weekday_includes_both_ends():
    mondays = dates_for_weekday(1, date(2025, 6, 9), date(2025, 6, 23))
    assert mondays == [date(2025, 6, 9), date(2025, 6, 16), date(2025, 6, 23)]


def test_dates_for_weekday_skips_to_first_match():
    assert dates_for_weekday(0, date(2025, 6, 9), date(2025, 6, 16)) == [date(2025, 6, 15)]


def test_dates_for_weekday_empty_range():
    assert dates_for_weekday(3, date(2025, 6, 9), date(2025, 6, 10)) == []


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

def _template(day: int, **extra) -> dict:
    return {
        "name": "CrossFit WOD",
        "day_of_week": day,
        "start_time": "07:00",
        "end_time": "08:00",
        "instructor_name": "Luis",
        "max_capacity": 12,
        **extra,
    }


@pytest.mark.asyncio
async def test_template_crud_and_toggle(client, gym):
    resp = await client.post(gym.url("/class-templates"), json=_template(1), headers=gym.headers)
    assert resp.status_code == 201, resp.text
    template = resp.json()
    assert template["is_active"] is True

    resp = await client.patch(
        gym.url(f"/class-templates/{template['id']}"), json={"max_capacity": 20}, headers=gym.headers
    )
    assert resp.status_code == 200
    assert resp.json()["max_capacity"] == 20

    resp = await client.post(gym.url(f"/class-templates/{template['id']}/toggle"), headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await client.delete(gym.url(f"/class-templates/{template['id']}"), headers=gym.headers)
    assert resp.status_code == 200

    resp = await client.get(gym.url(f"/class-templates/{template['id']}"), headers=gym.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_template_rejects_end_before_start(client, gym):
    resp = await client.post(
        gym.url("/class-templates"),
        json=_template(2, start_time="09:00", end_time="08:30"),
        headers=gym.headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_template_update_checks_stored_times(client, gym):
    resp = await client.post(gym.url("/class-templates"), json=_template(2), headers=gym.headers)
    template_id = resp.json()["id"]

    resp = await client.patch(
        gym.url(f"/class-templates/{template_id}"), json={"end_time": "06:00"}, headers=gym.headers
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "INVALID_TIME_RANGE"


@pytest.mark.asyncio
async def test_preview_then_generate_is_idempotent(client, gym):
    start = date(2030, 1, 6)  # Sunday
    for day in (1, 3, 5):
        resp = await client.post(gym.url("/class-templates"), json=_template(day), headers=gym.headers)
        assert resp.status_code == 201

    body = {"period": "week", "start_date": start.isoformat()}
    resp = await client.post(gym.url("/class-templates/preview"), json=body, headers=gym.headers)
    assert resp.status_code == 200, resp.text
    preview = resp.json()
    assert preview["total"] == 3
    assert preview["new_count"] == 3
    assert [o["class_date"] for o in preview["occurrences"]] == [
        (start + timedelta(days=offset)).isoformat() for offset in (1, 3, 5)
    ]

    resp = await client.post(gym.url("/class-templates/generate"), json=body, headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["classes_created"] == 3

    resp = await client.post(gym.url("/class-templates/generate"), json=body, headers=gym.headers)
    assert resp.json()["classes_created"] == 0

    resp = await client.post(gym.url("/class-templates/preview"), json=body, headers=gym.headers)
    assert resp.json()["new_count"] == 0

    resp = await client.get(
        gym.url("/classes"),
        params={"start_date": start.isoformat(), "end_date": (start + timedelta(days=7)).isoformat()},
        headers=gym.headers,
    )
    classes = resp.json()["classes"]
    assert len(classes) == 3
    assert all(c["template_id"] for c in classes)
    assert {c["max_capacity"] for c in classes} == {12}


@pytest.mark.asyncio
async def test_inactive_templates_are_not_generated(client, gym):
    resp = await client.post(
        gym.url("/class-templates"), json=_template(1, is_active=False), headers=gym.headers
    )
    assert resp.status_code == 201

    resp = await client.post(
        gym.url("/class-templates/generate"),
        json={"period": "month", "start_date": "2030-01-06"},
        headers=gym.headers,
    )
    assert resp.json()["classes_created"] == 0


@pytest.mark.asyncio
async def test_clients_cannot_manage_templates(client, api, gym):
    client_token = await api.add_staff(gym.admin_token, gym.slug, "client")
    resp = await client.post(
        gym.url("/class-templates"),
        json=_template(1),
        headers={"Authorization": f"Bearer {client_token}"},
    )
    assert resp.status_code == 403
