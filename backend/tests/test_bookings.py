"""
Classes and bookings: staff roster management and member self-service
reservations with capacity, waitlist, daily limit and membership rules.
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from conftest import auth, unique_email


def _at(delta: timedelta) -> str:
    return (datetime.now(UTC) + delta).replace(microsecond=0).isoformat()


def _class_body(start: timedelta, **extra) -> dict:
    return {
        "name": "Funcional",
        "start_time": _at(start),
        "end_time": _at(start + timedelta(hours=1)),
        "instructor_name": "Luis",
        **extra,
    }


async def _client_member(api, gym, **member_fields) -> tuple[dict, str]:
    """A member record plus a logged-in client account with the same email."""
    email = unique_email("client")
    member = await api.create_member(gym.admin_token, gym.slug, email=email, **member_fields)
    token = await api.add_staff(gym.admin_token, gym.slug, "client", email=email)
    return member, token


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_class_defaults(api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    assert gym_class["booking_opens_hours"] == 168
    assert gym_class["booking_closes_minutes"] == 60
    assert gym_class["cancellation_deadline_hours"] == 2
    assert gym_class["current_bookings"] == 0
    assert gym_class["is_cancelled"] is False


@pytest.mark.asyncio
async def test_class_requires_end_after_start(client, gym):
    body = _class_body(timedelta(days=2))
    body["end_time"] = body["start_time"]
    resp = await client.post(gym.url("/classes"), json=body, headers=gym.headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_cancelled_class_cannot_be_booked(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    resp = await client.post(
        gym.url(f"/classes/{gym_class['id']}/cancel"), json={"reason": "Mantenimiento"}, headers=gym.headers
    )
    assert resp.status_code == 200
    assert resp.json()["is_cancelled"] is True

    _, token = await _client_member(api, gym)
    resp = await client.post(gym.url(f"/my/classes/{gym_class['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "CLASS_CANCELLED"


# ---------------------------------------------------------------------------
# Staff bookings
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_waitlist_and_promotion(client, api, gym):
    gym_class = await api.create_class(
        gym.admin_token, gym.slug, **_class_body(timedelta(days=2), max_capacity=1, max_waitlist=1)
    )
    first = await api.create_member(gym.admin_token, gym.slug)
    second = await api.create_member(gym.admin_token, gym.slug)
    third = await api.create_member(gym.admin_token, gym.slug)
    roster_url = gym.url(f"/classes/{gym_class['id']}/bookings")

    resp = await client.post(roster_url, json={"member_id": first["id"]}, headers=gym.headers)
    assert resp.status_code == 201
    confirmed = resp.json()
    assert confirmed["status"] == "confirmed"

    resp = await client.post(roster_url, json={"member_id": first["id"]}, headers=gym.headers)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "ALREADY_BOOKED"

    resp = await client.post(roster_url, json={"member_id": second["id"]}, headers=gym.headers)
    assert resp.json()["status"] == "waitlist"
    assert resp.json()["waitlist_position"] == 1

    resp = await client.post(roster_url, json={"member_id": third["id"]}, headers=gym.headers)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "WAITLIST_FULL"

    resp = await client.post(gym.url(f"/bookings/{confirmed['id']}/cancel"), headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    roster = (await client.get(roster_url, headers=gym.headers)).json()["bookings"]
    by_member = {b["member_id"]: b for b in roster}
    assert by_member[second["id"]]["status"] == "confirmed"
    assert by_member[second["id"]]["waitlist_position"] is None
    assert by_member[second["id"]]["member_name"] == "Ana Torres"

    resp = await client.get(gym.url(f"/classes/{gym_class['id']}"), headers=gym.headers)
    assert resp.json()["current_bookings"] == 1


@pytest.mark.asyncio
async def test_full_class_without_waitlist(client, api, gym):
    gym_class = await api.create_class(
        gym.admin_token, gym.slug, **_class_body(timedelta(days=2), max_capacity=1, waitlist_enabled=False)
    )
    roster_url = gym.url(f"/classes/{gym_class['id']}/bookings")
    for expected in (201, 409):
        member = await api.create_member(gym.admin_token, gym.slug)
        resp = await client.post(roster_url, json={"member_id": member["id"]}, headers=gym.headers)
        assert resp.status_code == expected
    assert resp.json()["detail"]["code"] == "CLASS_FULL"


@pytest.mark.asyncio
async def test_attendance_records_a_check_in(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    member = await api.create_member(gym.admin_token, gym.slug)
    booking = (
        await client.post(
            gym.url(f"/classes/{gym_class['id']}/bookings"), json={"member_id": member["id"]}, headers=gym.headers
        )
    ).json()

    resp = await client.patch(
        gym.url(f"/bookings/{booking['id']}/attendance"), json={"status": "cancelled"}, headers=gym.headers
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_BOOKING_STATUS"

    resp = await client.patch(
        gym.url(f"/bookings/{booking['id']}/attendance"), json={"status": "attended"}, headers=gym.headers
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "attended"
    assert resp.json()["checked_in_at"] is not None

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.json()["check_in_count"] == 1

    resp = await client.get(gym.url("/check-ins/today"), headers=gym.headers)
    methods = [c["check_in_method"] for c in resp.json()["check_ins"]]
    assert methods == ["manual"]


@pytest.mark.asyncio
async def test_no_show_records_no_check_in(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    member = await api.create_member(gym.admin_token, gym.slug)
    booking = (
        await client.post(
            gym.url(f"/classes/{gym_class['id']}/bookings"), json={"member_id": member["id"]}, headers=gym.headers
        )
    ).json()

    resp = await client.patch(
        gym.url(f"/bookings/{booking['id']}/attendance"), json={"status": "no_show"}, headers=gym.headers
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "no_show"
    assert resp.json()["checked_in_at"] is None

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.json()["check_in_count"] == 0

    resp = await client.get(gym.url("/check-ins/today"), headers=gym.headers)
    assert resp.json()["check_ins"] == []


@pytest.mark.asyncio
async def test_no_show_after_attended_removes_check_in(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    member = await api.create_member(gym.admin_token, gym.slug)
    booking = (
        await client.post(
            gym.url(f"/classes/{gym_class['id']}/bookings"), json={"member_id": member["id"]}, headers=gym.headers
        )
    ).json()
    attendance_url = gym.url(f"/bookings/{booking['id']}/attendance")

    resp = await client.patch(attendance_url, json={"status": "attended"}, headers=gym.headers)
    assert resp.status_code == 200

    resp = await client.patch(attendance_url, json={"status": "no_show"}, headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "no_show"
    assert resp.json()["checked_in_at"] is None

    resp = await client.get(gym.url(f"/members/{member['id']}"), headers=gym.headers)
    assert resp.json()["check_in_count"] == 0
    assert resp.json()["last_check_in"] is None

    resp = await client.get(gym.url("/check-ins/today"), headers=gym.headers)
    assert resp.json()["check_ins"] == []


# ---------------------------------------------------------------------------
# Member self-service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_member_reserves_and_cancels(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    _, token = await _client_member(api, gym)

    resp = await client.get(gym.url("/my/classes"), headers=auth(token))
    assert resp.status_code == 200
    listed = next(c for c in resp.json()["classes"] if c["id"] == gym_class["id"])
    assert listed["has_my_booking"] is False

    resp = await client.post(gym.url(f"/my/classes/{gym_class['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 201, resp.text
    booking = resp.json()
    assert booking["status"] == "confirmed"

    resp = await client.get(gym.url("/my/bookings"), headers=auth(token))
    data = resp.json()
    assert data["total"] == 1
    assert data["bookings"][0]["gym_class"]["id"] == gym_class["id"]

    resp = await client.post(gym.url(f"/my/bookings/{booking['id']}/cancel"), headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    resp = await client.post(gym.url(f"/my/bookings/{booking['id']}/cancel"), headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "BOOKING_ALREADY_CANCELLED"

    resp = await client.post(gym.url(f"/my/classes/{gym_class['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 201
    assert resp.json()["id"] == booking["id"]


@pytest.mark.asyncio
async def test_daily_class_limit(client, api, gym):
    await client.put(gym.url("/booking-limits"), json={"max_classes_per_day": 1}, headers=gym.headers)

    day = (datetime.now(UTC) + timedelta(days=2)).date()
    morning = datetime(day.year, day.month, day.day, 15, 0, tzinfo=UTC)
    classes = []
    for start in (morning, morning + timedelta(hours=2)):
        classes.append(
            await api.create_class(
                gym.admin_token,
                gym.slug,
                name="Spinning",
                start_time=start.isoformat(),
                end_time=(start + timedelta(hours=1)).isoformat(),
            )
        )
    _, token = await _client_member(api, gym)

    resp = await client.post(gym.url(f"/my/classes/{classes[0]['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 201

    resp = await client.post(gym.url(f"/my/classes/{classes[1]['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["code"] == "DAILY_CLASS_LIMIT_REACHED"
    assert detail["limit"] == 1
    assert detail["current_count"] == 1
    assert detail["timezone"] == "America/Mexico_City"
    assert [b["class_name"] for b in detail["existing_bookings"]] == ["Spinning"]

    resp = await client.get(gym.url("/my/classes"), headers=auth(token))
    listed = {c["id"]: c for c in resp.json()["classes"]}
    assert listed[classes[1]["id"]]["daily_limit_reached"] is True


@pytest.mark.asyncio
async def test_membership_must_cover_class_date(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=5)))
    _, token = await _client_member(
        api, gym, membership_end_date=(date.today() + timedelta(days=1)).isoformat()
    )

    resp = await client.post(gym.url(f"/my/classes/{gym_class['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "MEMBERSHIP_EXPIRED"


@pytest.mark.asyncio
async def test_member_without_membership_cannot_reserve(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    _, token = await _client_member(api, gym, membership_end_date=None)

    resp = await client.post(gym.url(f"/my/classes/{gym_class['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "NO_MEMBERSHIP"


@pytest.mark.asyncio
async def test_booking_window(client, api, gym):
    _, token = await _client_member(api, gym)

    far = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=9)))
    resp = await client.post(gym.url(f"/my/classes/{far['id']}/reserve"), headers=auth(token))
    assert resp.json()["detail"]["code"] == "BOOKING_NOT_OPEN"

    soon = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(minutes=30)))
    resp = await client.post(gym.url(f"/my/classes/{soon['id']}/reserve"), headers=auth(token))
    assert resp.json()["detail"]["code"] == "BOOKING_CLOSED"


@pytest.mark.asyncio
async def test_cancellation_deadline(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(minutes=90)))
    _, token = await _client_member(api, gym)

    resp = await client.post(gym.url(f"/my/classes/{gym_class['id']}/reserve"), headers=auth(token))
    assert resp.status_code == 201
    booking = resp.json()

    resp = await client.post(gym.url(f"/my/bookings/{booking['id']}/cancel"), headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "CANCELLATION_DEADLINE_PASSED"

    resp = await client.post(gym.url(f"/bookings/{booking['id']}/cancel"), headers=gym.headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_staff_without_member_profile(client, api, gym):
    gym_class = await api.create_class(gym.admin_token, gym.slug, **_class_body(timedelta(days=2)))
    resp = await client.post(gym.url(f"/my/classes/{gym_class['id']}/reserve"), headers=gym.headers)
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "MEMBER_PROFILE_NOT_FOUND"
