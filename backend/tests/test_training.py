"""
Exercise library and workout routines.
"""

import pytest

from app.models.exercise import Exercise
from conftest import auth, unique_email


def _routine(**extra) -> dict:
    return {
        "name": "Piernas A",
        "exercises": [
            {"exercise_name": "Sentadilla", "sets": 4, "reps": "8-10", "order": 0},
            {"exercise_name": "Peso muerto rumano", "sets": 3, "reps": "10", "rest_seconds": 90, "order": 1},
        ],
        **extra,
    }


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_exercise_crud_and_filters(client, gym):
    resp = await client.post(
        gym.url("/exercises"),
        json={"name": "Press banca", "category": "fuerza", "muscle_groups": ["pecho"], "difficulty": "intermediate"},
        headers=gym.headers,
    )
    assert resp.status_code == 201, resp.text
    exercise = resp.json()
    assert exercise["is_global"] is False
    assert exercise["org_id"] == gym.org["id"]

    await client.post(gym.url("/exercises"), json={"name": "Burpee", "category": "cardio"}, headers=gym.headers)

    resp = await client.get(gym.url("/exercises"), params={"category": "fuerza"}, headers=gym.headers)
    assert [e["name"] for e in resp.json()["exercises"]] == ["Press banca"]

    resp = await client.get(gym.url("/exercises"), params={"search": "BURP"}, headers=gym.headers)
    assert [e["name"] for e in resp.json()["exercises"]] == ["Burpee"]

    resp = await client.patch(
        gym.url(f"/exercises/{exercise['id']}"), json={"equipment": ["barra", "banco"]}, headers=gym.headers
    )
    assert resp.json()["equipment"] == ["barra", "banco"]

    resp = await client.delete(gym.url(f"/exercises/{exercise['id']}"), headers=gym.headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_global_exercises_are_listed_but_read_only(client, gym, db):
    library = Exercise(org_id=None, name="Dominadas", is_global=True)
    db.add(library)
    await db.commit()

    resp = await client.get(gym.url("/exercises"), headers=gym.headers)
    assert "Dominadas" in [e["name"] for e in resp.json()["exercises"]]

    resp = await client.patch(gym.url(f"/exercises/{library.id}"), json={"name": "Otra"}, headers=gym.headers)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "GLOBAL_EXERCISE_READ_ONLY"


@pytest.mark.asyncio
async def test_nutritionist_cannot_manage_exercises(client, api, gym):
    nutritionist = await api.add_staff(gym.admin_token, gym.slug, "nutritionist")
    resp = await client.get(gym.url("/exercises"), headers=auth(nutritionist))
    assert resp.status_code == 200

    resp = await client.post(gym.url("/exercises"), json={"name": "Plancha"}, headers=auth(nutritionist))
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Routines
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_routine_requires_an_exercise(client, gym):
    resp = await client.post(gym.url("/routines"), json=_routine(exercises=[]), headers=gym.headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_wod_time_cap_is_bounded(client, gym):
    resp = await client.post(
        gym.url("/routines"),
        json=_routine(workout_type="wod", wod_type="amrap", wod_time_cap=121),
        headers=gym.headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_routine_crud(client, gym):
    resp = await client.post(gym.url("/routines"), json=_routine(), headers=gym.headers)
    assert resp.status_code == 201, resp.text
    routine = resp.json()
    assert routine["is_template"] is True
    assert [e["exercise_name"] for e in routine["exercises"]] == ["Sentadilla", "Peso muerto rumano"]

    resp = await client.post(
        gym.url("/routines"),
        json=_routine(name="Fran", workout_type="wod", wod_type="for_time", wod_time_cap=10),
        headers=gym.headers,
    )
    assert resp.status_code == 201

    resp = await client.get(gym.url("/routines"), params={"workout_type": "wod"}, headers=gym.headers)
    assert [r["name"] for r in resp.json()["routines"]] == ["Fran"]

    resp = await client.patch(
        gym.url(f"/routines/{routine['id']}"),
        json={"exercises": [{"exercise_name": "Zancadas", "sets": 3}]},
        headers=gym.headers,
    )
    assert resp.status_code == 200
    assert [e["exercise_name"] for e in resp.json()["exercises"]] == ["Zancadas"]

    resp = await client.delete(gym.url(f"/routines/{routine['id']}"), headers=gym.headers)
    assert resp.status_code == 200
    resp = await client.get(gym.url(f"/routines/{routine['id']}"), headers=gym.headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_assign_copies_routine_to_member(client, api, gym):
    email = unique_email("athlete")
    member = await api.create_member(gym.admin_token, gym.slug, email=email)
    member_token = await api.add_staff(gym.admin_token, gym.slug, "client", email=email)

    template = (await client.post(gym.url("/routines"), json=_routine(), headers=gym.headers)).json()

    resp = await client.post(
        gym.url(f"/routines/{template['id']}/assign"),
        json={"member_id": member["id"], "scheduled_date": "2030-05-01"},
        headers=gym.headers,
    )
    assert resp.status_code == 201
    assigned = resp.json()
    assert assigned["id"] != template["id"]
    assert assigned["is_template"] is False
    assert assigned["assigned_to_member_id"] == member["id"]
    assert assigned["exercises"] == template["exercises"]

    resp = await client.get(gym.url("/my/routines"), headers=auth(member_token))
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()["routines"]] == [assigned["id"]]

    resp = await client.get(gym.url("/routines"), headers=auth(member_token))
    assert resp.status_code == 403
