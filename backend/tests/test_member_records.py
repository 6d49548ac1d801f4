"""
Member file: body measurements with derived BMI and staff notes.
"""

import pytest

from conftest import auth, unique_email


async def _measure(client, gym, member_id: str, headers=None, **fields) -> dict:
    resp = await client.post(
        gym.url(f"/members/{member_id}/measurements"), json=fields, headers=headers or gym.headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_measurement_crud_with_bmi(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)

    measurement = await _measure(client, gym, member["id"], height_cm=180, weight_kg=81, waist_cm=82.5)
    assert measurement["body_mass_index"] == 25.0
    assert measurement["waist_cm"] == 82.5
    assert measurement["member_id"] == member["id"]
    assert measurement["measured_at"] is not None

    resp = await client.patch(
        gym.url(f"/measurements/{measurement['id']}"), json={"weight_kg": 90}, headers=gym.headers
    )
    assert resp.status_code == 200
    assert resp.json()["weight_kg"] == 90.0
    assert resp.json()["body_mass_index"] == 27.8

    resp = await client.get(gym.url(f"/members/{member['id']}/measurements"), headers=gym.headers)
    assert resp.json()["total"] == 1

    resp = await client.delete(gym.url(f"/measurements/{measurement['id']}"), headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json() == {}

    resp = await client.delete(gym.url(f"/measurements/{measurement['id']}"), headers=gym.headers)
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "MEASUREMENT_NOT_FOUND"


@pytest.mark.asyncio
async def test_bmi_needs_height_and_weight(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    measurement = await _measure(client, gym, member["id"], weight_kg=70)
    assert measurement["body_mass_index"] is None


@pytest.mark.asyncio
async def test_measurement_requires_a_reading(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    resp = await client.post(
        gym.url(f"/members/{member['id']}/measurements"), json={"notes": "Sin datos"}, headers=gym.headers
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_latest_measurement(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    url = gym.url(f"/members/{member['id']}/measurements/latest")

    resp = await client.get(url, headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json() is None

    await _measure(client, gym, member["id"], weight_kg=80, measured_at="2026-01-10T09:00:00Z")
    await _measure(client, gym, member["id"], weight_kg=78, measured_at="2026-02-10T09:00:00Z")
    await _measure(client, gym, member["id"], weight_kg=79, measured_at="2026-01-25T09:00:00Z")

    resp = await client.get(url, headers=gym.headers)
    assert resp.json()["weight_kg"] == 78.0

    resp = await client.get(gym.url(f"/members/{member['id']}/measurements"), headers=gym.headers)
    assert [m["weight_kg"] for m in resp.json()["measurements"]] == [78.0, 79.0, 80.0]


@pytest.mark.asyncio
async def test_measurements_of_unknown_member(client, gym):
    resp = await client.get(
        gym.url("/members/00000000-0000-0000-0000-000000000000/measurements"), headers=gym.headers
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "MEMBER_NOT_FOUND"


@pytest.mark.asyncio
async def test_client_sees_only_own_measurements(client, api, gym):
    email = unique_email("client")
    member = await api.create_member(gym.admin_token, gym.slug, email=email)
    token = await api.add_staff(gym.admin_token, gym.slug, "client", email=email)
    await _measure(client, gym, member["id"], height_cm=165, weight_kg=60)

    resp = await client.get(gym.url("/my/measurements"), headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["total"] == 1
    assert resp.json()["measurements"][0]["body_mass_index"] == 22.0

    resp = await client.get(gym.url(f"/members/{member['id']}/measurements"), headers=auth(token))
    assert resp.status_code == 403

    resp = await client.post(
        gym.url(f"/members/{member['id']}/measurements"), json={"weight_kg": 59}, headers=auth(token)
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_my_measurements_without_member_profile(client, api, gym):
    token = await api.add_staff(gym.admin_token, gym.slug, "client")
    resp = await client.get(gym.url("/my/measurements"), headers=auth(token))
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "MEMBER_PROFILE_NOT_FOUND"


@pytest.mark.asyncio
async def test_trainer_records_measurements(client, api, gym):
    trainer = await api.add_staff(gym.admin_token, gym.slug, "trainer")
    member = await api.create_member(gym.admin_token, gym.slug)
    measurement = await _measure(client, gym, member["id"], headers=auth(trainer), heart_rate_bpm=62)
    assert measurement["heart_rate_bpm"] == 62
    assert measurement["recorded_by_id"] is not None


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

_NOTE = {"title": "Progreso de marzo", "content": "Subio 5 kg en sentadilla, mantener la rutina."}


@pytest.mark.asyncio
async def test_note_crud(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    notes_url = gym.url(f"/members/{member['id']}/notes")

    resp = await client.post(notes_url, json={**_NOTE, "title": "  Progreso de marzo  "}, headers=gym.headers)
    assert resp.status_code == 201, resp.text
    note = resp.json()
    assert note["title"] == "Progreso de marzo"
    assert note["note_type"] == "trainer_comments"
    assert note["created_by_name"] == "Test User"

    resp = await client.patch(
        gym.url(f"/notes/{note['id']}"), json={"note_type": "progress"}, headers=gym.headers
    )
    assert resp.status_code == 200
    assert resp.json()["note_type"] == "progress"
    assert resp.json()["content"] == _NOTE["content"]

    resp = await client.delete(gym.url(f"/notes/{note['id']}"), headers=gym.headers)
    assert resp.json() == {}

    resp = await client.get(notes_url, headers=gym.headers)
    assert resp.json() == {"notes": [], "total": 0}


@pytest.mark.asyncio
async def test_note_content_length(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    resp = await client.post(
        gym.url(f"/members/{member['id']}/notes"), json={"title": "Corta", "content": "muy poco"}, headers=gym.headers
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_notes_filter_and_limit(client, api, gym):
    member = await api.create_member(gym.admin_token, gym.slug)
    notes_url = gym.url(f"/members/{member['id']}/notes")
    for note_type in ("medical", "progress", "progress"):
        resp = await client.post(notes_url, json={**_NOTE, "note_type": note_type}, headers=gym.headers)
        assert resp.status_code == 201

    resp = await client.get(notes_url, params={"note_type": "progress"}, headers=gym.headers)
    assert resp.json()["total"] == 2
    assert {n["note_type"] for n in resp.json()["notes"]} == {"progress"}

    resp = await client.get(notes_url, params={"limit": 1}, headers=gym.headers)
    assert resp.json()["total"] == 1


@pytest.mark.asyncio
async def test_only_author_or_admin_changes_a_note(client, api, gym):
    author = await api.add_staff(gym.admin_token, gym.slug, "trainer")
    colleague = await api.add_staff(gym.admin_token, gym.slug, "trainer")
    member = await api.create_member(gym.admin_token, gym.slug)

    resp = await client.post(gym.url(f"/members/{member['id']}/notes"), json=_NOTE, headers=auth(author))
    note_url = gym.url(f"/notes/{resp.json()['id']}")

    resp = await client.patch(note_url, json={"title": "Otro titulo"}, headers=auth(colleague))
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NOT_NOTE_AUTHOR"

    resp = await client.delete(note_url, headers=auth(colleague))
    assert resp.status_code == 403

    resp = await client.patch(note_url, json={"title": "Revisado"}, headers=auth(author))
    assert resp.status_code == 200

    resp = await client.patch(note_url, json={"title": "Revisado por admin"}, headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Revisado por admin"

    resp = await client.delete(note_url, headers=gym.headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_client_cannot_read_notes(client, api, gym):
    token = await api.add_staff(gym.admin_token, gym.slug, "client")
    member = await api.create_member(gym.admin_token, gym.slug)
    resp = await client.get(gym.url(f"/members/{member['id']}/notes"), headers=auth(token))
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_PERMISSION"


@pytest.mark.asyncio
async def test_missing_note(client, gym):
    resp = await client.patch(
        gym.url("/notes/00000000-0000-0000-0000-000000000000"), json={"title": "Nada"}, headers=gym.headers
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "NOTE_NOT_FOUND"
