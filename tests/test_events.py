"""
Event, attendance and calendar tests.
"""

import pytest
from httpx import AsyncClient

from conftest import auth

pytestmark = pytest.mark.asyncio


def _payload(**extra):
    data = {
        "title": "Reunião geral",
        "description": "Pauta mensal",
        "start_date": "2030-03-10T14:00:00Z",
        "end_date": "2030-03-10T16:00:00Z",
    }
    data.update(extra)
    return data


async def _event(client: AsyncClient, token: str, **extra):
    resp = await client.post("/api/events", json=_payload(**extra), headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_creator_attends_own_event(client: AsyncClient, make_user):
    token, user = await make_user()
    event = await _event(client, token)
    assert event["creator"]["id"] == user["id"]
    assert event["attendee_count"] == 1
    assert event["is_attending"] is True


async def test_end_before_start_rejected(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.post(
        "/api/events", json=_payload(end_date="2030-03-10T13:00:00Z"), headers=auth(token)
    )
    assert resp.status_code == 400

    event = await _event(client, token)
    bad_update = await client.put(
        f"/api/events/{event['id']}", json={"end_date": "2030-03-09T10:00:00Z"}, headers=auth(token)
    )
    assert bad_update.status_code == 400


async def test_attendance_toggle_notifies_creator(client: AsyncClient, make_user):
    creator, _ = await make_user()
    guest, guest_user = await make_user(name="Carlos")
    event = await _event(client, creator)
    url = f"/api/events/{event['id']}/attend"

    joined = await client.post(url, headers=auth(guest))
    assert joined.status_code == 200
    assert joined.json()["data"]["attendee_count"] == 2
    assert (await client.post(url, headers=auth(guest))).status_code == 400

    left = await client.delete(url, headers=auth(guest))
    assert left.json()["data"]["attendee_count"] == 1
    assert (await client.delete(url, headers=auth(guest))).status_code == 400

    notes = (await client.get("/api/notifications", headers=auth(creator))).json()["data"]
    assert [n["type"] for n in notes] == ["event", "event"]
    assert all(n["sender"]["id"] == guest_user["id"] for n in notes)


async def test_update_and_delete_rights(client: AsyncClient, make_user):
    creator, _ = await make_user()
    other, _ = await make_user(name="Carlos")
    event = await _event(client, creator)

    denied = await client.put(f"/api/events/{event['id']}", json={"title": "x"}, headers=auth(other))
    assert denied.status_code == 403

    ok = await client.put(f"/api/events/{event['id']}", json={"title": "Reunião extra"}, headers=auth(creator))
    assert ok.json()["data"]["title"] == "Reunião extra"

    assert (await client.delete(f"/api/events/{event['id']}", headers=auth(other))).status_code == 403
    assert (await client.delete(f"/api/events/{event['id']}", headers=auth(creator))).status_code == 200
    assert (await client.get(f"/api/events/{event['id']}", headers=auth(creator))).status_code == 404


async def test_cancellation_notifies_attendees(client: AsyncClient, make_user):
    creator, _ = await make_user()
    guest, _ = await make_user(name="Carlos")
    event = await _event(client, creator)
    await client.post(f"/api/events/{event['id']}/attend", headers=auth(guest))

    await client.delete(f"/api/events/{event['id']}", headers=auth(creator))

    notes = (await client.get("/api/notifications", headers=auth(guest))).json()["data"]
    assert notes[0]["content"].startswith("Event cancelled")


async def test_list_filters_by_range(client: AsyncClient, make_user):
    token, _ = await make_user()
    march = await _event(client, token)
    await _event(client, token, start_date="2030-05-01T09:00:00Z", end_date="2030-05-01T10:00:00Z")

    resp = await client.get(
        "/api/events",
        params={"start": "2030-03-01T00:00:00Z", "end": "2030-03-31T23:59:59Z"},
        headers=auth(token),
    )
    assert [e["id"] for e in resp.json()["data"]] == [march["id"]]


async def test_calendar_groups_by_month(client: AsyncClient, make_user):
    token, _ = await make_user()
    await _event(client, token)
    await _event(client, token, title="Treinamento", start_date="2030-05-01T09:00:00Z", end_date="2030-05-01T10:00:00Z")

    resp = await client.get("/api/events/calendar", headers=auth(token))
    data = resp.json()["data"]
    assert list(data) == ["2030-03", "2030-05"]
    assert data["2030-05"][0]["title"] == "Treinamento"


async def test_group_event_requires_membership(client: AsyncClient, make_user):
    owner, _ = await make_user()
    outsider, _ = await make_user(name="Carlos")
    group = (
        await client.post(
            "/api/groups", json={"name": "Obras", "description": "Equipe de obras"}, headers=auth(owner)
        )
    ).json()["data"]

    denied = await client.post("/api/events", json=_payload(group_id=group["id"]), headers=auth(outsider))
    assert denied.status_code == 403

    await _event(client, owner, group_id=group["id"])
    listed = (await client.get(f"/api/groups/{group['id']}/events", headers=auth(outsider))).json()
    assert listed["pagination"]["total"] == 1
