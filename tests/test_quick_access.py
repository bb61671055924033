"""
Quick access ordering tests.
"""

import uuid

import pytest
from httpx import AsyncClient

from conftest import auth

pytestmark = pytest.mark.asyncio


async def _add(client: AsyncClient, token: str, name: str):
    resp = await client.post(
        "/api/quick-access", json={"name": name, "url": f"/{name.lower()}", "icon": "link"}, headers=auth(token)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_new_items_go_last(client: AsyncClient, make_user):
    token, _ = await make_user()
    items = [await _add(client, token, name) for name in ("Email", "Agenda", "Docs")]
    assert [i["order"] for i in items] == [0, 1, 2]
    assert items[0]["category"] == "Outros"

    listing = (await client.get("/api/quick-access", headers=auth(token))).json()
    assert [i["name"] for i in listing["data"]] == ["Email", "Agenda", "Docs"]
    assert listing["count"] == 3


async def test_delete_renumbers(client: AsyncClient, make_user):
    token, _ = await make_user()
    items = [await _add(client, token, name) for name in ("Email", "Agenda", "Docs")]

    resp = await client.delete(f"/api/quick-access/{items[1]['id']}", headers=auth(token))
    assert resp.status_code == 200

    listing = (await client.get("/api/quick-access", headers=auth(token))).json()["data"]
    assert [(i["name"], i["order"]) for i in listing] == [("Email", 0), ("Docs", 1)]


async def test_reorder(client: AsyncClient, make_user):
    token, _ = await make_user()
    other, _ = await make_user(name="Carlos")
    first, second = [await _add(client, token, name) for name in ("Email", "Agenda")]
    foreign = await _add(client, other, "Outro")

    resp = await client.post(
        "/api/quick-access/order",
        json={"order": [{"id": first["id"], "order": 1}, {"id": second["id"], "order": 0}]},
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert [i["name"] for i in resp.json()["data"]] == ["Agenda", "Email"]

    unknown = await client.post(
        "/api/quick-access/order", json={"order": [{"id": str(uuid.uuid4()), "order": 0}]}, headers=auth(token)
    )
    assert unknown.status_code == 404

    stolen = await client.post(
        "/api/quick-access/order", json={"order": [{"id": foreign["id"], "order": 0}]}, headers=auth(token)
    )
    assert stolen.status_code == 403


async def test_owner_only_updates(client: AsyncClient, make_user):
    token, _ = await make_user()
    other, _ = await make_user(name="Carlos")
    item = await _add(client, token, "Email")

    denied = await client.put(f"/api/quick-access/{item['id']}", json={"name": "X"}, headers=auth(other))
    assert denied.status_code == 403
    assert (await client.delete(f"/api/quick-access/{item['id']}", headers=auth(other))).status_code == 403

    ok = await client.put(f"/api/quick-access/{item['id']}", json={"name": "Correio"}, headers=auth(token))
    assert ok.json()["data"]["name"] == "Correio"


async def test_gallery(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.get("/api/quick-access/gallery", headers=auth(token))
    body = resp.json()
    assert body["count"] == 10
    assert all(app["is_custom"] is False for app in body["data"])
