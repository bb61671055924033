"""
News publishing tests.
"""

import pytest
from httpx import AsyncClient

from conftest import auth

pytestmark = pytest.mark.asyncio


def _payload(**extra):
    data = {
        "title": "Vacinação na prefeitura",
        "content": "Campanha de vacinação para servidores.",
        "summary": "Campanha de vacinação",
        "category": "Saúde",
    }
    data.update(extra)
    return data


async def _news(client: AsyncClient, token: str, **extra):
    resp = await client.post("/api/news", json=_payload(**extra), headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_only_admins_publish(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.post("/api/news", json=_payload(), headers=auth(token))
    assert resp.status_code == 403


async def test_unpublished_hidden_from_users(client: AsyncClient, make_admin, make_user):
    admin, _ = await make_admin()
    reader, _ = await make_user()
    draft = await _news(client, admin, is_published=False)
    await _news(client, admin, title="Publicada")

    listing = (await client.get("/api/news", headers=auth(reader))).json()
    assert [n["title"] for n in listing["data"]] == ["Publicada"]
    assert (await client.get(f"/api/news/{draft['id']}", headers=auth(reader))).status_code == 404

    admin_listing = (await client.get("/api/news", headers=auth(admin))).json()
    assert admin_listing["pagination"]["total"] == 2


async def test_categories_and_filters(client: AsyncClient, make_admin):
    admin, _ = await make_admin()
    await _news(client, admin)
    await _news(client, admin, category="Obras", is_featured=True)
    await _news(client, admin, category="Obras")

    categories = (await client.get("/api/news/categories", headers=auth(admin))).json()["data"]
    assert categories == ["Obras", "Saúde"]

    obras = (await client.get("/api/news", params={"category": "Obras"}, headers=auth(admin))).json()
    assert obras["pagination"]["total"] == 2

    featured = (await client.get("/api/news/featured", headers=auth(admin))).json()["data"]
    assert len(featured) == 1
    assert featured[0]["is_featured"] is True


async def test_featuring_notifies_everyone_else(client: AsyncClient, make_admin, make_user):
    admin, _ = await make_admin()
    reader, _ = await make_user()

    item = await _news(client, admin)
    assert (await client.get("/api/notifications", headers=auth(reader))).json()["data"] == []

    await client.put(f"/api/news/{item['id']}", json={"is_featured": True}, headers=auth(admin))
    notes = (await client.get("/api/notifications", headers=auth(reader))).json()["data"]
    assert [n["type"] for n in notes] == ["news"]

    # Already featured: a second update does not notify again.
    await client.put(f"/api/news/{item['id']}", json={"title": "Atualizada", "is_featured": True}, headers=auth(admin))
    assert len((await client.get("/api/notifications", headers=auth(reader))).json()["data"]) == 1

    assert (await client.get("/api/notifications", headers=auth(admin))).json()["data"] == []


async def test_update_delete_and_media(client: AsyncClient, make_admin):
    admin, _ = await make_admin()
    item = await _news(client, admin)

    media = await client.post(
        f"/api/news/{item['id']}/media",
        files={"media": ("capa.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 32, "image/png")},
        headers=auth(admin),
    )
    assert media.status_code == 200
    assert media.json()["data"]["media"][0].startswith("/uploads/news/")

    deleted = await client.delete(f"/api/news/{item['id']}", headers=auth(admin))
    assert deleted.status_code == 200
    assert (await client.get(f"/api/news/{item['id']}", headers=auth(admin))).status_code == 404
