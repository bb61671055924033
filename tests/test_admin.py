"""
Admin dashboard, logs and settings tests.
"""

import pytest
from httpx import AsyncClient

from conftest import auth

pytestmark = pytest.mark.asyncio


async def test_admin_routes_are_gated(client: AsyncClient, make_user):
    token, _ = await make_user()
    for path in ("/dashboard", "/users", "/posts", "/groups", "/events", "/news", "/logs", "/settings"):
        resp = await client.get(f"/api/admin{path}", headers=auth(token))
        assert resp.status_code == 403, path


async def test_dashboard_counts_and_activity(client: AsyncClient, make_admin, make_user):
    admin, _ = await make_admin()
    token, _ = await make_user()
    post = (await client.post("/api/posts", json={"content": "Olá"}, headers=auth(token))).json()["data"]
    await client.post(
        "/api/events",
        json={
            "title": "Reunião",
            "description": "Pauta",
            "start_date": "2099-01-10T10:00:00Z",
            "end_date": "2099-01-10T11:00:00Z",
        },
        headers=auth(token),
    )

    resp = await client.get("/api/admin/dashboard", headers=auth(admin))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["stats"]["users"] == 2
    assert data["stats"]["posts"] == 1
    assert data["stats"]["recent_posts"] == 1
    assert data["stats"]["events"] == 1
    assert [e["title"] for e in data["upcoming_events"]] == ["Reunião"]

    post_entries = [a for a in data["recent_activity"] if a["entity"]["type"] == "post"]
    assert post_entries[0]["entity"]["id"] == post["id"]
    assert post_entries[0]["entity"]["label"] == "Olá"


async def test_logs_filters(client: AsyncClient, make_admin, make_user):
    admin, admin_user = await make_admin()
    token, user = await make_user()
    await client.post("/api/posts", json={"content": "Olá"}, headers=auth(token))

    created = (await client.get("/api/admin/logs", params={"action": "create", "entity_type": "post"}, headers=auth(admin))).json()
    assert created["pagination"]["total"] == 1
    assert created["data"][0]["user"]["id"] == user["id"]

    mine = (await client.get("/api/admin/logs", params={"user_id": admin_user["id"]}, headers=auth(admin))).json()
    assert all(entry["user"]["id"] == admin_user["id"] for entry in mine["data"])


async def test_management_lists(client: AsyncClient, make_admin, make_user):
    admin, _ = await make_admin()
    token, _ = await make_user()
    await client.post("/api/posts", json={"content": "Rascunho", "is_published": False}, headers=auth(token))
    await client.post("/api/groups", json={"name": "Privado", "description": "x", "is_private": True}, headers=auth(token))

    users = (await client.get("/api/admin/users", headers=auth(admin))).json()
    assert users["pagination"]["total"] == 2

    posts = (await client.get("/api/admin/posts", headers=auth(admin))).json()
    assert posts["pagination"]["total"] == 1

    groups = (await client.get("/api/admin/groups", headers=auth(admin))).json()
    assert [g["name"] for g in groups["data"]] == ["Privado"]

    for path in ("/api/admin/events", "/api/admin/news"):
        assert (await client.get(path, headers=auth(admin))).json()["data"] == []


async def test_settings_gate_registration(client: AsyncClient, make_admin):
    admin, _ = await make_admin()

    current = (await client.get("/api/admin/settings", headers=auth(admin))).json()["data"]
    assert current["allow_registration"] is True
    assert current["theme"] == "light"

    bad = await client.put("/api/admin/settings", json={"theme": "neon"}, headers=auth(admin))
    assert bad.status_code == 400

    resp = await client.put(
        "/api/admin/settings", json={"allow_registration": False, "site_name": "Intranet"}, headers=auth(admin)
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["site_name"] == "Intranet"

    closed = await client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": "ana@prefeitura.gov.br", "password": "secret123", "position": "Analista"},
    )
    assert closed.status_code == 403
