"""
User management, self-service profile and badge tests.
"""

import pytest
from httpx import AsyncClient

from conftest import DEFAULT_PASSWORD, auth

pytestmark = pytest.mark.asyncio

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def test_admin_routes_require_admin(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.get("/api/users/admin/users", headers=auth(token))
    assert resp.status_code == 403


async def test_admin_user_crud(client: AsyncClient, make_admin):
    token, _ = await make_admin()
    headers = auth(token)

    created = await client.post(
        "/api/users/admin/users",
        json={"name": "Carlos", "email": "carlos@prefeitura.gov.br", "password": "secret123", "position": "Fiscal"},
        headers=headers,
    )
    assert created.status_code == 201
    user_id = created.json()["data"]["id"]

    listing = await client.get("/api/users/admin/users", params={"search": "carl"}, headers=headers)
    assert listing.status_code == 200
    assert [u["id"] for u in listing.json()["data"]] == [user_id]
    assert listing.json()["pagination"] == {"total": 1, "pages": 1, "page": 1, "limit": 10}

    updated = await client.put(
        f"/api/users/admin/users/{user_id}", json={"role": "admin", "is_active": False}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["role"] == "admin"
    assert updated.json()["data"]["is_active"] is False

    deleted = await client.delete(f"/api/users/admin/users/{user_id}", headers=headers)
    assert deleted.status_code == 200

    missing = await client.get(f"/api/users/admin/users/{user_id}", headers=headers)
    assert missing.status_code == 404


async def test_admin_cannot_delete_self(client: AsyncClient, make_admin):
    token, admin = await make_admin()
    resp = await client.delete(f"/api/users/admin/users/{admin['id']}", headers=auth(token))
    assert resp.status_code == 400


async def test_disabled_account_is_forbidden(client: AsyncClient, make_admin, make_user):
    admin_token, _ = await make_admin()
    token, user = await make_user(name="Carlos")

    await client.put(f"/api/users/admin/users/{user['id']}", json={"is_active": False}, headers=auth(admin_token))

    resp = await client.get("/api/users/profile", headers=auth(token))
    assert resp.status_code == 403


async def test_invalid_id_is_400(client: AsyncClient, make_admin):
    token, _ = await make_admin()
    resp = await client.get("/api/users/admin/users/not-a-uuid", headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid id: not-a-uuid"


async def test_update_profile(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.put(
        "/api/users/profile", json={"name": "Maria S.", "bio": "Prefeitura"}, headers=auth(token)
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Maria S."
    assert resp.json()["data"]["bio"] == "Prefeitura"


async def test_update_avatar(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.put(
        "/api/users/profile/avatar",
        files={"avatar": ("me.png", PNG, "image/png")},
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["avatar"].startswith("/uploads/avatars/avatar-")


async def test_avatar_rejects_wrong_type(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.put(
        "/api/users/profile/avatar",
        files={"avatar": ("me.txt", b"hello", "text/plain")},
        headers=auth(token),
    )
    assert resp.status_code == 400


async def test_change_password_rules(client: AsyncClient, make_user):
    token, _ = await make_user()
    headers = auth(token)

    wrong = await client.put(
        "/api/users/password",
        json={"current_password": "nope", "new_password": "other123", "confirm_password": "other123"},
        headers=headers,
    )
    assert wrong.status_code == 401

    same = await client.put(
        "/api/users/password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": DEFAULT_PASSWORD, "confirm_password": DEFAULT_PASSWORD},
        headers=headers,
    )
    assert same.status_code == 400

    mismatch = await client.put(
        "/api/users/password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "other123", "confirm_password": "other456"},
        headers=headers,
    )
    assert mismatch.status_code == 400

    ok = await client.put(
        "/api/users/password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "other123", "confirm_password": "other123"},
        headers=headers,
    )
    assert ok.status_code == 200


async def test_badge_is_pdf_for_self_only(client: AsyncClient, make_user):
    token, user = await make_user()
    other_token, _ = await make_user(name="Carlos")

    resp = await client.get(f"/api/users/{user['id']}/badge", headers=auth(token))
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")

    forbidden = await client.get(f"/api/users/{user['id']}/badge", headers=auth(other_token))
    assert forbidden.status_code == 403


async def test_notification_settings_roundtrip(client: AsyncClient, make_user):
    token, _ = await make_user()
    headers = auth(token)

    resp = await client.put(
        "/api/users/notifications/settings", json={"email": False, "types": {"events": False}}, headers=headers
    )
    assert resp.status_code == 200

    current = (await client.get("/api/users/notifications/settings", headers=headers)).json()["data"]
    assert current["email"] is False
    assert current["types"]["events"] is False
    assert current["types"]["posts"] is True


async def test_admin_update_ignores_nulls_for_required_fields(client: AsyncClient, make_admin, make_user):
    admin, _ = await make_admin()
    _, user = await make_user(name="Carlos")
    url = f"/api/users/admin/users/{user['id']}"

    seeded = await client.put(url, json={"phone": "3199-0000"}, headers=auth(admin))
    assert seeded.json()["data"]["phone"] == "3199-0000"

    resp = await client.put(url, json={"name": None, "email": None, "phone": None}, headers=auth(admin))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Carlos"
    assert data["email"] == user["email"]
    assert data["phone"] is None
