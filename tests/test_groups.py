"""
Group membership and admin-invariant tests.
"""

import pytest
from httpx import AsyncClient

from conftest import auth

pytestmark = pytest.mark.asyncio


async def _group(client: AsyncClient, token: str, **payload):
    payload.setdefault("name", "Equipe de TI")
    payload.setdefault("description", "Grupo da tecnologia")
    resp = await client.post("/api/groups", json=payload, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_creator_is_admin_member(client: AsyncClient, make_user):
    token, user = await make_user()
    group = await _group(client, token)
    assert group["member_count"] == 1
    assert group["is_member"] is True
    assert group["my_role"] == "admin"
    assert group["creator"]["id"] == user["id"]

    members = (await client.get(f"/api/groups/{group['id']}/members", headers=auth(token))).json()["data"]
    assert [(m["user"]["id"], m["role"]) for m in members] == [(user["id"], "admin")]


async def test_join_and_leave(client: AsyncClient, make_user):
    owner, _ = await make_user()
    token, _ = await make_user(name="Carlos")
    group = await _group(client, owner)

    joined = await client.post(f"/api/groups/{group['id']}/join", headers=auth(token))
    assert joined.status_code == 200
    assert joined.json()["data"]["member_count"] == 2

    twice = await client.post(f"/api/groups/{group['id']}/join", headers=auth(token))
    assert twice.status_code == 400

    left = await client.delete(f"/api/groups/{group['id']}/leave", headers=auth(token))
    assert left.status_code == 200

    not_member = await client.delete(f"/api/groups/{group['id']}/leave", headers=auth(token))
    assert not_member.status_code == 400


async def test_sole_admin_cannot_leave(client: AsyncClient, make_user):
    token, _ = await make_user()
    group = await _group(client, token)

    resp = await client.delete(f"/api/groups/{group['id']}/leave", headers=auth(token))
    assert resp.status_code == 400


async def test_admin_can_leave_after_promoting_someone(client: AsyncClient, make_user):
    owner, _ = await make_user()
    token, member = await make_user(name="Carlos")
    group = await _group(client, owner)
    await client.post(f"/api/groups/{group['id']}/join", headers=auth(token))

    promoted = await client.put(
        f"/api/groups/{group['id']}/members/{member['id']}", json={"role": "admin"}, headers=auth(owner)
    )
    assert promoted.status_code == 200
    assert promoted.json()["data"]["role"] == "admin"

    left = await client.delete(f"/api/groups/{group['id']}/leave", headers=auth(owner))
    assert left.status_code == 200


async def test_last_admin_cannot_be_demoted_or_removed(client: AsyncClient, make_user):
    token, user = await make_user()
    group = await _group(client, token)

    demote = await client.put(
        f"/api/groups/{group['id']}/members/{user['id']}", json={"role": "member"}, headers=auth(token)
    )
    assert demote.status_code == 400

    remove = await client.delete(f"/api/groups/{group['id']}/members/{user['id']}", headers=auth(token))
    assert remove.status_code == 400


async def test_private_group_visibility(client: AsyncClient, make_user, make_admin):
    owner, _ = await make_user()
    outsider, outsider_user = await make_user(name="Carlos")
    admin, _ = await make_admin()
    group = await _group(client, owner, is_private=True)

    assert (await client.get(f"/api/groups/{group['id']}", headers=auth(outsider))).status_code == 403
    assert (await client.post(f"/api/groups/{group['id']}/join", headers=auth(outsider))).status_code == 403
    assert (await client.get(f"/api/groups/{group['id']}", headers=auth(admin))).status_code == 200

    listing = (await client.get("/api/groups", headers=auth(outsider))).json()
    assert listing["data"] == []

    added = await client.post(
        f"/api/groups/{group['id']}/members", json={"user_id": outsider_user["id"]}, headers=auth(owner)
    )
    assert added.status_code == 201
    assert (await client.get(f"/api/groups/{group['id']}", headers=auth(outsider))).status_code == 200

    notes = (await client.get("/api/notifications", headers=auth(outsider))).json()["data"]
    assert [n["type"] for n in notes] == ["group"]


async def test_only_group_admins_manage(client: AsyncClient, make_user):
    owner, _ = await make_user()
    token, _ = await make_user(name="Carlos")
    group = await _group(client, owner)
    await client.post(f"/api/groups/{group['id']}/join", headers=auth(token))

    resp = await client.put(f"/api/groups/{group['id']}", json={"name": "Hacked"}, headers=auth(token))
    assert resp.status_code == 403

    resp = await client.delete(f"/api/groups/{group['id']}", headers=auth(token))
    assert resp.status_code == 403


async def test_group_posts_require_membership_and_notify(client: AsyncClient, make_user):
    owner, _ = await make_user()
    member, _ = await make_user(name="Carlos")
    outsider, _ = await make_user(name="Pedro")
    group = await _group(client, owner)
    await client.post(f"/api/groups/{group['id']}/join", headers=auth(member))

    denied = await client.post(
        "/api/posts", json={"content": "oi", "group_id": group["id"]}, headers=auth(outsider)
    )
    assert denied.status_code == 403

    ok = await client.post("/api/posts", json={"content": "oi", "group_id": group["id"]}, headers=auth(owner))
    assert ok.status_code == 201

    posts = (await client.get(f"/api/groups/{group['id']}/posts", headers=auth(member))).json()
    assert posts["pagination"]["total"] == 1

    notes = (await client.get("/api/notifications", headers=auth(member))).json()["data"]
    assert [n["type"] for n in notes] == ["post"]


async def test_delete_group_cascades(client: AsyncClient, make_user):
    token, _ = await make_user()
    group = await _group(client, token)
    post = (
        await client.post("/api/posts", json={"content": "oi", "group_id": group["id"]}, headers=auth(token))
    ).json()["data"]

    resp = await client.delete(f"/api/groups/{group['id']}", headers=auth(token))
    assert resp.status_code == 200

    assert (await client.get(f"/api/groups/{group['id']}", headers=auth(token))).status_code == 404
    assert (await client.get(f"/api/posts/{post['id']}", headers=auth(token))).status_code == 404
