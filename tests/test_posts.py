"""
Feed, like and comment tests.
"""

import pytest
from httpx import AsyncClient

from conftest import auth

pytestmark = pytest.mark.asyncio

JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 128


async def _post(client: AsyncClient, token: str, **payload):
    payload.setdefault("content", "Bom dia a todos")
    resp = await client.post("/api/posts", json=payload, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_create_and_fetch_post(client: AsyncClient, make_user):
    token, user = await make_user()
    post = await _post(client, token, title="Aviso", tags=["rh"])
    assert post["author"]["id"] == user["id"]
    assert post["like_count"] == 0
    assert post["comment_count"] == 0

    resp = await client.get(f"/api/posts/{post['id']}", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["data"]["comments"] == []


async def test_feed_is_paginated_newest_first(client: AsyncClient, make_user):
    token, _ = await make_user()
    ids = [(await _post(client, token, content=f"post {i}"))["id"] for i in range(3)]

    resp = await client.get("/api/posts", params={"limit": 2}, headers=auth(token))
    body = resp.json()
    assert body["pagination"] == {"total": 3, "pages": 2, "page": 1, "limit": 2}
    assert [p["id"] for p in body["data"]] == ids[::-1][:2]

    page2 = (await client.get("/api/posts", params={"limit": 2, "page": 2}, headers=auth(token))).json()
    assert [p["id"] for p in page2["data"]] == [ids[0]]


async def test_unpublished_posts_hidden_from_others(client: AsyncClient, make_user):
    token, _ = await make_user()
    other, _ = await make_user(name="Carlos")
    post = await _post(client, token, is_published=False)

    assert (await client.get(f"/api/posts/{post['id']}", headers=auth(token))).status_code == 200
    assert (await client.get(f"/api/posts/{post['id']}", headers=auth(other))).status_code == 404

    feed = (await client.get("/api/posts", headers=auth(other))).json()
    assert feed["data"] == []


async def test_like_scenario(client: AsyncClient, make_user):
    author_token, author = await make_user()
    fan_token, fan = await make_user(name="Carlos")
    post = await _post(client, author_token)

    liked = await client.post(f"/api/posts/{post['id']}/like", headers=auth(fan_token))
    assert liked.status_code == 200
    assert liked.json()["data"] == {"likes": [fan["id"]], "like_count": 1, "is_liked": True}

    again = await client.post(f"/api/posts/{post['id']}/like", headers=auth(fan_token))
    assert again.status_code == 400

    notes = (await client.get("/api/notifications", headers=auth(author_token))).json()
    assert [n["type"] for n in notes["data"]] == ["like"]
    assert notes["unread_count"] == 1

    unliked = await client.delete(f"/api/posts/{post['id']}/like", headers=auth(fan_token))
    assert unliked.json()["data"]["like_count"] == 0

    not_liked = await client.delete(f"/api/posts/{post['id']}/like", headers=auth(fan_token))
    assert not_liked.status_code == 400


async def test_only_author_or_admin_edits(client: AsyncClient, make_user, make_admin):
    token, _ = await make_user()
    other, _ = await make_user(name="Carlos")
    admin, _ = await make_admin()
    post = await _post(client, token)

    denied = await client.put(f"/api/posts/{post['id']}", json={"content": "hack"}, headers=auth(other))
    assert denied.status_code == 403

    ok = await client.put(f"/api/posts/{post['id']}", json={"content": "edited"}, headers=auth(admin))
    assert ok.status_code == 200
    assert ok.json()["data"]["content"] == "edited"

    gone = await client.delete(f"/api/posts/{post['id']}", headers=auth(token))
    assert gone.status_code == 200
    assert (await client.get(f"/api/posts/{post['id']}", headers=auth(token))).status_code == 404


async def test_comments_and_deletion_rights(client: AsyncClient, make_user):
    author_token, _ = await make_user()
    commenter_token, _ = await make_user(name="Carlos")
    stranger_token, _ = await make_user(name="Pedro")
    post = await _post(client, author_token)

    created = await client.post(
        f"/api/posts/{post['id']}/comments", json={"content": "Concordo"}, headers=auth(commenter_token)
    )
    assert created.status_code == 201
    comment = created.json()["data"]

    listing = await client.get(f"/api/posts/{post['id']}/comments", headers=auth(author_token))
    assert [c["id"] for c in listing.json()["data"]] == [comment["id"]]

    shown = (await client.get(f"/api/posts/{post['id']}", headers=auth(author_token))).json()["data"]
    assert shown["comment_count"] == 1

    denied = await client.delete(f"/api/posts/{post['id']}/comments/{comment['id']}", headers=auth(stranger_token))
    assert denied.status_code == 403

    edit_denied = await client.put(
        f"/api/posts/{post['id']}/comments/{comment['id']}", json={"content": "x"}, headers=auth(author_token)
    )
    assert edit_denied.status_code == 403

    removed = await client.delete(f"/api/posts/{post['id']}/comments/{comment['id']}", headers=auth(author_token))
    assert removed.status_code == 200

    notes = (await client.get("/api/notifications", headers=auth(author_token))).json()["data"]
    assert [n["type"] for n in notes] == ["comment"]


async def test_comment_like_toggle(client: AsyncClient, make_user):
    token, _ = await make_user()
    other, _ = await make_user(name="Carlos")
    post = await _post(client, token)
    comment = (
        await client.post(f"/api/posts/{post['id']}/comments", json={"content": "Oi"}, headers=auth(token))
    ).json()["data"]

    url = f"/api/posts/{post['id']}/comments/{comment['id']}/like"
    assert (await client.post(url, headers=auth(other))).json()["data"]["like_count"] == 1
    assert (await client.post(url, headers=auth(other))).status_code == 400
    assert (await client.delete(url, headers=auth(other))).json()["data"]["like_count"] == 0


async def test_media_upload(client: AsyncClient, make_user):
    token, _ = await make_user()
    post = await _post(client, token)

    resp = await client.post(
        f"/api/posts/{post['id']}/media",
        files=[("media", ("a.jpg", JPEG, "image/jpeg")), ("media", ("b.jpg", JPEG, "image/jpeg"))],
        headers=auth(token),
    )
    assert resp.status_code == 200
    media = resp.json()["data"]["media"]
    assert len(media) == 2
    assert all(url.startswith("/uploads/posts/media-") for url in media)

    served = await client.get(media[0])
    assert served.status_code == 200
    assert served.content == JPEG


async def test_feed_is_public(client: AsyncClient, make_user):
    token, _ = await make_user()
    await _post(client, token)
    resp = await client.get("/api/posts")
    assert resp.status_code == 200
    assert resp.json()["pagination"]["total"] == 1
