"""
Chat and message tests.
"""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from conftest import auth
from intranet.apps.chats.models import Message
from intranet.db.base_model import utcnow

pytestmark = pytest.mark.asyncio


async def _chat(client: AsyncClient, token: str, *participants, **extra):
    return await client.post(
        "/api/chats", json={"participants": list(participants), **extra}, headers=auth(token)
    )


async def _send(client: AsyncClient, token: str, chat_id: str, content: str):
    resp = await client.post(f"/api/chats/{chat_id}/messages", data={"content": content}, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def test_direct_chat_is_idempotent(client: AsyncClient, make_user):
    token, user = await make_user()
    other_token, other = await make_user(name="Carlos")

    first = await _chat(client, token, other["id"])
    assert first.status_code == 201
    chat_id = first.json()["data"]["id"]

    again = await _chat(client, token, other["id"])
    assert again.status_code == 200
    assert again.json()["data"]["id"] == chat_id

    reverse = await _chat(client, other_token, user["id"])
    assert reverse.json()["data"]["id"] == chat_id


async def test_chat_validation(client: AsyncClient, make_user):
    token, user = await make_user()
    _, a = await make_user(name="Carlos")
    _, b = await make_user(name="Pedro")

    assert (await _chat(client, token, user["id"])).status_code == 400
    assert (await _chat(client, token, a["id"], b["id"])).status_code == 400
    assert (await _chat(client, token, str(uuid.uuid4()))).status_code == 404
    assert (await _chat(client, token, a["id"], b["id"], is_group=True)).status_code == 400

    group = await _chat(client, token, a["id"], b["id"], is_group=True, name="Equipe")
    assert group.status_code == 201
    assert len(group.json()["data"]["participants"]) == 3


async def test_only_participants_see_chat(client: AsyncClient, make_user):
    token, _ = await make_user()
    _, other = await make_user(name="Carlos")
    stranger, _ = await make_user(name="Pedro")
    chat_id = (await _chat(client, token, other["id"])).json()["data"]["id"]

    assert (await client.get(f"/api/chats/{chat_id}", headers=auth(stranger))).status_code == 403
    assert (await client.get(f"/api/chats/{str(uuid.uuid4())}", headers=auth(token))).status_code == 404


async def test_messages_flow(client: AsyncClient, make_user):
    token, user = await make_user()
    other_token, other = await make_user(name="Carlos")
    chat_id = (await _chat(client, token, other["id"])).json()["data"]["id"]

    first = await _send(client, token, chat_id, "Oi")
    second = await _send(client, other_token, chat_id, "Tudo bem?")
    assert first["read_by"] == [user["id"]]

    chat = (await client.get(f"/api/chats/{chat_id}", headers=auth(token))).json()["data"]
    assert chat["last_message"]["id"] == second["id"]

    listing = (await client.get(f"/api/chats/{chat_id}/messages", headers=auth(token))).json()
    assert [m["id"] for m in listing["data"]] == [first["id"], second["id"]]

    read = await client.post(f"/api/chats/{chat_id}/read", headers=auth(token))
    assert read.json()["data"]["updated"] == 1

    notes = (await client.get("/api/notifications", headers=auth(other_token))).json()["data"]
    assert [n["type"] for n in notes] == ["message"]


async def test_empty_message_rejected(client: AsyncClient, make_user):
    token, _ = await make_user()
    _, other = await make_user(name="Carlos")
    chat_id = (await _chat(client, token, other["id"])).json()["data"]["id"]

    resp = await client.post(f"/api/chats/{chat_id}/messages", data={"content": "   "}, headers=auth(token))
    assert resp.status_code == 400


async def test_edit_window(client: AsyncClient, make_user, session_factory):
    token, _ = await make_user()
    other_token, other = await make_user(name="Carlos")
    chat_id = (await _chat(client, token, other["id"])).json()["data"]["id"]
    message = await _send(client, token, chat_id, "Oi")
    url = f"/api/chats/{chat_id}/messages/{message['id']}"

    denied = await client.put(url, json={"content": "Ola"}, headers=auth(other_token))
    assert denied.status_code == 403

    edited = await client.put(url, json={"content": "Ola"}, headers=auth(token))
    assert edited.status_code == 200
    assert edited.json()["data"]["is_edited"] is True

    async with session_factory() as session:
        await session.execute(
            update(Message)
            .where(Message.id == uuid.UUID(message["id"]))
            .values(created_at=utcnow() - timedelta(minutes=16))
        )
        await session.commit()

    late = await client.put(url, json={"content": "Tarde"}, headers=auth(token))
    assert late.status_code == 400


async def test_delete_last_message_repoints_chat(client: AsyncClient, make_user):
    token, _ = await make_user()
    other_token, other = await make_user(name="Carlos")
    chat_id = (await _chat(client, token, other["id"])).json()["data"]["id"]
    first = await _send(client, token, chat_id, "Oi")
    second = await _send(client, token, chat_id, "Oi de novo")

    denied = await client.delete(f"/api/chats/{chat_id}/messages/{second['id']}", headers=auth(other_token))
    assert denied.status_code == 403

    resp = await client.delete(f"/api/chats/{chat_id}/messages/{second['id']}", headers=auth(token))
    assert resp.status_code == 200

    chat = (await client.get(f"/api/chats/{chat_id}", headers=auth(token))).json()["data"]
    assert chat["last_message"]["id"] == first["id"]


async def test_rename_only_group_chats(client: AsyncClient, make_user):
    token, _ = await make_user()
    _, a = await make_user(name="Carlos")
    _, b = await make_user(name="Pedro")
    direct = (await _chat(client, token, a["id"])).json()["data"]
    group = (await _chat(client, token, a["id"], b["id"], is_group=True, name="Equipe")).json()["data"]

    assert (await client.put(f"/api/chats/{direct['id']}", json={"name": "x"}, headers=auth(token))).status_code == 400
    renamed = await client.put(f"/api/chats/{group['id']}", json={"name": "Equipe 2"}, headers=auth(token))
    assert renamed.json()["data"]["name"] == "Equipe 2"

    gone = await client.delete(f"/api/chats/{group['id']}", headers=auth(token))
    assert gone.status_code == 200
    assert (await client.get(f"/api/chats/{group['id']}", headers=auth(token))).status_code == 404
