"""
File upload and sharing tests.
"""

import uuid

import pytest
from httpx import AsyncClient

from conftest import auth
from intranet.apps.files import services as file_services
from intranet.core.uploads import DOCUMENT_TYPES, UploadPolicy, upload_root

pytestmark = pytest.mark.asyncio

PDF = b"%PDF-1.4\n%test\n"


async def _upload(client: AsyncClient, token: str, name: str = "relatorio.pdf", **form):
    resp = await client.post(
        "/api/files",
        files={"documents": (name, PDF, "application/pdf")},
        data=form,
        headers=auth(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"][0]


async def test_upload_and_list(client: AsyncClient, make_user):
    token, user = await make_user()
    item = await _upload(client, token)
    assert item["name"] == "relatorio.pdf"
    assert item["extension"] == "pdf"
    assert item["size"] == len(PDF)
    assert item["owner"]["id"] == user["id"]
    assert item["url"].startswith("/uploads/documents/documents-")

    mine = (await client.get("/api/files", headers=auth(token))).json()
    assert [f["id"] for f in mine["data"]] == [item["id"]]


async def test_upload_rejects_executables(client: AsyncClient, make_user):
    token, _ = await make_user()
    resp = await client.post(
        "/api/files",
        files={"documents": ("virus.exe", b"MZ", "application/x-msdownload")},
        headers=auth(token),
    )
    assert resp.status_code == 400


async def test_share_flow(client: AsyncClient, make_user):
    owner, _ = await make_user()
    friend, friend_user = await make_user(name="Carlos")
    stranger, _ = await make_user(name="Pedro")
    item = await _upload(client, owner)
    url = f"/api/files/{item['id']}/share"

    assert (await client.get(f"/api/files/{item['id']}", headers=auth(friend))).status_code == 403

    shared = await client.post(url, json={"user_id": friend_user["id"]}, headers=auth(owner))
    assert shared.status_code == 200
    assert [u["id"] for u in shared.json()["data"]["shared_with"]] == [friend_user["id"]]

    twice = await client.post(url, json={"user_id": friend_user["id"]}, headers=auth(owner))
    assert twice.status_code == 400

    missing = await client.post(url, json={"user_id": str(uuid.uuid4())}, headers=auth(owner))
    assert missing.status_code == 404

    assert (await client.get(f"/api/files/{item['id']}", headers=auth(friend))).status_code == 200
    assert (await client.get(f"/api/files/{item['id']}", headers=auth(stranger))).status_code == 403

    shared_list = (await client.get("/api/files/shared", headers=auth(friend))).json()
    assert [f["id"] for f in shared_list["data"]] == [item["id"]]

    notes = (await client.get("/api/notifications", headers=auth(friend))).json()["data"]
    assert [n["type"] for n in notes] == ["file"]

    unshared = await client.delete(f"{url}/{friend_user['id']}", headers=auth(owner))
    assert unshared.status_code == 200
    assert unshared.json()["data"]["shared_with"] == []

    again = await client.delete(f"{url}/{friend_user['id']}", headers=auth(owner))
    assert again.status_code == 400


async def test_delete_rights(client: AsyncClient, make_user, make_admin):
    owner, _ = await make_user()
    other, _ = await make_user(name="Carlos")
    admin, _ = await make_admin()
    first = await _upload(client, owner)
    second = await _upload(client, owner, name="outro.pdf")

    assert (await client.delete(f"/api/files/{first['id']}", headers=auth(other))).status_code == 403
    assert (await client.delete(f"/api/files/{first['id']}", headers=auth(owner))).status_code == 200
    assert (await client.delete(f"/api/files/{second['id']}", headers=auth(admin))).status_code == 200
    assert (await client.get(f"/api/files/{first['id']}", headers=auth(owner))).status_code == 404


async def test_group_upload_requires_membership(client: AsyncClient, make_user):
    owner, _ = await make_user()
    outsider, _ = await make_user(name="Carlos")
    group = (
        await client.post("/api/groups", json={"name": "Obras", "description": "Equipe"}, headers=auth(owner))
    ).json()["data"]

    denied = await client.post(
        "/api/files",
        files={"documents": ("a.pdf", PDF, "application/pdf")},
        data={"group_id": group["id"]},
        headers=auth(outsider),
    )
    assert denied.status_code == 403

    item = await _upload(client, owner, group_id=group["id"])
    assert item["group_id"] == group["id"]

    listed = (await client.get(f"/api/groups/{group['id']}/files", headers=auth(owner))).json()
    assert [f["id"] for f in listed["data"]] == [item["id"]]


async def test_oversized_batch_is_413_and_leaves_nothing_behind(client: AsyncClient, make_user, monkeypatch):
    token, _ = await make_user()
    monkeypatch.setattr(file_services, "DOCUMENTS", UploadPolicy("documents", DOCUMENT_TYPES, 1024, 5))
    directory = upload_root() / "documents"
    before = set(directory.iterdir()) if directory.exists() else set()

    resp = await client.post(
        "/api/files",
        files=[
            ("documents", ("pequeno.pdf", PDF, "application/pdf")),
            ("documents", ("enorme.pdf", b"%PDF-1.4\n" + b"0" * 4096, "application/pdf")),
        ],
        headers=auth(token),
    )
    assert resp.status_code == 413
    assert resp.json()["success"] is False
    assert "enorme.pdf" in resp.json()["error"]

    after = set(directory.iterdir()) if directory.exists() else set()
    assert after == before
    assert (await client.get("/api/files", headers=auth(token))).json()["data"] == []
