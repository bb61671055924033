"""
Chats router.

Entry/exit only, no logic here. Messages are sent as multipart forms
so text and media travel together.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user
from intranet.apps.chats.schemas import ChatCreate, ChatUpdate, MessageUpdate
from intranet.apps.chats.services import (
    list_chats,
    get_chat_for,
    serialize_chats,
    serialize_messages,
    create_chat,
    update_chat,
    delete_chat,
    list_messages,
    send_message,
    edit_message,
    delete_message,
    mark_read,
)
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/chats", tags=["Chats"])


async def _one(session: AsyncSession, chat) -> dict:
    [item] = await serialize_chats(session, [chat])
    return item.model_dump()


# ── Chats ─────────────────────────────────────────────────────────────────────

@router.get("")
async def index(
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_chats(session, user, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.post("")
async def create(
    request: Request,
    data: ChatCreate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """201 for a new chat; 200 when an existing direct chat is returned."""
    chat, created = await create_chat(session, user, data)
    if created:
        await record_activity(session, request, user, "create", EntityKind.CHAT, chat.id)
    return success_response(
        status_code=201 if created else 200,
        message="Chat created" if created else "Chat already exists",
        data=await _one(session, chat),
    )


@router.get("/{chat_id}")
async def show(
    chat_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    chat = await get_chat_for(session, user, chat_id)
    return success_response(data=await _one(session, chat))


@router.put("/{chat_id}")
async def update(
    request: Request,
    chat_id: uuid.UUID,
    data: ChatUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    chat = await update_chat(session, user, chat_id, data)
    await record_activity(session, request, user, "update", EntityKind.CHAT, chat.id)
    return success_response(message="Chat updated", data=await _one(session, chat))


@router.delete("/{chat_id}")
async def destroy(
    request: Request,
    chat_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_chat(session, user, chat_id)
    await record_activity(session, request, user, "delete", EntityKind.CHAT, chat_id)
    return success_response(message="Chat deleted", data={})


# ── Messages ──────────────────────────────────────────────────────────────────

@router.get("/{chat_id}/messages")
async def messages(
    chat_id: uuid.UUID,
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_messages(session, user, chat_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.post("/{chat_id}/messages", status_code=201)
async def message_send(
    request: Request,
    chat_id: uuid.UUID,
    content: Optional[str] = Form(None),
    media: Optional[List[UploadFile]] = File(None),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    message = await send_message(session, user, chat_id, content, media)
    await record_activity(session, request, user, "create", EntityKind.MESSAGE, message.id)
    [item] = await serialize_messages(session, [message])
    return success_response(status_code=201, message="Message sent", data=item.model_dump())


@router.put("/{chat_id}/messages/{message_id}")
async def message_edit(
    request: Request,
    chat_id: uuid.UUID,
    message_id: uuid.UUID,
    data: MessageUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    message = await edit_message(session, user, chat_id, message_id, data)
    await record_activity(session, request, user, "update", EntityKind.MESSAGE, message.id)
    [item] = await serialize_messages(session, [message])
    return success_response(message="Message updated", data=item.model_dump())


@router.delete("/{chat_id}/messages/{message_id}")
async def message_delete(
    request: Request,
    chat_id: uuid.UUID,
    message_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_message(session, user, chat_id, message_id)
    await record_activity(session, request, user, "delete", EntityKind.MESSAGE, message_id)
    return success_response(message="Message deleted", data={})


@router.post("/{chat_id}/read")
async def read(
    chat_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    updated = await mark_read(session, user, chat_id)
    return success_response(message="Messages marked as read", data={"updated": updated})
