"""
Chat and Message business logic.

Every operation starts with the participant gate. A two-person, non-group
chat is the canonical direct conversation between those two users:
creating it again returns the existing one.
"""

import uuid
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries
from intranet.apps.chats.models import Chat, ChatParticipant, Message
from intranet.apps.chats.schemas import ChatCreate, ChatResponse, ChatUpdate, MessageResponse, MessageUpdate
from intranet.apps.notifications.services import notify
from intranet.config.settings import settings
from intranet.core.entities import EntityKind
from intranet.core.permissions import is_admin, is_owner
from intranet.core.uploads import MESSAGE_MEDIA, save_uploads, remove_upload
from intranet.db.base_model import as_utc, utcnow
from intranet.utils.exceptions import (
    BadRequestException,
    PermissionDeniedException,
    ResourceNotFoundException,
)
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)


# ── Guards ────────────────────────────────────────────────────────────────────

async def participant_ids(session: AsyncSession, chat_id: uuid.UUID) -> List[uuid.UUID]:
    result = await session.execute(
        select(ChatParticipant.user_id)
        .where(ChatParticipant.chat_id == chat_id)
        .order_by(ChatParticipant.created_at)
    )
    return list(result.scalars().all())


async def get_chat_for(session: AsyncSession, user: User, chat_id: uuid.UUID) -> Chat:
    """Guard: the chat exists and the caller takes part in it."""
    chat = await Chat.get_by_id(session, chat_id)
    if not chat:
        raise ResourceNotFoundException(f"Chat not found with id {chat_id}")
    if not await ChatParticipant.exists(session, chat_id=chat.id, user_id=user.id):
        raise PermissionDeniedException("Not authorized to access this chat")
    return chat


async def _get_message(session: AsyncSession, chat: Chat, message_id: uuid.UUID) -> Message:
    message = await Message.get_by_id(session, message_id)
    if not message or message.chat_id != chat.id:
        raise ResourceNotFoundException(f"Message not found with id {message_id}")
    return message


# ── Serialization ─────────────────────────────────────────────────────────────

async def serialize_messages(session: AsyncSession, messages: List[Message]) -> List[MessageResponse]:
    senders = await get_user_summaries(session, [m.sender_id for m in messages])
    return [
        MessageResponse(
            id=m.id,
            chat_id=m.chat_id,
            sender=senders.get(m.sender_id),
            content=m.content,
            media=list(m.media or []),
            read_by=list(m.read_by or []),
            is_edited=m.is_edited,
            created_at=m.created_at,
            updated_at=m.updated_at,
        )
        for m in messages
    ]


async def serialize_chats(session: AsyncSession, chats: List[Chat]) -> List[ChatResponse]:
    ids = [c.id for c in chats]
    participants: Dict[uuid.UUID, List[uuid.UUID]] = {}
    if ids:
        rows = await ChatParticipant.find_many(
            session, ChatParticipant.chat_id.in_(ids), order_by=ChatParticipant.created_at
        )
        for row in rows:
            participants.setdefault(row.chat_id, []).append(row.user_id)

    users = await get_user_summaries(session, [uid for uids in participants.values() for uid in uids])
    last = await Message.get_many_by_ids(session, [c.last_message_id for c in chats if c.last_message_id])
    last_items = {m.id: m for m in await serialize_messages(session, list(last.values()))}

    return [
        ChatResponse(
            id=c.id,
            name=c.name,
            is_group=c.is_group,
            participants=[users[uid] for uid in participants.get(c.id, []) if uid in users],
            last_message=last_items.get(c.last_message_id) if c.last_message_id else None,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )
        for c in chats
    ]


# ── Chats ─────────────────────────────────────────────────────────────────────

async def list_chats(session: AsyncSession, user: User, params: PageParams) -> Tuple[List[ChatResponse], int]:
    mine = select(ChatParticipant.chat_id).where(ChatParticipant.user_id == user.id)
    chats, total = await Chat.paginate(
        session, Chat.id.in_(mine), page=params.page, limit=params.limit, sort=params.sort,
        default_sort="-updated_at",
    )
    return await serialize_chats(session, chats), total


async def find_direct_chat(session: AsyncSession, first: uuid.UUID, second: uuid.UUID) -> Optional[Chat]:
    with_first = select(ChatParticipant.chat_id).where(ChatParticipant.user_id == first)
    with_second = select(ChatParticipant.chat_id).where(ChatParticipant.user_id == second)
    return await Chat.find_one(
        session, Chat.is_group.is_(False), Chat.id.in_(with_first), Chat.id.in_(with_second)
    )


async def create_chat(session: AsyncSession, user: User, data: ChatCreate) -> Tuple[Chat, bool]:
    """
    Return (chat, created).

    Guard: every participant exists.
    Guard: a direct chat has exactly two participants and is reused if present.
    """
    ids: List[uuid.UUID] = [user.id]
    for pid in data.participants:
        if pid not in ids:
            ids.append(pid)

    if len(ids) < 2:
        raise BadRequestException("A chat needs at least one other participant")
    if not data.is_group and len(ids) > 2:
        raise BadRequestException("Chats with more than two participants must be group chats")

    found = await User.get_many_by_ids(session, ids)
    missing = [str(i) for i in ids if i not in found]
    if missing:
        raise ResourceNotFoundException(f"User not found with id {', '.join(missing)}")

    if not data.is_group:
        existing = await find_direct_chat(session, ids[0], ids[1])
        if existing:
            return existing, False

    chat = await Chat.create(
        db=session,
        commit=False,
        name=data.name.strip() if data.name else None,
        is_group=data.is_group,
    )
    for uid in ids:
        await ChatParticipant.create(db=session, commit=False, chat_id=chat.id, user_id=uid)
    await session.commit()
    logger.info(f"Chat created: {chat.id} ({len(ids)} participants)")
    return chat, True


async def update_chat(session: AsyncSession, user: User, chat_id: uuid.UUID, data: ChatUpdate) -> Chat:
    chat = await get_chat_for(session, user, chat_id)
    if not chat.is_group:
        raise BadRequestException("Only group chats can be renamed")
    chat.name = data.name.strip()
    return await chat.save(session)


async def delete_chat(session: AsyncSession, user: User, chat_id: uuid.UUID) -> None:
    """Deleting a chat deletes its messages."""
    chat = await get_chat_for(session, user, chat_id)
    messages = await Message.find_many(session, chat_id=chat.id)
    media = [url for m in messages for url in (m.media or [])]

    for message in messages:
        await message.delete(session, commit=False)
    await ChatParticipant.delete_many(session, commit=False, chat_id=chat.id)
    await chat.delete(session)

    for url in media:
        remove_upload(url)


# ── Messages ──────────────────────────────────────────────────────────────────

async def list_messages(
    session: AsyncSession, user: User, chat_id: uuid.UUID, params: PageParams
) -> Tuple[List[MessageResponse], int]:
    """Page 1 is the newest page; each page is returned oldest-first."""
    chat = await get_chat_for(session, user, chat_id)
    messages, total = await Message.paginate(
        session, page=params.page, limit=params.limit, default_sort="-created_at", chat_id=chat.id
    )
    messages.reverse()
    return await serialize_messages(session, messages), total


async def send_message(
    session: AsyncSession,
    user: User,
    chat_id: uuid.UUID,
    content: Optional[str],
    media: Optional[List[UploadFile]] = None,
) -> Message:
    """Guard: a message carries text, media, or both."""
    chat = await get_chat_for(session, user, chat_id)
    content = (content or "").strip() or None
    files = [f for f in (media or []) if f is not None and f.filename]
    if content is None and not files:
        raise BadRequestException("Message must have content or media")

    stored = await save_uploads(files, MESSAGE_MEDIA, "media") if files else []

    message = await Message.create(
        db=session,
        commit=False,
        chat_id=chat.id,
        sender_id=user.id,
        content=content,
        media=[s.url for s in stored],
        read_by=[str(user.id)],
    )
    chat.last_message_id = message.id
    await chat.save(session)

    await notify(
        session,
        await participant_ids(session, chat.id),
        "message",
        f"New message from {user.name}",
        related_type=EntityKind.CHAT,
        related_id=chat.id,
        sender_id=user.id,
    )
    return message


async def edit_message(
    session: AsyncSession, user: User, chat_id: uuid.UUID, message_id: uuid.UUID, data: MessageUpdate
) -> Message:
    """
    Guard: only the sender edits.
    Guard: edits close MESSAGE_EDIT_WINDOW_MINUTES after the message was sent.
    """
    chat = await get_chat_for(session, user, chat_id)
    message = await _get_message(session, chat, message_id)

    if not is_owner(user, message, "sender_id"):
        raise PermissionDeniedException("Only the sender can edit this message")

    window = timedelta(minutes=settings.MESSAGE_EDIT_WINDOW_MINUTES)
    if utcnow() - as_utc(message.created_at) > window:
        raise BadRequestException(
            f"Messages can only be edited within {settings.MESSAGE_EDIT_WINDOW_MINUTES} minutes of sending"
        )

    message.content = data.content
    message.is_edited = True
    return await message.save(session)


async def delete_message(
    session: AsyncSession, user: User, chat_id: uuid.UUID, message_id: uuid.UUID
) -> None:
    """Sender or admin. If it was the chat's last message, point back to the previous one."""
    chat = await get_chat_for(session, user, chat_id)
    message = await _get_message(session, chat, message_id)

    if not (is_owner(user, message, "sender_id") or is_admin(user)):
        raise PermissionDeniedException("Not authorized to delete this message")

    media = list(message.media or [])
    await message.delete(session, commit=False)

    if chat.last_message_id == message.id:
        rows = await Message.find_many(session, Message.id != message.id, chat_id=chat.id, limit=1)
        previous = rows[0] if rows else None
        chat.last_message_id = previous.id if previous else None
        await chat.save(session, commit=False)

    await session.commit()
    for url in media:
        remove_upload(url)


async def mark_read(session: AsyncSession, user: User, chat_id: uuid.UUID) -> int:
    """Add the caller to `read_by` on every message of the chat; returns how many changed."""
    chat = await get_chat_for(session, user, chat_id)
    uid = str(user.id)
    updated = 0
    for message in await Message.find_many(session, chat_id=chat.id):
        if uid not in (message.read_by or []):
            message.read_by = [*(message.read_by or []), uid]
            updated += 1
    await session.commit()
    return updated
