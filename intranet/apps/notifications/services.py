"""
Notification business logic.

`notify` is the fan-out used by every other app: one row per recipient,
written sequentially in the request path. A failed insert is logged and
counted, the loop moves on, and rows already written stay written.
"""

import uuid
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries
from intranet.apps.notifications.models import Notification
from intranet.apps.notifications.schemas import (
    NotificationResponse,
    NotificationSettingsUpdate,
    RelatedTo,
)
from intranet.core.entities import EntityKind
from intranet.utils.exceptions import PermissionDeniedException, ResourceNotFoundException
from intranet.utils.logger import get_logger
from intranet.utils.metrics import notifications_total, fanout_recipients
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)

# Notification type -> user preference switch. Types not listed always go out.
PREFERENCE_KEYS = {
    "post": "posts",
    "comment": "posts",
    "like": "posts",
    "message": "messages",
    "event": "events",
    "group": "groups",
}


def wants(user: User, kind: str) -> bool:
    key = PREFERENCE_KEYS.get(kind)
    if key is None:
        return True
    types = (user.notification_settings or {}).get("types", {})
    return bool(types.get(key, True))


# ── Fan-out ───────────────────────────────────────────────────────────────────

async def notify(
    session: AsyncSession,
    recipients: Iterable[Optional[uuid.UUID]],
    kind: str,
    content: str,
    related_type: Optional[EntityKind] = None,
    related_id: Optional[uuid.UUID] = None,
    sender_id: Optional[uuid.UUID] = None,
) -> int:
    """
    Write one notification per recipient and return how many were written.

    The sender is never notified; recipients that switched the type off are skipped.
    """
    targets: List[uuid.UUID] = []
    for rid in recipients:
        if rid is not None and rid != sender_id and rid not in targets:
            targets.append(rid)
    if not targets:
        return 0

    fanout_recipients.labels(type=kind).observe(len(targets))
    users = await User.get_many_by_ids(session, targets)

    written = 0
    for rid in targets:
        user = users.get(rid)
        if user is None or not wants(user, kind):
            continue
        # One savepoint per recipient: a failed row never unwinds the others
        # or the caller's own work.
        try:
            async with session.begin_nested():
                await Notification.create(
                    db=session,
                    commit=False,
                    recipient_id=rid,
                    sender_id=sender_id,
                    type=kind,
                    content=content,
                    related_type=related_type.value if related_type else None,
                    related_id=related_id,
                )
            written += 1
            notifications_total.labels(type=kind, status="ok").inc()
        except SQLAlchemyError as e:
            notifications_total.labels(type=kind, status="failed").inc()
            logger.error(f"Notification to {rid} failed ({kind}): {e}")

    if written:
        try:
            await session.commit()
        except SQLAlchemyError as e:
            notifications_total.labels(type=kind, status="failed").inc(written)
            logger.error(f"Fan-out {kind} commit failed: {e}")
            return 0

    logger.debug(f"Fan-out {kind}: {written}/{len(targets)} written")
    return written


# ── Reads ─────────────────────────────────────────────────────────────────────

async def serialize_notifications(
    session: AsyncSession, items: List[Notification]
) -> List[NotificationResponse]:
    senders = await get_user_summaries(session, [n.sender_id for n in items])
    return [
        NotificationResponse(
            id=n.id,
            recipient_id=n.recipient_id,
            sender=senders.get(n.sender_id) if n.sender_id else None,
            type=n.type,
            content=n.content,
            related_to=RelatedTo(type=n.related_type, id=n.related_id)
            if n.related_type and n.related_id else None,
            is_read=n.is_read,
            created_at=n.created_at,
        )
        for n in items
    ]


async def unread_count(session: AsyncSession, user: User) -> int:
    return await Notification.count(session, recipient_id=user.id, is_read=False)


async def list_notifications(
    session: AsyncSession, user: User, params: PageParams, unread_only: bool = False
) -> Tuple[List[NotificationResponse], int]:
    filters = {"recipient_id": user.id}
    if unread_only:
        filters["is_read"] = False
    items, total = await Notification.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, **filters
    )
    return await serialize_notifications(session, items), total


async def get_own_notification(
    session: AsyncSession, user: User, notification_id: uuid.UUID
) -> Notification:
    """Guard: only the recipient may see or touch a notification."""
    notification = await Notification.get_by_id(session, notification_id)
    if not notification:
        raise ResourceNotFoundException(f"Notification not found with id {notification_id}")
    if notification.recipient_id != user.id:
        raise PermissionDeniedException("Not authorized to access this notification")
    return notification


async def mark_read(
    session: AsyncSession, user: User, notification_id: uuid.UUID
) -> Notification:
    notification = await get_own_notification(session, user, notification_id)
    notification.is_read = True
    return await notification.save(session)


async def mark_all_read(session: AsyncSession, user: User) -> int:
    result = await session.execute(
        update(Notification)
        .where(Notification.recipient_id == user.id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await session.commit()
    return result.rowcount or 0


async def delete_notification(
    session: AsyncSession, user: User, notification_id: uuid.UUID
) -> None:
    notification = await get_own_notification(session, user, notification_id)
    await notification.delete(session)


# ── Preferences ───────────────────────────────────────────────────────────────

async def update_settings(
    session: AsyncSession, user: User, data: NotificationSettingsUpdate
) -> dict:
    """Merge a partial preference patch into the stored settings."""
    current = dict(user.notification_settings or {})
    patch = data.model_dump(exclude_none=True)
    types = dict(current.get("types", {}))
    types.update(patch.pop("types", {}))
    current.update(patch)
    current["types"] = types

    # JSON columns are not mutation-tracked; assign a new object.
    user.notification_settings = current
    await user.save(session)
    return current
