"""
Notifications router.

Entry/exit only, no logic here. Calls notification services.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user
from intranet.apps.notifications.schemas import NotificationSettingsUpdate
from intranet.apps.notifications.services import (
    list_notifications,
    unread_count,
    get_own_notification,
    serialize_notifications,
    mark_read,
    mark_all_read,
    delete_notification,
    update_settings,
)
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("")
async def index(
    unread: bool = Query(False, description="Only unread notifications"),
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """The caller's notifications, newest first, with the unread counter."""
    items, total = await list_notifications(session, user, params, unread_only=unread)
    return paginated_response(
        [i.model_dump() for i in items],
        total,
        params,
        unread_count=await unread_count(session, user),
    )


@router.get("/unread-count")
async def unread(
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    return success_response(data={"count": await unread_count(session, user)})


@router.put("/read-all")
async def read_all(
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    updated = await mark_all_read(session, user)
    return success_response(message="All notifications marked as read", data={"updated": updated})


@router.put("/settings")
async def settings_update(
    data: NotificationSettingsUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    current = await update_settings(session, user, data)
    return success_response(message="Notification settings updated", data=current)


@router.get("/{notification_id}")
async def show(
    notification_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    notification = await get_own_notification(session, user, notification_id)
    [item] = await serialize_notifications(session, [notification])
    return success_response(data=item.model_dump())


@router.put("/{notification_id}/read")
async def read_one(
    notification_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    notification = await mark_read(session, user, notification_id)
    [item] = await serialize_notifications(session, [notification])
    return success_response(data=item.model_dump())


@router.delete("/{notification_id}")
async def destroy(
    notification_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_notification(session, user, notification_id)
    return success_response(message="Notification deleted", data={})
