"""
Events router.

Entry/exit only, no logic here. Calls event services.
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user
from intranet.apps.events.schemas import EventCreate, EventUpdate, to_utc
from intranet.apps.events.services import (
    list_events,
    calendar,
    get_visible_event,
    serialize_events,
    create_event,
    update_event,
    delete_event,
    set_attendance,
)
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/events", tags=["Events"])


async def _one(session: AsyncSession, event, viewer: User) -> dict:
    [item] = await serialize_events(session, [event], viewer)
    return item.model_dump()


@router.get("")
async def index(
    department_id: Optional[uuid.UUID] = Query(None),
    group_id: Optional[uuid.UUID] = Query(None),
    start: Optional[datetime] = Query(None, description="Events ending on or after"),
    end: Optional[datetime] = Query(None, description="Events starting on or before"),
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_events(
        session, user, params,
        department_id=department_id, group_id=group_id, start=to_utc(start), end=to_utc(end),
    )
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/calendar")
async def calendar_view(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """The caller's events keyed by YYYY-MM."""
    grouped = await calendar(session, user, start=to_utc(start), end=to_utc(end))
    return success_response(data={key: [i.model_dump() for i in items] for key, items in grouped.items()})


@router.post("", status_code=201)
async def create(
    request: Request,
    data: EventCreate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    event = await create_event(session, user, data)
    await record_activity(session, request, user, "create", EntityKind.EVENT, event.id, event.title)
    return success_response(status_code=201, message="Event created", data=await _one(session, event, user))


@router.get("/{event_id}")
async def show(
    event_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    event = await get_visible_event(session, event_id, user)
    return success_response(data=await _one(session, event, user))


@router.put("/{event_id}")
async def update(
    request: Request,
    event_id: uuid.UUID,
    data: EventUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    event = await update_event(session, user, event_id, data)
    await record_activity(session, request, user, "update", EntityKind.EVENT, event.id)
    return success_response(message="Event updated", data=await _one(session, event, user))


@router.delete("/{event_id}")
async def destroy(
    request: Request,
    event_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_event(session, user, event_id)
    await record_activity(session, request, user, "delete", EntityKind.EVENT, event_id)
    return success_response(message="Event deleted", data={})


@router.post("/{event_id}/attend")
async def attend(
    event_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    event = await set_attendance(session, user, event_id, attend=True)
    return success_response(message="Attendance confirmed", data=await _one(session, event, user))


@router.delete("/{event_id}/attend")
async def unattend(
    event_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    event = await set_attendance(session, user, event_id, attend=False)
    return success_response(message="Attendance cancelled", data=await _one(session, event, user))
