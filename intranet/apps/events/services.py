"""
Event business logic.

The creator is the first attendee. Creating an event notifies the users
of its department and the members of its group; updating or cancelling
it notifies the attendees.
"""

import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries
from intranet.apps.departments.models import Department
from intranet.apps.events.models import Event, EventAttendee
from intranet.apps.events.schemas import EventCreate, EventResponse, EventUpdate
from intranet.apps.groups.models import Group, GroupMember
from intranet.apps.groups.services import ensure_can_view, ensure_member, get_group_or_404, member_ids
from intranet.apps.notifications.services import notify
from intranet.core.entities import EntityKind
from intranet.core.permissions import ensure_owner, is_admin
from intranet.db.base_model import as_utc
from intranet.utils.exceptions import BadRequestException, ResourceNotFoundException
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)

CALENDAR_KEY = "%Y-%m"


# ── Lookups & Serialization ───────────────────────────────────────────────────

async def get_event_or_404(session: AsyncSession, event_id: uuid.UUID) -> Event:
    event = await Event.get_by_id(session, event_id)
    if not event:
        raise ResourceNotFoundException(f"Event not found with id {event_id}")
    return event


async def get_visible_event(session: AsyncSession, event_id: uuid.UUID, viewer: User) -> Event:
    event = await get_event_or_404(session, event_id)
    if event.group_id:
        group = await Group.get_by_id(session, event.group_id)
        if group:
            await ensure_can_view(session, group, viewer)
    return event


async def attendee_ids(session: AsyncSession, event_id: uuid.UUID) -> List[uuid.UUID]:
    result = await session.execute(
        select(EventAttendee.user_id)
        .where(EventAttendee.event_id == event_id)
        .order_by(EventAttendee.created_at)
    )
    return list(result.scalars().all())


async def serialize_events(
    session: AsyncSession, events: List[Event], viewer: Optional[User]
) -> List[EventResponse]:
    attendance: Dict[uuid.UUID, List[uuid.UUID]] = {}
    if events:
        rows = await EventAttendee.find_many(
            session, EventAttendee.event_id.in_([e.id for e in events]), order_by=EventAttendee.created_at
        )
        for row in rows:
            attendance.setdefault(row.event_id, []).append(row.user_id)

    users = await get_user_summaries(
        session, [e.creator_id for e in events] + [uid for ids in attendance.values() for uid in ids]
    )
    items = []
    for e in events:
        ids = attendance.get(e.id, [])
        items.append(
            EventResponse(
                id=e.id,
                title=e.title,
                description=e.description,
                location=e.location,
                start_date=as_utc(e.start_date),
                end_date=as_utc(e.end_date),
                creator=users.get(e.creator_id),
                attendees=[users[uid] for uid in ids if uid in users],
                attendee_count=len(ids),
                is_attending=viewer is not None and viewer.id in ids,
                department_id=e.department_id,
                group_id=e.group_id,
                is_all_day=e.is_all_day,
                is_recurring=e.is_recurring,
                recurring_pattern=e.recurring_pattern,
                color=e.color,
                created_at=e.created_at,
            )
        )
    return items


def _visible_to(viewer: User) -> list:
    if is_admin(viewer):
        return []
    public_groups = select(Group.id).where(Group.is_private.is_(False))
    mine = select(GroupMember.group_id).where(GroupMember.user_id == viewer.id)
    return [or_(Event.group_id.is_(None), Event.group_id.in_(public_groups), Event.group_id.in_(mine))]


# ── Reads ─────────────────────────────────────────────────────────────────────

async def list_events(
    session: AsyncSession,
    viewer: User,
    params: PageParams,
    department_id: Optional[uuid.UUID] = None,
    group_id: Optional[uuid.UUID] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Tuple[List[EventResponse], int]:
    criteria = _visible_to(viewer)
    if department_id:
        criteria.append(Event.department_id == department_id)
    if group_id:
        criteria.append(Event.group_id == group_id)
    if start:
        criteria.append(Event.end_date >= start)
    if end:
        criteria.append(Event.start_date <= end)

    events, total = await Event.paginate(
        session, *criteria, page=params.page, limit=params.limit, sort=params.sort, default_sort="start_date"
    )
    return await serialize_events(session, events, viewer), total


async def list_group_events(
    session: AsyncSession, viewer: User, group_id: uuid.UUID, params: PageParams
) -> Tuple[List[EventResponse], int]:
    group = await get_group_or_404(session, group_id)
    await ensure_can_view(session, group, viewer)
    events, total = await Event.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, default_sort="start_date",
        group_id=group.id,
    )
    return await serialize_events(session, events, viewer), total


async def calendar(
    session: AsyncSession, user: User, start: Optional[datetime] = None, end: Optional[datetime] = None
) -> Dict[str, List[EventResponse]]:
    """Events the caller created or attends, grouped by start month (YYYY-MM)."""
    attending = select(EventAttendee.event_id).where(EventAttendee.user_id == user.id)
    criteria = [or_(Event.creator_id == user.id, Event.id.in_(attending))]
    if start:
        criteria.append(Event.end_date >= start)
    if end:
        criteria.append(Event.start_date <= end)

    events = await Event.find_many(session, *criteria, order_by=Event.start_date)
    grouped: Dict[str, List[EventResponse]] = OrderedDict()
    for item in await serialize_events(session, events, user):
        grouped.setdefault(item.start_date.strftime(CALENDAR_KEY), []).append(item)
    return grouped


# ── Writes ────────────────────────────────────────────────────────────────────

def _pattern(data) -> Optional[dict]:
    pattern = data.recurring_pattern
    return pattern.model_dump(mode="json") if pattern is not None else None


async def create_event(session: AsyncSession, user: User, data: EventCreate) -> Event:
    """
    Guard: group events require membership.
    Guard: the department must exist.
    """
    group = None
    if data.group_id:
        group = await get_group_or_404(session, data.group_id)
        await ensure_member(session, group, user)
    if data.department_id and not await Department.exists(session, id=data.department_id):
        raise ResourceNotFoundException(f"Department not found with id {data.department_id}")

    values = data.model_dump(exclude={"recurring_pattern"})
    event = await Event.create(
        db=session, commit=False, creator_id=user.id, recurring_pattern=_pattern(data), **values
    )
    await EventAttendee.create(db=session, event_id=event.id, user_id=user.id)
    logger.info(f"Event created: {event.title} by {user.email}")

    recipients: List[uuid.UUID] = []
    if data.department_id:
        result = await session.execute(select(User.id).where(User.department_id == data.department_id))
        recipients.extend(result.scalars().all())
    if group is not None:
        recipients.extend(await member_ids(session, group.id))

    await notify(
        session,
        recipients,
        "event",
        f"New event: {event.title}",
        related_type=EntityKind.EVENT,
        related_id=event.id,
        sender_id=user.id,
    )
    return event


async def update_event(session: AsyncSession, user: User, event_id: uuid.UUID, data: EventUpdate) -> Event:
    event = await get_event_or_404(session, event_id)
    ensure_owner(user, event, "creator_id", detail="Not authorized to update this event")

    values = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"recurring_pattern"})
    if "recurring_pattern" in data.model_fields_set:
        values["recurring_pattern"] = _pattern(data)

    start = values.get("start_date", as_utc(event.start_date))
    end = values.get("end_date", as_utc(event.end_date))
    if end < start:
        raise BadRequestException("end_date must not be before start_date")

    event.apply(values)
    await event.save(session)

    await notify(
        session,
        await attendee_ids(session, event.id),
        "event",
        f"Event updated: {event.title}",
        related_type=EntityKind.EVENT,
        related_id=event.id,
        sender_id=user.id,
    )
    return event


async def delete_event(session: AsyncSession, user: User, event_id: uuid.UUID) -> None:
    """Attendees hear about the cancellation before the rows go."""
    event = await get_event_or_404(session, event_id)
    ensure_owner(user, event, "creator_id", detail="Not authorized to delete this event")

    await notify(
        session,
        await attendee_ids(session, event.id),
        "event",
        f"Event cancelled: {event.title}",
        related_type=EntityKind.EVENT,
        related_id=event.id,
        sender_id=user.id,
    )

    await EventAttendee.delete_many(session, commit=False, event_id=event.id)
    await event.delete(session)
    logger.info(f"Event deleted: {event.title} by {user.email}")


async def set_attendance(session: AsyncSession, user: User, event_id: uuid.UUID, attend: bool) -> Event:
    """Redundant attend/unattend is a 400. The creator hears about changes by others."""
    event = await get_visible_event(session, event_id, user)
    current = await EventAttendee.find_one(session, event_id=event.id, user_id=user.id)

    if attend:
        if current:
            raise BadRequestException("You are already attending this event")
        await EventAttendee.create(db=session, event_id=event.id, user_id=user.id)
        content = f"{user.name} is attending {event.title}"
    else:
        if not current:
            raise BadRequestException("You are not attending this event")
        await current.delete(session)
        content = f"{user.name} is no longer attending {event.title}"

    await notify(
        session,
        [event.creator_id],
        "event",
        content,
        related_type=EntityKind.EVENT,
        related_id=event.id,
        sender_id=user.id,
    )
    return event
