"""
Admin business logic.

Read-mostly views across every app plus the single SystemSettings row.
Activity entries are resolved to a short label of the entity they point at.
"""

import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.admin.models import ActivityLog, SystemSettings
from intranet.apps.admin.schemas import (
    ActivityLogResponse,
    DashboardResponse,
    DashboardStats,
    EntityRef,
    SystemSettingsUpdate,
)
from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries
from intranet.apps.events.models import Event
from intranet.apps.events.services import serialize_events
from intranet.apps.groups.models import Group
from intranet.apps.news.models import News
from intranet.apps.posts.models import Post
from intranet.core.entities import entity_label, fetch_entity
from intranet.db.base_model import utcnow
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)

ACTIVE_WINDOW = timedelta(days=30)
RECENT_POSTS_WINDOW = timedelta(days=7)
UPCOMING_EVENTS = 5
RECENT_ACTIVITY = 10


async def serialize_logs(session: AsyncSession, logs: List[ActivityLog]) -> List[ActivityLogResponse]:
    users = await get_user_summaries(session, [log.user_id for log in logs if log.user_id])
    items = []
    for log in logs:
        entity = await fetch_entity(session, log.entity_type, log.entity_id)
        items.append(
            ActivityLogResponse(
                id=log.id,
                user=users.get(log.user_id),
                action=log.action,
                entity=EntityRef(type=log.entity_type, id=log.entity_id, label=entity_label(entity)),
                details=log.details,
                ip=log.ip,
                user_agent=log.user_agent,
                device=log.device,
                created_at=log.created_at,
            )
        )
    return items


async def dashboard(session: AsyncSession, admin: User) -> DashboardResponse:
    now = utcnow()
    stats = DashboardStats(
        users=await User.count(session),
        active_users=await User.count(session, User.last_active >= now - ACTIVE_WINDOW),
        posts=await Post.count(session),
        recent_posts=await Post.count(session, Post.created_at >= now - RECENT_POSTS_WINDOW),
        groups=await Group.count(session),
        events=await Event.count(session),
        news=await News.count(session),
    )

    upcoming = await Event.find_many(
        session, Event.start_date >= now, limit=UPCOMING_EVENTS, order_by=Event.start_date
    )
    logs = await ActivityLog.find_many(session, limit=RECENT_ACTIVITY)

    return DashboardResponse(
        stats=stats,
        upcoming_events=[e.model_dump() for e in await serialize_events(session, upcoming, admin)],
        recent_activity=await serialize_logs(session, logs),
    )


async def list_logs(
    session: AsyncSession,
    params: PageParams,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
) -> Tuple[List[ActivityLogResponse], int]:
    filters = {}
    if action:
        filters["action"] = action
    if entity_type:
        filters["entity_type"] = entity_type
    if user_id:
        filters["user_id"] = user_id

    logs, total = await ActivityLog.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, **filters
    )
    return await serialize_logs(session, logs), total


async def get_settings(session: AsyncSession) -> SystemSettings:
    return await SystemSettings.load(session)


async def update_settings(session: AsyncSession, data: SystemSettingsUpdate) -> SystemSettings:
    current = await SystemSettings.load(session)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    current.apply(changes)
    await current.save(session)
    logger.info(f"System settings updated: {sorted(changes)}")
    return current
