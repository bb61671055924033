"""
Admin router.

Entry/exit only, no logic here. Every route is behind the admin role gate.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.admin.schemas import SystemSettingsResponse, SystemSettingsUpdate
from intranet.apps.admin.services import dashboard, list_logs, get_settings, update_settings
from intranet.apps.auth.models import User
from intranet.apps.auth.schemas import UserResponse
from intranet.apps.events.models import Event
from intranet.apps.events.services import serialize_events
from intranet.apps.groups.models import Group
from intranet.apps.groups.services import serialize_groups
from intranet.apps.news.models import News
from intranet.apps.news.services import serialize_news
from intranet.apps.posts.models import Post
from intranet.apps.posts.services import serialize_posts
from intranet.apps.users.services import list_users
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.core.permissions import admin_required
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/dashboard")
async def dashboard_view(
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    summary = await dashboard(session, admin)
    return success_response(data=summary.model_dump())


# ── Management lists ──────────────────────────────────────────────────────────

@router.get("/users")
async def users(
    search: Optional[str] = Query(None),
    params: PageParams = Depends(),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_users(session, params, search=search)
    return paginated_response(
        [UserResponse.model_validate(u).model_dump() for u in items], total, params
    )


@router.get("/posts")
async def posts(
    params: PageParams = Depends(),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    items, total = await Post.paginate(session, page=params.page, limit=params.limit, sort=params.sort)
    payload = await serialize_posts(session, items, admin)
    return paginated_response([p.model_dump() for p in payload], total, params)


@router.get("/groups")
async def groups(
    params: PageParams = Depends(),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    items, total = await Group.paginate(session, page=params.page, limit=params.limit, sort=params.sort)
    payload = await serialize_groups(session, items, admin)
    return paginated_response([g.model_dump() for g in payload], total, params)


@router.get("/events")
async def events(
    params: PageParams = Depends(),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    items, total = await Event.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, default_sort="-start_date"
    )
    payload = await serialize_events(session, items, admin)
    return paginated_response([e.model_dump() for e in payload], total, params)


@router.get("/news")
async def news(
    params: PageParams = Depends(),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    items, total = await News.paginate(session, page=params.page, limit=params.limit, sort=params.sort)
    payload = await serialize_news(session, items)
    return paginated_response([n.model_dump() for n in payload], total, params)


# ── Activity & settings ───────────────────────────────────────────────────────

@router.get("/logs")
async def logs(
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    params: PageParams = Depends(),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_logs(session, params, action=action, entity_type=entity_type, user_id=user_id)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/settings")
async def read_settings(
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    current = await get_settings(session)
    return success_response(data=SystemSettingsResponse.model_validate(current).model_dump())


@router.put("/settings")
async def write_settings(
    request: Request,
    data: SystemSettingsUpdate,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    current = await update_settings(session, data)
    await record_activity(session, request, admin, "update", EntityKind.SYSTEM, current.id, "System settings")
    return success_response(
        message="Settings updated", data=SystemSettingsResponse.model_validate(current).model_dump()
    )
