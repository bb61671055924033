"""
Groups router.

Entry/exit only, no logic here. Calls group services; group-scoped
posts, files and events are served by their own apps' services.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user, optional_user
from intranet.apps.events.services import list_group_events
from intranet.apps.files.services import list_group_files
from intranet.apps.groups.schemas import GroupCreate, GroupUpdate, MemberAdd, MemberRoleUpdate
from intranet.apps.groups.services import (
    list_groups,
    get_group,
    serialize_groups,
    serialize_members,
    create_group,
    update_group,
    update_images,
    delete_group,
    join_group,
    leave_group,
    list_members,
    add_member,
    update_member_role,
    remove_member,
)
from intranet.apps.posts.services import list_group_posts
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/groups", tags=["Groups"])


async def _one(session: AsyncSession, group, viewer: Optional[User]) -> dict:
    [item] = await serialize_groups(session, [group], viewer)
    return item.model_dump()


# ── Groups ────────────────────────────────────────────────────────────────────

@router.get("")
async def index(
    search: Optional[str] = Query(None),
    params: PageParams = Depends(),
    viewer: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_groups(session, viewer, params, search=search)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.post("", status_code=201)
async def create(
    request: Request,
    data: GroupCreate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    group = await create_group(session, user, data)
    await record_activity(session, request, user, "create", EntityKind.GROUP, group.id, group.name)
    return success_response(status_code=201, message="Group created", data=await _one(session, group, user))


@router.get("/{group_id}")
async def show(
    group_id: uuid.UUID,
    viewer: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    group = await get_group(session, group_id, viewer)
    return success_response(data=await _one(session, group, viewer))


@router.put("/{group_id}")
async def update(
    request: Request,
    group_id: uuid.UUID,
    data: GroupUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    group = await update_group(session, user, group_id, data)
    await record_activity(session, request, user, "update", EntityKind.GROUP, group.id)
    return success_response(message="Group updated", data=await _one(session, group, user))


@router.put("/{group_id}/images")
async def images(
    request: Request,
    group_id: uuid.UUID,
    avatar: Optional[UploadFile] = File(None),
    cover: Optional[UploadFile] = File(None),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    group = await update_images(session, user, group_id, avatar, cover)
    await record_activity(session, request, user, "upload", EntityKind.GROUP, group.id, "Images updated")
    return success_response(message="Group images updated", data=await _one(session, group, user))


@router.delete("/{group_id}")
async def destroy(
    request: Request,
    group_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_group(session, user, group_id)
    await record_activity(session, request, user, "delete", EntityKind.GROUP, group_id)
    return success_response(message="Group deleted", data={})


# ── Membership ────────────────────────────────────────────────────────────────

@router.post("/{group_id}/join")
async def join(
    request: Request,
    group_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    group = await join_group(session, user, group_id)
    await record_activity(session, request, user, "update", EntityKind.GROUP, group.id, "Joined")
    return success_response(message="Joined group", data=await _one(session, group, user))


@router.delete("/{group_id}/leave")
async def leave(
    request: Request,
    group_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await leave_group(session, user, group_id)
    await record_activity(session, request, user, "update", EntityKind.GROUP, group_id, "Left")
    return success_response(message="Left group", data={})


@router.get("/{group_id}/members")
async def members(
    group_id: uuid.UUID,
    params: PageParams = Depends(),
    viewer: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_members(session, viewer, group_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.post("/{group_id}/members", status_code=201)
async def member_add(
    request: Request,
    group_id: uuid.UUID,
    data: MemberAdd,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    membership = await add_member(session, user, group_id, data)
    await record_activity(session, request, user, "update", EntityKind.GROUP, group_id, f"Added member {data.user_id}")
    [item] = await serialize_members(session, [membership])
    return success_response(status_code=201, message="Member added", data=item.model_dump())


@router.put("/{group_id}/members/{user_id}")
async def member_role(
    request: Request,
    group_id: uuid.UUID,
    user_id: uuid.UUID,
    data: MemberRoleUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    membership = await update_member_role(session, user, group_id, user_id, data.role)
    await record_activity(session, request, user, "update", EntityKind.GROUP, group_id, f"Member {user_id} is now {data.role}")
    [item] = await serialize_members(session, [membership])
    return success_response(message="Member role updated", data=item.model_dump())


@router.delete("/{group_id}/members/{user_id}")
async def member_remove(
    request: Request,
    group_id: uuid.UUID,
    user_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await remove_member(session, user, group_id, user_id)
    await record_activity(session, request, user, "update", EntityKind.GROUP, group_id, f"Removed member {user_id}")
    return success_response(message="Member removed", data={})


# ── Group content ─────────────────────────────────────────────────────────────

@router.get("/{group_id}/posts")
async def posts(
    group_id: uuid.UUID,
    params: PageParams = Depends(),
    viewer: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_group_posts(session, viewer, group_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/{group_id}/files")
async def files(
    group_id: uuid.UUID,
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_group_files(session, user, group_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/{group_id}/events")
async def events(
    group_id: uuid.UUID,
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_group_events(session, user, group_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)
