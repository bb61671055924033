"""
Group business logic.

Membership lives in GroupMember rows. A group always keeps at least one
admin member: leave, remove and demote all re-count admins right before
the write. The count and the write are not atomic.
"""

import uuid
from typing import Dict, List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries, get_user_or_404
from intranet.apps.events.models import Event, EventAttendee
from intranet.apps.files.models import File, FileShare
from intranet.apps.groups.models import Group, GroupMember
from intranet.apps.groups.schemas import (
    GroupCreate,
    GroupUpdate,
    GroupResponse,
    GroupMemberResponse,
    MemberAdd,
)
from intranet.apps.notifications.services import notify
from intranet.apps.posts.models import Comment, Post
from intranet.core.entities import EntityKind
from intranet.core.permissions import is_admin
from intranet.core.uploads import GROUP_IMAGES, save_uploads, remove_upload
from intranet.utils.exceptions import (
    BadRequestException,
    PermissionDeniedException,
    ResourceNotFoundException,
)
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)


# ── Lookups & Guards ──────────────────────────────────────────────────────────

async def get_group_or_404(session: AsyncSession, group_id: uuid.UUID) -> Group:
    group = await Group.get_by_id(session, group_id)
    if not group:
        raise ResourceNotFoundException(f"Group not found with id {group_id}")
    return group


async def get_membership(
    session: AsyncSession, group_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[GroupMember]:
    return await GroupMember.find_one(session, group_id=group_id, user_id=user_id)


async def admin_count(session: AsyncSession, group_id: uuid.UUID) -> int:
    return await GroupMember.count(session, group_id=group_id, role="admin")


async def member_ids(session: AsyncSession, group_id: uuid.UUID) -> List[uuid.UUID]:
    result = await session.execute(select(GroupMember.user_id).where(GroupMember.group_id == group_id))
    return list(result.scalars().all())


async def ensure_can_view(session: AsyncSession, group: Group, user: Optional[User]) -> None:
    """Guard: private groups are visible to members and site admins only."""
    if not group.is_private or is_admin(user):
        return
    if user is None or not await get_membership(session, group.id, user.id):
        raise PermissionDeniedException("This group is private")


async def ensure_member(session: AsyncSession, group: Group, user: User) -> None:
    """Guard: posting into a group requires membership (site admins pass)."""
    if is_admin(user):
        return
    if not await get_membership(session, group.id, user.id):
        raise PermissionDeniedException("You must be a member of this group")


async def ensure_group_admin(session: AsyncSession, group: Group, user: User) -> None:
    """Guard: group admin member or site admin."""
    if is_admin(user):
        return
    membership = await get_membership(session, group.id, user.id)
    if not membership or membership.role != "admin":
        raise PermissionDeniedException("Only group admins can perform this action")


# ── Serialization ─────────────────────────────────────────────────────────────

async def serialize_groups(
    session: AsyncSession, groups: List[Group], viewer: Optional[User]
) -> List[GroupResponse]:
    ids = [g.id for g in groups]
    memberships: Dict[uuid.UUID, List[GroupMember]] = {}
    if ids:
        rows = await GroupMember.find_many(
            session, GroupMember.group_id.in_(ids), order_by=GroupMember.joined_at
        )
        for row in rows:
            memberships.setdefault(row.group_id, []).append(row)
    creators = await get_user_summaries(session, [g.creator_id for g in groups])

    items = []
    for g in groups:
        rows = memberships.get(g.id, [])
        mine = next((m for m in rows if viewer and m.user_id == viewer.id), None)
        items.append(
            GroupResponse(
                id=g.id,
                name=g.name,
                description=g.description,
                creator=creators.get(g.creator_id),
                avatar=g.avatar,
                cover_image=g.cover_image,
                is_private=g.is_private,
                members=[m.id for m in rows],
                member_count=len(rows),
                is_member=mine is not None,
                my_role=mine.role if mine else None,
                created_at=g.created_at,
            )
        )
    return items


async def serialize_members(
    session: AsyncSession, rows: List[GroupMember]
) -> List[GroupMemberResponse]:
    users = await get_user_summaries(session, [m.user_id for m in rows])
    return [
        GroupMemberResponse(
            id=m.id, group_id=m.group_id, user=users.get(m.user_id), role=m.role, joined_at=m.joined_at
        )
        for m in rows
    ]


# ── Groups ────────────────────────────────────────────────────────────────────

async def list_groups(
    session: AsyncSession, viewer: Optional[User], params: PageParams, search: Optional[str] = None
) -> Tuple[List[GroupResponse], int]:
    """Anonymous: public groups. Users: public plus their own. Admins: all."""
    criteria = []
    if viewer is None:
        criteria.append(Group.is_private.is_(False))
    elif not is_admin(viewer):
        mine = select(GroupMember.group_id).where(GroupMember.user_id == viewer.id)
        criteria.append(or_(Group.is_private.is_(False), Group.id.in_(mine)))
    if search:
        criteria.append(Group.name.ilike(f"%{search}%"))

    groups, total = await Group.paginate(
        session, *criteria, page=params.page, limit=params.limit, sort=params.sort
    )
    return await serialize_groups(session, groups, viewer), total


async def get_group(session: AsyncSession, group_id: uuid.UUID, viewer: Optional[User]) -> Group:
    group = await get_group_or_404(session, group_id)
    await ensure_can_view(session, group, viewer)
    return group


async def create_group(session: AsyncSession, user: User, data: GroupCreate) -> Group:
    """The creator becomes the group's first and only admin member."""
    group = await Group.create(db=session, commit=False, creator_id=user.id, **data.model_dump())
    await GroupMember.create(db=session, group_id=group.id, user_id=user.id, role="admin")
    logger.info(f"Group created: {group.name} by {user.email}")
    return group


async def update_group(session: AsyncSession, user: User, group_id: uuid.UUID, data: GroupUpdate) -> Group:
    group = await get_group_or_404(session, group_id)
    await ensure_group_admin(session, group, user)
    group.apply(data.model_dump(exclude_unset=True, exclude_none=True))
    return await group.save(session)


async def update_images(
    session: AsyncSession,
    user: User,
    group_id: uuid.UUID,
    avatar: Optional[UploadFile],
    cover: Optional[UploadFile],
) -> Group:
    group = await get_group_or_404(session, group_id)
    await ensure_group_admin(session, group, user)

    replaced = []
    for field, upload in (("avatar", avatar), ("cover", cover)):
        if upload is None or not upload.filename:
            continue
        [stored] = await save_uploads([upload], GROUP_IMAGES, field)
        attr = "avatar" if field == "avatar" else "cover_image"
        replaced.append(getattr(group, attr))
        setattr(group, attr, stored.url)

    if not replaced:
        raise BadRequestException("Please upload an avatar or a cover image")

    await group.save(session)
    for url in replaced:
        if not url.startswith("/uploads/groups/default"):
            remove_upload(url)
    return group


async def delete_group(session: AsyncSession, user: User, group_id: uuid.UUID) -> None:
    """
    Delete a group and everything scoped to it: memberships, posts with
    their comments, files with their shares, events with their attendees.
    """
    group = await get_group_or_404(session, group_id)
    await ensure_group_admin(session, group, user)

    post_ids = select(Post.id).where(Post.group_id == group.id)
    await Comment.delete_many(session, Comment.post_id.in_(post_ids), commit=False)
    await Post.delete_many(session, commit=False, group_id=group.id)

    files = await File.find_many(session, group_id=group.id)
    await FileShare.delete_many(session, FileShare.file_id.in_([f.id for f in files]), commit=False)
    for f in files:
        await f.delete(session, commit=False)

    event_ids = select(Event.id).where(Event.group_id == group.id)
    await EventAttendee.delete_many(session, EventAttendee.event_id.in_(event_ids), commit=False)
    await Event.delete_many(session, commit=False, group_id=group.id)

    await GroupMember.delete_many(session, commit=False, group_id=group.id)
    await group.delete(session)

    for f in files:
        remove_upload(f.url)
    logger.info(f"Group deleted: {group.name} by {user.email}")


# ── Membership ────────────────────────────────────────────────────────────────

async def join_group(session: AsyncSession, user: User, group_id: uuid.UUID) -> Group:
    group = await get_group_or_404(session, group_id)
    if await get_membership(session, group.id, user.id):
        raise BadRequestException("You are already a member of this group")
    if group.is_private and not is_admin(user):
        raise PermissionDeniedException("This group is private; ask a group admin to add you")

    await GroupMember.create(db=session, group_id=group.id, user_id=user.id, role="member")
    return group


async def _ensure_not_last_admin(session: AsyncSession, membership: GroupMember, message: str) -> None:
    if membership.role == "admin" and await admin_count(session, membership.group_id) <= 1:
        raise BadRequestException(message)


async def leave_group(session: AsyncSession, user: User, group_id: uuid.UUID) -> None:
    """Guard: the sole admin must hand over the role before leaving."""
    group = await get_group_or_404(session, group_id)
    membership = await get_membership(session, group.id, user.id)
    if not membership:
        raise BadRequestException("You are not a member of this group")

    await _ensure_not_last_admin(
        session, membership, "You are the only admin. Promote another member before leaving."
    )
    await membership.delete(session)


async def list_members(
    session: AsyncSession, viewer: Optional[User], group_id: uuid.UUID, params: PageParams
) -> Tuple[List[GroupMemberResponse], int]:
    group = await get_group(session, group_id, viewer)
    rows, total = await GroupMember.paginate(
        session,
        page=params.page,
        limit=params.limit,
        sort=params.sort,
        default_sort="role,joined_at",
        group_id=group.id,
    )
    return await serialize_members(session, rows), total


async def add_member(
    session: AsyncSession, user: User, group_id: uuid.UUID, data: MemberAdd
) -> GroupMember:
    group = await get_group_or_404(session, group_id)
    await ensure_group_admin(session, group, user)
    await get_user_or_404(session, data.user_id)

    if await get_membership(session, group.id, data.user_id):
        raise BadRequestException("User is already a member of this group")

    membership = await GroupMember.create(db=session, group_id=group.id, user_id=data.user_id, role=data.role)
    await notify(
        session,
        [data.user_id],
        "group",
        f"{user.name} added you to the group {group.name}",
        related_type=EntityKind.GROUP,
        related_id=group.id,
        sender_id=user.id,
    )
    return membership


async def _get_member_or_404(session: AsyncSession, group_id: uuid.UUID, user_id: uuid.UUID) -> GroupMember:
    membership = await get_membership(session, group_id, user_id)
    if not membership:
        raise ResourceNotFoundException("User is not a member of this group")
    return membership


async def update_member_role(
    session: AsyncSession, user: User, group_id: uuid.UUID, member_user_id: uuid.UUID, role: str
) -> GroupMember:
    group = await get_group_or_404(session, group_id)
    await ensure_group_admin(session, group, user)
    membership = await _get_member_or_404(session, group.id, member_user_id)

    if role != "admin":
        await _ensure_not_last_admin(session, membership, "A group must keep at least one admin")
    membership.role = role
    return await membership.save(session)


async def remove_member(
    session: AsyncSession, user: User, group_id: uuid.UUID, member_user_id: uuid.UUID
) -> None:
    group = await get_group_or_404(session, group_id)
    await ensure_group_admin(session, group, user)
    membership = await _get_member_or_404(session, group.id, member_user_id)

    await _ensure_not_last_admin(session, membership, "Cannot remove the only admin of the group")
    await membership.delete(session)
