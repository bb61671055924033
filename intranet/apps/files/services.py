"""
File business logic.

A file is readable by its owner, the users it is shared with, and admins.
Deleting a record removes the stored upload on a best-effort basis.
"""

import uuid
from typing import Dict, List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_or_404, get_user_summaries
from intranet.apps.departments.models import Department
from intranet.apps.files.models import File, FileShare
from intranet.apps.files.schemas import FileResponse
from intranet.apps.groups.services import ensure_can_view, ensure_member, get_group_or_404
from intranet.apps.notifications.services import notify
from intranet.core.entities import EntityKind
from intranet.core.permissions import ensure_owner, is_admin, is_owner
from intranet.core.uploads import DOCUMENTS, save_uploads, remove_upload
from intranet.utils.exceptions import (
    BadRequestException,
    PermissionDeniedException,
    ResourceNotFoundException,
)
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)


async def serialize_files(session: AsyncSession, files: List[File]) -> List[FileResponse]:
    shares: Dict[uuid.UUID, List[uuid.UUID]] = {}
    if files:
        rows = await FileShare.find_many(
            session, FileShare.file_id.in_([f.id for f in files]), order_by=FileShare.created_at
        )
        for row in rows:
            shares.setdefault(row.file_id, []).append(row.user_id)

    users = await get_user_summaries(
        session, [f.owner_id for f in files] + [uid for ids in shares.values() for uid in ids]
    )
    return [
        FileResponse(
            id=f.id,
            name=f.name,
            type=f.type,
            size=f.size,
            url=f.url,
            extension=f.extension,
            owner=users.get(f.owner_id),
            shared_with=[users[uid] for uid in shares.get(f.id, []) if uid in users],
            group_id=f.group_id,
            department_id=f.department_id,
            created_at=f.created_at,
        )
        for f in files
    ]


async def get_file_or_404(session: AsyncSession, file_id: uuid.UUID) -> File:
    record = await File.get_by_id(session, file_id)
    if not record:
        raise ResourceNotFoundException(f"File not found with id {file_id}")
    return record


async def get_readable_file(session: AsyncSession, user: User, file_id: uuid.UUID) -> File:
    """Guard: owner, share recipient or admin."""
    record = await get_file_or_404(session, file_id)
    if is_admin(user) or is_owner(user, record, "owner_id"):
        return record
    if await FileShare.exists(session, file_id=record.id, user_id=user.id):
        return record
    raise PermissionDeniedException("Not authorized to access this file")


async def list_own_files(session: AsyncSession, user: User, params: PageParams) -> Tuple[List[FileResponse], int]:
    files, total = await File.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, owner_id=user.id
    )
    return await serialize_files(session, files), total


async def list_shared_files(session: AsyncSession, user: User, params: PageParams) -> Tuple[List[FileResponse], int]:
    shared = select(FileShare.file_id).where(FileShare.user_id == user.id)
    files, total = await File.paginate(
        session, File.id.in_(shared), page=params.page, limit=params.limit, sort=params.sort
    )
    return await serialize_files(session, files), total


async def list_group_files(
    session: AsyncSession, user: User, group_id: uuid.UUID, params: PageParams
) -> Tuple[List[FileResponse], int]:
    group = await get_group_or_404(session, group_id)
    await ensure_can_view(session, group, user)
    files, total = await File.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, group_id=group.id
    )
    return await serialize_files(session, files), total


async def upload_files(
    session: AsyncSession,
    user: User,
    documents: List[UploadFile],
    group_id: Optional[uuid.UUID] = None,
    department_id: Optional[uuid.UUID] = None,
) -> List[File]:
    """
    One File record per accepted upload.

    Guard: group uploads require membership.
    """
    if group_id:
        group = await get_group_or_404(session, group_id)
        await ensure_member(session, group, user)
    if department_id and not await Department.exists(session, id=department_id):
        raise ResourceNotFoundException(f"Department not found with id {department_id}")

    stored = await save_uploads(documents, DOCUMENTS, "documents")
    if not stored:
        raise BadRequestException("Please upload at least one file")

    records = []
    for item in stored:
        records.append(
            await File.create(
                db=session,
                commit=False,
                name=item.original_name,
                type=item.content_type,
                size=item.size,
                url=item.url,
                owner_id=user.id,
                group_id=group_id,
                department_id=department_id,
            )
        )
    await session.commit()
    logger.info(f"{len(records)} file(s) uploaded by {user.email}")
    return records


async def delete_file(session: AsyncSession, user: User, file_id: uuid.UUID) -> None:
    record = await get_file_or_404(session, file_id)
    ensure_owner(user, record, "owner_id", detail="Not authorized to delete this file")

    url = record.url
    await FileShare.delete_many(session, commit=False, file_id=record.id)
    await record.delete(session)
    remove_upload(url)


async def share_file(session: AsyncSession, user: User, file_id: uuid.UUID, target_id: uuid.UUID) -> File:
    """Guard: sharing twice with the same user is a 400."""
    record = await get_file_or_404(session, file_id)
    ensure_owner(user, record, "owner_id", detail="Not authorized to share this file")
    await get_user_or_404(session, target_id)

    if target_id == record.owner_id:
        raise BadRequestException("You cannot share a file with its owner")
    if await FileShare.exists(session, file_id=record.id, user_id=target_id):
        raise BadRequestException("File already shared with this user")

    await FileShare.create(db=session, file_id=record.id, user_id=target_id)
    await notify(
        session,
        [target_id],
        "file",
        f"{user.name} shared the file {record.name} with you",
        related_type=EntityKind.FILE,
        related_id=record.id,
        sender_id=user.id,
    )
    return record


async def unshare_file(session: AsyncSession, user: User, file_id: uuid.UUID, target_id: uuid.UUID) -> File:
    record = await get_file_or_404(session, file_id)
    ensure_owner(user, record, "owner_id", detail="Not authorized to share this file")

    share = await FileShare.find_one(session, file_id=record.id, user_id=target_id)
    if not share:
        raise BadRequestException("File is not shared with this user")
    await share.delete(session)
    return record
