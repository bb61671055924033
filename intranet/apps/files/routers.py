"""
Files router.

Entry/exit only, no logic here. Uploads arrive as multipart `documents`.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File as FileField, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user
from intranet.apps.files.schemas import ShareRequest
from intranet.apps.files.services import (
    list_own_files,
    list_shared_files,
    get_readable_file,
    serialize_files,
    upload_files,
    delete_file,
    share_file,
    unshare_file,
)
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/files", tags=["Files"])


async def _one(session: AsyncSession, record) -> dict:
    [item] = await serialize_files(session, [record])
    return item.model_dump()


@router.get("")
async def index(
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_own_files(session, user, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/shared")
async def shared(
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_shared_files(session, user, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.post("", status_code=201)
async def upload(
    request: Request,
    documents: List[UploadFile] = FileField(...),
    group_id: Optional[uuid.UUID] = Form(None),
    department_id: Optional[uuid.UUID] = Form(None),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    records = await upload_files(session, user, documents, group_id=group_id, department_id=department_id)
    for record in records:
        await record_activity(session, request, user, "upload", EntityKind.FILE, record.id, record.name)
    items = await serialize_files(session, records)
    return success_response(status_code=201, message="Files uploaded", data=[i.model_dump() for i in items])


@router.get("/{file_id}")
async def show(
    request: Request,
    file_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    record = await get_readable_file(session, user, file_id)
    await record_activity(session, request, user, "view", EntityKind.FILE, record.id)
    return success_response(data=await _one(session, record))


@router.delete("/{file_id}")
async def destroy(
    request: Request,
    file_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_file(session, user, file_id)
    await record_activity(session, request, user, "delete", EntityKind.FILE, file_id)
    return success_response(message="File deleted", data={})


@router.post("/{file_id}/share")
async def share(
    request: Request,
    file_id: uuid.UUID,
    data: ShareRequest,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    record = await share_file(session, user, file_id, data.user_id)
    await record_activity(session, request, user, "share", EntityKind.FILE, record.id, f"Shared with {data.user_id}")
    return success_response(message="File shared", data=await _one(session, record))


@router.delete("/{file_id}/share/{user_id}")
async def unshare(
    request: Request,
    file_id: uuid.UUID,
    user_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    record = await unshare_file(session, user, file_id, user_id)
    await record_activity(session, request, user, "share", EntityKind.FILE, record.id, f"Unshared from {user_id}")
    return success_response(message="File unshared", data=await _one(session, record))
