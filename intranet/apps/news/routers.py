"""
News router.

Entry/exit only, no logic here. Writes are admin-only.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user
from intranet.apps.news.schemas import NewsCreate, NewsUpdate
from intranet.apps.news.services import (
    list_news,
    list_featured,
    list_categories,
    get_visible_news,
    serialize_news,
    create_news,
    update_news,
    delete_news,
    add_media,
)
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.core.permissions import admin_required
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/news", tags=["News"])


async def _one(session: AsyncSession, item) -> dict:
    [payload] = await serialize_news(session, [item])
    return payload.model_dump()


@router.get("")
async def index(
    category: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_news(session, user, params, category=category, featured=featured)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/categories")
async def categories(
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    return success_response(data=await list_categories(session, user))


@router.get("/featured")
async def featured(
    limit: int = Query(5, ge=1, le=20),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items = await list_featured(session, user, limit=limit)
    return success_response(data=[i.model_dump() for i in items])


@router.post("", status_code=201)
async def create(
    request: Request,
    data: NewsCreate,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    item = await create_news(session, admin, data)
    await record_activity(session, request, admin, "create", EntityKind.NEWS, item.id, item.title)
    return success_response(status_code=201, message="News created", data=await _one(session, item))


@router.get("/{news_id}")
async def show(
    news_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    item = await get_visible_news(session, user, news_id)
    return success_response(data=await _one(session, item))


@router.put("/{news_id}")
async def update(
    request: Request,
    news_id: uuid.UUID,
    data: NewsUpdate,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    item = await update_news(session, admin, news_id, data)
    await record_activity(session, request, admin, "update", EntityKind.NEWS, item.id, item.title)
    return success_response(message="News updated", data=await _one(session, item))


@router.delete("/{news_id}")
async def destroy(
    request: Request,
    news_id: uuid.UUID,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    await delete_news(session, admin, news_id)
    await record_activity(session, request, admin, "delete", EntityKind.NEWS, news_id)
    return success_response(message="News deleted", data={})


@router.post("/{news_id}/media")
async def upload_media(
    news_id: uuid.UUID,
    media: List[UploadFile] = File(...),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    item = await add_media(session, admin, news_id, media)
    return success_response(message="Media uploaded", data=await _one(session, item))
