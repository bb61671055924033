"""
News business logic.

Only admins write news. Readers other than admins see published items
only. Featuring an item broadcasts a notification to every other user.
"""

import uuid
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries
from intranet.apps.news.models import News
from intranet.apps.news.schemas import NewsCreate, NewsResponse, NewsUpdate
from intranet.apps.notifications.services import notify
from intranet.core.entities import EntityKind
from intranet.core.permissions import ensure_owner, is_admin
from intranet.core.uploads import NEWS_MEDIA, save_uploads, remove_upload
from intranet.db.base_model import utcnow
from intranet.utils.exceptions import BadRequestException, ResourceNotFoundException
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)


async def serialize_news(session: AsyncSession, items: List[News]) -> List[NewsResponse]:
    authors = await get_user_summaries(session, [n.author_id for n in items])
    return [
        NewsResponse(
            id=n.id,
            title=n.title,
            content=n.content,
            summary=n.summary,
            author=authors.get(n.author_id),
            media=list(n.media or []),
            category=n.category,
            tags=list(n.tags or []),
            is_featured=n.is_featured,
            is_published=n.is_published,
            publish_date=n.publish_date,
            created_at=n.created_at,
            updated_at=n.updated_at,
        )
        for n in items
    ]


def _visible_to(viewer: User) -> list:
    return [] if is_admin(viewer) else [News.is_published.is_(True)]


async def get_news_or_404(session: AsyncSession, news_id: uuid.UUID) -> News:
    item = await News.get_by_id(session, news_id)
    if not item:
        raise ResourceNotFoundException(f"News not found with id {news_id}")
    return item


async def get_visible_news(session: AsyncSession, viewer: User, news_id: uuid.UUID) -> News:
    """Unpublished items are invisible (404) to non-admins."""
    item = await get_news_or_404(session, news_id)
    if not item.is_published and not is_admin(viewer):
        raise ResourceNotFoundException(f"News not found with id {news_id}")
    return item


async def list_news(
    session: AsyncSession,
    viewer: User,
    params: PageParams,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
) -> Tuple[List[NewsResponse], int]:
    criteria = _visible_to(viewer)
    if category:
        criteria.append(News.category == category)
    if featured is not None:
        criteria.append(News.is_featured.is_(featured))

    items, total = await News.paginate(
        session, *criteria, page=params.page, limit=params.limit,
        sort=params.sort, default_sort="-publish_date",
    )
    return await serialize_news(session, items), total


async def list_featured(session: AsyncSession, viewer: User, limit: int = 5) -> List[NewsResponse]:
    items = await News.find_many(
        session,
        News.is_featured.is_(True),
        *_visible_to(viewer),
        limit=limit,
        order_by=News.publish_date.desc(),
    )
    return await serialize_news(session, items)


async def list_categories(session: AsyncSession, viewer: User) -> List[str]:
    query = select(News.category).where(*_visible_to(viewer)).distinct().order_by(News.category)
    result = await session.execute(query)
    return list(result.scalars().all())


async def _announce(session: AsyncSession, author: User, item: News) -> None:
    """Broadcast a featured item to every other active user."""
    result = await session.execute(
        select(User.id).where(User.is_active.is_(True), User.id != author.id)
    )
    recipients = list(result.scalars().all())
    logger.info(f"Announcing featured news {item.id} to {len(recipients)} users")
    await notify(
        session,
        recipients,
        "news",
        f"Featured news: {item.title}",
        related_type=EntityKind.NEWS,
        related_id=item.id,
        sender_id=author.id,
    )


async def create_news(session: AsyncSession, user: User, data: NewsCreate) -> News:
    values = data.model_dump()
    if values.get("publish_date") is None:
        values["publish_date"] = utcnow()

    item = await News.create(db=session, author_id=user.id, **values)
    if item.is_featured and item.is_published:
        await _announce(session, user, item)
    return item


async def update_news(session: AsyncSession, user: User, news_id: uuid.UUID, data: NewsUpdate) -> News:
    item = await get_news_or_404(session, news_id)
    ensure_owner(user, item, "author_id", detail="Not authorized to update this news")

    was_featured = item.is_featured
    item.apply(data.model_dump(exclude_unset=True, exclude_none=True))
    await item.save(session)

    if item.is_featured and not was_featured and item.is_published:
        await _announce(session, user, item)
    return item


async def delete_news(session: AsyncSession, user: User, news_id: uuid.UUID) -> None:
    item = await get_news_or_404(session, news_id)
    ensure_owner(user, item, "author_id", detail="Not authorized to delete this news")

    media = list(item.media or [])
    await item.delete(session)
    for url in media:
        remove_upload(url)


async def add_media(
    session: AsyncSession, user: User, news_id: uuid.UUID, files: List[UploadFile]
) -> News:
    item = await get_news_or_404(session, news_id)
    ensure_owner(user, item, "author_id", detail="Not authorized to update this news")

    stored = await save_uploads(files, NEWS_MEDIA, "media")
    if not stored:
        raise BadRequestException("Please upload at least one file")
    item.media = [*(item.media or []), *(s.url for s in stored)]
    return await item.save(session)
