"""
QuickAccess business logic.

A user's shortcuts are kept in a dense 0..n-1 `order` sequence: new items
go last, deletions close the gap.
"""

import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.quick_access.models import QuickAccess
from intranet.apps.quick_access.schemas import (
    GalleryApp,
    OrderItem,
    QuickAccessCreate,
    QuickAccessUpdate,
)
from intranet.core.permissions import is_owner
from intranet.utils.exceptions import PermissionDeniedException, ResourceNotFoundException
from intranet.utils.logger import get_logger

logger = get_logger(__name__)

GALLERY = [
    GalleryApp(name="Email", icon="mail", url="https://mail.prefeitura.gov.br", category="Comunicação"),
    GalleryApp(name="Calendário", icon="calendar", url="/calendario", category="Produtividade"),
    GalleryApp(name="Documentos", icon="file-text", url="/documentos", category="Produtividade"),
    GalleryApp(name="Recursos Humanos", icon="users", url="/recursos-humanos", category="Departamentos"),
    GalleryApp(name="Financeiro", icon="dollar-sign", url="/financeiro", category="Departamentos"),
    GalleryApp(name="Tecnologia", icon="cpu", url="/tecnologia", category="Departamentos"),
    GalleryApp(name="Jurídico", icon="briefcase", url="/juridico", category="Departamentos"),
    GalleryApp(name="Comunicação", icon="message-circle", url="/comunicacao", category="Departamentos"),
    GalleryApp(name="Biblioteca", icon="book", url="/biblioteca", category="Recursos"),
    GalleryApp(name="Treinamentos", icon="award", url="/treinamentos", category="Recursos"),
]


async def list_apps(session: AsyncSession, user: User) -> List[QuickAccess]:
    return await QuickAccess.find_many(
        session, user_id=user.id, order_by=[QuickAccess.order, QuickAccess.created_at]
    )


async def _owned(session: AsyncSession, user: User, app_id: uuid.UUID) -> QuickAccess:
    """Guard: 404 when missing, 403 when another user's."""
    app = await QuickAccess.get_by_id(session, app_id)
    if not app:
        raise ResourceNotFoundException(f"App not found with id {app_id}")
    if not is_owner(user, app, "user_id"):
        raise PermissionDeniedException("Not authorized to modify this app")
    return app


async def add_app(session: AsyncSession, user: User, data: QuickAccessCreate) -> QuickAccess:
    result = await session.execute(
        select(func.max(QuickAccess.order)).where(QuickAccess.user_id == user.id)
    )
    highest = result.scalar()
    next_order = 0 if highest is None else highest + 1
    return await QuickAccess.create(db=session, user_id=user.id, order=next_order, **data.model_dump())


async def update_app(
    session: AsyncSession, user: User, app_id: uuid.UUID, data: QuickAccessUpdate
) -> QuickAccess:
    app = await _owned(session, user, app_id)
    app.apply(data.model_dump(exclude_unset=True, exclude_none=True))
    return await app.save(session)


async def delete_app(session: AsyncSession, user: User, app_id: uuid.UUID) -> None:
    app = await _owned(session, user, app_id)
    await app.delete(session, commit=False)
    await session.flush()

    for position, remaining in enumerate(await list_apps(session, user)):
        remaining.order = position
    await session.commit()


async def reorder(session: AsyncSession, user: User, items: List[OrderItem]) -> List[QuickAccess]:
    """Every id is checked before anything is written."""
    targets = [(await _owned(session, user, item.id), item.order) for item in items]
    for app, order in targets:
        app.order = order
    await session.commit()
    return await list_apps(session, user)
