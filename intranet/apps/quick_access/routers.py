"""
Quick access router.

Entry/exit only, no logic here.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user
from intranet.apps.quick_access.schemas import (
    QuickAccessCreate,
    QuickAccessResponse,
    QuickAccessUpdate,
    ReorderRequest,
)
from intranet.apps.quick_access.services import (
    GALLERY,
    list_apps,
    add_app,
    update_app,
    delete_app,
    reorder,
)
from intranet.db.database import get_session
from intranet.utils.responses import success_response

router = APIRouter(prefix="/api/quick-access", tags=["Quick Access"])


def _dump(apps) -> list:
    return [QuickAccessResponse.model_validate(a).model_dump() for a in apps]


@router.get("")
async def index(
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    apps = await list_apps(session, user)
    return success_response(data=_dump(apps), count=len(apps))


@router.post("", status_code=201)
async def create(
    data: QuickAccessCreate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    app = await add_app(session, user, data)
    return success_response(status_code=201, message="App added", data=_dump([app])[0])


@router.get("/gallery")
async def gallery(user: User = Depends(verify_user)):
    return success_response(data=[g.model_dump() for g in GALLERY], count=len(GALLERY))


@router.post("/order")
async def update_order(
    data: ReorderRequest,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    apps = await reorder(session, user, data.order)
    return success_response(message="Order updated", data=_dump(apps))


@router.put("/{app_id}")
async def update(
    app_id: uuid.UUID,
    data: QuickAccessUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    app = await update_app(session, user, app_id, data)
    return success_response(message="App updated", data=_dump([app])[0])


@router.delete("/{app_id}")
async def destroy(
    app_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_app(session, user, app_id)
    return success_response(message="App removed", data={})
