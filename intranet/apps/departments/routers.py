"""
Departments router.

Entry/exit only, no logic here. Reads are open to any signed-in user;
writes need the admin role.
"""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.schemas import UserSummary
from intranet.apps.auth.services import verify_user
from intranet.apps.departments.schemas import DepartmentCreate, DepartmentUpdate
from intranet.apps.departments.services import (
    list_departments,
    get_department_or_404,
    serialize_departments,
    create_department,
    update_department,
    delete_department,
    list_department_users,
)
from intranet.apps.posts.services import list_department_posts
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.core.permissions import admin_required
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/departments", tags=["Departments"])


async def _one(session: AsyncSession, department) -> dict:
    [item] = await serialize_departments(session, [department], with_children=True)
    return item.model_dump()


@router.get("")
async def index(
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_departments(session, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.post("", status_code=201)
async def create(
    request: Request,
    data: DepartmentCreate,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    department = await create_department(session, data)
    await record_activity(session, request, admin, "create", EntityKind.DEPARTMENT, department.id, department.name)
    return success_response(status_code=201, message="Department created", data=await _one(session, department))


@router.get("/{department_id}")
async def show(
    department_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    department = await get_department_or_404(session, department_id)
    return success_response(data=await _one(session, department))


@router.put("/{department_id}")
async def update(
    request: Request,
    department_id: uuid.UUID,
    data: DepartmentUpdate,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    department = await update_department(session, department_id, data)
    await record_activity(session, request, admin, "update", EntityKind.DEPARTMENT, department.id, department.name)
    return success_response(message="Department updated", data=await _one(session, department))


@router.delete("/{department_id}")
async def destroy(
    request: Request,
    department_id: uuid.UUID,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    await delete_department(session, department_id)
    await record_activity(session, request, admin, "delete", EntityKind.DEPARTMENT, department_id)
    return success_response(message="Department deleted", data={})


@router.get("/{department_id}/users")
async def users(
    department_id: uuid.UUID,
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_department_users(session, department_id, params)
    return paginated_response(
        [UserSummary.model_validate(u).model_dump() for u in items], total, params
    )


@router.get("/{department_id}/posts")
async def posts(
    department_id: uuid.UUID,
    params: PageParams = Depends(),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_department_posts(session, user, department_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)
