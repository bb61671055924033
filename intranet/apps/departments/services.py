"""
Department business logic.

Departments form a tree via `parent_id`. A department may not become its
own ancestor, and cannot be deleted while it still has children or users.
"""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries
from intranet.apps.departments.models import Department
from intranet.apps.departments.schemas import (
    DepartmentCreate,
    DepartmentUpdate,
    DepartmentRef,
    DepartmentResponse,
)
from intranet.utils.exceptions import BadRequestException, ConflictException, ResourceNotFoundException
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)


async def get_department_or_404(session: AsyncSession, department_id: uuid.UUID) -> Department:
    department = await Department.get_by_id(session, department_id)
    if not department:
        raise ResourceNotFoundException(f"Department not found with id {department_id}")
    return department


async def serialize_departments(
    session: AsyncSession, departments: List[Department], with_children: bool = False
) -> List[DepartmentResponse]:
    heads = await get_user_summaries(session, [d.head_id for d in departments])
    parents = await Department.get_many_by_ids(session, [d.parent_id for d in departments if d.parent_id])

    children: dict = {}
    if with_children and departments:
        rows = await Department.find_many(
            session,
            Department.parent_id.in_([d.id for d in departments]),
            order_by=Department.name,
        )
        for row in rows:
            children.setdefault(row.parent_id, []).append(DepartmentRef.model_validate(row))

    return [
        DepartmentResponse(
            id=d.id,
            name=d.name,
            description=d.description,
            head=heads.get(d.head_id) if d.head_id else None,
            parent=DepartmentRef.model_validate(parents[d.parent_id]) if d.parent_id in parents else None,
            children=children.get(d.id, []),
            color=d.color,
            icon=d.icon,
            created_at=d.created_at,
        )
        for d in departments
    ]


async def list_departments(session: AsyncSession, params: PageParams) -> Tuple[List[DepartmentResponse], int]:
    items, total = await Department.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, default_sort="name"
    )
    return await serialize_departments(session, items), total


async def _ensure_name_free(session: AsyncSession, name: str, department_id: Optional[uuid.UUID] = None) -> None:
    existing = await Department.find_one(session, name=name)
    if existing and existing.id != department_id:
        raise ConflictException(f"Department '{name}' already exists")


async def _ensure_head(session: AsyncSession, head_id: Optional[uuid.UUID]) -> None:
    if head_id is not None and not await User.exists(session, id=head_id):
        raise ResourceNotFoundException(f"User not found with id {head_id}")


async def _ensure_parent(
    session: AsyncSession, parent_id: Optional[uuid.UUID], department_id: Optional[uuid.UUID] = None
) -> None:
    """
    Guard: the parent exists.
    Guard: walking up from the parent never reaches the department itself.
    """
    if parent_id is None:
        return
    if department_id is not None and parent_id == department_id:
        raise BadRequestException("Department cannot be its own parent")

    current = await get_department_or_404(session, parent_id)
    seen = set()
    while current.parent_id is not None and current.id not in seen:
        seen.add(current.id)
        if current.parent_id == department_id:
            raise BadRequestException("Department cannot be moved under one of its descendants")
        current = await Department.get_by_id(session, current.parent_id)
        if current is None:
            break


async def create_department(session: AsyncSession, data: DepartmentCreate) -> Department:
    await _ensure_name_free(session, data.name)
    await _ensure_head(session, data.head_id)
    await _ensure_parent(session, data.parent_id)

    department = await Department.create(db=session, **data.model_dump())
    logger.info(f"Department created: {department.name}")
    return department


async def update_department(
    session: AsyncSession, department_id: uuid.UUID, data: DepartmentUpdate
) -> Department:
    department = await get_department_or_404(session, department_id)
    values = data.model_dump(exclude_unset=True)

    if values.get("name"):
        await _ensure_name_free(session, values["name"], department.id)
    if "head_id" in values:
        await _ensure_head(session, values["head_id"])
    if "parent_id" in values:
        await _ensure_parent(session, values["parent_id"], department.id)

    department.apply({k: v for k, v in values.items() if v is not None or k in ("head_id", "parent_id")})
    return await department.save(session)


async def delete_department(session: AsyncSession, department_id: uuid.UUID) -> None:
    """
    Guard: no child departments.
    Guard: no users assigned.
    """
    department = await get_department_or_404(session, department_id)

    if await Department.exists(session, parent_id=department.id):
        raise BadRequestException("Cannot delete a department that has sub-departments")
    if await User.exists(session, department_id=department.id):
        raise BadRequestException("Cannot delete a department that has users")

    await department.delete(session)
    logger.info(f"Department deleted: {department.name}")


async def list_department_users(
    session: AsyncSession, department_id: uuid.UUID, params: PageParams
) -> Tuple[List[User], int]:
    await get_department_or_404(session, department_id)
    return await User.paginate(
        session,
        page=params.page,
        limit=params.limit,
        sort=params.sort,
        default_sort="name",
        department_id=department_id,
    )
