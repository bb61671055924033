"""
Users business logic.

Admin-side account management plus the caller's own profile.
"""

import uuid
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.admin.models import SystemSettings
from intranet.apps.auth.models import User, DEFAULT_AVATAR
from intranet.apps.auth.services import (
    ensure_department_exists,
    find_by_email,
    get_user_or_404,
)
from intranet.apps.departments.models import Department
from intranet.apps.users.schemas import AdminUserCreate, AdminUserUpdate, ProfileUpdate, PasswordChange
from intranet.core.badges import render_badge
from intranet.core.permissions import ensure_owner
from intranet.core.uploads import AVATARS, save_uploads, remove_upload
from intranet.utils.exceptions import (
    BadRequestException,
    InvalidCredentialsException,
    UserAlreadyExistsException,
)
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams
from intranet.utils.security import hash_password, verify_password

logger = get_logger(__name__)

# Columns a client may explicitly clear; a null for any other field is ignored.
NULLABLE_FIELDS = ("department_id", "phone", "bio")


async def _ensure_email_free(session: AsyncSession, email: str, user_id: Optional[uuid.UUID] = None) -> None:
    existing = await find_by_email(session, email)
    if existing and existing.id != user_id:
        raise UserAlreadyExistsException()


# ── Admin ─────────────────────────────────────────────────────────────────────

async def list_users(
    session: AsyncSession, params: PageParams, search: Optional[str] = None,
    department_id: Optional[uuid.UUID] = None,
) -> Tuple[List[User], int]:
    criteria = []
    if search:
        pattern = f"%{search}%"
        criteria.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if department_id:
        criteria.append(User.department_id == department_id)
    return await User.paginate(
        session, *criteria, page=params.page, limit=params.limit, sort=params.sort, default_sort="name"
    )


async def create_user(session: AsyncSession, data: AdminUserCreate) -> User:
    await _ensure_email_free(session, data.email)
    await ensure_department_exists(session, data.department_id)

    values = data.model_dump(exclude={"password"})
    values["email"] = data.email.lower()
    user = await User.create(db=session, hashed_password=hash_password(data.password), **values)
    logger.info(f"Admin created user {user.email}")
    return user


async def update_user(session: AsyncSession, user_id: uuid.UUID, data: AdminUserUpdate) -> User:
    user = await get_user_or_404(session, user_id)
    values = data.model_dump(exclude_unset=True)
    values = {k: v for k, v in values.items() if v is not None or k in NULLABLE_FIELDS}

    if values.get("email"):
        await _ensure_email_free(session, values["email"], user.id)
        values["email"] = values["email"].lower()
    if "department_id" in values:
        await ensure_department_exists(session, values["department_id"])
    if values.get("password"):
        values["hashed_password"] = hash_password(values.pop("password"))
    values.pop("password", None)

    user.apply(values)
    return await user.save(session)


async def delete_user(session: AsyncSession, actor: User, user_id: uuid.UUID) -> None:
    """
    Delete an account.

    Guard: an admin cannot delete their own account.
    No application-level cleanup of the user's content happens here.
    """
    if actor.id == user_id:
        raise BadRequestException("You cannot delete your own account")
    user = await get_user_or_404(session, user_id)
    await user.delete(session)
    logger.info(f"Admin {actor.email} deleted user {user.email}")


# ── Self-service ──────────────────────────────────────────────────────────────

async def update_profile(session: AsyncSession, user: User, data: ProfileUpdate) -> User:
    values = data.model_dump(exclude_unset=True)
    if values.get("email"):
        await _ensure_email_free(session, values["email"], user.id)
        values["email"] = values["email"].lower()
    values = {k: v for k, v in values.items() if v is not None or k in NULLABLE_FIELDS}
    user.apply(values)
    return await user.save(session)


async def update_avatar(session: AsyncSession, user: User, avatar: UploadFile) -> User:
    stored = await save_uploads([avatar], AVATARS, "avatar")
    if not stored:
        raise BadRequestException("Please upload an image")

    previous = user.avatar
    user.avatar = stored[0].url
    await user.save(session)
    if previous and previous != DEFAULT_AVATAR:
        remove_upload(previous)
    return user


async def change_password(session: AsyncSession, user: User, data: PasswordChange) -> None:
    """
    Guard: the current password must match (401).
    Guard: the new password must differ from the current one (400).
    Guard: confirmation must match (400).
    """
    if not verify_password(data.current_password, user.hashed_password):
        raise InvalidCredentialsException("Current password is incorrect")
    if data.new_password == data.current_password:
        raise BadRequestException("New password must be different from the current password")
    if data.new_password != data.confirm_password:
        raise BadRequestException("Passwords do not match")

    user.hashed_password = hash_password(data.new_password)
    await user.save(session)


# ── Badge ─────────────────────────────────────────────────────────────────────

async def build_badge(session: AsyncSession, actor: User, user_id: uuid.UUID) -> Tuple[User, bytes]:
    """Self or admin only."""
    user = await get_user_or_404(session, user_id)
    ensure_owner(actor, user, "id", detail="Not authorized to download this badge")

    department = await Department.get_by_id(session, user.department_id) if user.department_id else None
    system = await SystemSettings.load(session)
    pdf = render_badge(
        user,
        department_name=department.name if department else None,
        site_name=system.site_name,
        color=department.color if department else "#3788d8",
    )
    return user, pdf
