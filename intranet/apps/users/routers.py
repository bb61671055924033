"""
Users router.

Entry/exit only, no logic here. Admin management under /admin/users,
self-service profile routes, and the badge download.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.schemas import UserResponse
from intranet.apps.auth.services import verify_user, get_user_or_404
from intranet.apps.notifications.schemas import NotificationSettingsUpdate
from intranet.apps.notifications.services import update_settings
from intranet.apps.users.schemas import AdminUserCreate, AdminUserUpdate, ProfileUpdate, PasswordChange
from intranet.apps.users.services import (
    list_users,
    create_user,
    update_user,
    delete_user,
    update_profile,
    update_avatar,
    change_password,
    build_badge,
)
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.core.permissions import admin_required
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/users", tags=["Users"])


def _payload(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump()


# ── Admin ─────────────────────────────────────────────────────────────────────

@router.get("/admin/users")
async def admin_index(
    search: Optional[str] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    params: PageParams = Depends(),
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    users, total = await list_users(session, params, search=search, department_id=department_id)
    return paginated_response([_payload(u) for u in users], total, params)


@router.post("/admin/users", status_code=201)
async def admin_create(
    request: Request,
    data: AdminUserCreate,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    user = await create_user(session, data)
    await record_activity(session, request, admin, "create", EntityKind.USER, user.id, f"Created user {user.email}")
    return success_response(status_code=201, message="User created", data=_payload(user))


@router.get("/admin/users/{user_id}")
async def admin_show(
    user_id: uuid.UUID,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    return success_response(data=_payload(await get_user_or_404(session, user_id)))


@router.put("/admin/users/{user_id}")
async def admin_update(
    request: Request,
    user_id: uuid.UUID,
    data: AdminUserUpdate,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    user = await update_user(session, user_id, data)
    await record_activity(session, request, admin, "update", EntityKind.USER, user.id, f"Updated user {user.email}")
    return success_response(message="User updated", data=_payload(user))


@router.delete("/admin/users/{user_id}")
async def admin_delete(
    request: Request,
    user_id: uuid.UUID,
    admin: User = Depends(admin_required),
    session: AsyncSession = Depends(get_session),
):
    await delete_user(session, admin, user_id)
    await record_activity(session, request, admin, "delete", EntityKind.USER, user_id)
    return success_response(message="User deleted", data={})


# ── Profile ───────────────────────────────────────────────────────────────────

@router.get("/profile")
async def profile(user: User = Depends(verify_user)):
    return success_response(data=_payload(user))


@router.put("/profile")
async def profile_update(
    request: Request,
    data: ProfileUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    user = await update_profile(session, user, data)
    await record_activity(session, request, user, "update", EntityKind.USER, user.id, "Profile updated")
    return success_response(message="Profile updated", data=_payload(user))


@router.put("/profile/avatar")
async def profile_avatar(
    request: Request,
    avatar: UploadFile = File(...),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    user = await update_avatar(session, user, avatar)
    await record_activity(session, request, user, "upload", EntityKind.USER, user.id, "Avatar updated")
    return success_response(message="Avatar updated", data=_payload(user))


@router.put("/password")
async def password_change(
    request: Request,
    data: PasswordChange,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await change_password(session, user, data)
    await record_activity(session, request, user, "update", EntityKind.USER, user.id, "Password changed")
    return success_response(message="Password updated", data={})


@router.get("/notifications/settings")
async def notification_settings(user: User = Depends(verify_user)):
    return success_response(data=user.notification_settings)


@router.put("/notifications/settings")
async def notification_settings_update(
    data: NotificationSettingsUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    current = await update_settings(session, user, data)
    return success_response(message="Notification settings updated", data=current)


# ── Badge ─────────────────────────────────────────────────────────────────────

@router.get("/{user_id}/badge")
async def badge(
    request: Request,
    user_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """Identity badge as a PDF download."""
    owner, pdf = await build_badge(session, user, user_id)
    await record_activity(session, request, user, "download", EntityKind.USER, owner.id, "Badge")
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="badge-{owner.id}.pdf"'},
    )
