"""
Auth router.

Entry/exit only, no logic here. Calls auth services.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.schemas import (
    RegisterRequest,
    LoginRequest,
    UpdatePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UserResponse,
)
from intranet.apps.auth.services import (
    register_user,
    login_user,
    verify_user,
    update_password,
    forgot_password,
    reset_password,
)
from intranet.config.settings import settings
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.db.database import get_session
from intranet.utils.rate_limit import limiter
from intranet.utils.responses import success_response, auth_response

router = APIRouter(prefix="/api/auth", tags=["Auth"])

COOKIE_MAX_AGE = settings.COOKIE_EXPIRE_DAYS * 24 * 60 * 60


def _user_payload(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump()


@router.post("/register", status_code=201)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    data: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Register a new account. Returns the token and the user profile."""
    user, token = await register_user(session=session, data=data)
    await record_activity(session, request, user, "create", EntityKind.USER, user.id, "Registered")
    return auth_response(
        status_code=201,
        message="Account created successfully",
        access_token=token,
        data=_user_payload(user),
        max_age=COOKIE_MAX_AGE,
    )


@router.post("/login")
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate and receive a JWT (body and cookie)."""
    user, token = await login_user(session=session, data=data)
    await record_activity(session, request, user, "login", EntityKind.USER, user.id)
    return auth_response(
        status_code=200,
        message="Login successful",
        access_token=token,
        data=_user_payload(user),
        max_age=COOKIE_MAX_AGE,
    )


@router.get("/logout")
async def logout(
    request: Request,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    """Clear the auth cookie."""
    await record_activity(session, request, user, "logout", EntityKind.USER, user.id)
    response = success_response(message="Logged out", data={})
    response.delete_cookie("token")
    return response


@router.get("/me")
async def me(user: User = Depends(verify_user)):
    """Return the currently authenticated user's profile."""
    return success_response(
        status_code=200,
        message="User profile",
        data=_user_payload(user),
    )


@router.put("/password")
async def password(
    request: Request,
    data: UpdatePasswordRequest,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    token = await update_password(session, user, data)
    await record_activity(session, request, user, "update", EntityKind.USER, user.id, "Password changed")
    return auth_response(
        status_code=200,
        message="Password updated",
        access_token=token,
        data=_user_payload(user),
        max_age=COOKIE_MAX_AGE,
    )


@router.post("/forgot-password")
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def forgot(
    request: Request,
    data: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_session),
):
    """Issue a reset token; the link is delivered out of band."""
    await forgot_password(session, data.email)
    return success_response(message="Password reset instructions sent", data={})


@router.put("/reset-password/{token}")
async def reset(
    token: str,
    data: ResetPasswordRequest,
    session: AsyncSession = Depends(get_session),
):
    user, access_token = await reset_password(session, token, data.password)
    return auth_response(
        status_code=200,
        message="Password reset successful",
        access_token=access_token,
        data=_user_payload(user),
        max_age=COOKIE_MAX_AGE,
    )
