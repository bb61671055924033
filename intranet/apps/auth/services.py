"""
Auth business logic.

Handles login, registration, password flows and JWT-based user verification.
`verify_user` is the FastAPI dependency used by all secured routes;
`optional_user` is its variant for routes that also serve anonymous callers.
"""

import uuid
from typing import Dict, Iterable, Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from intranet.apps.admin.models import SystemSettings
from intranet.apps.auth.models import User
from intranet.apps.auth.schemas import (
    RegisterRequest,
    LoginRequest,
    UpdatePasswordRequest,
    UserSummary,
)
from intranet.apps.departments.models import Department
from intranet.config.settings import settings
from intranet.db.base_model import as_utc, utcnow
from intranet.db.database import get_session
from intranet.utils.exceptions import (
    AccountDisabledException,
    BadRequestException,
    InvalidCredentialsException,
    NotAuthenticatedException,
    RegistrationClosedException,
    ResourceNotFoundException,
    UserAlreadyExistsException,
)
from intranet.utils.security import (
    hash_password,
    verify_password,
    create_access_token,
    verify_token_type,
    generate_reset_token,
    get_token_hash,
)
from intranet.utils.logger import get_logger

logger = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


# ── FastAPI Auth Dependency ───────────────────────────────────────────────────

def _extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get("token")


async def _touch_last_active(session: AsyncSession, user: User) -> None:
    """Best effort: a failed refresh never fails the request."""
    now = utcnow()
    try:
        async with session.begin_nested():
            await session.execute(
                update(User)
                .where(User.id == user.id)
                .values(last_active=now)
                .execution_options(synchronize_session=False)
            )
        await session.commit()
        set_committed_value(user, "last_active", now)
    except SQLAlchemyError as e:
        logger.error(f"last_active refresh failed for {user.id}: {e}")


async def _load_user(session: AsyncSession, token: str) -> User:
    payload = verify_token_type(token, expected_type="access")

    try:
        user_id = uuid.UUID(str(payload.get("sub", "")))
    except ValueError:
        raise NotAuthenticatedException("Could not validate credentials")

    user = await User.get_by_id(session, user_id)
    if not user:
        raise NotAuthenticatedException("User not found")

    if not user.is_active:
        raise AccountDisabledException()

    await _touch_last_active(session, user)
    return user


async def verify_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    FastAPI dependency: validates the bearer header or `token` cookie.

    Raises 401 if the token is missing, invalid or expired, or the user is gone.
    Guards against inactive accounts (403).
    """
    token = _extract_token(request, credentials)
    if not token:
        raise NotAuthenticatedException()

    user = await _load_user(session, token)
    logger.debug(f"Authenticated user: {user.email} role={user.role}")
    return user


async def optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """Like `verify_user`, but anonymous callers get None instead of a 401."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        return await _load_user(session, token)
    except NotAuthenticatedException:
        return None


# ── Lookups ───────────────────────────────────────────────────────────────────

async def get_user_summaries(
    session: AsyncSession, ids: Iterable[Optional[uuid.UUID]]
) -> Dict[uuid.UUID, UserSummary]:
    """Batch-load embedded user shapes in one query."""
    users = await User.get_many_by_ids(session, [i for i in ids if i is not None])
    return {uid: UserSummary.model_validate(u) for uid, u in users.items()}


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await User.get_by_id(session, user_id)
    if not user:
        raise ResourceNotFoundException(f"User not found with id {user_id}")
    return user


async def find_by_email(session: AsyncSession, email: str) -> Optional[User]:
    return await User.find_one(session, func.lower(User.email) == email.lower())


async def ensure_department_exists(session: AsyncSession, department_id: Optional[uuid.UUID]) -> None:
    if department_id is not None and not await Department.exists(session, id=department_id):
        raise ResourceNotFoundException(f"Department not found with id {department_id}")


def issue_token(user: User) -> str:
    return create_access_token(user_id=str(user.id), role=user.role)


# ── Auth Services ─────────────────────────────────────────────────────────────

async def register_user(
    session: AsyncSession,
    data: RegisterRequest,
) -> Tuple[User, str]:
    """
    Create a new account and sign it in.

    Guard: registration may be closed in system settings.
    Guard: reject duplicate emails.
    Password is hashed before storage, never stored in plaintext.
    """
    system = await SystemSettings.load(session)
    if not system.allow_registration:
        raise RegistrationClosedException()

    # Guard: email uniqueness
    if await find_by_email(session, data.email):
        raise UserAlreadyExistsException()

    await ensure_department_exists(session, data.department_id)

    user = await User.create(
        db=session,
        name=data.name,
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        position=data.position,
        department_id=data.department_id,
        role="user",
        is_active=True,
    )

    logger.info(f"Registered new user: {user.email}")
    return user, issue_token(user)


async def login_user(
    session: AsyncSession,
    data: LoginRequest,
) -> Tuple[User, str]:
    """
    Authenticate user and return a JWT.

    Guard: Reject bad credentials with generic error (no oracle attack).
    Guard: Reject inactive accounts.
    """
    user = await find_by_email(session, data.email)

    # Generic error: never reveal whether email exists
    if not user or not verify_password(data.password, user.hashed_password):
        raise InvalidCredentialsException()

    if not user.is_active:
        raise AccountDisabledException()

    user.last_active = utcnow()
    await user.save(session)

    logger.info(f"User logged in: {user.email}")
    return user, issue_token(user)


async def update_password(
    session: AsyncSession,
    user: User,
    data: UpdatePasswordRequest,
) -> str:
    """Change the caller's password; wrong current password is a 401."""
    if not verify_password(data.current_password, user.hashed_password):
        raise InvalidCredentialsException("Password is incorrect")

    user.hashed_password = hash_password(data.new_password)
    await user.save(session)
    logger.info(f"Password updated: {user.email}")
    return issue_token(user)


async def forgot_password(session: AsyncSession, email: str) -> str:
    """
    Start a password reset.

    Only the token digest and its expiry are stored. No mail transport is
    wired in, so the reset link is written to the log. Returns the raw token.
    """
    user = await find_by_email(session, email)
    if not user:
        raise ResourceNotFoundException("There is no user with that email")

    raw, digest, expire = generate_reset_token()
    user.reset_password_token = digest
    user.reset_password_expire = expire
    await user.save(session)

    logger.info(f"Password reset requested for {user.email}: {settings.FRONTEND_URL}/reset-password/{raw}")
    return raw


async def reset_password(
    session: AsyncSession, raw_token: str, password: str
) -> Tuple[User, str]:
    """Consume a reset token. Unknown or expired tokens are a 400."""
    user = await User.find_one(session, reset_password_token=get_token_hash(raw_token))

    if not user or as_utc(user.reset_password_expire) is None or as_utc(user.reset_password_expire) < utcnow():
        raise BadRequestException("Invalid or expired token")

    user.hashed_password = hash_password(password)
    user.reset_password_token = None
    user.reset_password_expire = None
    await user.save(session)

    logger.info(f"Password reset completed: {user.email}")
    return user, issue_token(user)
