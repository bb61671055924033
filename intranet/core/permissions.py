"""
Authorization gates.

Two composable predicates: a role gate (FastAPI dependency) and an
ownership gate (called by services once the resource is loaded).
Admins pass every ownership gate.
"""

import uuid
from typing import Any, Optional

from fastapi import Depends

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user
from intranet.utils.exceptions import PermissionDeniedException


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == "admin"


def require_roles(*roles: str):
    """Dependency factory: the caller's role must be in `roles`."""

    async def checker(user: User = Depends(verify_user)) -> User:
        if user.role not in roles:
            raise PermissionDeniedException(
                f"User role {user.role} is not authorized to access this route"
            )
        return user

    return checker


admin_required = require_roles("admin")


def is_owner(user: User, resource: Any, *fields: str) -> bool:
    """True when the caller id equals any of the named owner fields."""
    for field in fields:
        value: Optional[uuid.UUID] = getattr(resource, field, None)
        if value is not None and value == user.id:
            return True
    return False


def ensure_owner(
    user: User,
    resource: Any,
    *fields: str,
    detail: str = "Not authorized to modify this resource",
) -> None:
    """
    Ownership gate.

    Passes when the caller owns the resource through one of `fields`,
    or is an admin. Otherwise 403.
    """
    if is_admin(user) or is_owner(user, resource, *fields):
        return
    raise PermissionDeniedException(detail)
