"""
Activity log writer.

Called by routers after a successful mutation. Failures are logged and
counted; the caller never sees them and nothing is retried.
"""

import uuid
from typing import Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.admin.models import ActivityLog
from intranet.apps.auth.models import User
from intranet.core.entities import EntityKind
from intranet.utils.logger import get_logger
from intranet.utils.metrics import activity_writes_total
from intranet.utils.security import get_device_info

logger = get_logger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def record_activity(
    session: AsyncSession,
    request: Optional[Request],
    user: Optional[User],
    action: str,
    entity_type: EntityKind,
    entity_id: Optional[uuid.UUID] = None,
    details: Optional[str] = None,
) -> None:
    """Append one ActivityLog row, best effort."""
    user_agent = request.headers.get("user-agent") if request is not None else None
    # The row goes through a savepoint: a failure unwinds only the log write and
    # leaves the caller's loaded objects usable.
    try:
        async with session.begin_nested():
            await ActivityLog.create(
                db=session,
                commit=False,
                user_id=user.id if user else None,
                action=action,
                entity_type=entity_type.value,
                entity_id=entity_id,
                details=details,
                ip=client_ip(request),
                user_agent=(user_agent or "")[:500] or None,
                device=get_device_info(user_agent) if user_agent else None,
            )
        await session.commit()
        activity_writes_total.labels(action=action, status="ok").inc()
    except SQLAlchemyError as e:
        activity_writes_total.labels(action=action, status="failed").inc()
        logger.error(f"Activity log write failed ({action} {entity_type.value}): {e}")
