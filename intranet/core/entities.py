"""
Polymorphic entity references.

Notifications (`related_to`) and activity logs (`entity`) point at a row of
any known kind through a `{type, id}` pair. `EntityKind` is the closed set
of kinds; `fetch_entity` resolves a pair through the lookup table below.
"""

import uuid
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession


class EntityKind(str, Enum):
    USER = "user"
    POST = "post"
    COMMENT = "comment"
    GROUP = "group"
    CHAT = "chat"
    MESSAGE = "message"
    EVENT = "event"
    NEWS = "news"
    FILE = "file"
    DEPARTMENT = "department"
    SYSTEM = "system"


ENTITY_KINDS = [kind.value for kind in EntityKind]

# Notifications can only point at user-facing content.
RELATED_KINDS = [
    EntityKind.POST.value,
    EntityKind.COMMENT.value,
    EntityKind.CHAT.value,
    EntityKind.EVENT.value,
    EntityKind.GROUP.value,
    EntityKind.FILE.value,
    EntityKind.NEWS.value,
    EntityKind.USER.value,
]


@lru_cache()
def entity_models() -> Dict[EntityKind, Any]:
    """Kind -> ORM model. Built lazily; the app modules import this one."""
    from intranet.apps.auth.models import User
    from intranet.apps.chats.models import Chat, Message
    from intranet.apps.departments.models import Department
    from intranet.apps.events.models import Event
    from intranet.apps.files.models import File
    from intranet.apps.groups.models import Group
    from intranet.apps.news.models import News
    from intranet.apps.posts.models import Comment, Post

    return {
        EntityKind.USER: User,
        EntityKind.POST: Post,
        EntityKind.COMMENT: Comment,
        EntityKind.GROUP: Group,
        EntityKind.CHAT: Chat,
        EntityKind.MESSAGE: Message,
        EntityKind.EVENT: Event,
        EntityKind.NEWS: News,
        EntityKind.FILE: File,
        EntityKind.DEPARTMENT: Department,
    }


async def fetch_entity(
    session: AsyncSession, kind: str, entity_id: Optional[uuid.UUID]
) -> Optional[Any]:
    """Resolve a `{type, id}` pair; None for `system`, unknown ids or kinds."""
    if entity_id is None:
        return None
    model = entity_models().get(EntityKind(kind))
    if model is None:
        return None
    return await model.get_by_id(session, entity_id)


def entity_label(entity: Any) -> Optional[str]:
    """Short human label for a resolved entity."""
    if entity is None:
        return None
    for attr in ("title", "name", "content"):
        value = getattr(entity, attr, None)
        if value:
            return value if len(value) <= 80 else value[:77] + "..."
    return str(entity.id)
