"""
Notification ORM model.

`related_type`/`related_id` form the polymorphic back-reference.
"""

import uuid
from typing import Optional
from sqlalchemy import String, Text, Boolean, Enum as SAEnum, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from intranet.core.entities import RELATED_KINDS
from intranet.db.base_model import BaseModel

NOTIFICATION_KINDS = ("post", "comment", "like", "message", "event", "group", "file", "news", "system")


class Notification(BaseModel):
    __tablename__ = "notifications"

    recipient_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(
        SAEnum(*NOTIFICATION_KINDS, name="notification_type_enum"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    related_type: Mapped[Optional[str]] = mapped_column(
        SAEnum(*RELATED_KINDS, name="related_type_enum"), nullable=True
    )
    related_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
