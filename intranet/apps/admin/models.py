"""
Admin ORM models.

ActivityLog is append-only. SystemSettings is a single-row table.
"""

import uuid
from typing import Optional
from sqlalchemy import String, Text, Integer, Boolean, JSON, Enum as SAEnum, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.core.entities import ENTITY_KINDS
from intranet.db.base_model import BaseModel

ACTIVITY_ACTIONS = (
    "create", "update", "delete", "login", "logout",
    "view", "download", "upload", "share", "other",
)

DEFAULT_ALLOWED_FILE_TYPES = ["jpg", "jpeg", "png", "gif", "pdf", "doc", "docx", "xls", "xlsx", "zip"]


class ActivityLog(BaseModel):
    __tablename__ = "activity_logs"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )
    action: Mapped[str] = mapped_column(SAEnum(*ACTIVITY_ACTIONS, name="activity_action_enum"), nullable=False)
    entity_type: Mapped[str] = mapped_column(SAEnum(*ENTITY_KINDS, name="entity_type_enum"), nullable=False)
    entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    device: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)


class SystemSettings(BaseModel):
    __tablename__ = "system_settings"

    site_name: Mapped[str] = mapped_column(String(100), default="Intranet Municipal", nullable=False)
    logo: Mapped[str] = mapped_column(String(500), default="/uploads/logo.png", nullable=False)
    theme: Mapped[str] = mapped_column(String(20), default="light", nullable=False)
    allow_registration: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    require_approval: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    max_file_size: Mapped[int] = mapped_column(Integer, default=10 * 1024 * 1024, nullable=False)
    allowed_file_types: Mapped[list] = mapped_column(JSON, default=lambda: list(DEFAULT_ALLOWED_FILE_TYPES), nullable=False)
    maintenance_mode: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @classmethod
    async def load(cls, db: AsyncSession) -> "SystemSettings":
        """The settings row, created with defaults on first read."""
        current = await cls.find_one(db)
        if current is None:
            current = await cls.create(db)
        return current
