"""
Auth ORM model.

User accounts: credentials, role, profile and notification preferences.
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Boolean, DateTime, JSON, Enum as SAEnum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from intranet.db.base_model import BaseModel, utcnow

ROLES = ("user", "admin")
DEFAULT_AVATAR = "/uploads/avatars/default.png"
NOTIFICATION_TYPES = ("posts", "messages", "events", "groups")


def default_notification_settings() -> dict:
    return {
        "email": True,
        "push": True,
        "desktop": True,
        "types": {name: True for name in NOTIFICATION_TYPES},
    }


class User(BaseModel):
    """
    User account.

    The reset token pair holds only a digest of the emailed token.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(512), nullable=False)
    avatar: Mapped[str] = mapped_column(String(500), default=DEFAULT_AVATAR, nullable=False)
    role: Mapped[str] = mapped_column(
        SAEnum(*ROLES, name="role_enum"),
        nullable=False,
        default="user",
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), index=True, nullable=True
    )
    position: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_active: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    notification_settings: Mapped[dict] = mapped_column(
        JSON, default=default_notification_settings, nullable=False
    )
    reset_password_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    reset_password_expire: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
