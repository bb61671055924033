"""
Group and GroupMember ORM models.

Membership lives only in `group_members`; the group's member list is read
from there, never stored twice.
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, DateTime, Enum as SAEnum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from intranet.db.base_model import BaseModel, utcnow

# Declaration order doubles as listing order: admins first.
MEMBER_ROLES = ("admin", "member")
DEFAULT_GROUP_AVATAR = "/uploads/groups/default-group.png"
DEFAULT_GROUP_COVER = "/uploads/groups/default-cover.png"


class Group(BaseModel):
    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    avatar: Mapped[str] = mapped_column(String(500), default=DEFAULT_GROUP_AVATAR, nullable=False)
    cover_image: Mapped[str] = mapped_column(String(500), default=DEFAULT_GROUP_COVER, nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class GroupMember(BaseModel):
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)

    group_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    role: Mapped[str] = mapped_column(
        SAEnum(*MEMBER_ROLES, name="group_role_enum"), default="member", nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
