"""
QuickAccess ORM model: a user's ordered shortcut list.
"""

import uuid
from sqlalchemy import String, Integer, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from intranet.db.base_model import BaseModel


class QuickAccess(BaseModel):
    __tablename__ = "quick_access"

    name: Mapped[str] = mapped_column(String(30), nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default="link", nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str] = mapped_column(String(50), default="Outros", nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_custom: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
