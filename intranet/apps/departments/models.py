"""
Department ORM model.

Departments form a tree through `parent_id`.
"""

import uuid
from typing import Optional
from sqlalchemy import String, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from intranet.db.base_model import BaseModel


class Department(BaseModel):
    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # users.department_id already points here; no FK back to keep the schema acyclic.
    head_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True
    )
    color: Mapped[str] = mapped_column(String(20), default="#3788d8", nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default="building", nullable=False)
