"""
Chat, ChatParticipant and Message ORM models.
"""

import uuid
from typing import Optional
from sqlalchemy import String, Text, Boolean, JSON, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from intranet.db.base_model import BaseModel


class Chat(BaseModel):
    __tablename__ = "chats"

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_group: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Plain column: messages already reference chats.
    last_message_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)


class ChatParticipant(BaseModel):
    __tablename__ = "chat_participants"
    __table_args__ = (UniqueConstraint("chat_id", "user_id", name="uq_chat_participant"),)

    chat_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("chats.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )


class Message(BaseModel):
    __tablename__ = "messages"

    chat_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("chats.id", ondelete="CASCADE"), index=True, nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    media: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    read_by: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
