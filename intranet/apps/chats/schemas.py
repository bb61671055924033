"""
Chat and Message Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel, Field, model_validator

from intranet.apps.auth.schemas import UserSummary


class ChatCreate(BaseModel):
    """The caller is always added to `participants`."""
    participants: List[uuid.UUID] = Field(..., min_length=1)
    is_group: bool = False
    name: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def name_required_for_groups(self):
        if self.is_group and not (self.name and self.name.strip()):
            raise ValueError("name is required for group chats")
        return self


class ChatUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class MessageUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: uuid.UUID
    chat_id: uuid.UUID
    sender: Optional[UserSummary] = None
    content: Optional[str] = None
    media: List[str]
    read_by: List[str]
    is_edited: bool
    created_at: datetime
    updated_at: datetime


class ChatResponse(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    is_group: bool
    participants: List[UserSummary]
    last_message: Optional[MessageResponse] = None
    created_at: datetime
    updated_at: datetime
