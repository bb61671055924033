"""
Notification Pydantic schemas.
"""

from datetime import datetime
from typing import Dict, Optional
import uuid
from pydantic import BaseModel, field_validator

from intranet.apps.auth.models import NOTIFICATION_TYPES
from intranet.apps.auth.schemas import UserSummary


class RelatedTo(BaseModel):
    type: str
    id: uuid.UUID


class NotificationResponse(BaseModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    sender: Optional[UserSummary] = None
    type: str
    content: str
    related_to: Optional[RelatedTo] = None
    is_read: bool
    created_at: datetime


class NotificationSettingsUpdate(BaseModel):
    """Partial update; omitted keys keep their current value."""
    email: Optional[bool] = None
    push: Optional[bool] = None
    desktop: Optional[bool] = None
    types: Optional[Dict[str, bool]] = None

    @field_validator("types")
    @classmethod
    def validate_types(cls, v: Optional[Dict[str, bool]]) -> Optional[Dict[str, bool]]:
        if v is None:
            return v
        unknown = set(v) - set(NOTIFICATION_TYPES)
        if unknown:
            raise ValueError(f"Unknown notification types: {sorted(unknown)}")
        return v
