"""
Admin Pydantic schemas.
"""

from datetime import datetime
from typing import Any, List, Optional
import uuid
from pydantic import BaseModel, Field, field_validator

from intranet.apps.auth.schemas import UserSummary

THEMES = ("light", "dark", "system")


class EntityRef(BaseModel):
    type: str
    id: Optional[uuid.UUID] = None
    label: Optional[str] = None


class ActivityLogResponse(BaseModel):
    id: uuid.UUID
    user: Optional[UserSummary] = None
    action: str
    entity: EntityRef
    details: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    device: Optional[dict] = None
    created_at: datetime


class DashboardStats(BaseModel):
    users: int
    active_users: int
    posts: int
    recent_posts: int
    groups: int
    events: int
    news: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    upcoming_events: List[Any]
    recent_activity: List[ActivityLogResponse]


class SystemSettingsUpdate(BaseModel):
    site_name: Optional[str] = Field(None, min_length=1, max_length=100)
    logo: Optional[str] = Field(None, max_length=500)
    theme: Optional[str] = None
    allow_registration: Optional[bool] = None
    require_approval: Optional[bool] = None
    max_file_size: Optional[int] = Field(None, gt=0)
    allowed_file_types: Optional[List[str]] = None
    maintenance_mode: Optional[bool] = None

    @field_validator("theme")
    @classmethod
    def validate_theme(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in THEMES:
            raise ValueError(f"theme must be one of {list(THEMES)}")
        return value


class SystemSettingsResponse(BaseModel):
    site_name: str
    logo: str
    theme: str
    allow_registration: bool
    require_approval: bool
    max_file_size: int
    allowed_file_types: List[str]
    maintenance_mode: bool
    updated_at: datetime

    model_config = {"from_attributes": True}
