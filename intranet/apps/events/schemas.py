"""
Event Pydantic schemas.

Incoming datetimes are normalized to UTC.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional
import uuid
from pydantic import AfterValidator, BaseModel, Field, model_validator

from intranet.apps.auth.schemas import UserSummary


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(to_utc)]


class RecurringPattern(BaseModel):
    """Stored as given; occurrences are not expanded server-side."""
    frequency: Literal["daily", "weekly", "monthly", "yearly"]
    interval: int = Field(1, ge=1)
    end_date: Optional[UtcDatetime] = None


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    location: Optional[str] = Field(None, max_length=200)
    start_date: UtcDatetime
    end_date: UtcDatetime
    department_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    is_all_day: bool = False
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None
    color: str = Field("#3788d8", max_length=20)

    @model_validator(mode="after")
    def validate_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, max_length=200)
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    is_all_day: Optional[bool] = None
    is_recurring: Optional[bool] = None
    recurring_pattern: Optional[RecurringPattern] = None
    color: Optional[str] = Field(None, max_length=20)


class EventResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    location: Optional[str] = None
    start_date: datetime
    end_date: datetime
    creator: Optional[UserSummary] = None
    attendees: List[UserSummary]
    attendee_count: int
    is_attending: bool = False
    department_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    is_all_day: bool
    is_recurring: bool
    recurring_pattern: Optional[dict] = None
    color: str
    created_at: datetime
