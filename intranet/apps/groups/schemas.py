"""
Group Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel, Field, field_validator

from intranet.apps.auth.schemas import UserSummary
from intranet.apps.groups.models import MEMBER_ROLES


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    is_private: bool = False


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    is_private: Optional[bool] = None


class MemberAdd(BaseModel):
    user_id: uuid.UUID
    role: str = "member"

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in MEMBER_ROLES:
            raise ValueError(f"role must be one of {list(MEMBER_ROLES)}")
        return v


class MemberRoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in MEMBER_ROLES:
            raise ValueError(f"role must be one of {list(MEMBER_ROLES)}")
        return v


class GroupMemberResponse(BaseModel):
    id: uuid.UUID
    group_id: uuid.UUID
    user: Optional[UserSummary] = None
    role: str
    joined_at: datetime


class GroupResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    creator: Optional[UserSummary] = None
    avatar: str
    cover_image: str
    is_private: bool
    members: List[uuid.UUID]
    member_count: int
    is_member: bool = False
    my_role: Optional[str] = None
    created_at: datetime
