"""
Department Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel, Field

from intranet.apps.auth.schemas import UserSummary


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1)
    head_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None
    color: str = Field("#3788d8", max_length=20)
    icon: str = Field("building", max_length=50)


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1)
    head_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)


class DepartmentRef(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class DepartmentResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    head: Optional[UserSummary] = None
    parent: Optional[DepartmentRef] = None
    children: List[DepartmentRef] = []
    color: str
    icon: str
    created_at: datetime
