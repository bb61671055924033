"""
QuickAccess Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel, Field


class QuickAccessCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=30)
    icon: str = Field("link", min_length=1, max_length=50)
    url: str = Field(..., min_length=1, max_length=500)
    category: str = Field("Outros", min_length=1, max_length=50)
    is_custom: bool = True


class QuickAccessUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=30)
    icon: Optional[str] = Field(None, min_length=1, max_length=50)
    url: Optional[str] = Field(None, min_length=1, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=50)


class OrderItem(BaseModel):
    id: uuid.UUID
    order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    order: List[OrderItem]


class GalleryApp(BaseModel):
    name: str
    icon: str
    url: str
    category: str
    is_custom: bool = False


class QuickAccessResponse(BaseModel):
    id: uuid.UUID
    name: str
    icon: str
    url: str
    category: str
    user_id: uuid.UUID
    order: int
    is_custom: bool
    created_at: datetime

    model_config = {"from_attributes": True}
