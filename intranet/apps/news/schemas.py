"""
News Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel, Field

from intranet.apps.auth.schemas import UserSummary


class NewsCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1, max_length=500)
    category: str = Field(..., min_length=1, max_length=100)
    tags: List[str] = []
    is_featured: bool = False
    is_published: bool = True
    publish_date: Optional[datetime] = None


class NewsUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    summary: Optional[str] = Field(None, min_length=1, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    is_published: Optional[bool] = None
    publish_date: Optional[datetime] = None


class NewsResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    summary: str
    author: Optional[UserSummary] = None
    media: List[str]
    category: str
    tags: List[str]
    is_featured: bool
    is_published: bool
    publish_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
