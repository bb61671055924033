"""
Post and Comment Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel, Field

from intranet.apps.auth.schemas import UserSummary


class PostCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1)
    group_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None
    tags: List[str] = []
    is_published: bool = True


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: uuid.UUID
    post_id: uuid.UUID
    author: Optional[UserSummary] = None
    content: str
    likes: List[str]
    like_count: int
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime


class PostResponse(BaseModel):
    id: uuid.UUID
    title: Optional[str] = None
    content: str
    author: Optional[UserSummary] = None
    media: List[str]
    likes: List[str]
    like_count: int
    comment_count: int
    is_liked: bool = False
    group_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None
    tags: List[str]
    is_published: bool
    publish_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    comments: Optional[List[CommentResponse]] = None


class LikeResponse(BaseModel):
    likes: List[str]
    like_count: int
    is_liked: bool
