"""
Pagination query parameters and metadata.

Every list endpoint takes `page`, `limit` and `sort`; the limit is capped
at MAX_PAGE_SIZE. `pages == ceil(total / limit)`.
"""

import math
from typing import Optional

from fastapi import Query
from pydantic import BaseModel

from intranet.config.settings import settings


class PageParams:
    """FastAPI dependency collecting page/limit/sort."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="1-based page number"),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, description="Page size"),
        sort: Optional[str] = Query(None, description="Comma separated fields, '-' prefix for descending"),
    ):
        self.page = page
        self.limit = min(limit, settings.MAX_PAGE_SIZE)
        self.sort = sort

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    total: int
    pages: int
    page: int
    limit: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, pages=math.ceil(total / limit) if limit else 0, page=page, limit=limit)
