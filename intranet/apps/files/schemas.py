"""
File Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel

from intranet.apps.auth.schemas import UserSummary


class ShareRequest(BaseModel):
    user_id: uuid.UUID


class FileResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    size: int
    url: str
    extension: str
    owner: Optional[UserSummary] = None
    shared_with: List[UserSummary]
    group_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None
    created_at: datetime
