"""
Users Pydantic schemas.

Admin management and self-service profile payloads.
"""

from typing import Optional
import uuid
from pydantic import BaseModel, EmailStr, Field, model_validator

from intranet.apps.auth.models import ROLES


class AdminUserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: str = "user"
    position: str = Field(..., min_length=1, max_length=100)
    department_id: Optional[uuid.UUID] = None
    phone: Optional[str] = Field(None, max_length=30)
    bio: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def validate_role(self):
        if self.role not in ROLES:
            raise ValueError(f"role must be one of {list(ROLES)}")
        return self


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    role: Optional[str] = None
    position: Optional[str] = Field(None, min_length=1, max_length=100)
    department_id: Optional[uuid.UUID] = None
    phone: Optional[str] = Field(None, max_length=30)
    bio: Optional[str] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def validate_role(self):
        if self.role is not None and self.role not in ROLES:
            raise ValueError(f"role must be one of {list(ROLES)}")
        return self


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    bio: Optional[str] = Field(None, max_length=1000)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)
    confirm_password: str
