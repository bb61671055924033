"""
Auth Pydantic schemas.

Input validation and output serialization for auth routes. The user
shapes here are reused by every app that embeds a user.
"""

from datetime import datetime
from typing import Optional
import uuid
from pydantic import BaseModel, EmailStr, Field, field_validator


# ── Request Schemas ───────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    """Login with email + password."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Self-registration. The role is always `user`."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    position: str = Field(..., min_length=1, max_length=100)
    department_id: Optional[uuid.UUID] = None

    @field_validator("name", "position")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=6, max_length=128)


# ── Response Schemas ──────────────────────────────────────────────────────────

class UserSummary(BaseModel):
    """Embedded author/participant/member shape."""
    id: uuid.UUID
    name: str
    email: str
    avatar: str
    position: str
    department_id: Optional[uuid.UUID] = None

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """Public user data (no credentials, no reset token)."""
    id: uuid.UUID
    name: str
    email: str
    avatar: str
    role: str
    department_id: Optional[uuid.UUID] = None
    position: str
    phone: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool
    last_active: Optional[datetime] = None
    notification_settings: dict
    created_at: datetime

    model_config = {"from_attributes": True}
