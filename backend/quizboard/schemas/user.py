"""Profile & authentication schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr

from quizboard.db.models import RoleEnum


class UserCreate(BaseModel):
    """POST /api/users/register. Every new profile is a student; see promote_admin.py."""

    email: EmailStr
    password: str
    full_name: str | None = None


class UserLogin(BaseModel):
    """POST /api/users/login"""

    email: EmailStr
    password: str


class UserRead(BaseModel):
    """Profile returned from API — never exposes password."""

    id: uuid.UUID
    email: str
    full_name: str | None = None
    role: RoleEnum
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Combined auth response: token + profile."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
