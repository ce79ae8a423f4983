from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserInfo(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    role: str
    teacher_id: Optional[UUID] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user for role checks."""

    id: UUID
    role: str  # admin | teacher
    teacher_id: Optional[UUID] = None  # set for teacher accounts

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
