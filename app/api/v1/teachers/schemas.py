import re
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# Indonesian mobile numbers: +62..., 62... or 08...
PHONE_PATTERN = re.compile(r"^(\+62|62|08)[0-9]{8,13}$")


def _normalize_phone(value: str) -> str:
    phone = re.sub(r"[\s-]", "", value or "")
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Invalid phone number format (use +62, 62 or 08 prefix)")
    return phone


def _clean_list(values: List[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]


class TeacherCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str
    subjects: List[str] = Field(..., min_length=1)
    learning_goals: List[str] = Field(default_factory=list)
    password: Optional[str] = Field(None, min_length=6, description="Creates a teacher login when given")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _normalize_phone(v)

    @field_validator("subjects", "learning_goals")
    @classmethod
    def strip_items(cls, v: List[str]) -> List[str]:
        return _clean_list(v)


class TeacherUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    subjects: Optional[List[str]] = Field(None, min_length=1)
    learning_goals: Optional[List[str]] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v) if v is not None else None

    @field_validator("subjects", "learning_goals")
    @classmethod
    def strip_items(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_list(v) if v is not None else None


class TeacherResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str
    subjects: List[str]
    learning_goals: List[str]
    is_active: bool
    has_login: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TeacherListResponse(BaseModel):
    teachers: List[TeacherResponse]
    degraded: bool = False
