from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ClassUpdate(BaseModel):
    """Only activation and the homeroom teacher change after roster setup."""

    is_active: Optional[bool] = None
    homeroom_teacher_id: Optional[UUID] = None


class ClassResponse(BaseModel):
    id: str
    grade: int
    name: str
    is_active: bool
    homeroom_teacher_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ClassListResponse(BaseModel):
    classes: List[ClassResponse]
    degraded: bool = False


class ClassInitResponse(BaseModel):
    success: bool = True
    message: str
    created: List[str]
