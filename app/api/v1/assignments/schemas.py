"""Assignment schemas."""

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.enums import AssignmentType, DisplayStatus
from app.core.week import is_valid_week


class _WeekScoped(BaseModel):
    week_number: int = Field(..., ge=1, le=53, description="ISO week number")
    year: int = Field(..., ge=2000, le=2100, description="ISO week-year")

    @model_validator(mode="after")
    def validate_week_in_year(self):
        if not is_valid_week(self.week_number, self.year):
            raise ValueError(f"Week {self.week_number} does not exist in ISO year {self.year}")
        return self


# ----- Assignment -----
class AssignmentCreate(_WeekScoped):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    subject: str = Field(..., min_length=1, max_length=100)
    learning_goal: str = Field(..., min_length=1)
    type: AssignmentType
    due_date: Optional[datetime] = None
    class_ids: List[str] = Field(..., min_length=1, description="Target classes, e.g. [\"7-DISCIPLINE\"]")
    teacher_id: Optional[UUID] = Field(None, description="Admin only: create on behalf of a teacher. Omit for self.")


class AssignmentResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    subject: str
    learning_goal: str
    type: str
    week_number: int
    year: int
    status: str
    display_status: DisplayStatus
    teacher_id: UUID
    due_date: Optional[datetime] = None
    class_ids: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ----- Quota -----
class QuotaCheckRequest(_WeekScoped):
    class_ids: List[str] = Field(..., min_length=1)
    type: AssignmentType


class QuotaInfo(BaseModel):
    used: int
    max: int


class QuotaCheckResponse(BaseModel):
    week_number: int
    year: int
    type: AssignmentType
    quotas: Dict[str, QuotaInfo]


class AssignmentCreateResponse(BaseModel):
    success: bool = True
    message: str
    assignment: AssignmentResponse
    quotas: Dict[str, QuotaInfo]


# ----- Week -----
class WeekInfoResponse(BaseModel):
    week_number: int
    year: int
    start: date
    end: date


class CurrentWeekAssignmentsResponse(BaseModel):
    week: WeekInfoResponse
    assignments: List[AssignmentResponse]
    degraded: bool = False

