"""Admin dashboard and management schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.assignments.schemas import AssignmentResponse, WeekInfoResponse


# ----- Class status (dashboard) -----
class ClassLoadItem(BaseModel):
    id: str
    name: str
    load: int
    tasks: int
    exams: int
    max_tasks: int
    max_exams: int
    is_overloaded: bool
    tier: str  # low | medium | full


class GradeLoadSummary(BaseModel):
    grade: int
    total: int
    avg_load: int
    max_load: int
    overloaded: int
    classes: List[ClassLoadItem]


class ClassStatusResponse(BaseModel):
    week: WeekInfoResponse
    class_status: List[GradeLoadSummary]
    degraded: bool = False


# ----- Assignments (admin) -----
class AdminAssignmentItem(AssignmentResponse):
    teacher_name: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AdminAssignmentListResponse(BaseModel):
    assignments: List[AdminAssignmentItem]
    pagination: Pagination
    degraded: bool = False


class AssignmentStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, description="draft | published | graded (alias: evaluated) | closed")


class AssignmentBulkDelete(BaseModel):
    ids: List[UUID] = Field(..., min_length=1)


class AssignmentBulkDeleteResponse(BaseModel):
    success: bool = True
    message: str
    deleted_count: int


# ----- Stats -----
class WeeklyStats(BaseModel):
    week_number: int
    year: int
    published: int
    graded: int
    overdue: int


class AdminStatsResponse(BaseModel):
    total_teachers: int
    total_classes: int
    total_assignments: int
    compliance_rate: int
    pending_assignments: int
    overdue_assignments: int
    weekly_stats: WeeklyStats
    degraded: bool = False


# ----- Progress overview -----
class WeekProgress(BaseModel):
    week_number: int
    year: int
    progress: int
    assignments: int
    used_slots: int


class SubjectCount(BaseModel):
    subject: str
    count: int


class ProgressOverviewResponse(BaseModel):
    total_progress: int
    weekly_progress: List[WeekProgress]
    subject_distribution: List[SubjectCount]
    type_distribution: Dict[str, int]
    current_week: WeekInfoResponse
    total_classes: int
    total_possible_slots: int
    used_slots: int
    degraded: bool = False


# ----- Audit logs -----
class AuditLogResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    user_name: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogResponse]
    degraded: bool = False
