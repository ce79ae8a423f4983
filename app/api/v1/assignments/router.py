"""Assignment API router (teacher side)."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_teacher_or_admin
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.core.week import current_week_info
from app.db.session import get_db

from . import service
from .schemas import (
    AssignmentCreate,
    AssignmentCreateResponse,
    AssignmentResponse,
    CurrentWeekAssignmentsResponse,
    QuotaCheckRequest,
    QuotaCheckResponse,
    QuotaInfo,
)

router = APIRouter(prefix="/api/v1/assignments", tags=["assignments"])


@router.post(
    "",
    response_model=AssignmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment(
    payload: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
) -> AssignmentCreateResponse:
    try:
        assignment, class_ids, quotas = await service.create_assignment(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return AssignmentCreateResponse(
        message="Assignment created",
        assignment=service.assignment_to_response(assignment, class_ids, current_week_info()),
        quotas={class_id: QuotaInfo(**q.as_dict()) for class_id, q in quotas.items()},
    )


@router.post(
    "/check-quota",
    response_model=QuotaCheckResponse,
)
async def check_quota(
    payload: QuotaCheckRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
) -> QuotaCheckResponse:
    """Advisory remaining-capacity check. Creation re-validates before commit."""
    try:
        return await service.check_assignment_quota(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "",
    response_model=List[AssignmentResponse],
)
async def list_assignments(
    week_number: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
) -> List[AssignmentResponse]:
    return await service.list_assignments(db, current_user, week_number, year)


@router.get(
    "/current-week",
    response_model=CurrentWeekAssignmentsResponse,
)
async def current_week_assignments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
) -> CurrentWeekAssignmentsResponse:
    return await service.current_week_assignments(db)


@router.get(
    "/{assignment_id}",
    response_model=AssignmentResponse,
)
async def get_assignment(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
) -> AssignmentResponse:
    try:
        return await service.get_assignment(db, current_user, assignment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
