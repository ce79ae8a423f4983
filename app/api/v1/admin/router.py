"""Admin API router: load dashboard, assignment overrides, stats and reports."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assignments.schemas import AssignmentResponse
from app.auth.rbac import require_admin
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from . import service
from .schemas import (
    AdminAssignmentListResponse,
    AdminStatsResponse,
    AssignmentBulkDelete,
    AssignmentBulkDeleteResponse,
    AssignmentStatusUpdate,
    AuditLogListResponse,
    ClassStatusResponse,
    ProgressOverviewResponse,
)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get(
    "/class-status",
    response_model=ClassStatusResponse,
)
async def class_status(
    grade: Optional[int] = Query(None, ge=7, le=9),
    week: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> ClassStatusResponse:
    """Per-grade load summary for one ISO week (default: current week)."""
    try:
        return await service.get_class_status(db, grade=grade, week_number=week, year=year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/assignments",
    response_model=AdminAssignmentListResponse,
)
async def list_assignments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    week: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    status_filter: Optional[str] = Query(None, alias="status", description="draft, published, graded (or evaluated), closed"),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AdminAssignmentListResponse:
    try:
        return await service.list_assignments(
            db,
            page=page,
            limit=limit,
            week_number=week,
            year=year,
            status_filter=status_filter,
            search=search,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.patch(
    "/assignments/{assignment_id}/status",
    response_model=AssignmentResponse,
)
async def update_assignment_status(
    assignment_id: UUID,
    payload: AssignmentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AssignmentResponse:
    try:
        return await service.update_assignment_status(db, current_user, assignment_id, payload.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete(
    "/assignments",
    response_model=AssignmentBulkDeleteResponse,
)
async def delete_assignments(
    payload: AssignmentBulkDelete,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AssignmentBulkDeleteResponse:
    try:
        deleted = await service.delete_assignments(db, current_user, payload.ids)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return AssignmentBulkDeleteResponse(
        message=f"{deleted} assignment(s) deleted",
        deleted_count=deleted,
    )


@router.get(
    "/stats",
    response_model=AdminStatsResponse,
)
async def stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AdminStatsResponse:
    return await service.get_stats(db)


@router.get(
    "/progress-overview",
    response_model=ProgressOverviewResponse,
)
async def progress_overview(
    weeks: int = Query(4, ge=1, le=26),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> ProgressOverviewResponse:
    return await service.get_progress_overview(db, weeks=weeks)


@router.get(
    "/audit-logs",
    response_model=AuditLogListResponse,
)
async def audit_logs(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AuditLogListResponse:
    return await service.list_audit_logs(db, limit=limit)


@router.get("/reports/class-load.xlsx")
async def class_load_report(
    grade: Optional[int] = Query(None, ge=7, le=9),
    week: Optional[int] = Query(None, ge=1, le=53),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> Response:
    try:
        content, week_info = await service.export_class_load(db, grade=grade, week_number=week, year=year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    filename = f"class-load-{week_info.year}-W{week_info.week_number:02d}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
