from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import TeacherCreate, TeacherListResponse, TeacherResponse, TeacherUpdate
from . import service

router = APIRouter(prefix="/api/v1/admin/teachers", tags=["teachers"])


@router.get(
    "",
    response_model=TeacherListResponse,
)
async def list_teachers(
    active_only: bool = Query(True, description="Return only is_active=true by default"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> TeacherListResponse:
    return await service.list_teachers(db, active_only=active_only)


@router.post(
    "",
    response_model=TeacherResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_teacher(
    payload: TeacherCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> TeacherResponse:
    try:
        return await service.create_teacher(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{teacher_id}",
    response_model=TeacherResponse,
)
async def get_teacher(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> TeacherResponse:
    try:
        return await service.get_teacher(db, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put(
    "/{teacher_id}",
    response_model=TeacherResponse,
)
async def update_teacher(
    teacher_id: UUID,
    payload: TeacherUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> TeacherResponse:
    try:
        return await service.update_teacher(db, current_user, teacher_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete(
    "/{teacher_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def deactivate_teacher(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await service.deactivate_teacher(db, current_user, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
