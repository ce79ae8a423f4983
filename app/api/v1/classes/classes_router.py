from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin, require_teacher_or_admin
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ClassInitResponse, ClassListResponse, ClassResponse, ClassUpdate
from . import service

router = APIRouter(prefix="/api/v1/classes", tags=["classes"])


@router.get(
    "",
    response_model=ClassListResponse,
)
async def list_classes(
    grade: Optional[int] = Query(None, ge=7, le=9),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher_or_admin),
) -> ClassListResponse:
    return await service.list_classes(db, grade=grade)


@router.post(
    "/init",
    response_model=ClassInitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def init_classes(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> ClassInitResponse:
    """Create any missing standard class (grades 7-9, six classes each)."""
    try:
        created = await service.init_classes(db, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return ClassInitResponse(message=f"{len(created)} class(es) created", created=created)


@router.patch(
    "/{class_id}",
    response_model=ClassResponse,
)
async def update_class(
    class_id: str,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> ClassResponse:
    try:
        return await service.update_class(db, current_user, class_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
