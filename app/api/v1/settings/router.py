from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import SettingsResponse, SettingsUpdate
from . import service

router = APIRouter(prefix="/api/v1/admin/settings", tags=["settings"])


@router.get(
    "",
    response_model=SettingsResponse,
)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> SettingsResponse:
    return await service.list_settings(db)


@router.put(
    "",
    response_model=SettingsResponse,
)
async def update_settings(
    payload: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> SettingsResponse:
    """Capacity keys take effect on the next quota check or creation."""
    try:
        return await service.update_settings(db, current_user, payload.values)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
