"""Week info and health endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assignments.schemas import WeekInfoResponse
from app.api.v1.assignments.service import week_info_response
from app.core.quota import STORE_ERRORS
from app.core.week import current_week_info
from app.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["utils"])


@router.get("/utils/week-info", response_model=WeekInfoResponse)
async def week_info() -> WeekInfoResponse:
    """Current ISO week and week-year with its Monday and Sunday."""
    return week_info_response(current_week_info())


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)) -> dict:
    try:
        await db.execute(text("SELECT 1"))
    except STORE_ERRORS as e:
        logger.warning("Health check: database unreachable: %s", e)
        return {"status": "degraded", "database": "unreachable"}
    return {"status": "ok", "database": "ok"}
