from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SettingItem(BaseModel):
    key: str
    value: str
    description: Optional[str] = None
    updated_by: Optional[UUID] = None
    updated_at: Optional[datetime] = None


class SettingsResponse(BaseModel):
    settings: List[SettingItem]
    degraded: bool = False


class SettingsUpdate(BaseModel):
    """Key/value pairs to upsert, e.g. {"max_weekly_assignments": "3"}."""

    values: Dict[str, str] = Field(..., min_length=1)
