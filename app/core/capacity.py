"""Weekly capacity per class, resolved from the settings table with config defaults."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import AssignmentType, SettingKey
from app.core.models import Setting

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capacity:
    task_max: int
    exam_max: int

    def max_for(self, assignment_type: AssignmentType) -> int:
        if AssignmentType(assignment_type) == AssignmentType.TASK:
            return self.task_max
        return self.exam_max

    @property
    def total(self) -> int:
        return self.task_max + self.exam_max


def default_capacity() -> Capacity:
    return Capacity(
        task_max=settings.default_max_weekly_tasks,
        exam_max=settings.default_max_weekly_exams,
    )


def parse_capacity_value(raw: Optional[str]) -> Optional[int]:
    """Positive integer from a setting value, or None when it is not one."""
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 1 else None


async def get_capacity(db: AsyncSession) -> Capacity:
    """Capacity from settings; missing or malformed values fall back to the configured defaults."""
    keys = [SettingKey.MAX_WEEKLY_TASKS.value, SettingKey.MAX_WEEKLY_EXAMS.value]
    result = await db.execute(select(Setting.key, Setting.value).where(Setting.key.in_(keys)))
    values: Dict[str, str] = {row[0]: row[1] for row in result.all()}
    defaults = default_capacity()

    def _resolve(key: SettingKey, default: int) -> int:
        raw = values.get(key.value)
        parsed = parse_capacity_value(raw)
        if raw is not None and parsed is None:
            logger.warning("Ignoring invalid setting %s=%r, using %d", key.value, raw, default)
        return parsed if parsed is not None else default

    return Capacity(
        task_max=_resolve(SettingKey.MAX_WEEKLY_TASKS, defaults.task_max),
        exam_max=_resolve(SettingKey.MAX_WEEKLY_EXAMS, defaults.exam_max),
    )
