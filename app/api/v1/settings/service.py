"""System settings: weekly capacity and school period keys."""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser
from app.core.audit import log_audit
from app.core.capacity import default_capacity, parse_capacity_value
from app.core.enums import SettingKey
from app.core.exceptions import PersistenceUnavailableError, ServiceError, ValidationError
from app.core.models import Setting
from app.core.quota import STORE_ERRORS
from app.db.session import rollback_quietly

from .schemas import SettingItem, SettingsResponse

logger = logging.getLogger(__name__)

CAPACITY_KEYS = {SettingKey.MAX_WEEKLY_TASKS.value, SettingKey.MAX_WEEKLY_EXAMS.value}

DESCRIPTIONS = {
    SettingKey.MAX_WEEKLY_TASKS.value: "Maximum published tasks per class per week",
    SettingKey.MAX_WEEKLY_EXAMS.value: "Maximum published exams per class per week",
    SettingKey.SCHOOL_YEAR.value: "Current school year, e.g. 2025/2026",
    SettingKey.SEMESTER.value: "Current semester (1 or 2)",
}


def default_settings() -> Dict[str, str]:
    capacity = default_capacity()
    return {
        SettingKey.MAX_WEEKLY_TASKS.value: str(capacity.task_max),
        SettingKey.MAX_WEEKLY_EXAMS.value: str(capacity.exam_max),
        SettingKey.SCHOOL_YEAR.value: "",
        SettingKey.SEMESTER.value: "1",
    }


def validate_setting(key: str, value: str) -> str:
    known = {k.value for k in SettingKey}
    if key not in known:
        raise ValidationError(f"Unknown setting '{key}'", field=key)
    value = (value or "").strip()
    if key in CAPACITY_KEYS:
        parsed = parse_capacity_value(value)
        if parsed is None:
            raise ValidationError(f"{key} must be a positive integer", field=key)
        return str(parsed)
    if key == SettingKey.SEMESTER.value and value not in ("1", "2"):
        raise ValidationError("semester must be 1 or 2", field=key)
    return value


def _merge(stored: Dict[str, Setting]) -> List[SettingItem]:
    items = []
    for key, default in sorted({**default_settings(), **{k: s.value for k, s in stored.items()}}.items()):
        s = stored.get(key)
        items.append(
            SettingItem(
                key=key,
                value=s.value if s else default,
                description=(s.description if s and s.description else DESCRIPTIONS.get(key)),
                updated_by=s.updated_by if s else None,
                updated_at=s.updated_at if s else None,
            )
        )
    return items


async def list_settings(db: AsyncSession) -> SettingsResponse:
    """Stored settings merged over the defaults, ordered by key. Defaults only when the store is down."""
    try:
        result = await db.execute(select(Setting))
        stored = {s.key: s for s in result.scalars().all()}
    except STORE_ERRORS as e:
        logger.warning("Settings read degraded, serving defaults: %s", e)
        return SettingsResponse(settings=_merge({}), degraded=True)
    return SettingsResponse(settings=_merge(stored))


async def update_settings(db: AsyncSession, current_user: CurrentUser, values: Dict[str, str]) -> SettingsResponse:
    cleaned = {key: validate_setting(key, value) for key, value in values.items()}
    try:
        result = await db.execute(select(Setting).where(Setting.key.in_(list(cleaned))))
        stored = {s.key: s for s in result.scalars().all()}
        for key, value in cleaned.items():
            s = stored.get(key)
            old = s.value if s else None
            if s:
                s.value = value
                s.updated_by = current_user.id
            else:
                db.add(Setting(key=key, value=value, description=DESCRIPTIONS.get(key), updated_by=current_user.id))
            if old != value:
                await log_audit(
                    db,
                    current_user.id,
                    "UPDATE_SETTING",
                    "setting",
                    key,
                    old_values={"value": old},
                    new_values={"value": value},
                )
        await db.commit()
    except ServiceError:
        await rollback_quietly(db)
        raise
    except STORE_ERRORS as e:
        logger.error("Settings update failed: %s", e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    logger.info("Settings updated: %s", ", ".join(sorted(cleaned)))
    return await list_settings(db)
