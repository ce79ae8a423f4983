import logging
from typing import List, Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser
from app.core.audit import log_audit
from app.core.exceptions import NotFoundError, PersistenceUnavailableError, ServiceError
from app.core.models import SchoolClass, Teacher
from app.core.quota import STORE_ERRORS
from app.core.roster import standard_roster
from app.db.session import rollback_quietly

from .schemas import ClassListResponse, ClassResponse, ClassUpdate

logger = logging.getLogger(__name__)


def _class_to_response(c: SchoolClass) -> ClassResponse:
    return ClassResponse(
        id=c.id,
        grade=c.grade,
        name=c.name,
        is_active=c.is_active,
        homeroom_teacher_id=c.homeroom_teacher_id,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def list_classes(db: AsyncSession, grade: Optional[int] = None) -> ClassListResponse:
    """Active classes by grade then name. The standard roster stands in when the store is down."""
    stmt = select(SchoolClass).where(SchoolClass.is_active.is_(True))
    if grade is not None:
        stmt = stmt.where(SchoolClass.grade == grade)
    stmt = stmt.order_by(SchoolClass.grade, SchoolClass.name)
    try:
        result = await db.execute(stmt)
        rows = result.scalars().all()
    except STORE_ERRORS as e:
        logger.warning("Class list degraded, serving standard roster: %s", e)
        roster = [c for c in standard_roster() if grade is None or c["grade"] == grade]
        return ClassListResponse(classes=[ClassResponse(**c) for c in roster], degraded=True)
    return ClassListResponse(classes=[_class_to_response(c) for c in rows])


async def init_classes(db: AsyncSession, current_user: CurrentUser) -> List[str]:
    """Create the standard classes that do not exist yet. Returns the ids created."""
    try:
        result = await db.execute(select(SchoolClass.id))
        existing = {row[0] for row in result.all()}
        created = []
        for c in standard_roster():
            if c["id"] in existing:
                continue
            db.add(SchoolClass(id=c["id"], grade=c["grade"], name=c["name"], is_active=True))
            created.append(c["id"])
        if created:
            await log_audit(db, current_user.id, "INIT_CLASSES", "class", "roster", new_values={"created": created})
        await db.commit()
    except STORE_ERRORS as e:
        logger.error("Class roster init failed: %s", e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    logger.info("Initialized %d class(es)", len(created))
    return created


async def update_class(
    db: AsyncSession,
    current_user: CurrentUser,
    class_id: str,
    payload: ClassUpdate,
) -> ClassResponse:
    data = payload.model_dump(exclude_unset=True)
    old_values = {}
    new_values = {}
    try:
        obj = await db.get(SchoolClass, class_id)
        if not obj:
            raise NotFoundError("Class not found")
        if "homeroom_teacher_id" in data and data["homeroom_teacher_id"] is not None:
            teacher = await db.get(Teacher, data["homeroom_teacher_id"])
            if not teacher or not teacher.is_active:
                raise ServiceError("Homeroom teacher not found", status.HTTP_404_NOT_FOUND)
        for key, value in data.items():
            if key == "is_active" and value is None:
                continue
            old = getattr(obj, key)
            if old != value:
                old_values[key] = str(old) if old is not None else None
                new_values[key] = str(value) if value is not None else None
                setattr(obj, key, value)

        if new_values:
            await log_audit(db, current_user.id, "UPDATE_CLASS", "class", obj.id, old_values=old_values, new_values=new_values)
            await db.commit()
            await db.refresh(obj)
    except ServiceError:
        await rollback_quietly(db)
        raise
    except STORE_ERRORS as e:
        logger.error("Class %s update failed: %s", class_id, e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    return _class_to_response(obj)
