import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import CurrentUser
from app.auth.security import hash_password
from app.core.audit import log_audit
from app.core.enums import UserRole
from app.core.exceptions import NotFoundError, PersistenceUnavailableError, ServiceError, ValidationError
from app.core.models import Teacher
from app.core.quota import STORE_ERRORS
from app.db.session import rollback_quietly

from .schemas import TeacherCreate, TeacherListResponse, TeacherResponse, TeacherUpdate

logger = logging.getLogger(__name__)


def _teacher_to_response(t: Teacher, has_login: bool = False) -> TeacherResponse:
    return TeacherResponse(
        id=t.id,
        name=t.name,
        email=t.email,
        phone=t.phone,
        subjects=list(t.subjects or []),
        learning_goals=list(t.learning_goals or []),
        is_active=t.is_active,
        has_login=has_login,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


async def _email_taken(db: AsyncSession, email: str, exclude_id: Optional[UUID] = None) -> bool:
    stmt = select(Teacher.id).where(func.lower(Teacher.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(Teacher.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def _login_teacher_ids(db: AsyncSession, teacher_ids: List[UUID]) -> set:
    if not teacher_ids:
        return set()
    result = await db.execute(select(User.teacher_id).where(User.teacher_id.in_(teacher_ids)))
    return {row[0] for row in result.all()}


async def list_teachers(db: AsyncSession, active_only: bool = True) -> TeacherListResponse:
    stmt = select(Teacher)
    if active_only:
        stmt = stmt.where(Teacher.is_active.is_(True))
    try:
        result = await db.execute(stmt.order_by(Teacher.name))
        rows = result.scalars().all()
        with_login = await _login_teacher_ids(db, [t.id for t in rows])
    except STORE_ERRORS as e:
        logger.warning("Teacher list degraded: %s", e)
        return TeacherListResponse(teachers=[], degraded=True)
    return TeacherListResponse(teachers=[_teacher_to_response(t, t.id in with_login) for t in rows])


async def get_teacher(db: AsyncSession, teacher_id: UUID) -> TeacherResponse:
    try:
        t = await db.get(Teacher, teacher_id)
        if not t:
            raise NotFoundError("Teacher not found")
        with_login = await _login_teacher_ids(db, [t.id])
    except STORE_ERRORS as e:
        logger.error("Teacher %s lookup failed: %s", teacher_id, e)
        raise PersistenceUnavailableError() from e
    return _teacher_to_response(t, t.id in with_login)


async def create_teacher(db: AsyncSession, current_user: CurrentUser, payload: TeacherCreate) -> TeacherResponse:
    email = payload.email.lower()
    if not payload.subjects:
        raise ValidationError("At least one subject is required", field="subjects")
    try:
        if await _email_taken(db, email):
            raise ServiceError("Email already registered", status.HTTP_409_CONFLICT)
        t = Teacher(
            name=payload.name.strip(),
            email=email,
            phone=payload.phone,
            subjects=payload.subjects,
            learning_goals=payload.learning_goals,
            is_active=True,
        )
        db.add(t)
        await db.flush()
        if payload.password:
            db.add(
                User(
                    teacher_id=t.id,
                    full_name=t.name,
                    email=email,
                    password_hash=hash_password(payload.password),
                    role=UserRole.TEACHER.value,
                    status="ACTIVE",
                )
            )
        await log_audit(
            db,
            current_user.id,
            "CREATE_TEACHER",
            "teacher",
            t.id,
            new_values={"name": t.name, "email": t.email, "subjects": t.subjects},
        )
        await db.commit()
        await db.refresh(t)
    except ServiceError:
        await rollback_quietly(db)
        raise
    except IntegrityError as e:
        await rollback_quietly(db)
        raise ServiceError("Email already registered", status.HTTP_409_CONFLICT) from e
    except STORE_ERRORS as e:
        logger.error("Teacher creation failed: %s", e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    logger.info("Teacher %s created (login: %s)", t.id, bool(payload.password))
    return _teacher_to_response(t, bool(payload.password))


async def update_teacher(
    db: AsyncSession,
    current_user: CurrentUser,
    teacher_id: UUID,
    payload: TeacherUpdate,
) -> TeacherResponse:
    data = payload.model_dump(exclude_unset=True)
    data = {k: v for k, v in data.items() if v is not None}
    if "subjects" in data and not data["subjects"]:
        raise ValidationError("At least one subject is required", field="subjects")
    if "name" in data:
        data["name"] = data["name"].strip()
    if "email" in data:
        data["email"] = data["email"].lower()

    try:
        t = await db.get(Teacher, teacher_id)
        if not t:
            raise NotFoundError("Teacher not found")
        if "email" in data and await _email_taken(db, data["email"], exclude_id=t.id):
            raise ServiceError("Email already registered", status.HTTP_409_CONFLICT)

        old_values = {k: getattr(t, k) for k in data}
        for key, value in data.items():
            setattr(t, key, value)
        if "email" in data or "name" in data:
            user_values = {}
            if "email" in data:
                user_values["email"] = data["email"]
            if "name" in data:
                user_values["full_name"] = data["name"]
            await db.execute(update(User).where(User.teacher_id == t.id).values(**user_values))
        await log_audit(db, current_user.id, "UPDATE_TEACHER", "teacher", t.id, old_values=old_values, new_values=data)
        await db.commit()
        await db.refresh(t)
    except ServiceError:
        await rollback_quietly(db)
        raise
    except IntegrityError as e:
        await rollback_quietly(db)
        raise ServiceError("Email already registered", status.HTTP_409_CONFLICT) from e
    except STORE_ERRORS as e:
        logger.error("Teacher %s update failed: %s", teacher_id, e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    return await get_teacher(db, t.id)


async def deactivate_teacher(db: AsyncSession, current_user: CurrentUser, teacher_id: UUID) -> None:
    """Soft delete: the teacher and any linked login become inactive; assignments are kept."""
    try:
        t = await db.get(Teacher, teacher_id)
        if not t:
            raise NotFoundError("Teacher not found")
        if not t.is_active:
            return
        t.is_active = False
        await db.execute(update(User).where(User.teacher_id == t.id).values(status="INACTIVE"))
        await log_audit(
            db,
            current_user.id,
            "DEACTIVATE_TEACHER",
            "teacher",
            t.id,
            old_values={"is_active": True},
            new_values={"is_active": False},
        )
        await db.commit()
    except ServiceError:
        await rollback_quietly(db)
        raise
    except STORE_ERRORS as e:
        logger.error("Teacher %s deactivation failed: %s", teacher_id, e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    logger.info("Teacher %s deactivated", teacher_id)
