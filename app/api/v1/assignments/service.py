"""Assignment service: creation under quota, listing and the current-week feed."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser
from app.core.audit import log_audit
from app.core.enums import AssignmentStatus, AssignmentType
from app.core.exceptions import NotFoundError, PersistenceUnavailableError, ServiceError, ValidationError
from app.core.models import Assignment, ClassAssignment, Teacher
from app.core.quota import STORE_ERRORS, QuotaUsage, check_quota, reserve_capacity
from app.core.status import display_status
from app.core.week import WeekInfo, current_week_info, is_valid_week, week_bounds
from app.db.session import rollback_quietly

from .schemas import (
    AssignmentCreate,
    AssignmentResponse,
    CurrentWeekAssignmentsResponse,
    QuotaCheckRequest,
    QuotaCheckResponse,
    QuotaInfo,
    WeekInfoResponse,
)

logger = logging.getLogger(__name__)


def week_info_response(week: WeekInfo) -> WeekInfoResponse:
    start, end = week_bounds(week.week_number, week.year)
    return WeekInfoResponse(week_number=week.week_number, year=week.year, start=start, end=end)


def assignment_to_response(a: Assignment, class_ids: List[str], current: WeekInfo) -> AssignmentResponse:
    return AssignmentResponse(
        id=a.id,
        title=a.title,
        description=a.description,
        subject=a.subject,
        learning_goal=a.learning_goal,
        type=a.type,
        week_number=a.week_number,
        year=a.year,
        status=a.status,
        display_status=display_status(a.status, a.week_number, a.year, current),
        teacher_id=a.teacher_id,
        due_date=a.due_date,
        class_ids=class_ids,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


async def class_ids_by_assignment(db: AsyncSession, assignment_ids: Iterable[UUID]) -> Dict[UUID, List[str]]:
    ids = list(assignment_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(ClassAssignment.assignment_id, ClassAssignment.class_id)
        .where(ClassAssignment.assignment_id.in_(ids))
        .order_by(ClassAssignment.class_id)
    )
    mapping: Dict[UUID, List[str]] = defaultdict(list)
    for assignment_id, class_id in result.all():
        mapping[assignment_id].append(class_id)
    return mapping


async def _resolve_teacher_id(db: AsyncSession, current_user: CurrentUser, requested: Optional[UUID]) -> UUID:
    if not current_user.is_admin:
        if requested is not None and requested != current_user.teacher_id:
            raise ServiceError("Teachers can only create assignments for themselves", status.HTTP_403_FORBIDDEN)
        return current_user.teacher_id
    if requested is None:
        raise ValidationError("teacher_id is required when an admin creates an assignment", field="teacher_id")
    teacher = await db.get(Teacher, requested)
    if not teacher or not teacher.is_active:
        raise NotFoundError("Teacher not found")
    return teacher.id


def normalize_class_ids(class_ids: Iterable[str]) -> List[str]:
    """Strip, de-duplicate and sort requested class ids. At least one must remain."""
    ids = sorted(dict.fromkeys(c.strip() for c in class_ids if c and c.strip()))
    if not ids:
        raise ValidationError("Select at least one class", field="class_ids")
    return ids


# ----- Quota -----
async def check_assignment_quota(db: AsyncSession, payload: QuotaCheckRequest) -> QuotaCheckResponse:
    class_ids = normalize_class_ids(payload.class_ids)
    quotas = await check_quota(db, class_ids, payload.week_number, payload.year, payload.type)
    return QuotaCheckResponse(
        week_number=payload.week_number,
        year=payload.year,
        type=payload.type,
        quotas={class_id: QuotaInfo(**q.as_dict()) for class_id, q in quotas.items()},
    )


# ----- Create -----
async def create_assignment(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: AssignmentCreate,
) -> Tuple[Assignment, List[str], Dict[str, QuotaUsage]]:
    """Create a published assignment linked to every requested class.

    Capacity is re-checked under row locks in the same transaction as the insert,
    so a pre-check done earlier by the client is never trusted. The whole creation
    is rejected when any class is full.
    """
    if not is_valid_week(payload.week_number, payload.year):
        raise ValidationError(f"Week {payload.week_number} does not exist in ISO year {payload.year}", field="week_number")
    class_ids = normalize_class_ids(payload.class_ids)

    try:
        teacher_id = await _resolve_teacher_id(db, current_user, payload.teacher_id)
        quotas = await reserve_capacity(db, class_ids, payload.week_number, payload.year, payload.type)

        assignment = Assignment(
            title=payload.title.strip(),
            description=payload.description,
            subject=payload.subject.strip(),
            learning_goal=payload.learning_goal.strip(),
            type=AssignmentType(payload.type).value,
            week_number=payload.week_number,
            year=payload.year,
            teacher_id=teacher_id,
            status=AssignmentStatus.published.value,
            due_date=payload.due_date,
        )
        db.add(assignment)
        await db.flush()  # to populate assignment.id
        for class_id in class_ids:
            db.add(ClassAssignment(class_id=class_id, assignment_id=assignment.id))
        await log_audit(
            db,
            current_user.id,
            "CREATE_ASSIGNMENT",
            "assignment",
            assignment.id,
            new_values={
                "title": assignment.title,
                "type": assignment.type,
                "week_number": assignment.week_number,
                "year": assignment.year,
                "class_ids": class_ids,
            },
        )
        await db.commit()
    except ServiceError:
        await rollback_quietly(db)
        raise
    except IntegrityError as e:
        await rollback_quietly(db)
        raise ServiceError("Conflict while creating assignment", status.HTTP_409_CONFLICT) from e
    except STORE_ERRORS as e:
        logger.error("Assignment creation failed: %s", e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e

    # Report usage including the new assignment.
    after = {c: QuotaUsage(used=q.used + 1, max=q.max) for c, q in quotas.items()}
    logger.info(
        "Assignment %s (%s) created for %s in week %s/%s",
        assignment.id, assignment.type, ", ".join(class_ids), assignment.week_number, assignment.year,
    )
    return assignment, class_ids, after


# ----- Read -----
async def list_assignments(
    db: AsyncSession,
    current_user: CurrentUser,
    week_number: Optional[int] = None,
    year: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[AssignmentResponse]:
    stmt = select(Assignment)
    if not current_user.is_admin:
        stmt = stmt.where(Assignment.teacher_id == current_user.teacher_id)
    if week_number is not None:
        stmt = stmt.where(Assignment.week_number == week_number)
    if year is not None:
        stmt = stmt.where(Assignment.year == year)
    stmt = stmt.order_by(Assignment.created_at.desc())
    result = await db.execute(stmt)
    rows = list(result.scalars().all())
    links = await class_ids_by_assignment(db, [a.id for a in rows])
    current = current_week_info(now)
    return [assignment_to_response(a, links.get(a.id, []), current) for a in rows]


async def get_assignment(db: AsyncSession, current_user: CurrentUser, assignment_id: UUID) -> AssignmentResponse:
    a = await db.get(Assignment, assignment_id)
    if not a or (not current_user.is_admin and a.teacher_id != current_user.teacher_id):
        raise NotFoundError("Assignment not found")
    links = await class_ids_by_assignment(db, [a.id])
    return assignment_to_response(a, links.get(a.id, []), current_week_info())


async def current_week_assignments(db: AsyncSession, now: Optional[datetime] = None) -> CurrentWeekAssignmentsResponse:
    """Published assignments of the current ISO week, newest first. Empty when the store is down."""
    current = current_week_info(now)
    try:
        result = await db.execute(
            select(Assignment)
            .where(
                Assignment.week_number == current.week_number,
                Assignment.year == current.year,
                Assignment.status == AssignmentStatus.published.value,
            )
            .order_by(Assignment.created_at.desc())
        )
        rows = list(result.scalars().all())
        links = await class_ids_by_assignment(db, [a.id for a in rows])
    except STORE_ERRORS as e:
        logger.warning("Current week feed degraded: %s", e)
        return CurrentWeekAssignmentsResponse(week=week_info_response(current), assignments=[], degraded=True)
    return CurrentWeekAssignmentsResponse(
        week=week_info_response(current),
        assignments=[assignment_to_response(a, links.get(a.id, []), current) for a in rows],
    )
