"""Weekly quota ledger.

Usage is always counted from the assignment tables at query time: the number of
distinct published assignments of one type linked to a class in one ISO week.
Nothing is cached between requests.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.capacity import default_capacity, get_capacity
from app.core.enums import AssignmentStatus, AssignmentType
from app.core.exceptions import CapacityExceededError, PersistenceUnavailableError, ValidationError
from app.core.models import Assignment, ClassAssignment, SchoolClass

logger = logging.getLogger(__name__)

# Errors that mean the store could not answer, as opposed to a bad request.
STORE_ERRORS = (SQLAlchemyError, OSError)


@dataclass(frozen=True)
class QuotaUsage:
    used: int
    max: int

    @property
    def remaining(self) -> int:
        return max(self.max - self.used, 0)

    @property
    def is_full(self) -> bool:
        return self.used >= self.max

    def as_dict(self) -> Dict[str, int]:
        return {"used": self.used, "max": self.max}


def _unique(class_ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(class_ids))


def _usage_stmt(class_ids: List[str], week_number: int, year: int, assignment_type: AssignmentType):
    return (
        select(ClassAssignment.class_id, func.count(distinct(Assignment.id)))
        .join(Assignment, Assignment.id == ClassAssignment.assignment_id)
        .where(
            ClassAssignment.class_id.in_(class_ids),
            Assignment.week_number == week_number,
            Assignment.year == year,
            Assignment.type == AssignmentType(assignment_type).value,
            Assignment.status == AssignmentStatus.published.value,
        )
        .group_by(ClassAssignment.class_id)
    )


async def count_usage(
    db: AsyncSession,
    class_ids: Iterable[str],
    week_number: int,
    year: int,
    assignment_type: AssignmentType,
) -> Dict[str, int]:
    """Used slots per class (0 for classes with no published assignment). Store errors propagate."""
    ids = _unique(class_ids)
    if not ids:
        return {}
    result = await db.execute(_usage_stmt(ids, week_number, year, assignment_type))
    counts = {row[0]: int(row[1]) for row in result.all()}
    return {class_id: counts.get(class_id, 0) for class_id in ids}


async def compute_usage(
    db: AsyncSession,
    class_id: str,
    week_number: int,
    year: int,
    assignment_type: AssignmentType,
) -> int:
    try:
        usage = await count_usage(db, [class_id], week_number, year, assignment_type)
    except STORE_ERRORS as e:
        logger.error("Usage count failed for class %s: %s", class_id, e)
        raise PersistenceUnavailableError() from e
    return usage[class_id]


async def check_quota(
    db: AsyncSession,
    class_ids: Iterable[str],
    week_number: int,
    year: int,
    assignment_type: AssignmentType,
) -> Dict[str, QuotaUsage]:
    """Advisory pre-check: ``{class_id: QuotaUsage(used, max)}``.

    When the store is unreachable every class reports ``used=0`` with the default
    maximum so callers are never blocked by a counting failure. Creation re-checks
    under lock anyway (see ``reserve_capacity``).
    """
    ids = _unique(class_ids)
    try:
        capacity = await get_capacity(db)
        usage = await count_usage(db, ids, week_number, year, assignment_type)
    except STORE_ERRORS as e:
        logger.warning(
            "Quota check degraded for week %s/%s (%s): %s",
            week_number, year, AssignmentType(assignment_type).value, e,
        )
        limit = default_capacity().max_for(assignment_type)
        return {class_id: QuotaUsage(used=0, max=limit) for class_id in ids}

    limit = capacity.max_for(assignment_type)
    quotas = {class_id: QuotaUsage(used=usage[class_id], max=limit) for class_id in ids}
    logger.debug("Quota for week %s/%s %s: %s", week_number, year, assignment_type, quotas)
    return quotas


async def reserve_capacity(
    db: AsyncSession,
    class_ids: Iterable[str],
    week_number: int,
    year: int,
    assignment_type: AssignmentType,
) -> Dict[str, QuotaUsage]:
    """Re-validate capacity inside the caller's write transaction.

    Locks the target class rows in ascending id order before counting. A second writer for the same
    classes blocks until the first commits and then sees its assignment in the count.

    Raises ValidationError for unknown or inactive classes and CapacityExceededError
    when any class is already full. Store errors propagate to the caller.
    """
    ids = sorted(_unique(class_ids))
    if not ids:
        raise ValidationError("Select at least one class", field="class_ids")

    locked = await db.execute(
        select(SchoolClass.id)
        .where(SchoolClass.id.in_(ids), SchoolClass.is_active.is_(True))
        .order_by(SchoolClass.id)
        .with_for_update()
    )
    found = {row[0] for row in locked.all()}
    missing = [class_id for class_id in ids if class_id not in found]
    if missing:
        raise ValidationError(f"Unknown or inactive class(es): {', '.join(missing)}", field="class_ids")

    capacity = await get_capacity(db)
    usage = await count_usage(db, ids, week_number, year, assignment_type)
    limit = capacity.max_for(assignment_type)
    quotas = {class_id: QuotaUsage(used=usage[class_id], max=limit) for class_id in ids}

    full = [
        {"class_id": class_id, **quota.as_dict()}
        for class_id, quota in quotas.items()
        if quota.is_full
    ]
    if full:
        raise CapacityExceededError(AssignmentType(assignment_type).value, full)
    return quotas


async def weekly_usage(
    db: AsyncSession,
    week_number: int,
    year: int,
    class_ids: Optional[Iterable[str]] = None,
) -> Dict[str, Dict[AssignmentType, int]]:
    """Published task and exam counts per class for one week, in a single query."""
    stmt = (
        select(ClassAssignment.class_id, Assignment.type, func.count(distinct(Assignment.id)))
        .join(Assignment, Assignment.id == ClassAssignment.assignment_id)
        .where(
            Assignment.week_number == week_number,
            Assignment.year == year,
            Assignment.status == AssignmentStatus.published.value,
        )
        .group_by(ClassAssignment.class_id, Assignment.type)
    )
    if class_ids is not None:
        stmt = stmt.where(ClassAssignment.class_id.in_(_unique(class_ids)))
    result = await db.execute(stmt)

    usage: Dict[str, Dict[AssignmentType, int]] = defaultdict(
        lambda: {AssignmentType.TASK: 0, AssignmentType.EXAM: 0}
    )
    for class_id, type_value, count in result.all():
        try:
            usage[class_id][AssignmentType(type_value)] = int(count)
        except ValueError:
            logger.warning("Skipping assignment type %r for class %s", type_value, class_id)
    return dict(usage)
