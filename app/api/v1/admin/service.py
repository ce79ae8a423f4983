"""Admin service: load dashboard, assignment overrides, stats, progress and reports."""

import io
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assignments.service import (
    assignment_to_response,
    class_ids_by_assignment,
    week_info_response,
)
from app.auth.models import User
from app.auth.schemas import CurrentUser
from app.core.audit import log_audit
from app.core.capacity import Capacity, default_capacity, get_capacity
from app.core.config import settings
from app.core.enums import AssignmentStatus, AssignmentType, LoadTier
from app.core.exceptions import NotFoundError, PersistenceUnavailableError, ServiceError, ValidationError
from app.core.load import ClassStatus, GradeSummary, aggregate_by_grade, build_class_status, round_half_up
from app.core.models import Assignment, AuditLog, ClassAssignment, SchoolClass, Teacher
from app.core.quota import STORE_ERRORS, weekly_usage
from app.core.roster import standard_roster
from app.core.status import parse_status, validate_transition
from app.core.week import WeekInfo, current_week_info, is_valid_week, shift_week
from app.db.session import rollback_quietly

from .schemas import (
    AdminAssignmentItem,
    AdminAssignmentListResponse,
    AdminStatsResponse,
    AuditLogListResponse,
    AuditLogResponse,
    ClassStatusResponse,
    Pagination,
    ProgressOverviewResponse,
    SubjectCount,
    WeeklyStats,
    WeekProgress,
)

logger = logging.getLogger(__name__)


def _resolve_week(week_number: Optional[int], year: Optional[int], now: Optional[datetime]) -> WeekInfo:
    current = current_week_info(now)
    week = WeekInfo(
        year=year if year is not None else current.year,
        week_number=week_number if week_number is not None else current.week_number,
    )
    if not is_valid_week(week.week_number, week.year):
        raise ValidationError(f"Week {week.week_number} does not exist in ISO year {week.year}", field="week")
    return week


# ----- Class status (dashboard) -----
async def compute_class_statuses(
    db: AsyncSession,
    week: WeekInfo,
    grade: Optional[int] = None,
) -> Tuple[List[ClassStatus], bool]:
    """Per-class load for one week. Falls back to the standard roster at zero load when the store is down.

    Returns the statuses and whether the result is degraded.
    """
    try:
        stmt = select(SchoolClass.id, SchoolClass.grade, SchoolClass.name).where(SchoolClass.is_active.is_(True))
        if grade is not None:
            stmt = stmt.where(SchoolClass.grade == grade)
        result = await db.execute(stmt.order_by(SchoolClass.grade, SchoolClass.name))
        classes = [{"id": r[0], "grade": r[1], "name": r[2]} for r in result.all()]
        capacity = await get_capacity(db)
        usage = await weekly_usage(db, week.week_number, week.year)
        degraded = False
    except STORE_ERRORS as e:
        logger.warning("Class status degraded for week %s/%s: %s", week.week_number, week.year, e)
        classes = [c for c in standard_roster() if grade is None or c["grade"] == grade]
        capacity = default_capacity()
        usage = {}
        degraded = True

    statuses = []
    for c in classes:
        counts = usage.get(c["id"], {})
        statuses.append(
            build_class_status(
                c["id"],
                c["grade"],
                c["name"],
                tasks=counts.get(AssignmentType.TASK, 0),
                exams=counts.get(AssignmentType.EXAM, 0),
                max_tasks=capacity.task_max,
                max_exams=capacity.exam_max,
            )
        )
    return statuses, degraded


async def get_class_status(
    db: AsyncSession,
    grade: Optional[int] = None,
    week_number: Optional[int] = None,
    year: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ClassStatusResponse:
    week = _resolve_week(week_number, year, now)
    statuses, degraded = await compute_class_statuses(db, week, grade)
    grades = aggregate_by_grade(statuses)
    return ClassStatusResponse(
        week=week_info_response(week),
        class_status=[g.as_dict() for g in grades],
        degraded=degraded,
    )


# ----- Assignments (admin) -----
async def list_assignments(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    week_number: Optional[int] = None,
    year: Optional[int] = None,
    status_filter: Optional[str] = None,
    search: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AdminAssignmentListResponse:
    conditions = []
    if week_number is not None:
        conditions.append(Assignment.week_number == week_number)
    if year is not None:
        conditions.append(Assignment.year == year)
    if status_filter:
        conditions.append(Assignment.status == parse_status(status_filter).value)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        conditions.append(or_(Assignment.title.ilike(pattern), Assignment.subject.ilike(pattern)))

    try:
        total = (await db.execute(select(func.count(Assignment.id)).where(*conditions))).scalar_one()
        result = await db.execute(
            select(Assignment, Teacher.name)
            .outerjoin(Teacher, Teacher.id == Assignment.teacher_id)
            .where(*conditions)
            .order_by(Assignment.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = result.all()
        links = await class_ids_by_assignment(db, [a.id for a, _ in rows])
    except STORE_ERRORS as e:
        logger.warning("Admin assignment list degraded: %s", e)
        return AdminAssignmentListResponse(
            assignments=[],
            pagination=Pagination(page=page, limit=limit, total=0, total_pages=1),
            degraded=True,
        )

    current = current_week_info(now)
    items = [
        AdminAssignmentItem(
            **assignment_to_response(a, links.get(a.id, []), current).model_dump(),
            teacher_name=teacher_name,
        )
        for a, teacher_name in rows
    ]
    total_pages = max((total + limit - 1) // limit, 1)
    return AdminAssignmentListResponse(
        assignments=items,
        pagination=Pagination(page=page, limit=limit, total=total, total_pages=total_pages),
    )


async def update_assignment_status(
    db: AsyncSession,
    current_user: CurrentUser,
    assignment_id: UUID,
    target_status: str,
    now: Optional[datetime] = None,
):
    try:
        a = await db.get(Assignment, assignment_id)
        if not a:
            raise NotFoundError("Assignment not found")
        new_status = validate_transition(a.status, target_status)
        old_status = a.status
        if new_status.value != old_status:
            a.status = new_status.value
            await log_audit(
                db,
                current_user.id,
                "UPDATE_ASSIGNMENT_STATUS",
                "assignment",
                a.id,
                old_values={"status": old_status},
                new_values={"status": new_status.value},
            )
            await db.commit()
            logger.info("Assignment %s status %s -> %s", a.id, old_status, new_status.value)
        links = await class_ids_by_assignment(db, [a.id])
    except ServiceError:
        await rollback_quietly(db)
        raise
    except STORE_ERRORS as e:
        logger.error("Status update failed for assignment %s: %s", assignment_id, e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    return assignment_to_response(a, links.get(a.id, []), current_week_info(now))


async def delete_assignments(db: AsyncSession, current_user: CurrentUser, ids: List[UUID]) -> int:
    """Delete assignments and their class links. Freed quota slots are visible immediately."""
    unique_ids = list(dict.fromkeys(ids))
    try:
        result = await db.execute(select(Assignment.id, Assignment.title).where(Assignment.id.in_(unique_ids)))
        found = result.all()
        if not found:
            raise NotFoundError("No matching assignments found")
        found_ids = [row[0] for row in found]
        await db.execute(delete(ClassAssignment).where(ClassAssignment.assignment_id.in_(found_ids)))
        await db.execute(delete(Assignment).where(Assignment.id.in_(found_ids)))
        for assignment_id, title in found:
            await log_audit(
                db,
                current_user.id,
                "DELETE_ASSIGNMENT",
                "assignment",
                assignment_id,
                old_values={"title": title},
            )
        await db.commit()
    except ServiceError:
        await rollback_quietly(db)
        raise
    except STORE_ERRORS as e:
        logger.error("Assignment deletion failed: %s", e)
        await rollback_quietly(db)
        raise PersistenceUnavailableError() from e
    logger.info("Deleted %d assignment(s)", len(found_ids))
    return len(found_ids)


# ----- Stats -----
def is_overdue(created_at: Optional[datetime], now: datetime, days: int) -> bool:
    if created_at is None:
        return False
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at < now - timedelta(days=days)


async def get_stats(db: AsyncSession, now: Optional[datetime] = None) -> AdminStatsResponse:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    week = current_week_info(now)
    try:
        teachers = (await db.execute(select(func.count(Teacher.id)).where(Teacher.is_active.is_(True)))).scalar_one()
        classes = (await db.execute(select(func.count(SchoolClass.id)).where(SchoolClass.is_active.is_(True)))).scalar_one()
        result = await db.execute(
            select(Assignment.status, Assignment.created_at).where(
                Assignment.week_number == week.week_number,
                Assignment.year == week.year,
            )
        )
        rows = result.all()
        degraded = False
    except STORE_ERRORS as e:
        logger.warning("Admin stats degraded: %s", e)
        teachers, classes, rows, degraded = 0, 0, [], True

    total = len(rows)
    published = sum(1 for s, _ in rows if s == AssignmentStatus.published.value)
    graded = sum(1 for s, _ in rows if s == AssignmentStatus.graded.value)
    overdue = sum(
        1
        for s, created_at in rows
        if s == AssignmentStatus.published.value and is_overdue(created_at, now, settings.overdue_after_days)
    )
    return AdminStatsResponse(
        total_teachers=teachers,
        total_classes=classes,
        total_assignments=total,
        compliance_rate=round_half_up(100 * graded, total) if total else 0,
        pending_assignments=published,
        overdue_assignments=overdue,
        weekly_stats=WeeklyStats(
            week_number=week.week_number,
            year=week.year,
            published=published,
            graded=graded,
            overdue=overdue,
        ),
        degraded=degraded,
    )


# ----- Progress overview -----
async def get_progress_overview(
    db: AsyncSession,
    weeks: int = 4,
    now: Optional[datetime] = None,
) -> ProgressOverviewResponse:
    current = current_week_info(now)
    window = [shift_week(current.week_number, current.year, -offset) for offset in range(weeks - 1, -1, -1)]
    week_filter = or_(*[and_(Assignment.week_number == w.week_number, Assignment.year == w.year) for w in window])

    try:
        class_count = (
            await db.execute(select(func.count(SchoolClass.id)).where(SchoolClass.is_active.is_(True)))
        ).scalar_one()
        capacity = await get_capacity(db)
        result = await db.execute(
            select(Assignment.id, Assignment.week_number, Assignment.year, Assignment.type, Assignment.subject, ClassAssignment.class_id)
            .join(ClassAssignment, ClassAssignment.assignment_id == Assignment.id)
            .where(week_filter, Assignment.status == AssignmentStatus.published.value)
        )
        rows = result.all()
        degraded = False
    except STORE_ERRORS as e:
        logger.warning("Progress overview degraded: %s", e)
        class_count, capacity, rows, degraded = 0, default_capacity(), [], True

    return build_progress_overview(window, current, class_count, capacity, rows, degraded)


def build_progress_overview(
    window: List[WeekInfo],
    current: WeekInfo,
    class_count: int,
    capacity: Capacity,
    rows: List[tuple],
    degraded: bool = False,
) -> ProgressOverviewResponse:
    """Each row is one class link of a published assignment: (id, week, year, type, subject, class_id)."""
    possible = class_count * capacity.total
    used_by_week: Counter = Counter()
    assignments_by_week: Dict[WeekInfo, set] = {w: set() for w in window}
    current_assignments: Dict[UUID, Tuple[str, str]] = {}
    for assignment_id, week_number, year, type_value, subject, _class_id in rows:
        week = WeekInfo(year=year, week_number=week_number)
        used_by_week[week] += 1
        assignments_by_week.setdefault(week, set()).add(assignment_id)
        if week == current:
            current_assignments[assignment_id] = (type_value, subject)

    weekly = [
        WeekProgress(
            week_number=w.week_number,
            year=w.year,
            progress=round_half_up(100 * used_by_week[w], possible) if possible else 0,
            assignments=len(assignments_by_week[w]),
            used_slots=used_by_week[w],
        )
        for w in window
    ]
    subjects = Counter(subject for _, subject in current_assignments.values() if subject)
    types = {t.value: 0 for t in AssignmentType}
    for type_value, _ in current_assignments.values():
        if type_value in types:
            types[type_value] += 1

    used_now = used_by_week[current]
    return ProgressOverviewResponse(
        total_progress=round_half_up(100 * used_now, possible) if possible else 0,
        weekly_progress=weekly,
        subject_distribution=[
            SubjectCount(subject=s, count=n)
            for s, n in sorted(subjects.items(), key=lambda item: (-item[1], item[0]))
        ],
        type_distribution=types,
        current_week=week_info_response(current),
        total_classes=class_count,
        total_possible_slots=possible,
        used_slots=used_now,
        degraded=degraded,
    )


# ----- Audit logs -----
async def list_audit_logs(db: AsyncSession, limit: int = 10) -> AuditLogListResponse:
    try:
        result = await db.execute(
            select(AuditLog, User.full_name)
            .outerjoin(User, User.id == AuditLog.user_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        rows = result.all()
    except STORE_ERRORS as e:
        logger.warning("Audit log read degraded: %s", e)
        return AuditLogListResponse(logs=[], degraded=True)
    logs = [
        AuditLogResponse(
            id=log.id,
            user_id=log.user_id,
            user_name=user_name,
            action=log.action,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            old_values=log.old_values,
            new_values=log.new_values,
            created_at=log.created_at,
        )
        for log, user_name in rows
    ]
    return AuditLogListResponse(logs=logs)


# ----- Report -----
TIER_FILLS = {
    LoadTier.LOW: "C6EFCE",
    LoadTier.MEDIUM: "FFEB9C",
    LoadTier.FULL: "FFC7CE",
}


def build_class_load_workbook(week: WeekInfo, grades: List[GradeSummary]) -> bytes:
    """Excel report: one row per class plus a per-grade summary sheet."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Class Load"
    ws.append([f"Class load, ISO week {week.week_number} / {week.year}"])
    ws["A1"].font = Font(bold=True, size=12)
    headers = ["Grade", "Class ID", "Class", "Tasks", "Max Tasks", "Exams", "Max Exams", "Load %", "Tier", "Overloaded"]
    ws.append(headers)
    for cell in ws[2]:
        cell.font = Font(bold=True)
    for g in grades:
        for c in g.classes:
            ws.append([
                c.grade, c.id, c.name, c.tasks, c.max_tasks, c.exams, c.max_exams,
                c.load_percentage, c.tier.value, "YES" if c.is_overloaded else "NO",
            ])
            fill = PatternFill(start_color=TIER_FILLS[c.tier], end_color=TIER_FILLS[c.tier], fill_type="solid")
            ws.cell(row=ws.max_row, column=8).fill = fill
    for col, width in zip("ABCDEFGHIJ", (8, 18, 18, 8, 10, 8, 10, 8, 10, 12)):
        ws.column_dimensions[col].width = width

    summary = wb.create_sheet("Grades")
    summary.append(["Grade", "Classes", "Average Load %", "Max Load %", "Overloaded"])
    for cell in summary[1]:
        cell.font = Font(bold=True)
    for g in grades:
        summary.append([g.grade, g.total, g.avg_load, g.max_load, g.overloaded])

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


async def export_class_load(
    db: AsyncSession,
    grade: Optional[int] = None,
    week_number: Optional[int] = None,
    year: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[bytes, WeekInfo]:
    week = _resolve_week(week_number, year, now)
    statuses, _ = await compute_class_statuses(db, week, grade)
    return build_class_load_workbook(week, aggregate_by_grade(statuses)), week
