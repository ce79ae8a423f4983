"""Assignment status lifecycle: stored transitions and the read-time display status."""

from typing import Dict, FrozenSet, Union

from app.core.enums import AssignmentStatus, DisplayStatus
from app.core.exceptions import ValidationError
from app.core.week import WeekInfo, is_past_week

ALLOWED_TRANSITIONS: Dict[AssignmentStatus, FrozenSet[AssignmentStatus]] = {
    AssignmentStatus.draft: frozenset({AssignmentStatus.published, AssignmentStatus.closed}),
    AssignmentStatus.published: frozenset({AssignmentStatus.graded, AssignmentStatus.closed}),
    AssignmentStatus.graded: frozenset({AssignmentStatus.closed}),
    AssignmentStatus.closed: frozenset(),
}

# Labels the admin UI sends for stored statuses.
STATUS_ALIASES: Dict[str, AssignmentStatus] = {
    "evaluated": AssignmentStatus.graded,
}


def parse_status(value: Union[str, AssignmentStatus]) -> AssignmentStatus:
    if isinstance(value, AssignmentStatus):
        return value
    raw = (value or "").strip().lower()
    if raw in STATUS_ALIASES:
        return STATUS_ALIASES[raw]
    try:
        return AssignmentStatus(raw)
    except ValueError:
        allowed = ", ".join([s.value for s in AssignmentStatus] + list(STATUS_ALIASES))
        raise ValidationError(f"Invalid status '{value}'. Allowed: {allowed}", field="status")


def validate_transition(current: Union[str, AssignmentStatus], target: Union[str, AssignmentStatus]) -> AssignmentStatus:
    """Return the parsed target status or raise ValidationError when the move is not allowed.

    Re-applying the current status is accepted as a no-op.
    """
    current_status = AssignmentStatus(current)
    target_status = parse_status(target)
    if target_status == current_status:
        return target_status
    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise ValidationError(
            f"Cannot change status from {current_status.value} to {target_status.value}",
            field="status",
        )
    return target_status


def display_status(status: Union[str, AssignmentStatus], week_number: int, year: int, current: WeekInfo) -> DisplayStatus:
    """Status to show: a published assignment from a past week reads as not_evaluated.

    Pure projection; the stored status is never changed here.
    """
    stored = AssignmentStatus(status)
    if stored == AssignmentStatus.published and is_past_week(week_number, year, current):
        return DisplayStatus.not_evaluated
    return DisplayStatus(stored.value)
