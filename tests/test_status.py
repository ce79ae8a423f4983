import pytest

from app.core.enums import AssignmentStatus, DisplayStatus
from app.core.exceptions import ValidationError
from app.core.status import display_status, parse_status, validate_transition
from app.core.week import WeekInfo

CURRENT = WeekInfo(year=2025, week_number=20)


@pytest.mark.parametrize(
    "current, target",
    [
        ("draft", "published"),
        ("published", "graded"),
        ("draft", "closed"),
        ("published", "closed"),
        ("graded", "closed"),
    ],
)
def test_allowed_transitions(current: str, target: str) -> None:
    assert validate_transition(current, target) == AssignmentStatus(target)


@pytest.mark.parametrize(
    "current, target",
    [
        ("closed", "published"),
        ("closed", "draft"),
        ("graded", "published"),
        ("published", "draft"),
        ("draft", "graded"),
    ],
)
def test_disallowed_transitions(current: str, target: str) -> None:
    with pytest.raises(ValidationError) as exc:
        validate_transition(current, target)
    assert exc.value.status_code == 400
    assert exc.value.field == "status"


def test_same_state_is_a_no_op() -> None:
    assert validate_transition("closed", "closed") == AssignmentStatus.closed
    assert validate_transition("published", "published") == AssignmentStatus.published


def test_evaluated_alias_means_graded() -> None:
    assert parse_status("evaluated") == AssignmentStatus.graded
    assert validate_transition("published", "Evaluated") == AssignmentStatus.graded


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_status("archived")


def test_published_in_past_week_displays_not_evaluated() -> None:
    assert display_status("published", 19, 2025, CURRENT) == DisplayStatus.not_evaluated
    assert display_status("published", 52, 2024, CURRENT) == DisplayStatus.not_evaluated


def test_display_status_keeps_stored_status_otherwise() -> None:
    assert display_status("published", 20, 2025, CURRENT) == DisplayStatus.published
    assert display_status("published", 21, 2025, CURRENT) == DisplayStatus.published
    assert display_status("graded", 1, 2024, CURRENT) == DisplayStatus.graded
    assert display_status("draft", 1, 2024, CURRENT) == DisplayStatus.draft
