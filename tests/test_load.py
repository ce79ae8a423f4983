import pytest

from app.core.enums import LoadTier
from app.core.load import (
    aggregate_by_grade,
    build_class_status,
    classify_class,
    load_tier,
    round_half_up,
)


def _status(class_id: str, tasks: int, exams: int, max_tasks: int = 2, max_exams: int = 2):
    grade, name = class_id.split("-", 1)
    return build_class_status(class_id, int(grade), name, tasks, exams, max_tasks, max_exams)


def test_round_half_up_matches_school_rounding() -> None:
    assert round_half_up(1, 2) == 1  # 0.5 -> 1, not banker's 0
    assert round_half_up(5, 2) == 3  # 2.5 -> 3
    assert round_half_up(100, 3) == 33
    assert round_half_up(200, 3) == 67
    with pytest.raises(ValueError):
        round_half_up(1, 0)


def test_full_class_is_overloaded() -> None:
    result = classify_class(2, 2, 2, 2)
    assert result.load_percentage == 100
    assert result.is_overloaded is True


def test_half_full_class() -> None:
    result = classify_class(1, 1, 2, 2)
    assert result.load_percentage == 50
    assert result.is_overloaded is False


def test_load_can_exceed_full_after_capacity_is_lowered() -> None:
    result = classify_class(2, 2, 1, 1)
    assert result.load_percentage == 200
    assert result.is_overloaded is True


def test_uneven_capacity_rounds_half_up() -> None:
    # 1 / 8 = 12.5% -> 13
    assert classify_class(1, 0, 4, 4).load_percentage == 13


@pytest.mark.parametrize(
    "load, tier",
    [
        (0, LoadTier.LOW),
        (49, LoadTier.LOW),
        (50, LoadTier.MEDIUM),
        (99, LoadTier.MEDIUM),
        (100, LoadTier.FULL),
        (150, LoadTier.FULL),
    ],
)
def test_load_tier_boundaries(load: int, tier: LoadTier) -> None:
    assert load_tier(load) == tier


def test_aggregate_by_grade() -> None:
    statuses = [
        _status("8-RESPECT", 1, 0),
        _status("7-DISCIPLINE", 2, 2),
        _status("7-RESPECT", 1, 1),
        _status("7-CREATIVE", 0, 0),
    ]
    grades = aggregate_by_grade(statuses)

    assert [g.grade for g in grades] == [7, 8]
    seven = grades[0]
    assert seven.total == 3
    assert seven.max_load == 100
    assert seven.avg_load == 50  # (100 + 50 + 0) / 3
    assert seven.overloaded == 1
    assert [c.name for c in seven.classes] == ["CREATIVE", "DISCIPLINE", "RESPECT"]

    eight = grades[1]
    assert eight.total == 1
    assert eight.avg_load == 25
    assert eight.overloaded == 0


def test_aggregate_is_idempotent_and_does_not_mutate_input() -> None:
    statuses = [_status("9-RESILIENT", 2, 1), _status("7-RESPECT", 0, 1)]
    before = list(statuses)
    first = aggregate_by_grade(statuses)
    second = aggregate_by_grade(statuses)
    assert first == second
    assert statuses == before


def test_aggregate_empty_input() -> None:
    assert aggregate_by_grade([]) == []


def test_class_status_dict_shape() -> None:
    data = _status("7-DISCIPLINE", 1, 2).as_dict()
    assert data == {
        "id": "7-DISCIPLINE",
        "name": "DISCIPLINE",
        "load": 75,
        "tasks": 1,
        "exams": 2,
        "max_tasks": 2,
        "max_exams": 2,
        "is_overloaded": False,
        "tier": "medium",
    }
