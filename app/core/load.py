"""Load classification and per-grade aggregation.

Everything here is a pure function of per-class counts so the dashboard, the
report export and the tests all share one calculation.
"""

from dataclasses import dataclass, field
from itertools import groupby
from typing import Dict, Iterable, List

from app.core.enums import LoadTier

LOW_TIER_BELOW = 50
FULL_TIER_FROM = 100


def round_half_up(numerator: int, denominator: int) -> int:
    """round(numerator / denominator) with .5 rounded up, in exact integer arithmetic."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


@dataclass(frozen=True)
class LoadResult:
    load_percentage: int
    is_overloaded: bool


@dataclass(frozen=True)
class ClassStatus:
    id: str
    grade: int
    name: str
    tasks: int
    exams: int
    max_tasks: int
    max_exams: int
    load_percentage: int
    is_overloaded: bool

    @property
    def tier(self) -> LoadTier:
        return load_tier(self.load_percentage)

    def as_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "load": self.load_percentage,
            "tasks": self.tasks,
            "exams": self.exams,
            "max_tasks": self.max_tasks,
            "max_exams": self.max_exams,
            "is_overloaded": self.is_overloaded,
            "tier": self.tier.value,
        }


@dataclass(frozen=True)
class GradeSummary:
    grade: int
    total: int
    avg_load: int
    max_load: int
    overloaded: int
    classes: List[ClassStatus] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return {
            "grade": self.grade,
            "total": self.total,
            "avg_load": self.avg_load,
            "max_load": self.max_load,
            "overloaded": self.overloaded,
            "classes": [c.as_dict() for c in self.classes],
        }


def classify_class(tasks_used: int, exams_used: int, task_max: int, exam_max: int) -> LoadResult:
    total_slots = task_max + exam_max
    if total_slots <= 0:
        raise ValueError("task_max + exam_max must be positive")
    load = round_half_up(100 * (tasks_used + exams_used), total_slots)
    return LoadResult(load_percentage=load, is_overloaded=load >= FULL_TIER_FROM)


def load_tier(load_percentage: int) -> LoadTier:
    if load_percentage >= FULL_TIER_FROM:
        return LoadTier.FULL
    if load_percentage >= LOW_TIER_BELOW:
        return LoadTier.MEDIUM
    return LoadTier.LOW


def build_class_status(
    class_id: str,
    grade: int,
    name: str,
    tasks: int,
    exams: int,
    max_tasks: int,
    max_exams: int,
) -> ClassStatus:
    result = classify_class(tasks, exams, max_tasks, max_exams)
    return ClassStatus(
        id=class_id,
        grade=grade,
        name=name,
        tasks=tasks,
        exams=exams,
        max_tasks=max_tasks,
        max_exams=max_exams,
        load_percentage=result.load_percentage,
        is_overloaded=result.is_overloaded,
    )


def summarize_grade(grade: int, classes: List[ClassStatus]) -> GradeSummary:
    loads = [c.load_percentage for c in classes]
    return GradeSummary(
        grade=grade,
        total=len(classes),
        avg_load=round_half_up(sum(loads), len(loads)) if loads else 0,
        max_load=max(loads, default=0),
        overloaded=sum(1 for c in classes if c.is_overloaded),
        classes=list(classes),
    )


def aggregate_by_grade(statuses: Iterable[ClassStatus]) -> List[GradeSummary]:
    """Roll class statuses up into one summary per grade, ordered by grade then class name.

    The input is not mutated, so repeated calls on the same list give equal results.
    """
    ordered = sorted(statuses, key=lambda s: (s.grade, s.name))
    return [summarize_grade(grade, list(group)) for grade, group in groupby(ordered, key=lambda s: s.grade)]
