"""Standard class roster: grades 7-9, six character-named classes each."""

from typing import Dict, List

CLASS_NAMES = [
    "DISCIPLINE",
    "RESPECT",
    "RESILIENT",
    "COLLABORATIVE",
    "CREATIVE",
    "INDEPENDENT",
]

GRADES = [7, 8, 9]


def make_class_id(grade: int, name: str) -> str:
    return f"{grade}-{name.strip().upper()}"


def standard_roster() -> List[Dict]:
    """All 18 standard classes as plain dicts, ordered by grade then name."""
    return [
        {"id": make_class_id(grade, name), "grade": grade, "name": name, "is_active": True}
        for grade in GRADES
        for name in sorted(CLASS_NAMES)
    ]
