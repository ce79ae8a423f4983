from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"


class AssignmentType(str, Enum):
    TASK = "TASK"
    EXAM = "EXAM"


class AssignmentStatus(str, Enum):
    draft = "draft"
    published = "published"
    graded = "graded"
    closed = "closed"


class DisplayStatus(str, Enum):
    """Status shown to users; ``not_evaluated`` is derived at read time, never stored."""

    draft = "draft"
    published = "published"
    not_evaluated = "not_evaluated"
    graded = "graded"
    closed = "closed"


class LoadTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    FULL = "full"


class SettingKey(str, Enum):
    MAX_WEEKLY_TASKS = "max_weekly_assignments"
    MAX_WEEKLY_EXAMS = "max_weekly_exams"
    SCHOOL_YEAR = "school_year"
    SEMESTER = "semester"
