from app.core.models.teacher import Teacher
from app.core.models.class_model import SchoolClass
from app.core.models.assignment import Assignment, ClassAssignment
from app.core.models.setting import Setting
from app.core.models.audit_log import AuditLog

__all__ = [
    "Assignment",
    "AuditLog",
    "ClassAssignment",
    "SchoolClass",
    "Setting",
    "Teacher",
]
