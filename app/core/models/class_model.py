"""School classes (e.g. 7-DISCIPLINE). Model named SchoolClass to avoid Python 'class' keyword."""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class SchoolClass(Base):
    """Class roster entry. Immutable after setup except deactivation via is_active."""

    __tablename__ = "classes"

    id = Column(String(20), primary_key=True)  # "<grade>-<NAME>", e.g. "7-DISCIPLINE"
    grade = Column(Integer, nullable=False, index=True)  # 7, 8 or 9
    name = Column(String(20), nullable=False)
    homeroom_teacher_id = Column(Uuid(as_uuid=True), ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    homeroom_teacher = relationship("Teacher", foreign_keys=[homeroom_teacher_id])
    class_assignments = relationship("ClassAssignment", back_populates="school_class", passive_deletes=True)
