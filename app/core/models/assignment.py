"""Assignments (tasks and exams) and their class links."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class Assignment(Base):
    """Task or exam scoped to one ISO week. Occupies a quota slot only while published."""

    __tablename__ = "assignments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(100), nullable=False)
    learning_goal = Column(Text, nullable=False)
    type = Column(String(10), nullable=False)  # TASK | EXAM
    week_number = Column(Integer, nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)  # ISO week-year
    teacher_id = Column(Uuid(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft | published | graded | closed
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    teacher = relationship("Teacher", back_populates="assignments")
    class_assignments = relationship(
        "ClassAssignment",
        back_populates="assignment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ClassAssignment(Base):
    """Links one assignment to one class. Each link counts independently toward quota."""

    __tablename__ = "class_assignments"
    __table_args__ = (
        UniqueConstraint("class_id", "assignment_id", name="uq_class_assignment"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(String(20), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    assignment_id = Column(Uuid(as_uuid=True), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    assignment = relationship("Assignment", back_populates="class_assignments")
    school_class = relationship("SchoolClass", back_populates="class_assignments")
