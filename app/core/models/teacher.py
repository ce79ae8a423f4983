import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class Teacher(Base):
    """Teacher record managed by admins. Soft delete via is_active."""

    __tablename__ = "teachers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(20), nullable=False)
    subjects = Column(JSON, nullable=False, default=list)  # ["MATEMATIKA", "IPA"]
    learning_goals = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    assignments = relationship("Assignment", back_populates="teacher")
