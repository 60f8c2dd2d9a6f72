import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetable_builder.db.base import Base, utcnow


class SessionType(str, Enum):
    theory = "THEORY"
    practical = "PRACTICAL"


class SubjectAllocation(Base):
    __tablename__ = "subject_allocations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id"), index=True, nullable=False)
    faculty_id: Mapped[str] = mapped_column(String(36), ForeignKey("faculty.id"), index=True, nullable=False)
    division_id: Mapped[str] = mapped_column(String(36), ForeignKey("divisions.id"), index=True, nullable=False)
    batch_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    type: Mapped[SessionType] = mapped_column(SAEnum(SessionType, name="session_type"), nullable=False)
    hours: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
