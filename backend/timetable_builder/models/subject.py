import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetable_builder.db.base import Base, utcnow


class SubjectType(str, Enum):
    core = "CORE"
    lab = "LAB"
    dlo = "DLO"
    ilo = "ILO"
    minor = "MINOR"


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    department: Mapped[str] = mapped_column(String(200), nullable=False)
    year: Mapped[str] = mapped_column(String(4), nullable=False)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True)
    theory_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    practical_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tutorial_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    type: Mapped[SubjectType] = mapped_column(SAEnum(SubjectType, name="subject_type"), nullable=False)
    electives: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
