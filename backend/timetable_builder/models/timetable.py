import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetable_builder.db.base import Base, utcnow
from timetable_builder.models.allocation import SessionType


class TimetableEntryRecord(Base):
    __tablename__ = "timetable_entries"
    __table_args__ = (
        UniqueConstraint("day", "start_time", "faculty_id", name="uq_timetable_faculty_slot"),
        UniqueConstraint("day", "start_time", "room_id", name="uq_timetable_room_slot"),
        UniqueConstraint("allocation_id", name="uq_timetable_allocation"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    day: Mapped[str] = mapped_column(String(12), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    type: Mapped[SessionType] = mapped_column(SAEnum(SessionType, name="entry_session_type"), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    faculty_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    room_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    division_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    batch_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    allocation_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    # Frozen subject/faculty/room/division/batch documents as of scheduling time
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
