import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from timetable_builder.db.base import Base, utcnow


class RoomCategory(str, Enum):
    classroom = "CLASSROOM"
    lab = "LAB"


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    category: Mapped[RoomCategory] = mapped_column(SAEnum(RoomCategory, name="room_category"), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    # NULL means the room belongs to the shared pool
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
