from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from timetable_builder.models.allocation import SessionType
from timetable_builder.schemas.catalog import (
    BatchPayload,
    CamelModel,
    DivisionPayload,
    FacultyPayload,
    RoomPayload,
    SubjectPayload,
)
from timetable_builder.services.slots import DAYS, covered_slots, slot_at


class TimetableEntryPayload(CamelModel):
    id: str = Field(min_length=1, max_length=64)
    day: str
    start_time: str
    end_time: str
    subject: SubjectPayload
    faculty: FacultyPayload
    room: RoomPayload
    division: DivisionPayload
    batch: BatchPayload | None = None
    type: SessionType = SessionType.theory
    allocation_id: str | None = Field(default=None, max_length=36)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        day = value.strip()
        if day not in DAYS:
            raise ValueError("Invalid day value")
        return day

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        slot = slot_at(value)
        if slot is None:
            raise ValueError("startTime must be one of the grid slot starts")
        if not slot.schedulable:
            raise ValueError("startTime falls on the break slot")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimetableEntryPayload":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self

    @property
    def duration(self) -> int:
        return len(covered_slots(self.start_time, self.end_time))

    @property
    def slot_starts(self) -> tuple[str, ...]:
        return tuple(slot.start for slot in covered_slots(self.start_time, self.end_time))

    @property
    def batch_id(self) -> str | None:
        return None if self.batch is None else self.batch.id


class ScheduleEntryRequest(CamelModel):
    allocation_id: str = Field(min_length=1, max_length=36)
    day: str
    start_time: str
    room_id: str = Field(min_length=1, max_length=36)


class ScheduleRejectionOut(CamelModel):
    code: str
    message: str


class AutoScheduleResponse(CamelModel):
    division_id: str
    scheduled: list[TimetableEntryPayload] = Field(default_factory=list)
    unplaced_allocation_ids: list[str] = Field(default_factory=list)
    rejections: dict[str, str] = Field(default_factory=dict)


class ConstraintResultOut(CamelModel):
    valid: bool
    score: int
    violations: list[str] = Field(default_factory=list)


class ScoreEntryRequest(CamelModel):
    candidate: TimetableEntryPayload


class BestSlotRequest(CamelModel):
    subject_id: str
    division_id: str
    faculty_id: str
    room_id: str
    batch_id: str | None = None
    type: SessionType = SessionType.theory
    duration: int = Field(default=1, ge=1, le=4)


class SlotOut(CamelModel):
    day: str
    start_time: str
    end_time: str
    duration: int = 1
