from __future__ import annotations

from pydantic import Field

from timetable_builder.models.allocation import SessionType
from timetable_builder.schemas.catalog import (
    CamelModel,
    DivisionPayload,
    FacultyPayload,
    RoomPayload,
    SubjectPayload,
)
from timetable_builder.schemas.timetable import SlotOut, TimetableEntryPayload


class GenerateTimetableRequest(CamelModel):
    reset_workload: bool = True
    persist: bool = False


class DepartmentLoad(CamelModel):
    department: str
    year: str
    total_theory_hours: int = 0
    total_practical_hours: int = 0
    allocated_theory_hours: int = 0
    allocated_practical_hours: int = 0
    remaining_theory_hours: int = 0
    remaining_practical_hours: int = 0
    unassigned_subjects: list[SubjectPayload] = Field(default_factory=list)


class SubjectShortfall(CamelModel):
    subject_id: str
    division_id: str
    batch_id: str | None = None
    type: SessionType
    required_hours: int
    placed_hours: int
    reason: str


class VacantRoom(CamelModel):
    room: RoomPayload
    vacant_slots: list[SlotOut] = Field(default_factory=list)


class GeneratedTimetable(CamelModel):
    entries: list[TimetableEntryPayload] = Field(default_factory=list)
    division_wise: dict[str, list[TimetableEntryPayload]] = Field(default_factory=dict)
    faculty_wise: dict[str, list[TimetableEntryPayload]] = Field(default_factory=dict)
    room_wise: dict[str, list[TimetableEntryPayload]] = Field(default_factory=dict)
    department_loads: list[DepartmentLoad] = Field(default_factory=list)
    shortfalls: list[SubjectShortfall] = Field(default_factory=list)
    remaining_faculty: list[FacultyPayload] = Field(default_factory=list)
    faculty_workloads: dict[str, int] = Field(default_factory=dict)
    vacant_rooms: list[VacantRoom] = Field(default_factory=list)


class GenerationInput(CamelModel):
    reset_workload: bool = True
    subjects: list[SubjectPayload] = Field(default_factory=list)
    divisions: list[DivisionPayload] = Field(default_factory=list)
    faculty: list[FacultyPayload] = Field(default_factory=list)
    rooms: list[RoomPayload] = Field(default_factory=list)
