from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from timetable_builder.models.allocation import SubjectAllocation
from timetable_builder.models.division import Division
from timetable_builder.models.faculty import Faculty
from timetable_builder.models.room import Room
from timetable_builder.models.subject import Subject
from timetable_builder.schemas.catalog import (
    AllocationPayload,
    DivisionPayload,
    FacultyPayload,
    RoomPayload,
    SubjectPayload,
)


def subject_payload(row: Subject) -> SubjectPayload:
    return SubjectPayload(
        id=row.id,
        name=row.name,
        code=row.code,
        department=row.department,
        year=row.year,
        semester=row.semester,
        theory_hours=row.theory_hours,
        practical_hours=row.practical_hours,
        tutorial_hours=row.tutorial_hours,
        type=row.type,
        electives=list(row.electives or []),
    )


def division_payload(row: Division) -> DivisionPayload:
    return DivisionPayload.model_validate(
        {
            "id": row.id,
            "department": row.department,
            "year": row.year,
            "name": row.name,
            "batches": list(row.batches or []),
        }
    )


def faculty_payload(row: Faculty) -> FacultyPayload:
    return FacultyPayload(
        id=row.id,
        name=row.name,
        initials=row.initials,
        designation=row.designation,
        max_workload=row.max_workload,
        current_workload=row.current_workload,
        subject_ids=list(row.subject_ids or []),
        preferences=row.preferences,
    )


def room_payload(row: Room) -> RoomPayload:
    return RoomPayload(
        id=row.id,
        room_number=row.room_number,
        category=row.category,
        capacity=row.capacity,
        department=row.department,
    )


def allocation_payload(row: SubjectAllocation) -> AllocationPayload:
    return AllocationPayload(
        id=row.id,
        subject_id=row.subject_id,
        faculty_id=row.faculty_id,
        division_id=row.division_id,
        batch_id=row.batch_id,
        type=row.type,
        hours=row.hours,
    )


@dataclass
class SchedulingCatalog:
    """Lookups over the entities a scheduling run reads. Lists keep input order."""

    subjects: list[SubjectPayload] = field(default_factory=list)
    divisions: list[DivisionPayload] = field(default_factory=list)
    faculty: list[FacultyPayload] = field(default_factory=list)
    rooms: list[RoomPayload] = field(default_factory=list)
    allocations: list[AllocationPayload] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.reindex()

    def reindex(self) -> None:
        self._subjects = {item.id: item for item in self.subjects}
        self._divisions = {item.id: item for item in self.divisions}
        self._faculty = {item.id: item for item in self.faculty}
        self._rooms = {item.id: item for item in self.rooms}
        self._allocations = {item.id: item for item in self.allocations}

    def subject(self, subject_id: str) -> SubjectPayload | None:
        return self._subjects.get(subject_id)

    def division(self, division_id: str) -> DivisionPayload | None:
        return self._divisions.get(division_id)

    def faculty_member(self, faculty_id: str) -> FacultyPayload | None:
        return self._faculty.get(faculty_id)

    def room(self, room_id: str) -> RoomPayload | None:
        return self._rooms.get(room_id)

    def allocation(self, allocation_id: str) -> AllocationPayload | None:
        return self._allocations.get(allocation_id)

    def allocations_for_division(self, division_id: str) -> list[AllocationPayload]:
        return [item for item in self.allocations if item.division_id == division_id]


def _all(db: Session, model) -> Iterable:
    return db.execute(select(model).order_by(model.created_at, model.id)).scalars().all()


def load_catalog(db: Session) -> SchedulingCatalog:
    return SchedulingCatalog(
        subjects=[subject_payload(row) for row in _all(db, Subject)],
        divisions=[division_payload(row) for row in _all(db, Division)],
        faculty=[faculty_payload(row) for row in _all(db, Faculty)],
        rooms=[room_payload(row) for row in _all(db, Room)],
        allocations=[allocation_payload(row) for row in _all(db, SubjectAllocation)],
    )
