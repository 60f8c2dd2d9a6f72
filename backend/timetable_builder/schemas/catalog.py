from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from timetable_builder.models.allocation import SessionType
from timetable_builder.models.room import RoomCategory
from timetable_builder.models.subject import SubjectType

YearValue = Literal["FE", "SE", "TE", "BE"]

ELECTIVE_SUBJECT_TYPES = {SubjectType.dlo, SubjectType.ilo, SubjectType.minor}


def _new_id() -> str:
    return str(uuid.uuid4())


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BatchPayload(CamelModel):
    id: str = Field(default_factory=_new_id, min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=20)
    student_count: int = Field(default=0, ge=0, le=500)
    # subject id -> chosen elective label
    elective_choices: dict[str, str] = Field(default_factory=dict)
    minor_students: list[str] = Field(default_factory=list)


class DivisionPayload(CamelModel):
    id: str = Field(default_factory=_new_id, min_length=1, max_length=36)
    department: str = Field(min_length=1, max_length=200)
    year: YearValue
    name: str = Field(min_length=1, max_length=10)
    batches: list[BatchPayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_batches(self) -> "DivisionPayload":
        ids = [batch.id for batch in self.batches]
        if len(ids) != len(set(ids)):
            raise ValueError("Batch ids must be unique within a division")
        return self

    @property
    def key(self) -> str:
        return f"{self.department}-{self.year}-{self.name}"

    def batch(self, batch_id: str | None) -> BatchPayload | None:
        if batch_id is None:
            return None
        return next((item for item in self.batches if item.id == batch_id), None)


class SubjectPayload(CamelModel):
    id: str = Field(default_factory=_new_id, min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=50)
    department: str = Field(min_length=1, max_length=200)
    year: YearValue
    semester: int | None = Field(default=None, ge=1, le=8)
    theory_hours: int = Field(default=0, ge=0, le=40)
    practical_hours: int = Field(default=0, ge=0, le=40)
    tutorial_hours: int = Field(default=0, ge=0, le=40)
    type: SubjectType = SubjectType.core
    electives: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_electives(self) -> "SubjectPayload":
        if self.electives and self.type not in ELECTIVE_SUBJECT_TYPES:
            raise ValueError("Only DLO, ILO and MINOR subjects can list elective choices")
        return self

    def hours_for(self, session_type: SessionType) -> int:
        if session_type == SessionType.practical:
            return self.practical_hours
        return self.theory_hours


class FacultyPayload(CamelModel):
    id: str = Field(default_factory=_new_id, min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    initials: str = Field(min_length=1, max_length=20)
    designation: str = Field(default="Faculty", max_length=200)
    max_workload: int = Field(default=20, ge=0, le=80)
    current_workload: int = Field(default=0, ge=0)
    subject_ids: list[str] = Field(default_factory=list, alias="subjects")
    preferences: dict[str, list[str]] | None = None

    def can_teach(self, subject_id: str) -> bool:
        return subject_id in self.subject_ids


class RoomPayload(CamelModel):
    id: str = Field(default_factory=_new_id, min_length=1, max_length=36)
    room_number: str = Field(min_length=1, max_length=50)
    category: RoomCategory
    capacity: int = Field(default=60, ge=1, le=1000)
    department: str | None = Field(default=None, max_length=200)

    @field_validator("department")
    @classmethod
    def blank_department_is_shared(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    def serves(self, department: str) -> bool:
        return self.department is None or self.department == department


class AllocationPayload(CamelModel):
    id: str = Field(default_factory=_new_id, min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    faculty_id: str = Field(min_length=1, max_length=36)
    division_id: str = Field(min_length=1, max_length=36)
    batch_id: str | None = Field(default=None, min_length=1, max_length=36)
    type: SessionType
    hours: int = Field(ge=1, le=40)
