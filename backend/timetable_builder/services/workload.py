from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy.orm import Session

from timetable_builder.core.exceptions import ResourceNotFoundError, WorkloadLimitError
from timetable_builder.models.faculty import Faculty
from timetable_builder.schemas.catalog import FacultyPayload


class CapacityLedger(Protocol):
    def current(self, faculty_id: str) -> int: ...

    def remaining(self, faculty_id: str) -> int: ...

    def can_reserve(self, faculty_id: str, hours: int) -> bool: ...

    def reserve(self, faculty_id: str, hours: int) -> int: ...

    def release(self, faculty_id: str, hours: int) -> int: ...


class WorkloadLedger:
    """In-memory committed hours per faculty member, capped at each member's maximum."""

    def __init__(self, faculty: Iterable[FacultyPayload], *, reset: bool = False) -> None:
        self._max: dict[str, int] = {}
        self._current: dict[str, int] = {}
        for member in faculty:
            self._max[member.id] = member.max_workload
            self._current[member.id] = 0 if reset else member.current_workload

    def _require(self, faculty_id: str) -> None:
        if faculty_id not in self._max:
            raise ResourceNotFoundError("Faculty", faculty_id)

    def current(self, faculty_id: str) -> int:
        self._require(faculty_id)
        return self._current[faculty_id]

    def maximum(self, faculty_id: str) -> int:
        self._require(faculty_id)
        return self._max[faculty_id]

    def remaining(self, faculty_id: str) -> int:
        return max(0, self.maximum(faculty_id) - self.current(faculty_id))

    def can_reserve(self, faculty_id: str, hours: int) -> bool:
        return hours <= self.remaining(faculty_id)

    def reserve(self, faculty_id: str, hours: int) -> int:
        current = self.current(faculty_id)
        maximum = self._max[faculty_id]
        if current + hours > maximum:
            raise WorkloadLimitError(faculty_id, hours, current, maximum)
        self._current[faculty_id] = current + hours
        return self._current[faculty_id]

    def release(self, faculty_id: str, hours: int) -> int:
        self._current[faculty_id] = max(0, self.current(faculty_id) - hours)
        return self._current[faculty_id]

    def as_dict(self) -> dict[str, int]:
        return dict(self._current)


class FacultyRowLedger:
    """Ledger over ``faculty.current_workload`` rows; changes commit with the caller's transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _row(self, faculty_id: str) -> Faculty:
        row = self.db.get(Faculty, faculty_id, with_for_update=True)
        if row is None:
            raise ResourceNotFoundError("Faculty", faculty_id)
        return row

    def current(self, faculty_id: str) -> int:
        return self._row(faculty_id).current_workload

    def remaining(self, faculty_id: str) -> int:
        row = self._row(faculty_id)
        return max(0, row.max_workload - row.current_workload)

    def can_reserve(self, faculty_id: str, hours: int) -> bool:
        return hours <= self.remaining(faculty_id)

    def reserve(self, faculty_id: str, hours: int) -> int:
        row = self._row(faculty_id)
        if row.current_workload + hours > row.max_workload:
            raise WorkloadLimitError(faculty_id, hours, row.current_workload, row.max_workload)
        row.current_workload += hours
        return row.current_workload

    def release(self, faculty_id: str, hours: int) -> int:
        row = self._row(faculty_id)
        row.current_workload = max(0, row.current_workload - hours)
        return row.current_workload
