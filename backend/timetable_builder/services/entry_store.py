from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timetable_builder.core.exceptions import SchedulingConflictError
from timetable_builder.models.timetable import TimetableEntryRecord
from timetable_builder.schemas.timetable import TimetableEntryPayload

logger = logging.getLogger(__name__)


class EntryStore(Protocol):
    def list_entries(self) -> list[TimetableEntryPayload]: ...

    def get(self, entry_id: str) -> TimetableEntryPayload | None: ...

    def find_by_allocation(self, allocation_id: str) -> TimetableEntryPayload | None: ...

    def add(self, entry: TimetableEntryPayload) -> TimetableEntryPayload: ...

    def remove(self, entry_id: str) -> TimetableEntryPayload | None: ...


class InMemoryEntryStore:
    def __init__(self, entries: Iterable[TimetableEntryPayload] = ()) -> None:
        self._entries: dict[str, TimetableEntryPayload] = {entry.id: entry for entry in entries}

    def list_entries(self) -> list[TimetableEntryPayload]:
        return list(self._entries.values())

    def get(self, entry_id: str) -> TimetableEntryPayload | None:
        return self._entries.get(entry_id)

    def find_by_allocation(self, allocation_id: str) -> TimetableEntryPayload | None:
        return next((item for item in self._entries.values() if item.allocation_id == allocation_id), None)

    def add(self, entry: TimetableEntryPayload) -> TimetableEntryPayload:
        if entry.id in self._entries:
            raise SchedulingConflictError(f"Entry {entry.id} already exists", code="duplicate_entry")
        self._entries[entry.id] = entry
        return entry

    def remove(self, entry_id: str) -> TimetableEntryPayload | None:
        return self._entries.pop(entry_id, None)


def entry_to_record(entry: TimetableEntryPayload) -> TimetableEntryRecord:
    return TimetableEntryRecord(
        id=entry.id,
        day=entry.day,
        start_time=entry.start_time,
        end_time=entry.end_time,
        type=entry.type,
        subject_id=entry.subject.id,
        faculty_id=entry.faculty.id,
        room_id=entry.room.id,
        division_id=entry.division.id,
        batch_id=entry.batch_id,
        allocation_id=entry.allocation_id,
        snapshot=entry.model_dump(mode="json", by_alias=True),
    )


def record_to_entry(record: TimetableEntryRecord) -> TimetableEntryPayload:
    data = dict(record.snapshot)
    data.update({"id": record.id, "day": record.day, "startTime": record.start_time, "endTime": record.end_time})
    return TimetableEntryPayload.model_validate(data)


class SqlEntryStore:
    """Entries persisted in ``timetable_entries``. Writes are flushed, never committed."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_entries(self) -> list[TimetableEntryPayload]:
        rows = self.db.execute(
            select(TimetableEntryRecord).order_by(TimetableEntryRecord.created_at, TimetableEntryRecord.id)
        ).scalars()
        return [record_to_entry(row) for row in rows]

    def get(self, entry_id: str) -> TimetableEntryPayload | None:
        row = self.db.get(TimetableEntryRecord, entry_id)
        return None if row is None else record_to_entry(row)

    def find_by_allocation(self, allocation_id: str) -> TimetableEntryPayload | None:
        row = self.db.execute(
            select(TimetableEntryRecord).where(TimetableEntryRecord.allocation_id == allocation_id)
        ).scalar_one_or_none()
        return None if row is None else record_to_entry(row)

    def add(self, entry: TimetableEntryPayload) -> TimetableEntryPayload:
        # savepoint: a rejected insert must not undo entries flushed earlier in this transaction
        try:
            with self.db.begin_nested():
                self.db.add(entry_to_record(entry))
                self.db.flush()
        except IntegrityError as exc:
            logger.info("Rejected entry %s at %s %s: uniqueness violated on write", entry.id, entry.day, entry.start_time)
            raise SchedulingConflictError(
                "Slot was taken by a concurrent change; reload and try again",
                code="write_conflict",
            ) from exc
        return entry

    def remove(self, entry_id: str) -> TimetableEntryPayload | None:
        row = self.db.get(TimetableEntryRecord, entry_id)
        if row is None:
            return None
        entry = record_to_entry(row)
        self.db.delete(row)
        self.db.flush()
        return entry

    def replace_all(self, entries: Iterable[TimetableEntryPayload]) -> int:
        for row in self.db.execute(select(TimetableEntryRecord)).scalars().all():
            self.db.delete(row)
        # deletes must reach the database before ids from a previous run are reused
        self.db.flush()
        count = 0
        for entry in entries:
            self.db.add(entry_to_record(entry))
            count += 1
        self.db.flush()
        return count
