from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import logging
import uuid

from timetable_builder.core.exceptions import ResourceNotFoundError, SchedulingConflictError
from timetable_builder.models.allocation import SessionType
from timetable_builder.schemas.catalog import AllocationPayload
from timetable_builder.schemas.timetable import AutoScheduleResponse, TimetableEntryPayload
from timetable_builder.services.catalog import SchedulingCatalog
from timetable_builder.services.entry_store import EntryStore
from timetable_builder.services.generator import DEFAULT_PRACTICAL_BLOCK_SLOTS, ROOM_CATEGORY_FOR_SESSION
from timetable_builder.services.occupancy import OccupancyTracker, ResourceKind
from timetable_builder.services.slot_finder import SlotFinder
from timetable_builder.services.slots import DAYS, window

logger = logging.getLogger(__name__)


class RejectionCode(str, Enum):
    allocation_not_found = "allocation_not_found"
    missing_reference = "missing_reference"
    already_scheduled = "already_scheduled"
    invalid_slot = "invalid_slot"
    faculty_busy = "faculty_busy"
    room_busy = "room_busy"
    batch_busy = "batch_busy"
    division_busy = "division_busy"


@dataclass
class ScheduleResult:
    entry: TimetableEntryPayload | None = None
    code: str | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.entry is not None

    @classmethod
    def rejected(cls, code: RejectionCode | str, reason: str) -> "ScheduleResult":
        return cls(code=code.value if isinstance(code, RejectionCode) else code, reason=reason)


def _new_entry_id() -> str:
    return str(uuid.uuid4())


class IncrementalScheduler:
    """Places one allocation at a time against the already-committed entries.

    The occupancy tracker is seeded from ``store`` when the scheduler is built,
    so callers must build it from a consistent snapshot and make the write
    atomic with that snapshot (one scheduler per transaction).
    """

    def __init__(
        self,
        catalog: SchedulingCatalog,
        store: EntryStore,
        *,
        practical_block_slots: int = DEFAULT_PRACTICAL_BLOCK_SLOTS,
        id_factory: Callable[[], str] = _new_entry_id,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.practical_block_slots = max(1, practical_block_slots)
        self.id_factory = id_factory
        self.tracker = OccupancyTracker.from_entries(store.list_entries())
        self.finder = SlotFinder(self.tracker)

    def block_slots(self, allocation: AllocationPayload) -> int:
        if allocation.type == SessionType.practical:
            return min(self.practical_block_slots, allocation.hours)
        return 1

    def schedule_one(self, allocation_id: str, day: str, start_time: str, room_id: str) -> ScheduleResult:
        result = self._schedule_one(allocation_id, day, start_time, room_id)
        if not result.ok:
            logger.info(
                "Rejected allocation %s at %s %s in room %s: %s",
                allocation_id,
                day,
                start_time,
                room_id,
                result.code,
            )
        return result

    def _schedule_one(self, allocation_id: str, day: str, start_time: str, room_id: str) -> ScheduleResult:
        allocation = self.catalog.allocation(allocation_id)
        if allocation is None:
            return ScheduleResult.rejected(RejectionCode.allocation_not_found, "Allocation not found.")

        if self.store.find_by_allocation(allocation_id) is not None:
            return ScheduleResult.rejected(RejectionCode.already_scheduled, "This allocation is already scheduled.")

        subject = self.catalog.subject(allocation.subject_id)
        faculty = self.catalog.faculty_member(allocation.faculty_id)
        division = self.catalog.division(allocation.division_id)
        room = self.catalog.room(room_id)
        if subject is None or faculty is None or division is None or room is None:
            return ScheduleResult.rejected(
                RejectionCode.missing_reference,
                "Subject, faculty, division or room for this request no longer exists.",
            )
        batch = division.batch(allocation.batch_id)
        if allocation.batch_id is not None and batch is None:
            return ScheduleResult.rejected(
                RejectionCode.missing_reference,
                f"Batch {allocation.batch_id} is not part of division {division.name}.",
            )

        run = window(start_time, self.block_slots(allocation))
        if day not in DAYS or run is None:
            return ScheduleResult.rejected(RejectionCode.invalid_slot, f"{day} {start_time} cannot hold this session.")
        starts = [slot.start for slot in run]

        if not self.tracker.all_free([(ResourceKind.faculty, faculty.id)], day, starts):
            return ScheduleResult.rejected(
                RejectionCode.faculty_busy, f"Faculty {faculty.initials} is already busy at this time."
            )
        if not self.tracker.all_free([(ResourceKind.room, room.id)], day, starts):
            return ScheduleResult.rejected(
                RejectionCode.room_busy, f"Room {room.room_number} is already booked at this time."
            )
        if batch is not None:
            if not self.tracker.all_free([(ResourceKind.batch, batch.id)], day, starts):
                return ScheduleResult.rejected(
                    RejectionCode.batch_busy, f"Batch {batch.name} is already busy at this time."
                )
        elif not self.tracker.all_free([(ResourceKind.division, division.id)], day, starts):
            return ScheduleResult.rejected(
                RejectionCode.division_busy, f"Division {division.name} already has a theory class at this time."
            )

        entry = TimetableEntryPayload(
            id=self.id_factory(),
            day=day,
            start_time=start_time,
            end_time=run[-1].end,
            subject=subject,
            faculty=faculty,
            room=room,
            division=division,
            batch=batch,
            type=allocation.type,
            allocation_id=allocation.id,
        )
        try:
            self.store.add(entry)
        except SchedulingConflictError as exc:
            return ScheduleResult.rejected(exc.code, exc.message)
        self.tracker.occupy_entry(entry)
        logger.debug("Scheduled allocation %s as entry %s on %s %s", allocation.id, entry.id, day, start_time)
        return ScheduleResult(entry=entry)

    def unschedule(self, entry_id: str) -> TimetableEntryPayload | None:
        # Workload belongs to the allocation, so nothing is released here.
        entry = self.store.remove(entry_id)
        if entry is None:
            return None
        self.tracker.release_entry(entry)
        logger.debug("Unscheduled entry %s (%s %s)", entry_id, entry.day, entry.start_time)
        return entry

    def unscheduled_allocations(self, division_id: str | None = None) -> list[AllocationPayload]:
        scheduled = {entry.allocation_id for entry in self.store.list_entries() if entry.allocation_id}
        return [
            allocation
            for allocation in self.catalog.allocations
            if allocation.id not in scheduled and (division_id is None or allocation.division_id == division_id)
        ]

    def auto_schedule_division(self, division_id: str) -> AutoScheduleResponse:
        division = self.catalog.division(division_id)
        if division is None:
            raise ResourceNotFoundError("Division", division_id)

        report = AutoScheduleResponse(division_id=division_id)
        for allocation in self.unscheduled_allocations(division_id):
            category = ROOM_CATEGORY_FOR_SESSION[allocation.type]
            rooms = [
                room for room in self.catalog.rooms if room.category == category and room.serves(division.department)
            ]
            placed = False
            for room in rooms:
                slot = self.finder.find_slot(
                    allocation.faculty_id,
                    room.id,
                    division.id,
                    allocation.batch_id,
                    self.block_slots(allocation),
                )
                if slot is None:
                    continue
                result = self.schedule_one(allocation.id, slot.day, slot.start_time, room.id)
                if result.ok:
                    report.scheduled.append(result.entry)
                    report.rejections.pop(allocation.id, None)
                    placed = True
                    break
                report.rejections[allocation.id] = result.reason or ""
            if not placed:
                report.unplaced_allocation_ids.append(allocation.id)

        logger.info(
            "Auto-scheduled %d allocation(s) for division %s; %d left unplaced",
            len(report.scheduled),
            division.key,
            len(report.unplaced_allocation_ids),
        )
        return report
