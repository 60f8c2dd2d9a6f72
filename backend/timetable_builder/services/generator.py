from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
import itertools
import logging
from time import perf_counter
from typing import Literal

from timetable_builder.core.exceptions import SchedulerError
from timetable_builder.models.allocation import SessionType
from timetable_builder.models.room import RoomCategory
from timetable_builder.models.subject import SubjectType
from timetable_builder.schemas.catalog import (
    BatchPayload,
    DivisionPayload,
    FacultyPayload,
    RoomPayload,
    SubjectPayload,
)
from timetable_builder.schemas.generator import (
    DepartmentLoad,
    GeneratedTimetable,
    SubjectShortfall,
    VacantRoom,
)
from timetable_builder.schemas.timetable import SlotOut, TimetableEntryPayload
from timetable_builder.services.occupancy import OccupancyTracker, ResourceKind
from timetable_builder.services.slot_finder import SlotFinder
from timetable_builder.services.slots import DAYS, SCHEDULABLE_SLOTS, SlotRef
from timetable_builder.services.workload import CapacityLedger, WorkloadLedger

logger = logging.getLogger(__name__)

DEFAULT_PRACTICAL_BLOCK_SLOTS = 2


@dataclass(frozen=True)
class SubjectPolicy:
    audience: Literal["division", "batch"]
    slot_preference: Literal["normal", "edge"]


SUBJECT_POLICIES: dict[SubjectType, SubjectPolicy] = {
    SubjectType.core: SubjectPolicy(audience="division", slot_preference="normal"),
    SubjectType.lab: SubjectPolicy(audience="division", slot_preference="normal"),
    SubjectType.dlo: SubjectPolicy(audience="batch", slot_preference="normal"),
    SubjectType.ilo: SubjectPolicy(audience="batch", slot_preference="normal"),
    SubjectType.minor: SubjectPolicy(audience="batch", slot_preference="edge"),
}

ROOM_CATEGORY_FOR_SESSION = {
    SessionType.theory: RoomCategory.classroom,
    SessionType.practical: RoomCategory.lab,
}


@dataclass
class PlacementOutcome:
    subject_id: str
    division_id: str
    batch_id: str | None
    session_type: SessionType
    required: int
    placed: int = 0
    reason: str = ""

    @property
    def complete(self) -> bool:
        return self.placed >= self.required


class TimetableGenerator:
    """Greedy declared-order timetable builder.

    Divisions are processed in input order. Within a division, whole-division
    subjects (CORE/LAB) go first, then batch-scoped electives (DLO/ILO/MINOR)
    grouped by each batch's recorded choice. Faculty and rooms are always the
    first eligible ones in input order, so output is reproducible.
    """

    def __init__(
        self,
        subjects: Sequence[SubjectPayload],
        divisions: Sequence[DivisionPayload],
        faculty: Sequence[FacultyPayload],
        rooms: Sequence[RoomPayload],
        *,
        practical_block_slots: int = DEFAULT_PRACTICAL_BLOCK_SLOTS,
        base_entries: Sequence[TimetableEntryPayload] = (),
        ledger: CapacityLedger | None = None,
    ) -> None:
        self.subjects = list(subjects)
        self.divisions = list(divisions)
        self.faculty = list(faculty)
        self.rooms = list(rooms)
        self.practical_block_slots = max(1, practical_block_slots)
        self.base_entries = list(base_entries)
        self._injected_ledger = ledger

        self.tracker = OccupancyTracker()
        self.finder = SlotFinder(self.tracker)
        self.ledger: CapacityLedger = ledger or WorkloadLedger(self.faculty, reset=True)
        self.entries: list[TimetableEntryPayload] = []
        self.outcomes: list[PlacementOutcome] = []
        self._ids = itertools.count(1)

    def _validate_inputs(self) -> None:
        for division in self.divisions:
            if division.batches:
                continue
            needs_batches = [
                subject.code
                for subject in self._subjects_for(division)
                if SUBJECT_POLICIES[subject.type].audience == "division" and subject.practical_hours > 0
            ]
            if needs_batches:
                raise SchedulerError(
                    message=f"Division {division.key} has no batches but practicals are required",
                    details={"divisionId": division.id, "subjects": needs_batches},
                )

    def _reset(self, reset_workload: bool) -> None:
        self.entries = []
        self.outcomes = []
        self._ids = itertools.count(1)
        self.tracker.clear()
        for entry in self.base_entries:
            self.tracker.occupy_entry(entry)
        if self._injected_ledger is None:
            self.ledger = WorkloadLedger(self.faculty, reset=reset_workload)

    def generate(self, *, reset_workload: bool = True) -> GeneratedTimetable:
        self._validate_inputs()
        self._reset(reset_workload)
        started = perf_counter()

        for division in self.divisions:
            division_subjects = self._subjects_for(division)
            for subject in division_subjects:
                if SUBJECT_POLICIES[subject.type].audience == "division":
                    self._schedule_whole_division_subject(subject, division)
            for subject in division_subjects:
                if SUBJECT_POLICIES[subject.type].audience == "batch":
                    self._schedule_elective_subject(subject, division)

        result = self._build_result()
        incomplete = [outcome for outcome in self.outcomes if not outcome.complete]
        logger.info(
            "Generated %d timetable entries for %d divisions in %.3fs (%d incomplete placements)",
            len(self.entries),
            len(self.divisions),
            perf_counter() - started,
            len(incomplete),
        )
        return result

    def _subjects_for(self, division: DivisionPayload) -> list[SubjectPayload]:
        return [
            subject
            for subject in self.subjects
            if subject.department == division.department and subject.year == division.year
        ]

    def _schedule_whole_division_subject(self, subject: SubjectPayload, division: DivisionPayload) -> None:
        if subject.theory_hours > 0:
            self._schedule_sessions(subject, division, None, SessionType.theory, subject.theory_hours)
        if subject.practical_hours > 0:
            for batch in division.batches:
                self._schedule_sessions(subject, division, batch, SessionType.practical, subject.practical_hours)

    def _schedule_elective_subject(self, subject: SubjectPayload, division: DivisionPayload) -> None:
        groups: dict[str, list[BatchPayload]] = defaultdict(list)
        for batch in division.batches:
            choice = batch.elective_choices.get(subject.id)
            if choice:
                groups[choice].append(batch)
        if not groups:
            logger.debug("No batch of %s opted for %s; skipping", division.key, subject.code)
            return

        for choice, batches in groups.items():
            logger.debug("Scheduling %s (%s) for batches %s", subject.code, choice, [b.name for b in batches])
            if subject.theory_hours > 0:
                for batch in batches:
                    self._schedule_sessions(subject, division, batch, SessionType.theory, subject.theory_hours)
            if subject.practical_hours > 0:
                for batch in batches:
                    self._schedule_sessions(subject, division, batch, SessionType.practical, subject.practical_hours)

    def _first_qualified_faculty(self, subject: SubjectPayload) -> FacultyPayload | None:
        return next(
            (
                member
                for member in self.faculty
                if member.can_teach(subject.id) and self.ledger.remaining(member.id) > 0
            ),
            None,
        )

    def _eligible_rooms(self, session_type: SessionType, division: DivisionPayload) -> list[RoomPayload]:
        category = ROOM_CATEGORY_FOR_SESSION[session_type]
        return [room for room in self.rooms if room.category == category and room.serves(division.department)]

    def _schedule_sessions(
        self,
        subject: SubjectPayload,
        division: DivisionPayload,
        batch: BatchPayload | None,
        session_type: SessionType,
        hours: int,
    ) -> PlacementOutcome:
        outcome = PlacementOutcome(
            subject_id=subject.id,
            division_id=division.id,
            batch_id=None if batch is None else batch.id,
            session_type=session_type,
            required=hours,
        )
        self.outcomes.append(outcome)

        member = self._first_qualified_faculty(subject)
        if member is None:
            outcome.reason = "no qualified faculty with spare capacity"
            self._log_incomplete(subject, division, batch, outcome)
            return outcome
        rooms = self._eligible_rooms(session_type, division)
        if not rooms:
            outcome.reason = f"no {ROOM_CATEGORY_FOR_SESSION[session_type].value} room available"
            self._log_incomplete(subject, division, batch, outcome)
            return outcome

        prefer_edges = session_type == SessionType.theory and SUBJECT_POLICIES[subject.type].slot_preference == "edge"
        while outcome.placed < hours:
            block = 1 if session_type == SessionType.theory else self.practical_block_slots
            duration = min(block, hours - outcome.placed, self.ledger.remaining(member.id))
            if duration < 1:
                outcome.reason = f"faculty {member.initials} reached maximum workload"
                break
            placement = self._find_slot_in_rooms(member, rooms, division, batch, duration, prefer_edges)
            if placement is None:
                outcome.reason = "no free slot for faculty, room and audience"
                break
            slot, room = placement
            self._commit(subject, division, batch, session_type, member, room, slot)
            outcome.placed += slot.duration

        if not outcome.complete:
            self._log_incomplete(subject, division, batch, outcome)
        return outcome

    def _find_slot_in_rooms(
        self,
        member: FacultyPayload,
        rooms: Sequence[RoomPayload],
        division: DivisionPayload,
        batch: BatchPayload | None,
        duration: int,
        prefer_edges: bool,
    ) -> tuple[SlotRef, RoomPayload] | None:
        batch_id = None if batch is None else batch.id
        for room in rooms:
            slot = self.finder.find_slot(member.id, room.id, division.id, batch_id, duration, prefer_edges)
            if slot is not None:
                return slot, room
        return None

    def _commit(
        self,
        subject: SubjectPayload,
        division: DivisionPayload,
        batch: BatchPayload | None,
        session_type: SessionType,
        member: FacultyPayload,
        room: RoomPayload,
        slot: SlotRef,
    ) -> TimetableEntryPayload:
        workload = self.ledger.reserve(member.id, slot.duration)
        entry = TimetableEntryPayload(
            id=f"entry-{next(self._ids):04d}",
            day=slot.day,
            start_time=slot.start_time,
            end_time=slot.end_time,
            subject=subject,
            faculty=member.model_copy(update={"current_workload": workload}),
            room=room,
            division=division,
            batch=batch,
            type=session_type,
        )
        self.tracker.occupy_entry(entry)
        self.entries.append(entry)
        return entry

    def _log_incomplete(
        self,
        subject: SubjectPayload,
        division: DivisionPayload,
        batch: BatchPayload | None,
        outcome: PlacementOutcome,
    ) -> None:
        logger.warning(
            "Placed %d/%d %s hours of %s for %s%s: %s",
            outcome.placed,
            outcome.required,
            outcome.session_type.value,
            subject.code,
            division.key,
            "" if batch is None else f" batch {batch.name}",
            outcome.reason,
        )

    def _build_result(self) -> GeneratedTimetable:
        division_wise: dict[str, list[TimetableEntryPayload]] = defaultdict(list)
        faculty_wise: dict[str, list[TimetableEntryPayload]] = defaultdict(list)
        room_wise: dict[str, list[TimetableEntryPayload]] = defaultdict(list)
        for entry in self.entries:
            division_wise[entry.division.key].append(entry)
            faculty_wise[entry.faculty.id].append(entry)
            room_wise[entry.room.id].append(entry)

        workloads = {member.id: self.ledger.current(member.id) for member in self.faculty}
        remaining_faculty = [
            member.model_copy(update={"current_workload": workloads[member.id]})
            for member in self.faculty
            if workloads[member.id] < member.max_workload
        ]

        return GeneratedTimetable(
            entries=list(self.entries),
            division_wise=dict(division_wise),
            faculty_wise=dict(faculty_wise),
            room_wise=dict(room_wise),
            department_loads=self._department_loads(),
            shortfalls=[
                SubjectShortfall(
                    subject_id=outcome.subject_id,
                    division_id=outcome.division_id,
                    batch_id=outcome.batch_id,
                    type=outcome.session_type,
                    required_hours=outcome.required,
                    placed_hours=outcome.placed,
                    reason=outcome.reason,
                )
                for outcome in self.outcomes
                if not outcome.complete
            ],
            remaining_faculty=remaining_faculty,
            faculty_workloads=workloads,
            vacant_rooms=self._vacant_rooms(),
        )

    def _department_loads(self) -> list[DepartmentLoad]:
        pairs: list[tuple[str, str]] = []
        for division in self.divisions:
            pair = (division.department, division.year)
            if pair not in pairs:
                pairs.append(pair)

        loads = []
        for department, year in pairs:
            division_ids = {
                division.id
                for division in self.divisions
                if division.department == department and division.year == year
            }
            outcomes = [outcome for outcome in self.outcomes if outcome.division_id in division_ids]
            load = DepartmentLoad(department=department, year=year)
            for outcome in outcomes:
                if outcome.session_type == SessionType.theory:
                    load.total_theory_hours += outcome.required
                    load.allocated_theory_hours += outcome.placed
                else:
                    load.total_practical_hours += outcome.required
                    load.allocated_practical_hours += outcome.placed
            load.remaining_theory_hours = load.total_theory_hours - load.allocated_theory_hours
            load.remaining_practical_hours = load.total_practical_hours - load.allocated_practical_hours

            placed_subject_ids = {
                entry.subject.id for entry in self.entries if entry.division.id in division_ids
            }
            # electives no batch opted for were never demanded
            demanded_subject_ids = {outcome.subject_id for outcome in outcomes}
            load.unassigned_subjects = [
                subject
                for subject in self.subjects
                if subject.department == department
                and subject.year == year
                and subject.id in demanded_subject_ids
                and subject.id not in placed_subject_ids
            ]
            loads.append(load)
        return loads

    def _vacant_rooms(self) -> list[VacantRoom]:
        vacant = []
        for room in self.rooms:
            slots = [
                SlotOut(day=day, start_time=slot.start, end_time=slot.end, duration=1)
                for day in DAYS
                for slot in SCHEDULABLE_SLOTS
                if self.tracker.is_free(ResourceKind.room, room.id, day, slot.start)
            ]
            if slots:
                vacant.append(VacantRoom(room=room, vacant_slots=slots))
        return vacant
