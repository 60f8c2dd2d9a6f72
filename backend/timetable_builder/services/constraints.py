from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from timetable_builder.models.allocation import SessionType
from timetable_builder.schemas.catalog import (
    BatchPayload,
    DivisionPayload,
    FacultyPayload,
    RoomPayload,
    SubjectPayload,
)
from timetable_builder.schemas.timetable import TimetableEntryPayload
from timetable_builder.services.slots import (
    DAYS,
    LATE_SLOT_INDEX,
    SCHEDULABLE_SLOTS,
    SlotRef,
    day_index,
    make_slot_ref,
    slot_index,
)

CANDIDATE_ENTRY_ID = "candidate"

RuleCheck = Callable[[TimetableEntryPayload, Sequence[TimetableEntryPayload]], bool]


@dataclass(frozen=True)
class ConstraintRule:
    name: str
    kind: Literal["hard", "soft"]
    weight: int
    check: RuleCheck


@dataclass
class ConstraintResult:
    valid: bool
    score: int
    violations: list[str] = field(default_factory=list)


def _others(entry: TimetableEntryPayload, entries: Sequence[TimetableEntryPayload]) -> list[TimetableEntryPayload]:
    return [item for item in entries if item.id != entry.id]


def _overlaps(left: TimetableEntryPayload, right: TimetableEntryPayload) -> bool:
    return left.day == right.day and bool(set(left.slot_starts) & set(right.slot_starts))


def no_faculty_conflict(entry, entries) -> bool:
    return not any(
        other.faculty.id == entry.faculty.id and _overlaps(entry, other)
        for other in _others(entry, entries)
    )


def no_room_conflict(entry, entries) -> bool:
    return not any(
        other.room.id == entry.room.id and _overlaps(entry, other)
        for other in _others(entry, entries)
    )


def no_division_conflict(entry, entries) -> bool:
    # Any two theory sessions of a division clash, batch-scoped electives included.
    if entry.type != SessionType.theory:
        return True
    return not any(
        other.type == SessionType.theory
        and other.division.id == entry.division.id
        and _overlaps(entry, other)
        for other in _others(entry, entries)
    )


def no_batch_conflict(entry, entries) -> bool:
    if entry.batch is None:
        return True
    return not any(
        other.batch is not None and other.batch.id == entry.batch.id and _overlaps(entry, other)
        for other in _others(entry, entries)
    )


def faculty_workload_balanced(entry, entries) -> bool:
    assigned = sum(1 for other in _others(entry, entries) if other.faculty.id == entry.faculty.id)
    return assigned <= entry.faculty.max_workload


def no_gaps_in_schedule(entry, entries) -> bool:
    day_entries = [
        other
        for other in _others(entry, entries)
        if other.division.id == entry.division.id and other.day == entry.day and other.batch is None
    ]
    if entry.batch is None:
        day_entries.append(entry)
    if len(day_entries) <= 1:
        return True
    indices = sorted(slot_index(item.start_time) for item in day_entries)
    return all(later - earlier <= 2 for earlier, later in zip(indices, indices[1:]))


def theory_before_practical(entry, entries) -> bool:
    if entry.type != SessionType.practical:
        return True
    theory_days = [
        day_index(other.day)
        for other in _others(entry, entries)
        if other.type == SessionType.theory
        and other.subject.id == entry.subject.id
        and other.division.id == entry.division.id
    ]
    if not theory_days:
        return True
    return min(theory_days) <= day_index(entry.day)


def avoid_late_slots(entry, entries) -> bool:
    return slot_index(entry.start_time) < LATE_SLOT_INDEX


DEFAULT_RULES: tuple[ConstraintRule, ...] = (
    ConstraintRule("NoFacultyConflict", "hard", 100, no_faculty_conflict),
    ConstraintRule("NoRoomConflict", "hard", 100, no_room_conflict),
    ConstraintRule("NoDivisionConflict", "hard", 100, no_division_conflict),
    ConstraintRule("NoBatchConflict", "hard", 100, no_batch_conflict),
    ConstraintRule("FacultyWorkloadBalanced", "soft", 50, faculty_workload_balanced),
    ConstraintRule("NoGapsInSchedule", "soft", 30, no_gaps_in_schedule),
    ConstraintRule("TheoryBeforePractical", "soft", 20, theory_before_practical),
    ConstraintRule("AvoidLateSlots", "soft", 10, avoid_late_slots),
)


class ConstraintScorer:
    def __init__(self, rules: Sequence[ConstraintRule] | None = None) -> None:
        self.rules: list[ConstraintRule] = list(DEFAULT_RULES if rules is None else rules)

    def add_rule(self, rule: ConstraintRule) -> None:
        self.rules.append(rule)

    def score(self, candidate: TimetableEntryPayload, entries: Sequence[TimetableEntryPayload]) -> ConstraintResult:
        score = 0
        hard_failed = False
        violations: list[str] = []
        for rule in self.rules:
            if rule.check(candidate, entries):
                score += rule.weight
                continue
            violations.append(rule.name)
            if rule.kind == "hard":
                hard_failed = True
        if hard_failed:
            return ConstraintResult(valid=False, score=0, violations=violations)
        return ConstraintResult(valid=True, score=score, violations=violations)

    def optimize_schedule(self, entries: Sequence[TimetableEntryPayload]) -> list[TimetableEntryPayload]:
        """Entries ordered by descending score; ties keep their input order."""
        scored = [(self.score(entry, entries).score, entry) for entry in entries]
        scored.sort(key=lambda item: item[0], reverse=True)
        return [entry for _, entry in scored]

    def find_best_slot(
        self,
        subject: SubjectPayload,
        division: DivisionPayload,
        faculty: FacultyPayload,
        room: RoomPayload,
        batch: BatchPayload | None,
        session_type: SessionType,
        existing_entries: Sequence[TimetableEntryPayload],
        duration: int = 1,
    ) -> SlotRef | None:
        candidates: list[tuple[int, SlotRef]] = []
        for day in DAYS:
            for slot in SCHEDULABLE_SLOTS:
                ref = make_slot_ref(day, slot.start, duration)
                if ref is None:
                    continue
                trial = TimetableEntryPayload(
                    id=CANDIDATE_ENTRY_ID,
                    day=day,
                    start_time=ref.start_time,
                    end_time=ref.end_time,
                    subject=subject,
                    faculty=faculty,
                    room=room,
                    division=division,
                    batch=batch,
                    type=session_type,
                )
                result = self.score(trial, existing_entries)
                if result.valid:
                    candidates.append((result.score, ref))
        if not candidates:
            return None
        # stable sort keeps scan order among equal scores
        candidates.sort(key=lambda item: item[0], reverse=True)
        return candidates[0][1]
