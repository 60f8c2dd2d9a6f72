from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from timetable_builder.api.deps import get_db
from timetable_builder.core.config import get_settings
from timetable_builder.core.exceptions import ResourceNotFoundError, SchedulingConflictError
from timetable_builder.models.faculty import Faculty
from timetable_builder.schemas.generator import GenerateTimetableRequest, GeneratedTimetable, GenerationInput
from timetable_builder.schemas.timetable import (
    AutoScheduleResponse,
    BestSlotRequest,
    ConstraintResultOut,
    ScheduleEntryRequest,
    ScoreEntryRequest,
    SlotOut,
    TimetableEntryPayload,
)
from timetable_builder.services.catalog import load_catalog
from timetable_builder.services.constraints import ConstraintScorer
from timetable_builder.services.entry_store import SqlEntryStore
from timetable_builder.services.generator import TimetableGenerator
from timetable_builder.services.incremental import IncrementalScheduler

logger = logging.getLogger(__name__)

router = APIRouter()


def _scheduler(db: Session) -> IncrementalScheduler:
    return IncrementalScheduler(
        load_catalog(db),
        SqlEntryStore(db),
        practical_block_slots=get_settings().practical_block_slots,
    )


@router.get("/", response_model=list[TimetableEntryPayload])
def list_entries(
    division_id: str | None = Query(default=None, alias="divisionId"),
    db: Session = Depends(get_db),
) -> list[TimetableEntryPayload]:
    entries = SqlEntryStore(db).list_entries()
    if division_id is None:
        return entries
    return [entry for entry in entries if entry.division.id == division_id]


@router.post("/entries", response_model=TimetableEntryPayload, status_code=status.HTTP_201_CREATED)
def schedule_entry(payload: ScheduleEntryRequest, db: Session = Depends(get_db)) -> TimetableEntryPayload:
    result = _scheduler(db).schedule_one(payload.allocation_id, payload.day, payload.start_time, payload.room_id)
    if not result.ok:
        db.rollback()
        raise SchedulingConflictError(result.reason or "Request could not be scheduled", code=result.code or "rejected")
    db.commit()
    return result.entry


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def unschedule_entry(entry_id: str, db: Session = Depends(get_db)) -> None:
    if _scheduler(db).unschedule(entry_id) is None:
        raise ResourceNotFoundError("Timetable entry", entry_id)
    db.commit()


@router.post("/divisions/{division_id}/auto-schedule", response_model=AutoScheduleResponse)
def auto_schedule_division(division_id: str, db: Session = Depends(get_db)) -> AutoScheduleResponse:
    report = _scheduler(db).auto_schedule_division(division_id)
    db.commit()
    return report


@router.post("/generate", response_model=GeneratedTimetable)
def generate_timetable(
    payload: GenerateTimetableRequest | None = None,
    db: Session = Depends(get_db),
) -> GeneratedTimetable:
    payload = payload or GenerateTimetableRequest()
    catalog = load_catalog(db)
    generator = TimetableGenerator(
        catalog.subjects,
        catalog.divisions,
        catalog.faculty,
        catalog.rooms,
        practical_block_slots=get_settings().practical_block_slots,
    )
    result = generator.generate(reset_workload=payload.reset_workload)

    if payload.persist:
        stored = SqlEntryStore(db).replace_all(result.entries)
        for faculty_id, hours in result.faculty_workloads.items():
            row = db.get(Faculty, faculty_id)
            if row is not None:
                row.current_workload = hours
        db.commit()
        logger.info("Persisted %d generated entries and %d faculty workloads", stored, len(result.faculty_workloads))
    return result


@router.post("/generate/preview", response_model=GeneratedTimetable)
def preview_timetable(payload: GenerationInput) -> GeneratedTimetable:
    generator = TimetableGenerator(
        payload.subjects,
        payload.divisions,
        payload.faculty,
        payload.rooms,
        practical_block_slots=get_settings().practical_block_slots,
    )
    return generator.generate(reset_workload=payload.reset_workload)


@router.post("/score", response_model=ConstraintResultOut)
def score_entry(payload: ScoreEntryRequest, db: Session = Depends(get_db)) -> ConstraintResultOut:
    result = ConstraintScorer().score(payload.candidate, SqlEntryStore(db).list_entries())
    return ConstraintResultOut(valid=result.valid, score=result.score, violations=result.violations)


@router.post("/best-slot", response_model=SlotOut | None)
def best_slot(payload: BestSlotRequest, db: Session = Depends(get_db)) -> SlotOut | None:
    catalog = load_catalog(db)
    subject = catalog.subject(payload.subject_id)
    if subject is None:
        raise ResourceNotFoundError("Subject", payload.subject_id)
    division = catalog.division(payload.division_id)
    if division is None:
        raise ResourceNotFoundError("Division", payload.division_id)
    faculty = catalog.faculty_member(payload.faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", payload.faculty_id)
    room = catalog.room(payload.room_id)
    if room is None:
        raise ResourceNotFoundError("Room", payload.room_id)
    batch = division.batch(payload.batch_id)
    if payload.batch_id is not None and batch is None:
        raise ResourceNotFoundError("Batch", payload.batch_id)

    slot = ConstraintScorer().find_best_slot(
        subject,
        division,
        faculty,
        room,
        batch,
        payload.type,
        SqlEntryStore(db).list_entries(),
        payload.duration,
    )
    if slot is None:
        return None
    return SlotOut(day=slot.day, start_time=slot.start_time, end_time=slot.end_time, duration=slot.duration)
