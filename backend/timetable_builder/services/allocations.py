from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from timetable_builder.core.exceptions import AllocationError, ResourceNotFoundError, WorkloadLimitError
from timetable_builder.models.allocation import SessionType, SubjectAllocation
from timetable_builder.models.division import Division
from timetable_builder.models.subject import Subject
from timetable_builder.schemas.catalog import AllocationPayload
from timetable_builder.services.catalog import division_payload, subject_payload
from timetable_builder.services.workload import CapacityLedger, FacultyRowLedger

logger = logging.getLogger(__name__)


def create_allocation(
    db: Session,
    payload: AllocationPayload,
    ledger: CapacityLedger | None = None,
) -> SubjectAllocation:
    """Insert an allocation and reserve its hours; both land in the caller's transaction."""
    subject_row = db.get(Subject, payload.subject_id)
    if subject_row is None:
        raise ResourceNotFoundError("Subject", payload.subject_id)
    division_row = db.get(Division, payload.division_id)
    if division_row is None:
        raise ResourceNotFoundError("Division", payload.division_id)

    subject = subject_payload(subject_row)
    division = division_payload(division_row)

    expected_hours = subject.hours_for(payload.type)
    if payload.hours != expected_hours:
        raise AllocationError(
            f"{subject.code} needs {expected_hours} {payload.type.value.lower()} hours per unit, got {payload.hours}",
            details={"expected": expected_hours, "received": payload.hours},
        )
    if payload.batch_id is not None and division.batch(payload.batch_id) is None:
        raise AllocationError(f"Batch {payload.batch_id} is not part of division {division.key}")
    if payload.type == SessionType.practical and payload.batch_id is None:
        raise AllocationError("Practical allocations must name a batch")

    ledger = ledger or FacultyRowLedger(db)
    try:
        ledger.reserve(payload.faculty_id, payload.hours)
    except WorkloadLimitError:
        logger.warning(
            "Allocation of %s to faculty %s refused: %dh would exceed the ceiling",
            subject.code,
            payload.faculty_id,
            payload.hours,
        )
        raise

    row = SubjectAllocation(
        id=payload.id,
        subject_id=payload.subject_id,
        faculty_id=payload.faculty_id,
        division_id=payload.division_id,
        batch_id=payload.batch_id,
        type=payload.type,
        hours=payload.hours,
    )
    db.add(row)
    db.flush()
    return row


def delete_allocation(db: Session, allocation_id: str, ledger: CapacityLedger | None = None) -> None:
    """Delete an allocation and give its hours back. Timetable entries that fulfil it are left in place."""
    row = db.get(SubjectAllocation, allocation_id)
    if row is None:
        raise ResourceNotFoundError("Allocation", allocation_id)
    ledger = ledger or FacultyRowLedger(db)
    try:
        ledger.release(row.faculty_id, row.hours)
    except ResourceNotFoundError:
        logger.warning("Faculty %s for allocation %s no longer exists; nothing to release", row.faculty_id, row.id)
    db.delete(row)
    db.flush()
