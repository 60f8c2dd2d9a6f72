import pytest
from sqlalchemy import select

from timetable_builder.core.exceptions import ResourceNotFoundError
from timetable_builder.models import TimetableEntryRecord
from timetable_builder.schemas.catalog import AllocationPayload
from timetable_builder.services.catalog import SchedulingCatalog
from timetable_builder.services.entry_store import InMemoryEntryStore, SqlEntryStore, entry_to_record
from timetable_builder.services.incremental import IncrementalScheduler
from timetable_builder.services.occupancy import ResourceKind

from payloads import make_batch, make_division, make_entry, make_faculty, make_room, make_subject


def allocation(id, faculty_id="f1", batch_id=None, type="THEORY", hours=2):
    return AllocationPayload(
        id=id, subject_id="s1", faculty_id=faculty_id, division_id="d1", batch_id=batch_id, type=type, hours=hours
    )


def build_scheduler(allocations, rooms=None, store=None, **kwargs):
    catalog = SchedulingCatalog(
        subjects=[make_subject(theory=2, practical=2)],
        divisions=[make_division(batches=[make_batch("b1", "B1"), make_batch("b2", "B2")])],
        faculty=[make_faculty("f1", "AB"), make_faculty("f2", "CD")],
        rooms=rooms
        if rooms is not None
        else [
            make_room("r1", "101"),
            make_room("r2", "102"),
            make_room("lab1", "L1", "LAB"),
            make_room("lab2", "L2", "LAB"),
        ],
        allocations=list(allocations),
    )
    return IncrementalScheduler(catalog, store or InMemoryEntryStore(), **kwargs)


def test_second_request_for_same_faculty_slot_is_rejected():
    scheduler = build_scheduler([allocation("a1"), allocation("a2")])

    first = scheduler.schedule_one("a1", "Monday", "09:00", "r1")
    second = scheduler.schedule_one("a2", "Monday", "09:00", "r1")

    assert first.ok
    assert first.entry.allocation_id == "a1"
    assert not second.ok
    assert second.code == "faculty_busy"
    assert second.reason == "Faculty AB is already busy at this time."
    assert len(scheduler.store.list_entries()) == 1


def test_allocation_can_only_be_scheduled_once():
    scheduler = build_scheduler([allocation("a1")])
    scheduler.schedule_one("a1", "Monday", "09:00", "r1")

    result = scheduler.schedule_one("a1", "Tuesday", "09:00", "r1")

    assert result.code == "already_scheduled"


def test_room_and_division_conflicts_have_distinct_reasons():
    scheduler = build_scheduler([allocation("a1"), allocation("a2", faculty_id="f2")])
    scheduler.schedule_one("a1", "Monday", "09:00", "r1")

    room_clash = scheduler.schedule_one("a2", "Monday", "09:00", "r1")
    division_clash = scheduler.schedule_one("a2", "Monday", "09:00", "r2")

    assert room_clash.code == "room_busy"
    assert room_clash.reason == "Room 101 is already booked at this time."
    assert division_clash.code == "division_busy"


def test_batch_conflict_covers_whole_practical_block():
    scheduler = build_scheduler(
        [
            allocation("p1", batch_id="b1", type="PRACTICAL"),
            allocation("p2", faculty_id="f2", batch_id="b1", type="PRACTICAL"),
            allocation("p3", faculty_id="f2", batch_id="b2", type="PRACTICAL"),
        ]
    )
    placed = scheduler.schedule_one("p1", "Monday", "13:00", "lab1")

    clash = scheduler.schedule_one("p2", "Monday", "14:00", "lab2")
    other_batch = scheduler.schedule_one("p3", "Monday", "13:00", "lab2")

    assert (placed.entry.start_time, placed.entry.end_time) == ("13:00", "15:00")
    assert clash.code == "batch_busy"
    assert other_batch.ok


def test_practical_block_cannot_cross_the_break():
    scheduler = build_scheduler([allocation("p1", batch_id="b1", type="PRACTICAL")])

    assert scheduler.schedule_one("p1", "Monday", "11:00", "lab1").code == "invalid_slot"
    assert scheduler.schedule_one("p1", "Monday", "12:00", "lab1").code == "invalid_slot"
    assert scheduler.schedule_one("p1", "Sunday", "09:00", "lab1").code == "invalid_slot"


def test_unknown_allocation_or_room_is_rejected():
    scheduler = build_scheduler([allocation("a1")])

    assert scheduler.schedule_one("missing", "Monday", "09:00", "r1").code == "allocation_not_found"
    assert scheduler.schedule_one("a1", "Monday", "09:00", "nowhere").code == "missing_reference"


def test_store_write_conflict_is_reported_as_rejection():
    scheduler = build_scheduler([allocation("a1"), allocation("a2", faculty_id="f2")], id_factory=lambda: "fixed")
    scheduler.schedule_one("a1", "Monday", "09:00", "r1")

    result = scheduler.schedule_one("a2", "Tuesday", "09:00", "r2")

    assert result.code == "duplicate_entry"
    assert scheduler.tracker.is_free(ResourceKind.faculty, "f2", "Tuesday", "09:00")


def test_schedule_then_unschedule_restores_occupancy():
    scheduler = build_scheduler([allocation("p1", batch_id="b1", type="PRACTICAL")])
    before = scheduler.tracker.snapshot()

    result = scheduler.schedule_one("p1", "Wednesday", "13:00", "lab1")
    assert scheduler.tracker.snapshot() != before
    removed = scheduler.unschedule(result.entry.id)

    assert removed.id == result.entry.id
    assert scheduler.tracker.snapshot() == before
    assert scheduler.store.list_entries() == []
    assert [item.id for item in scheduler.unscheduled_allocations()] == ["p1"]
    assert scheduler.unschedule(result.entry.id) is None


def test_scheduler_is_seeded_from_committed_entries():
    first = build_scheduler([allocation("a1"), allocation("a2")])
    first.schedule_one("a1", "Monday", "09:00", "r1")

    second = build_scheduler([allocation("a1"), allocation("a2")], store=first.store)

    assert second.schedule_one("a2", "Monday", "09:00", "r2").code == "faculty_busy"


def test_auto_schedule_places_unscheduled_allocations_of_division():
    scheduler = build_scheduler([allocation("a1"), allocation("p1", batch_id="b1", type="PRACTICAL")])

    report = scheduler.auto_schedule_division("d1")

    assert report.unplaced_allocation_ids == []
    assert [(entry.allocation_id, entry.day, entry.start_time, entry.end_time) for entry in report.scheduled] == [
        ("a1", "Monday", "09:00", "10:00"),
        ("p1", "Monday", "10:00", "12:00"),
    ]
    assert report.scheduled[1].room.id == "lab1"
    assert scheduler.unscheduled_allocations("d1") == []


def test_auto_schedule_reports_allocations_without_rooms():
    scheduler = build_scheduler(
        [allocation("p1", batch_id="b1", type="PRACTICAL")],
        rooms=[make_room("r1", "101")],
    )

    report = scheduler.auto_schedule_division("d1")

    assert report.scheduled == []
    assert report.unplaced_allocation_ids == ["p1"]


def test_auto_schedule_unknown_division_raises():
    with pytest.raises(ResourceNotFoundError):
        build_scheduler([]).auto_schedule_division("missing")


def test_sql_write_conflict_keeps_entries_flushed_earlier_in_the_request(db_session):
    ids = iter(f"entry-{number}" for number in range(1, 10))
    scheduler = build_scheduler(
        [allocation("a1"), allocation("a2", faculty_id="f2")],
        store=SqlEntryStore(db_session),
        id_factory=lambda: next(ids),
    )
    # committed by another request after this scheduler took its snapshot
    db_session.add(
        entry_to_record(
            make_entry(
                "taken",
                start="10:00",
                faculty=make_faculty("f2", "CD"),
                room=make_room("r9", "909"),
                division=make_division("d9", "Z"),
            )
        )
    )
    db_session.commit()

    report = scheduler.auto_schedule_division("d1")
    db_session.commit()

    assert [entry.allocation_id for entry in report.scheduled] == ["a1"]
    assert report.unplaced_allocation_ids == ["a2"]
    assert report.rejections["a2"] == "Slot was taken by a concurrent change; reload and try again"
    stored = db_session.execute(select(TimetableEntryRecord.allocation_id)).scalars().all()
    assert len(stored) == 2
    assert set(stored) == {None, "a1"}
    assert scheduler.tracker.is_free(ResourceKind.faculty, "f2", "Monday", "10:00")


def test_sql_write_conflict_on_single_request_is_a_rejection(db_session):
    scheduler = build_scheduler([allocation("a1"), allocation("a2", faculty_id="f2")], store=SqlEntryStore(db_session))
    db_session.add(
        entry_to_record(make_entry("taken", faculty=make_faculty("f2", "CD"), room=make_room("r9", "909")))
    )
    db_session.commit()

    first = scheduler.schedule_one("a1", "Tuesday", "09:00", "r1")
    second = scheduler.schedule_one("a2", "Monday", "09:00", "r2")
    db_session.commit()

    assert first.ok
    assert second.code == "write_conflict"
    assert SqlEntryStore(db_session).find_by_allocation("a1").id == first.entry.id
