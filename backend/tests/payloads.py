from timetable_builder.models.allocation import SessionType
from timetable_builder.schemas.catalog import (
    BatchPayload,
    DivisionPayload,
    FacultyPayload,
    RoomPayload,
    SubjectPayload,
)
from timetable_builder.schemas.timetable import TimetableEntryPayload
from timetable_builder.services.slots import end_time_for


def make_subject(id="s1", code="CS101", type="CORE", theory=2, practical=0, **extra):
    return SubjectPayload(
        id=id,
        name=extra.pop("name", f"Subject {code}"),
        code=code,
        department=extra.pop("department", "Computer"),
        year=extra.pop("year", "SE"),
        theory_hours=theory,
        practical_hours=practical,
        type=type,
        **extra,
    )


def make_batch(id="b1", name="B1", choices=None):
    return BatchPayload(id=id, name=name, student_count=20, elective_choices=choices or {})


def make_division(id="d1", name="A", batches=(), department="Computer", year="SE"):
    return DivisionPayload(id=id, department=department, year=year, name=name, batches=list(batches))


def make_faculty(id="f1", initials="AB", subjects=("s1",), max_workload=10, current_workload=0):
    return FacultyPayload(
        id=id,
        name=f"Prof {initials}",
        initials=initials,
        max_workload=max_workload,
        current_workload=current_workload,
        subject_ids=list(subjects),
    )


def make_room(id="r1", number="101", category="CLASSROOM", department=None):
    return RoomPayload(id=id, room_number=number, category=category, capacity=60, department=department)


def make_entry(
    id,
    day="Monday",
    start="09:00",
    duration=1,
    subject=None,
    faculty=None,
    room=None,
    division=None,
    batch=None,
    type=SessionType.theory,
    allocation_id=None,
):
    return TimetableEntryPayload(
        id=id,
        day=day,
        start_time=start,
        end_time=end_time_for(start, duration),
        subject=subject or make_subject(),
        faculty=faculty or make_faculty(),
        room=room or make_room(),
        division=division or make_division(),
        batch=batch,
        type=type,
        allocation_id=allocation_id,
    )
