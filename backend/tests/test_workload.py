import pytest

from timetable_builder.core.exceptions import AllocationError, ResourceNotFoundError, WorkloadLimitError
from timetable_builder.models import Division, Faculty, Subject, SubjectAllocation
from timetable_builder.models.subject import SubjectType
from timetable_builder.schemas.catalog import AllocationPayload
from timetable_builder.services.allocations import create_allocation, delete_allocation
from timetable_builder.services.workload import FacultyRowLedger, WorkloadLedger

from payloads import make_faculty


def test_ledger_reserves_up_to_the_ceiling():
    ledger = WorkloadLedger([make_faculty(max_workload=4, current_workload=1)])

    assert ledger.reserve("f1", 3) == 4
    assert ledger.remaining("f1") == 0
    assert not ledger.can_reserve("f1", 1)
    with pytest.raises(WorkloadLimitError) as excinfo:
        ledger.reserve("f1", 1)
    assert excinfo.value.details == {"facultyId": "f1", "requested": 1, "current": 4, "max": 4}


def test_ledger_release_floors_at_zero_and_reset_ignores_current():
    ledger = WorkloadLedger([make_faculty(current_workload=3)], reset=True)

    assert ledger.current("f1") == 0
    assert ledger.release("f1", 5) == 0
    assert ledger.as_dict() == {"f1": 0}


def test_ledger_rejects_unknown_faculty():
    with pytest.raises(ResourceNotFoundError):
        WorkloadLedger([]).remaining("ghost")


@pytest.fixture()
def seeded(db_session):
    db_session.add_all(
        [
            Subject(
                id="s1",
                name="Data Structures",
                code="CS201",
                department="Computer",
                year="SE",
                theory_hours=3,
                practical_hours=2,
                type=SubjectType.core,
            ),
            Division(
                id="d1",
                department="Computer",
                year="SE",
                name="A",
                batches=[{"id": "b1", "name": "B1", "studentCount": 20}],
            ),
            Faculty(id="f1", name="Prof AB", initials="AB", max_workload=4, current_workload=0, subject_ids=["s1"]),
        ]
    )
    db_session.commit()
    return db_session


def test_row_ledger_updates_faculty_row(seeded):
    ledger = FacultyRowLedger(seeded)

    ledger.reserve("f1", 3)
    seeded.commit()

    assert seeded.get(Faculty, "f1").current_workload == 3
    assert ledger.remaining("f1") == 1
    with pytest.raises(WorkloadLimitError):
        ledger.reserve("f1", 2)


def test_create_allocation_reserves_hours_in_same_transaction(seeded):
    row = create_allocation(
        seeded,
        AllocationPayload(id="a1", subject_id="s1", faculty_id="f1", division_id="d1", type="THEORY", hours=3),
    )
    seeded.commit()

    assert row.id == "a1"
    assert seeded.get(Faculty, "f1").current_workload == 3


def test_create_allocation_refuses_to_exceed_ceiling(seeded):
    create_allocation(
        seeded,
        AllocationPayload(id="a1", subject_id="s1", faculty_id="f1", division_id="d1", type="THEORY", hours=3),
    )
    seeded.commit()

    with pytest.raises(WorkloadLimitError):
        create_allocation(
            seeded,
            AllocationPayload(
                id="a2", subject_id="s1", faculty_id="f1", division_id="d1", batch_id="b1", type="PRACTICAL", hours=2
            ),
        )
    seeded.rollback()

    assert seeded.get(SubjectAllocation, "a2") is None
    assert seeded.get(Faculty, "f1").current_workload == 3


def test_create_allocation_validates_hours_and_batches(seeded):
    with pytest.raises(AllocationError):
        create_allocation(
            seeded,
            AllocationPayload(id="a1", subject_id="s1", faculty_id="f1", division_id="d1", type="THEORY", hours=2),
        )
    with pytest.raises(AllocationError):
        create_allocation(
            seeded,
            AllocationPayload(id="a2", subject_id="s1", faculty_id="f1", division_id="d1", type="PRACTICAL", hours=2),
        )
    with pytest.raises(AllocationError):
        create_allocation(
            seeded,
            AllocationPayload(
                id="a3", subject_id="s1", faculty_id="f1", division_id="d1", batch_id="zz", type="PRACTICAL", hours=2
            ),
        )
    with pytest.raises(ResourceNotFoundError):
        create_allocation(
            seeded,
            AllocationPayload(id="a4", subject_id="s1", faculty_id="f1", division_id="nope", type="THEORY", hours=3),
        )


def test_delete_allocation_releases_hours(seeded):
    create_allocation(
        seeded,
        AllocationPayload(id="a1", subject_id="s1", faculty_id="f1", division_id="d1", type="THEORY", hours=3),
    )
    seeded.commit()

    delete_allocation(seeded, "a1")
    seeded.commit()

    assert seeded.get(SubjectAllocation, "a1") is None
    assert seeded.get(Faculty, "f1").current_workload == 0
    with pytest.raises(ResourceNotFoundError):
        delete_allocation(seeded, "a1")
