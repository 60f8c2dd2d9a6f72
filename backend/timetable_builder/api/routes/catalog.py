from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from timetable_builder.api.deps import get_db
from timetable_builder.models.division import Division
from timetable_builder.models.faculty import Faculty
from timetable_builder.models.room import Room
from timetable_builder.models.subject import Subject
from timetable_builder.schemas.catalog import DivisionPayload, FacultyPayload, RoomPayload, SubjectPayload
from timetable_builder.services.catalog import (
    division_payload,
    faculty_payload,
    load_catalog,
    room_payload,
    subject_payload,
)

router = APIRouter()


def _ensure_new(db: Session, model, item_id: str, label: str) -> None:
    if db.get(model, item_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{label} {item_id} already exists")


@router.get("/subjects", response_model=list[SubjectPayload])
def list_subjects(db: Session = Depends(get_db)) -> list[SubjectPayload]:
    return load_catalog(db).subjects


@router.post("/subjects", response_model=SubjectPayload, status_code=status.HTTP_201_CREATED)
def create_subject(payload: SubjectPayload, db: Session = Depends(get_db)) -> SubjectPayload:
    _ensure_new(db, Subject, payload.id, "Subject")
    row = Subject(
        id=payload.id,
        name=payload.name,
        code=payload.code,
        department=payload.department,
        year=payload.year,
        semester=payload.semester,
        theory_hours=payload.theory_hours,
        practical_hours=payload.practical_hours,
        tutorial_hours=payload.tutorial_hours,
        type=payload.type,
        electives=payload.electives,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return subject_payload(row)


@router.get("/divisions", response_model=list[DivisionPayload])
def list_divisions(db: Session = Depends(get_db)) -> list[DivisionPayload]:
    return load_catalog(db).divisions


@router.post("/divisions", response_model=DivisionPayload, status_code=status.HTTP_201_CREATED)
def create_division(payload: DivisionPayload, db: Session = Depends(get_db)) -> DivisionPayload:
    _ensure_new(db, Division, payload.id, "Division")
    row = Division(
        id=payload.id,
        department=payload.department,
        year=payload.year,
        name=payload.name,
        batches=[batch.model_dump(mode="json", by_alias=True) for batch in payload.batches],
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return division_payload(row)


@router.get("/faculty", response_model=list[FacultyPayload])
def list_faculty(db: Session = Depends(get_db)) -> list[FacultyPayload]:
    return load_catalog(db).faculty


@router.post("/faculty", response_model=FacultyPayload, status_code=status.HTTP_201_CREATED)
def create_faculty(payload: FacultyPayload, db: Session = Depends(get_db)) -> FacultyPayload:
    _ensure_new(db, Faculty, payload.id, "Faculty")
    if payload.current_workload > payload.max_workload:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="currentWorkload cannot exceed maxWorkload",
        )
    row = Faculty(
        id=payload.id,
        name=payload.name,
        initials=payload.initials,
        designation=payload.designation,
        max_workload=payload.max_workload,
        current_workload=payload.current_workload,
        subject_ids=payload.subject_ids,
        preferences=payload.preferences,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return faculty_payload(row)


@router.get("/rooms", response_model=list[RoomPayload])
def list_rooms(db: Session = Depends(get_db)) -> list[RoomPayload]:
    return load_catalog(db).rooms


@router.post("/rooms", response_model=RoomPayload, status_code=status.HTTP_201_CREATED)
def create_room(payload: RoomPayload, db: Session = Depends(get_db)) -> RoomPayload:
    _ensure_new(db, Room, payload.id, "Room")
    row = Room(
        id=payload.id,
        room_number=payload.room_number,
        category=payload.category,
        capacity=payload.capacity,
        department=payload.department,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return room_payload(row)
