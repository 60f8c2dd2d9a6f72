from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from timetable_builder.api.deps import get_db
from timetable_builder.schemas.catalog import AllocationPayload
from timetable_builder.services.allocations import create_allocation, delete_allocation
from timetable_builder.services.catalog import allocation_payload, load_catalog

router = APIRouter()


@router.get("/", response_model=list[AllocationPayload])
def list_allocations(
    division_id: str | None = Query(default=None, alias="divisionId"),
    db: Session = Depends(get_db),
) -> list[AllocationPayload]:
    catalog = load_catalog(db)
    if division_id is None:
        return catalog.allocations
    return catalog.allocations_for_division(division_id)


@router.post("/", response_model=AllocationPayload, status_code=status.HTTP_201_CREATED)
def create_allocation_route(payload: AllocationPayload, db: Session = Depends(get_db)) -> AllocationPayload:
    row = create_allocation(db, payload)
    db.commit()
    db.refresh(row)
    return allocation_payload(row)


@router.delete("/{allocation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_allocation_route(allocation_id: str, db: Session = Depends(get_db)) -> None:
    delete_allocation(db, allocation_id)
    db.commit()
