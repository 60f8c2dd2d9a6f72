from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timetable_builder.api.deps import get_db
from timetable_builder.core.config import get_settings
from timetable_builder.db.bootstrap import find_schema_gaps
from timetable_builder.models import SubjectAllocation, TimetableEntryRecord

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/ready")
def health_ready(db: Session = Depends(get_db)) -> JSONResponse:
    """Report whether the database answers and carries every column the scheduler reads."""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        db.execute(text("SELECT 1"))
        missing_tables, missing_columns = find_schema_gaps(db.connection())
        counts = None
        if not missing_tables and not missing_columns:
            counts = {
                "allocations": db.scalar(select(func.count()).select_from(SubjectAllocation)),
                "entries": db.scalar(select(func.count()).select_from(TimetableEntryRecord)),
            }
    except SQLAlchemyError as exc:  # pragma: no cover - environment dependent
        logger.warning("Readiness probe could not reach the database: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "timestamp": timestamp, "database": {"ok": False, "error": str(exc)}},
        )

    ready = counts is not None
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": timestamp,
        "database": {
            "ok": True,
            "schema_ok": ready,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
        },
        "scheduling": {
            "practical_block_slots": get_settings().practical_block_slots,
            "counts": counts,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
