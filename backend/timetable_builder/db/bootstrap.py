from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine

from timetable_builder.db.base import Base
from timetable_builder.db.session import engine as default_engine
import timetable_builder.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "faculty": {"id", "initials", "max_workload", "current_workload", "subject_ids"},
    "subjects": {"id", "code", "department", "year", "theory_hours", "practical_hours", "type"},
    "divisions": {"id", "department", "year", "name", "batches"},
    "rooms": {"id", "room_number", "category"},
    "subject_allocations": {"id", "subject_id", "faculty_id", "division_id", "batch_id", "type", "hours"},
    "timetable_entries": {
        "id",
        "day",
        "start_time",
        "end_time",
        "faculty_id",
        "room_id",
        "division_id",
        "batch_id",
        "allocation_id",
        "snapshot",
    },
}


def find_schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    """Return the required tables that are absent and, per present table, its absent columns."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}")


def ensure_schema(engine: Engine | None = None) -> None:
    target = engine or default_engine
    try:
        Base.metadata.create_all(bind=target)
        _assert_required_columns(target)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
