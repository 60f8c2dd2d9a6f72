"""create scheduling tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    subject_type = sa.Enum("core", "lab", "dlo", "ilo", "minor", name="subject_type")
    room_category = sa.Enum("classroom", "lab", name="room_category")
    session_type = sa.Enum("theory", "practical", name="session_type")
    entry_session_type = sa.Enum("theory", "practical", name="entry_session_type")

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("year", sa.String(length=4), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("theory_hours", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("practical_hours", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tutorial_hours", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("type", subject_type, nullable=False),
        sa.Column("electives", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"])

    op.create_table(
        "divisions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("year", sa.String(length=4), nullable=False),
        sa.Column("name", sa.String(length=10), nullable=False),
        sa.Column("batches", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "faculty",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("initials", sa.String(length=20), nullable=False),
        sa.Column("designation", sa.String(length=200), nullable=False, server_default="Faculty"),
        sa.Column("max_workload", sa.Integer(), nullable=False, server_default="20"),
        sa.Column("current_workload", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subject_ids", sa.JSON(), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("category", room_category, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_room_number", "rooms", ["room_number"], unique=True)

    op.create_table(
        "subject_allocations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("faculty_id", sa.String(length=36), sa.ForeignKey("faculty.id"), nullable=False),
        sa.Column("division_id", sa.String(length=36), sa.ForeignKey("divisions.id"), nullable=False),
        sa.Column("batch_id", sa.String(length=36), nullable=True),
        sa.Column("type", session_type, nullable=False),
        sa.Column("hours", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subject_allocations_subject_id", "subject_allocations", ["subject_id"])
    op.create_index("ix_subject_allocations_faculty_id", "subject_allocations", ["faculty_id"])
    op.create_index("ix_subject_allocations_division_id", "subject_allocations", ["division_id"])

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("day", sa.String(length=12), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("type", entry_session_type, nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("faculty_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("division_id", sa.String(length=36), nullable=False),
        sa.Column("batch_id", sa.String(length=36), nullable=True),
        sa.Column("allocation_id", sa.String(length=36), nullable=True),
        sa.Column("snapshot", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("day", "start_time", "faculty_id", name="uq_timetable_faculty_slot"),
        sa.UniqueConstraint("day", "start_time", "room_id", name="uq_timetable_room_slot"),
        sa.UniqueConstraint("allocation_id", name="uq_timetable_allocation"),
    )
    op.create_index("ix_timetable_entries_subject_id", "timetable_entries", ["subject_id"])
    op.create_index("ix_timetable_entries_faculty_id", "timetable_entries", ["faculty_id"])
    op.create_index("ix_timetable_entries_room_id", "timetable_entries", ["room_id"])
    op.create_index("ix_timetable_entries_division_id", "timetable_entries", ["division_id"])
    op.create_index("ix_timetable_entries_batch_id", "timetable_entries", ["batch_id"])


def downgrade() -> None:
    op.drop_table("timetable_entries")
    op.drop_table("subject_allocations")
    op.drop_table("rooms")
    op.drop_table("faculty")
    op.drop_table("divisions")
    op.drop_table("subjects")

    bind = op.get_bind()
    for name in ("entry_session_type", "session_type", "room_category", "subject_type"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
