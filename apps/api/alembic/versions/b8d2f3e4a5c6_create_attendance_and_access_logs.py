"""create attendance and access logs

Revision ID: b8d2f3e4a5c6
Revises: a7c1e2d3f4b5
Create Date: 2026-10-01 09:30:00.000000

This migration:
1. Creates the attendance_status enum (six statuses)
2. Creates the attendance table with the one-record-per-teacher-per-day
   unique constraint that serializes concurrent inserts
3. Creates the access_logs audit table
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b8d2f3e4a5c6"
down_revision: str | Sequence[str] | None = "a7c1e2d3f4b5"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create attendance and access_logs."""
    attendance_status_enum = postgresql.ENUM(
        "present",
        "absent",
        "pending_present",
        "pending_absent",
        "confirmed_present",
        "confirmed_absent",
        name="attendance_status",
        create_type=False,
    )
    attendance_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "attendance",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", attendance_status_enum, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["school_id"], ["schools.id"], name="fk_attendance_school_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["student_id"], ["students.id"], name="fk_attendance_student_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["teacher_id"], ["users.id"], name="fk_attendance_teacher_id", ondelete="CASCADE"
        ),
        sa.UniqueConstraint(
            "school_id",
            "student_id",
            "teacher_id",
            "date",
            name="uq_attendance_tenant_student_teacher_date",
        ),
    )
    op.create_index("ix_attendance_teacher_date", "attendance", ["teacher_id", "date"])
    op.create_index("ix_attendance_student_date", "attendance", ["student_id", "date"])
    op.create_index("ix_attendance_school_id", "attendance", ["school_id"])
    op.create_index("ix_attendance_date", "attendance", ["date"])

    op.create_table(
        "access_logs",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("route", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["school_id"], ["schools.id"], name="fk_access_logs_school_id", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_access_logs_user_id", ondelete="SET NULL"
        ),
    )
    op.create_index("ix_access_logs_school_created", "access_logs", ["school_id", "created_at"])
    op.create_index("ix_access_logs_created_at", "access_logs", ["created_at"])


def downgrade() -> None:
    """Drop access_logs and attendance."""
    op.drop_index("ix_access_logs_created_at", table_name="access_logs")
    op.drop_index("ix_access_logs_school_created", table_name="access_logs")
    op.drop_table("access_logs")

    op.drop_index("ix_attendance_date", table_name="attendance")
    op.drop_index("ix_attendance_school_id", table_name="attendance")
    op.drop_index("ix_attendance_student_date", table_name="attendance")
    op.drop_index("ix_attendance_teacher_date", table_name="attendance")
    op.drop_table("attendance")

    postgresql.ENUM(name="attendance_status").drop(op.get_bind(), checkfirst=True)
