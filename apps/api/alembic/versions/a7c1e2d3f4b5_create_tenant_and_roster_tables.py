"""create tenant and roster tables

Revision ID: a7c1e2d3f4b5
Revises:
Create Date: 2026-10-01 09:00:00.000000

This migration:
1. Creates the schools table (tenant)
2. Creates the users table (teachers and admins)
3. Creates the students table
4. Creates teacher_student_assignments, the roster the attendance
   consensus resolver reads to decide single-teacher vs co-teaching
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c1e2d3f4b5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    """Create schools, users, students and assignments."""
    school_status_enum = postgresql.ENUM(
        "active",
        "suspended",
        "deactivated",
        name="school_status",
        create_type=False,
    )
    school_status_enum.create(op.get_bind(), checkfirst=True)

    user_role_enum = postgresql.ENUM(
        "platform_admin",
        "school_admin",
        "teacher",
        "parent",
        name="user_role",
        create_type=False,
    )
    user_role_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "schools",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("status", school_status_enum, nullable=False, server_default="active"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_schools_name"), "schools", ["name"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="teacher"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["school_id"], ["schools.id"], name="fk_users_school_id", ondelete="SET NULL"
        ),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_school_id"), "users", ["school_id"], unique=False)

    op.create_table(
        "students",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["school_id"], ["schools.id"], name="fk_students_school_id", ondelete="CASCADE"
        ),
    )
    op.create_index(op.f("ix_students_school_id"), "students", ["school_id"], unique=False)

    op.create_table(
        "teacher_student_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("class_group", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "assigned_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["school_id"], ["schools.id"], name="fk_assignments_school_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["teacher_id"], ["users.id"], name="fk_assignments_teacher_id", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["student_id"], ["students.id"], name="fk_assignments_student_id", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("teacher_id", "student_id", name="uq_assignment_teacher_student"),
    )
    op.create_index(
        "ix_assignments_school_student",
        "teacher_student_assignments",
        ["school_id", "student_id"],
        unique=False,
    )
    op.create_index(
        "ix_assignments_school_teacher",
        "teacher_student_assignments",
        ["school_id", "teacher_id"],
        unique=False,
    )


def downgrade() -> None:
    """Drop roster, users and schools."""
    op.drop_index("ix_assignments_school_teacher", table_name="teacher_student_assignments")
    op.drop_index("ix_assignments_school_student", table_name="teacher_student_assignments")
    op.drop_table("teacher_student_assignments")

    op.drop_index(op.f("ix_students_school_id"), table_name="students")
    op.drop_table("students")

    op.drop_index(op.f("ix_users_school_id"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")

    op.drop_index(op.f("ix_schools_name"), table_name="schools")
    op.drop_table("schools")

    postgresql.ENUM(name="user_role").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="school_status").drop(op.get_bind(), checkfirst=True)
