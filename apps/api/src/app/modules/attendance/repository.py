"""
Attendance Repository

Database operations for attendance records. Every query is scoped by the
tenant (school) id and, for single-record operations, by the authoring
teacher.

Design Principles:
- Single responsibility - only database operations, no consensus logic
- No application-level locking: the unique constraint on
  (school, student, teacher, date) decides which of two racing inserts wins
- Errors propagate; nothing is retried here
"""

import logging
from datetime import UTC, date, datetime

from sqlalchemy import delete as sa_delete
from sqlalchemy import select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.attendance.errors import DuplicateAttendanceError
from app.modules.attendance.models import Attendance
from app.modules.attendance.status import AttendanceStatus

logger = logging.getLogger(__name__)

UNIQUE_CONSTRAINT_NAME = "uq_attendance_tenant_student_teacher_date"
UNIQUE_VIOLATION_SQLSTATE = "23505"

# Fields a teacher may change on their own record
UPDATABLE_FIELDS = frozenset({"status", "notes"})


def _is_duplicate_record_error(error: IntegrityError) -> bool:
    """True if the integrity error is the per-teacher/day uniqueness violation."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if UNIQUE_CONSTRAINT_NAME in str(orig):
        return True
    return code == UNIQUE_VIOLATION_SQLSTATE and "attendance" in str(orig)


async def create(
    db: AsyncSession,
    *,
    tenant_id: str,
    teacher_id: str,
    student_id: str,
    date: date,
    status: AttendanceStatus,
    notes: str | None = None,
) -> Attendance:
    """
    Insert a new attendance record.

    Raises:
        DuplicateAttendanceError: If this teacher already has a record for the
            student on this date. The existing record is left untouched.
    """
    record = Attendance(
        school_id=tenant_id,
        teacher_id=teacher_id,
        student_id=student_id,
        date=date,
        status=status,
        notes=notes or None,
    )

    db.add(record)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if _is_duplicate_record_error(e):
            logger.info(
                f"Duplicate attendance rejected: teacher={teacher_id}, "
                f"student={student_id}, date={date.isoformat()}"
            )
            raise DuplicateAttendanceError(student_id, date) from e
        raise

    await db.refresh(record)
    return record


async def get_by_id(
    db: AsyncSession,
    attendance_id: str,
    *,
    teacher_id: str,
    tenant_id: str,
) -> Attendance | None:
    """Get a record by ID; only the authoring teacher can see it."""
    result = await db.execute(
        select(Attendance).where(
            Attendance.id == attendance_id,
            Attendance.teacher_id == teacher_id,
            Attendance.school_id == tenant_id,
        )
    )
    return result.scalar_one_or_none()


async def get_in_tenant(
    db: AsyncSession,
    attendance_id: str,
    *,
    tenant_id: str,
) -> Attendance | None:
    """Get a record by ID within a school, regardless of author."""
    result = await db.execute(
        select(Attendance).where(
            Attendance.id == attendance_id,
            Attendance.school_id == tenant_id,
        )
    )
    return result.scalar_one_or_none()


async def update(
    db: AsyncSession,
    attendance_id: str,
    *,
    teacher_id: str,
    tenant_id: str,
    **changes,
) -> Attendance | None:
    """
    Update the authoring teacher's record.

    Only keys present in ``changes`` are written; passing ``notes=None``
    clears the notes.

    Returns:
        The updated record, or None if the teacher has no such record

    Raises:
        ValueError: If a field other than status/notes is passed
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update attendance fields: {sorted(unknown)}")

    record = await get_by_id(db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id)
    if not record:
        return None

    for key, value in changes.items():
        setattr(record, key, value)
    record.updated_at = datetime.now(UTC)

    await db.commit()
    await db.refresh(record)

    return record


async def delete(
    db: AsyncSession,
    attendance_id: str,
    *,
    teacher_id: str,
    tenant_id: str,
) -> bool:
    """
    Delete the authoring teacher's record.

    Other teachers' records for the same student and date are not touched.

    Returns:
        True if a row was removed
    """
    result = await db.execute(
        sa_delete(Attendance)
        .where(
            Attendance.id == attendance_id,
            Attendance.teacher_id == teacher_id,
            Attendance.school_id == tenant_id,
        )
        .returning(Attendance.id)
    )
    deleted_id = result.scalar_one_or_none()
    await db.commit()

    return deleted_id is not None


async def list_for_student_date(
    db: AsyncSession,
    *,
    student_id: str,
    date: date,
    tenant_id: str,
) -> list[Attendance]:
    """Every teacher's record for a student on a date, oldest first."""
    result = await db.execute(
        select(Attendance)
        .where(
            Attendance.student_id == student_id,
            Attendance.date == date,
            Attendance.school_id == tenant_id,
        )
        .order_by(Attendance.created_at)
    )
    return list(result.scalars().all())


async def list_for_teacher_date(
    db: AsyncSession,
    *,
    teacher_id: str,
    date: date,
    tenant_id: str,
) -> list[Attendance]:
    """A teacher's own records for a date, oldest first."""
    result = await db.execute(
        select(Attendance)
        .where(
            Attendance.teacher_id == teacher_id,
            Attendance.date == date,
            Attendance.school_id == tenant_id,
        )
        .order_by(Attendance.created_at)
    )
    return list(result.scalars().all())


async def list_student_history(
    db: AsyncSession,
    *,
    student_id: str,
    tenant_id: str,
    limit: int = 30,
) -> list[Attendance]:
    """A student's records across all teachers, most recent date first."""
    result = await db.execute(
        select(Attendance)
        .where(
            Attendance.student_id == student_id,
            Attendance.school_id == tenant_id,
        )
        .order_by(Attendance.date.desc(), Attendance.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def set_statuses(
    db: AsyncSession,
    changes: list[tuple[Attendance, AttendanceStatus, AttendanceStatus]],
) -> list[Attendance]:
    """
    Settle sibling records after a consensus decision, in one commit.

    Each change is ``(record, observed_status, new_status)``. The write is a
    compare-and-set on ``observed_status``: a row whose status moved since it
    was read (its teacher changed their vote) is skipped, not overwritten.

    Returns:
        The records that were actually updated
    """
    if not changes:
        return []

    now = datetime.now(UTC)
    applied: list[Attendance] = []
    for record, observed, status in changes:
        result = await db.execute(
            sa_update(Attendance)
            .where(Attendance.id == record.id, Attendance.status == observed)
            .values(status=status, updated_at=now)
            .returning(Attendance.id)
            .execution_options(synchronize_session="fetch")
        )
        if result.scalar_one_or_none() is None:
            logger.info(
                f"Skipped settling attendance {record.id}: status changed since it was read"
            )
            continue
        applied.append(record)

    await db.commit()
    return applied
