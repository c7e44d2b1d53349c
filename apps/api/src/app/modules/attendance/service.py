"""
Attendance Service Layer

Business logic for teacher attendance recording.
Orchestrates roster authorization, consensus resolution, persistence and
audit logging.

This module implements:
1. Recording:
   - Check the teacher is assigned to the student
   - Derive the stored status (final for single-teacher students, pending or
     confirmed for co-taught students)
   - Persist; a second record for the same student/day is a Conflict

2. Updating / deleting:
   - Only the authoring teacher may change their record
   - Status changes are re-reconciled against the other teachers' votes
   - Deleting never changes another teacher's record

3. Reads:
   - Daily view of a teacher's roster
   - Student history, most recent first
   - Consensus check for a student and date

After a co-teaching decision the other teachers' records are settled to
match: unanimous agreement confirms them all, a later disagreement moves
confirmed records back to pending.

Audit events are fire-and-forget; their failure never fails the operation.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.access_logs.models import AccessAction
from app.modules.access_logs.service import log_attendance_event
from app.modules.attendance import repository
from app.modules.attendance.consensus import (
    determine_initial_status,
    has_consensus,
    reconcile,
    settle_siblings,
)
from app.modules.attendance.errors import (
    AttendanceNotFoundError,
    AttendanceOwnershipError,
    AttendanceValidationError,
    StudentAccessDeniedError,
)
from app.modules.attendance.models import Attendance
from app.modules.attendance.schemas import DailyAttendanceView
from app.modules.attendance.status import REQUESTABLE_STATUSES, AttendanceStatus, is_pending
from app.modules.attendance.validation import (
    validate_attendance_date,
    validate_notes,
    validate_requested_status,
)
from app.modules.attendance.view import build_daily_view
from app.modules.roster.oracle import RosterOracle

logger = logging.getLogger(__name__)

HISTORY_DEFAULT_LIMIT = 30
HISTORY_MAX_LIMIT = 365


@dataclass
class RequestContext:
    """Request details recorded with audit events."""

    route: str
    ip_address: str | None = None
    user_agent: str | None = None


_INTERNAL_CONTEXT = RequestContext(route="internal")


def _audit(
    action: AccessAction,
    *,
    teacher_id: str,
    tenant_id: str,
    context: RequestContext | None,
    success: bool = True,
    details: dict[str, Any] | None = None,
) -> None:
    context = context or _INTERNAL_CONTEXT
    log_attendance_event(
        action,
        user_id=teacher_id,
        school_id=tenant_id,
        route=context.route,
        success=success,
        details=details,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
    )


async def ensure_student_access(
    roster: RosterOracle,
    *,
    teacher_id: str,
    student_id: str,
    tenant_id: str,
) -> None:
    """
    Raises:
        StudentAccessDeniedError: If the teacher is not assigned to the student
    """
    if not await roster.can_teacher_access_student(teacher_id, student_id, tenant_id):
        raise StudentAccessDeniedError()


async def _load_own_record(
    db: AsyncSession,
    attendance_id: str,
    *,
    teacher_id: str,
    tenant_id: str,
) -> Attendance:
    """
    Load a record the teacher authored.

    Records outside the teacher's school are NotFound; records of another
    teacher in the same school are Forbidden.
    """
    record = await repository.get_in_tenant(db, attendance_id, tenant_id=tenant_id)
    if record is None:
        raise AttendanceNotFoundError(attendance_id)

    if record.teacher_id != teacher_id:
        logger.warning(
            f"Teacher {teacher_id} attempted to access attendance {attendance_id} "
            f"owned by {record.teacher_id}"
        )
        raise AttendanceOwnershipError()

    return record


# ============================================
# Recording
# ============================================


async def record_attendance(
    db: AsyncSession,
    roster: RosterOracle,
    *,
    teacher_id: str,
    tenant_id: str,
    student_id: str,
    date: date,
    requested_status: AttendanceStatus,
    notes: str | None = None,
    context: RequestContext | None = None,
) -> Attendance:
    """
    Record a teacher's attendance vote for a student.

    Args:
        db: Database session
        roster: Roster oracle for authorization and consensus mode
        teacher_id: Authoring teacher
        tenant_id: Teacher's school
        student_id: Student being marked
        date: Calendar day
        requested_status: PRESENT or ABSENT
        notes: Optional free text
        context: Request details for the audit trail

    Returns:
        The stored record, with the resolved status

    Raises:
        AttendanceValidationError: Bad date, status or notes
        StudentAccessDeniedError: Teacher is not assigned to the student
        DuplicateAttendanceError: Teacher already recorded this student today
    """
    requested_status = validate_requested_status(requested_status)
    validate_attendance_date(date)
    validate_notes(notes)

    try:
        await ensure_student_access(
            roster, teacher_id=teacher_id, student_id=student_id, tenant_id=tenant_id
        )
    except StudentAccessDeniedError:
        _audit(
            AccessAction.ATTENDANCE_CREATE,
            teacher_id=teacher_id,
            tenant_id=tenant_id,
            context=context,
            success=False,
            details={"student_id": student_id, "reason": "no_roster_access"},
        )
        raise

    status = await determine_initial_status(roster, student_id, tenant_id, requested_status)
    if is_pending(status):
        status = await reconcile(
            db,
            roster,
            student_id=student_id,
            date=date,
            tenant_id=tenant_id,
            teacher_id=teacher_id,
            new_status=status,
        )

    record = await repository.create(
        db,
        tenant_id=tenant_id,
        teacher_id=teacher_id,
        student_id=student_id,
        date=date,
        status=status,
        notes=notes,
    )

    if status not in REQUESTABLE_STATUSES:
        await settle_siblings(
            db,
            student_id=student_id,
            date=date,
            tenant_id=tenant_id,
            teacher_id=teacher_id,
            caller_status=status,
        )

    logger.info(
        f"Attendance recorded: id={record.id}, teacher={teacher_id}, student={student_id}, "
        f"date={date.isoformat()}, status={status.value}"
    )
    _audit(
        AccessAction.ATTENDANCE_CREATE,
        teacher_id=teacher_id,
        tenant_id=tenant_id,
        context=context,
        details={"attendance_id": record.id, "student_id": student_id, "status": status.value},
    )

    return record


async def update_attendance(
    db: AsyncSession,
    roster: RosterOracle,
    attendance_id: str,
    *,
    teacher_id: str,
    tenant_id: str,
    changes: dict[str, Any],
    context: RequestContext | None = None,
) -> Attendance:
    """
    Update status and/or notes on the teacher's own record.

    A status change is reconciled with the other teachers' current votes.
    Only keys present in ``changes`` are written.

    Raises:
        AttendanceNotFoundError: No such record in the teacher's school
        AttendanceOwnershipError: Record belongs to another teacher
        AttendanceValidationError: Nothing to change, or bad status/notes
    """
    changes = {key: value for key, value in changes.items() if key in ("status", "notes")}
    if not changes:
        raise AttendanceValidationError("At least one field (status or notes) must be provided")

    existing = await _load_own_record(
        db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id
    )

    updates: dict[str, Any] = {}
    if "notes" in changes:
        updates["notes"] = validate_notes(changes["notes"]) or None

    if "status" in changes:
        requested_status = validate_requested_status(changes["status"])
        updates["status"] = await reconcile(
            db,
            roster,
            student_id=existing.student_id,
            date=existing.date,
            tenant_id=tenant_id,
            teacher_id=teacher_id,
            new_status=requested_status,
        )

    record = await repository.update(
        db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id, **updates
    )
    if record is None:
        # Deleted between the ownership check and the write
        raise AttendanceNotFoundError(attendance_id)

    new_status = updates.get("status")
    if new_status is not None and new_status not in REQUESTABLE_STATUSES:
        await settle_siblings(
            db,
            student_id=record.student_id,
            date=record.date,
            tenant_id=tenant_id,
            teacher_id=teacher_id,
            caller_status=new_status,
        )

    logger.info(
        f"Attendance updated: id={attendance_id}, teacher={teacher_id}, "
        f"fields={sorted(updates)}"
    )
    _audit(
        AccessAction.ATTENDANCE_UPDATE,
        teacher_id=teacher_id,
        tenant_id=tenant_id,
        context=context,
        details={
            "attendance_id": attendance_id,
            "fields": sorted(updates),
            "status": record.status.value,
        },
    )

    return record


async def delete_attendance(
    db: AsyncSession,
    attendance_id: str,
    *,
    teacher_id: str,
    tenant_id: str,
    context: RequestContext | None = None,
) -> bool:
    """
    Delete the teacher's own record.

    Other teachers' records for the same student and date are untouched;
    they are re-evaluated the next time one of them is written.

    Returns:
        True if the record was deleted, False if it does not exist

    Raises:
        AttendanceOwnershipError: Record belongs to another teacher
    """
    try:
        await _load_own_record(db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id)
    except AttendanceNotFoundError:
        return False

    deleted = await repository.delete(
        db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id
    )

    if deleted:
        logger.info(f"Attendance deleted: id={attendance_id}, teacher={teacher_id}")
        _audit(
            AccessAction.ATTENDANCE_DELETE,
            teacher_id=teacher_id,
            tenant_id=tenant_id,
            context=context,
            details={"attendance_id": attendance_id},
        )

    return deleted


# ============================================
# Reads
# ============================================


async def get_attendance(
    db: AsyncSession,
    attendance_id: str,
    *,
    teacher_id: str,
    tenant_id: str,
) -> Attendance:
    """Get one of the teacher's own records."""
    return await _load_own_record(db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id)


async def get_daily_view(
    db: AsyncSession,
    roster: RosterOracle,
    *,
    teacher_id: str,
    tenant_id: str,
    date: date,
) -> DailyAttendanceView:
    """Records, missing students and counts for a teacher's day."""
    validate_attendance_date(date)
    return await build_daily_view(
        db, roster, teacher_id=teacher_id, tenant_id=tenant_id, date=date
    )


async def get_student_history(
    db: AsyncSession,
    *,
    student_id: str,
    tenant_id: str,
    limit: int = HISTORY_DEFAULT_LIMIT,
) -> list[Attendance]:
    """
    A student's records across all teachers, most recent first.

    Raises:
        AttendanceValidationError: If limit is outside 1..365
    """
    if not 1 <= limit <= HISTORY_MAX_LIMIT:
        raise AttendanceValidationError(f"Limit must be between 1 and {HISTORY_MAX_LIMIT}")

    return await repository.list_student_history(
        db, student_id=student_id, tenant_id=tenant_id, limit=limit
    )


async def check_consensus(
    db: AsyncSession,
    *,
    student_id: str,
    date: date,
    tenant_id: str,
) -> bool:
    """True if co-teachers have confirmed the student's attendance for the date."""
    return await has_consensus(db, student_id=student_id, date=date, tenant_id=tenant_id)
