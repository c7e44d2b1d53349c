"""
Attendance Validation

Bounds shared by the request schemas and the service layer, so callers that
bypass HTTP get the same rules.
"""

from datetime import UTC, date, datetime

from app.modules.attendance.errors import AttendanceValidationError
from app.modules.attendance.models import NOTES_MAX_LENGTH
from app.modules.attendance.status import REQUESTABLE_STATUSES, AttendanceStatus

# Reasonable minimum for school records
DATE_MIN = date(2020, 1, 1)


def validate_attendance_date(value: date, today: date | None = None) -> date:
    """
    Ensure an attendance date is between DATE_MIN and today (inclusive).

    Raises:
        AttendanceValidationError: If the date is too old or in the future
    """
    today = today or datetime.now(UTC).date()

    if value < DATE_MIN:
        raise AttendanceValidationError(
            f"Date must be on or after {DATE_MIN.isoformat()}"
        )
    if value > today:
        raise AttendanceValidationError("Date cannot be in the future")
    return value


def validate_notes(notes: str | None) -> str | None:
    """Ensure notes are within the length bound."""
    if notes is not None and len(notes) > NOTES_MAX_LENGTH:
        raise AttendanceValidationError(
            f"Notes must be {NOTES_MAX_LENGTH} characters or less"
        )
    return notes


def validate_requested_status(status: AttendanceStatus | str) -> AttendanceStatus:
    """
    Ensure a teacher-submitted status is PRESENT or ABSENT.

    Pending and confirmed statuses are assigned by the consensus resolver and
    cannot be submitted directly.
    """
    try:
        status = AttendanceStatus(status)
    except ValueError as e:
        raise AttendanceValidationError(f"Unsupported attendance status: {status}") from e

    if status not in REQUESTABLE_STATUSES:
        raise AttendanceValidationError(
            f"Status must be one of {sorted(s.value for s in REQUESTABLE_STATUSES)}, "
            f"got {status.value}"
        )
    return status
