"""
Attendance Errors

Typed errors raised by the attendance store, resolver and service. Each
carries a stable error code and the HTTP status the router maps it to.
"""

from datetime import date


class AttendanceServiceError(Exception):
    """Base exception for attendance errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class AttendanceNotFoundError(AttendanceServiceError):
    """Raised when a record does not exist in the caller's school."""

    def __init__(self, attendance_id: str | None = None):
        message = (
            f"Attendance record {attendance_id} not found"
            if attendance_id
            else "Attendance record not found"
        )
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
        )


class DuplicateAttendanceError(AttendanceServiceError):
    """Raised when the teacher already recorded this student on this date."""

    def __init__(self, student_id: str, on_date: date):
        self.student_id = student_id
        self.date = on_date
        super().__init__(
            message=f"Attendance already recorded for student {student_id} on {on_date.isoformat()}",
            error_code="CONFLICT",
            status_code=409,
        )


class StudentAccessDeniedError(AttendanceServiceError):
    """Raised when the teacher has no roster access to the student."""

    def __init__(self, message: str = "Teacher cannot record attendance for this student"):
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=403,
        )


class AttendanceOwnershipError(AttendanceServiceError):
    """Raised when a teacher tries to change another teacher's record."""

    def __init__(self):
        super().__init__(
            message="Only the teacher who recorded this attendance may change it",
            error_code="FORBIDDEN",
            status_code=403,
        )


class AttendanceValidationError(AttendanceServiceError):
    """Raised for malformed dates, unsupported statuses or oversized notes."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
        )
