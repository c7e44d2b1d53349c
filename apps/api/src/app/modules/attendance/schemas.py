"""
Attendance Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from app.modules.attendance import status as attendance_status
from app.modules.attendance.errors import AttendanceValidationError
from app.modules.attendance.models import NOTES_MAX_LENGTH
from app.modules.attendance.status import AttendanceStatus
from app.modules.attendance.validation import validate_attendance_date, validate_requested_status
from app.modules.roster.schemas import StudentInfo

# ============================================
# Requests
# ============================================


def _checked(validator, value):
    try:
        return validator(value)
    except AttendanceValidationError as e:
        raise ValueError(e.message) from e


class AttendanceCreate(BaseModel):
    """Request body for POST /teacher/attendance."""

    student_id: UUID
    date: date
    status: AttendanceStatus
    notes: str | None = Field(None, max_length=NOTES_MAX_LENGTH)

    @field_validator("date")
    @classmethod
    def check_date(cls, value: date) -> date:
        return _checked(validate_attendance_date, value)

    @field_validator("status")
    @classmethod
    def check_status(cls, value: AttendanceStatus) -> AttendanceStatus:
        return _checked(validate_requested_status, value)


class AttendanceUpdate(BaseModel):
    """
    Request body for PUT /teacher/attendance/{id}.

    Omitted fields are left unchanged; ``notes: null`` clears the notes.
    """

    status: AttendanceStatus | None = None
    notes: str | None = Field(None, max_length=NOTES_MAX_LENGTH)

    @field_validator("status")
    @classmethod
    def check_status(cls, value: AttendanceStatus | None) -> AttendanceStatus | None:
        if value is None:
            raise ValueError("status cannot be null")
        return _checked(validate_requested_status, value)

    @model_validator(mode="after")
    def require_a_field(self) -> "AttendanceUpdate":
        if not self.model_fields_set & {"status", "notes"}:
            raise ValueError("At least one field (status or notes) must be provided")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually sent."""
        return self.model_dump(include=self.model_fields_set & {"status", "notes"})


# ============================================
# Responses
# ============================================


class AttendanceResponse(BaseModel):
    """A single attendance record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    teacher_id: str
    date: date
    status: AttendanceStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    student: StudentInfo | None = None

    @computed_field
    @property
    def status_label(self) -> str:
        """Display label, e.g. "Pending Present"."""
        return attendance_status.status_label(self.status)

    @computed_field
    @property
    def is_final(self) -> bool:
        """False while the record awaits co-teacher agreement."""
        return attendance_status.is_confirmed(self.status)


class AttendanceMetadata(BaseModel):
    """Counts for a teacher's roster on a given date."""

    total_students: int = Field(..., ge=0)
    recorded_attendance: int = Field(..., ge=0)
    pending_consensus: int = Field(..., ge=0)


class AttendanceSummary(BaseModel):
    """Summary statistics for a teacher's day."""

    total: int
    present: int
    absent: int
    pending: int
    with_notes: int
    attendance_rate: int = Field(..., description="Percentage of records that are present")
    completion_rate: int = Field(..., description="Percentage of roster with a record")


class DailyAttendanceView(BaseModel):
    """Response for GET /teacher/attendance?date=YYYY-MM-DD."""

    date: date
    attendance_records: list[AttendanceResponse]
    students_without_attendance: list[StudentInfo]
    metadata: AttendanceMetadata
    summary: AttendanceSummary


class AttendanceHistoryResponse(BaseModel):
    """A student's attendance, most recent first."""

    student_id: str
    records: list[AttendanceResponse]
    count: int


class ConsensusResponse(BaseModel):
    """Whether co-teachers agreed on a student's attendance for a date."""

    student_id: str
    date: date
    has_consensus: bool
