"""
Attendance Models

One row per teacher, per student, per day. Several teachers may each hold
their own record for the same student and day; the consensus resolver
reconciles them.
"""

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.attendance.status import AttendanceStatus
from app.modules.shared import BaseModel

NOTES_MAX_LENGTH = 10_000


class Attendance(BaseModel):
    """A single teacher's attendance assessment for one student on one date."""

    __tablename__ = "attendance"

    # Multi-tenant: owning school
    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    teacher_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Calendar day, no time component
    date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[AttendanceStatus] = mapped_column(
        ENUM(
            AttendanceStatus,
            name="attendance_status",
            create_type=True,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        # One record per teacher per student per day, within a school.
        # Concurrent inserts for the same tuple are serialized here.
        UniqueConstraint(
            "school_id",
            "student_id",
            "teacher_id",
            "date",
            name="uq_attendance_tenant_student_teacher_date",
        ),
        # Teacher viewing their daily roster
        Index("ix_attendance_teacher_date", "teacher_id", "date"),
        # Consensus reads and student history
        Index("ix_attendance_student_date", "student_id", "date"),
        Index("ix_attendance_school_id", "school_id"),
        Index("ix_attendance_date", "date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Attendance(id={self.id}, student={self.student_id}, teacher={self.teacher_id}, "
            f"date={self.date}, status={self.status.value})>"
        )
