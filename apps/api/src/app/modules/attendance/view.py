"""
Daily Attendance View

Read-only composite of a teacher's records for a day, the roster students
still missing a record, and summary counts.
"""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.attendance import repository
from app.modules.attendance.helpers import build_summary
from app.modules.attendance.schemas import (
    AttendanceMetadata,
    AttendanceResponse,
    DailyAttendanceView,
)
from app.modules.attendance.status import is_pending
from app.modules.roster.oracle import RosterOracle

logger = logging.getLogger(__name__)


async def build_daily_view(
    db: AsyncSession,
    roster: RosterOracle,
    *,
    teacher_id: str,
    tenant_id: str,
    date: date,
) -> DailyAttendanceView:
    """
    Build the daily view for one teacher.

    Records are enriched with student info when the student is on the
    teacher's roster. Students with a record but no longer on the roster are
    still listed, without student info.
    """
    records = await repository.list_for_teacher_date(
        db, teacher_id=teacher_id, date=date, tenant_id=tenant_id
    )
    students = await roster.teacher_roster(teacher_id, tenant_id)

    students_by_id = {student.id: student for student in students}
    recorded_ids = {record.student_id for record in records}

    attendance_records = []
    for record in records:
        response = AttendanceResponse.model_validate(record)
        response.student = students_by_id.get(record.student_id)
        attendance_records.append(response)

    missing = [student for student in students if student.id not in recorded_ids]

    metadata = AttendanceMetadata(
        total_students=len(students),
        recorded_attendance=len(records),
        pending_consensus=sum(1 for record in records if is_pending(record.status)),
    )

    logger.debug(
        f"Daily view for teacher {teacher_id} on {date}: "
        f"{metadata.recorded_attendance}/{metadata.total_students} recorded"
    )

    return DailyAttendanceView(
        date=date,
        attendance_records=attendance_records,
        students_without_attendance=missing,
        metadata=metadata,
        summary=build_summary(len(students), records),
    )
