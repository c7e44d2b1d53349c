"""
Attendance Helpers

Counting and percentage helpers used by the daily view.
"""

from app.modules.attendance.models import Attendance
from app.modules.attendance.schemas import AttendanceSummary
from app.modules.attendance.status import AttendanceStatus, is_pending, normalize


def percentage(part: int, whole: int) -> int:
    """Rounded percentage, 0 when whole is 0."""
    if whole == 0:
        return 0
    return round(part * 100 / whole)


def build_summary(total_students: int, records: list[Attendance]) -> AttendanceSummary:
    """
    Summarize a teacher's records for a day.

    Present/absent count only settled records (single-teacher final or
    confirmed); pending records are counted separately.
    """
    present = absent = pending = 0
    for record in records:
        if is_pending(record.status):
            pending += 1
        elif normalize(record.status) == AttendanceStatus.PRESENT:
            present += 1
        else:
            absent += 1

    with_notes = sum(1 for record in records if record.notes and record.notes.strip())

    return AttendanceSummary(
        total=total_students,
        present=present,
        absent=absent,
        pending=pending,
        with_notes=with_notes,
        attendance_rate=percentage(present, len(records)),
        completion_rate=percentage(len(records), total_students),
    )
