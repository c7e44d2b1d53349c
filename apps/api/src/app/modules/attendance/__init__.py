"""
Attendance module - Teacher attendance recording and co-teaching consensus.
"""

from app.modules.attendance.models import Attendance
from app.modules.attendance.router import router
from app.modules.attendance.status import AttendanceStatus

__all__ = [
    "Attendance",
    "AttendanceStatus",
    "router",
]
