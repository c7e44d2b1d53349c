"""
Access Logs module - Audit trail of attendance mutations.
"""

from app.modules.access_logs.models import AccessAction, AccessLog
from app.modules.access_logs.service import log_attendance_event

__all__ = [
    "AccessAction",
    "AccessLog",
    "log_attendance_event",
]
