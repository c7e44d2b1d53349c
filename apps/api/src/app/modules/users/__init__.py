"""
Users module - Principals that record attendance.
"""

from app.modules.users.models import ATTENDANCE_ROLES, User, UserRole

__all__ = ["ATTENDANCE_ROLES", "User", "UserRole"]
