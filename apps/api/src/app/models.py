"""
ORM model registry.

Importing this module registers every table on ``Base.metadata`` so foreign
keys resolve and Alembic autogenerate sees the full schema.
"""

from app.core.database import Base
from app.modules.access_logs.models import AccessLog
from app.modules.attendance.models import Attendance
from app.modules.roster.models import Student, TeacherStudentAssignment
from app.modules.schools.models import School
from app.modules.users.models import User

__all__ = [
    "AccessLog",
    "Attendance",
    "Base",
    "School",
    "Student",
    "TeacherStudentAssignment",
    "User",
]
