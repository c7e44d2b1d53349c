"""
Roster module - Teacher/student assignments and the Roster Oracle.
"""

from app.modules.roster.models import Student, TeacherStudentAssignment
from app.modules.roster.oracle import RosterOracle, SqlRosterOracle
from app.modules.roster.schemas import StudentInfo

__all__ = [
    "RosterOracle",
    "SqlRosterOracle",
    "Student",
    "StudentInfo",
    "TeacherStudentAssignment",
]
