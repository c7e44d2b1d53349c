"""
Roster Oracle

Answers the roster questions the attendance engine depends on:
- is this student co-taught?
- which teachers are assigned to this student?
- may this teacher record attendance for this student?
- which students are on this teacher's roster?

The attendance service depends only on the ``RosterOracle`` protocol so the
consensus logic can be exercised against any implementation. ``SqlRosterOracle``
answers from the ``teacher_student_assignments`` table; only active
assignments of active students in the caller's school count.
"""

import logging
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.roster.models import Student, TeacherStudentAssignment
from app.modules.roster.schemas import StudentInfo

logger = logging.getLogger(__name__)


class RosterOracle(Protocol):
    """Read-only view of teacher/student assignments."""

    async def is_co_teaching(self, student_id: str, tenant_id: str) -> bool: ...

    async def assigned_teachers(self, student_id: str, tenant_id: str) -> list[str]: ...

    async def can_teacher_access_student(
        self, teacher_id: str, student_id: str, tenant_id: str
    ) -> bool: ...

    async def teacher_roster(self, teacher_id: str, tenant_id: str) -> list[StudentInfo]: ...


def _active_assignment_filters(tenant_id: str) -> tuple:
    return (
        TeacherStudentAssignment.school_id == tenant_id,
        TeacherStudentAssignment.is_active.is_(True),
        Student.school_id == tenant_id,
        Student.is_active.is_(True),
    )


class SqlRosterOracle:
    """RosterOracle backed by the assignments table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def assigned_teachers(self, student_id: str, tenant_id: str) -> list[str]:
        """Return the ids of every teacher actively assigned to the student."""
        stmt = (
            select(TeacherStudentAssignment.teacher_id)
            .select_from(TeacherStudentAssignment)
            .join(Student, Student.id == TeacherStudentAssignment.student_id)
            .where(
                TeacherStudentAssignment.student_id == student_id,
                *_active_assignment_filters(tenant_id),
            )
            .order_by(TeacherStudentAssignment.assigned_at)
        )
        result = await self.db.execute(stmt)
        return [str(teacher_id) for teacher_id in result.scalars().all()]

    async def is_co_teaching(self, student_id: str, tenant_id: str) -> bool:
        """A student is co-taught when two or more teachers are assigned."""
        stmt = (
            select(func.count(TeacherStudentAssignment.id))
            .select_from(TeacherStudentAssignment)
            .join(Student, Student.id == TeacherStudentAssignment.student_id)
            .where(
                TeacherStudentAssignment.student_id == student_id,
                *_active_assignment_filters(tenant_id),
            )
        )
        result = await self.db.execute(stmt)
        return (result.scalar_one() or 0) >= 2

    async def can_teacher_access_student(
        self, teacher_id: str, student_id: str, tenant_id: str
    ) -> bool:
        stmt = (
            select(TeacherStudentAssignment.id)
            .select_from(TeacherStudentAssignment)
            .join(Student, Student.id == TeacherStudentAssignment.student_id)
            .where(
                TeacherStudentAssignment.teacher_id == teacher_id,
                TeacherStudentAssignment.student_id == student_id,
                *_active_assignment_filters(tenant_id),
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        allowed = result.scalar_one_or_none() is not None

        if not allowed:
            logger.info(f"Teacher {teacher_id} has no active assignment for student {student_id}")
        return allowed

    async def teacher_roster(self, teacher_id: str, tenant_id: str) -> list[StudentInfo]:
        """Return the teacher's assigned students, ordered by name."""
        stmt = (
            select(Student)
            .join(TeacherStudentAssignment, TeacherStudentAssignment.student_id == Student.id)
            .where(
                TeacherStudentAssignment.teacher_id == teacher_id,
                *_active_assignment_filters(tenant_id),
            )
            .order_by(Student.first_name, Student.last_name)
        )
        result = await self.db.execute(stmt)
        return [StudentInfo.model_validate(student) for student in result.scalars().all()]
