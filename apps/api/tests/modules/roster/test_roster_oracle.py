"""
Unit tests for the SQL-backed roster oracle.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.modules.roster.oracle import SqlRosterOracle

SCHOOL_ID = "11111111-1111-1111-1111-111111111111"
TEACHER_ID = "aaaaaaaa-0000-0000-0000-000000000001"
STUDENT_ID = "bbbbbbbb-0000-0000-0000-00000000000a"


def _scalars_result(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


class TestAssignedTeachers:
    """Tests for assigned_teachers() and is_co_teaching()."""

    @pytest.mark.asyncio
    async def test_returns_teacher_ids_as_strings(self, mock_db):
        mock_db.execute.return_value = _scalars_result([TEACHER_ID, "t-2"])

        teachers = await SqlRosterOracle(mock_db).assigned_teachers(STUDENT_ID, SCHOOL_ID)

        assert teachers == [TEACHER_ID, "t-2"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count,expected", [(0, False), (1, False), (2, True), (3, True)])
    async def test_co_teaching_needs_two_teachers(self, mock_db, count, expected):
        result = MagicMock()
        result.scalar_one.return_value = count
        mock_db.execute.return_value = result

        assert await SqlRosterOracle(mock_db).is_co_teaching(STUDENT_ID, SCHOOL_ID) is expected

    @pytest.mark.asyncio
    async def test_query_is_scoped_to_school(self, mock_db):
        mock_db.execute.return_value = _scalars_result([])

        await SqlRosterOracle(mock_db).assigned_teachers(STUDENT_ID, SCHOOL_ID)

        stmt = mock_db.execute.call_args.args[0]
        compiled = stmt.compile()
        assert SCHOOL_ID in compiled.params.values()
        assert "is_active" in str(compiled)


class TestCanTeacherAccessStudent:
    """Tests for can_teacher_access_student()."""

    @pytest.mark.asyncio
    async def test_active_assignment_grants_access(self, mock_db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = "assignment-id"
        mock_db.execute.return_value = result

        assert await SqlRosterOracle(mock_db).can_teacher_access_student(
            TEACHER_ID, STUDENT_ID, SCHOOL_ID
        )

    @pytest.mark.asyncio
    async def test_no_assignment_denies_access(self, mock_db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = result

        assert not await SqlRosterOracle(mock_db).can_teacher_access_student(
            TEACHER_ID, STUDENT_ID, SCHOOL_ID
        )


class TestTeacherRoster:
    """Tests for teacher_roster()."""

    @pytest.mark.asyncio
    async def test_returns_student_info(self, mock_db):
        student = SimpleNamespace(
            id=STUDENT_ID, first_name="Ama", last_name="Kamara", date_of_birth=None
        )
        mock_db.execute.return_value = _scalars_result([student])

        roster = await SqlRosterOracle(mock_db).teacher_roster(TEACHER_ID, SCHOOL_ID)

        assert len(roster) == 1
        assert roster[0].id == STUDENT_ID
        assert roster[0].first_name == "Ama"
