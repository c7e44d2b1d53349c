"""
Unit tests for the attendance repository.

These tests focus on duplicate detection, the updatable-field whitelist and
commit behavior, using a mocked session.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.modules.attendance import repository
from app.modules.attendance.errors import DuplicateAttendanceError
from app.modules.attendance.status import AttendanceStatus


class _PgError(Exception):
    """Mimics a DBAPI error carrying a SQLSTATE."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity_error(message: str, sqlstate: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT INTO attendance ...", {}, _PgError(message, sqlstate))


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestDuplicateDetection:
    """Tests for _is_duplicate_record_error()."""

    def test_matches_constraint_name(self):
        error = _integrity_error(
            'duplicate key value violates unique constraint '
            '"uq_attendance_tenant_student_teacher_date"'
        )
        assert repository._is_duplicate_record_error(error)

    def test_matches_unique_violation_on_attendance(self):
        error = _integrity_error('duplicate key on "attendance"', sqlstate="23505")
        assert repository._is_duplicate_record_error(error)

    def test_foreign_key_violation_is_not_duplicate(self):
        error = _integrity_error(
            'insert on table "attendance" violates foreign key constraint', sqlstate="23503"
        )
        assert not repository._is_duplicate_record_error(error)


class TestCreate:
    """Tests for create()."""

    @pytest.mark.asyncio
    async def test_create_commits_and_refreshes(self, mock_db, ids):
        record = await repository.create(
            mock_db,
            tenant_id=ids.school,
            teacher_id=ids.teacher_1,
            student_id=ids.student_a,
            date=ids.day,
            status=AttendanceStatus.PENDING_PRESENT,
            notes="",
        )

        mock_db.add.assert_called_once_with(record)
        mock_db.commit.assert_awaited_once()
        mock_db.refresh.assert_awaited_once_with(record)
        assert record.school_id == ids.school
        assert record.status == AttendanceStatus.PENDING_PRESENT
        # Empty notes are stored as NULL
        assert record.notes is None

    @pytest.mark.asyncio
    async def test_duplicate_raises_conflict_and_rolls_back(self, mock_db, ids):
        mock_db.commit.side_effect = _integrity_error(
            "uq_attendance_tenant_student_teacher_date", sqlstate="23505"
        )

        with pytest.raises(DuplicateAttendanceError) as exc_info:
            await repository.create(
                mock_db,
                tenant_id=ids.school,
                teacher_id=ids.teacher_1,
                student_id=ids.student_a,
                date=ids.day,
                status=AttendanceStatus.PRESENT,
            )

        assert exc_info.value.student_id == ids.student_a
        assert exc_info.value.date == ids.day
        mock_db.rollback.assert_awaited_once()
        mock_db.refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(self, mock_db, ids):
        mock_db.commit.side_effect = _integrity_error(
            "violates foreign key constraint fk_attendance_student_id", sqlstate="23503"
        )

        with pytest.raises(IntegrityError):
            await repository.create(
                mock_db,
                tenant_id=ids.school,
                teacher_id=ids.teacher_1,
                student_id=ids.student_a,
                date=ids.day,
                status=AttendanceStatus.PRESENT,
            )

        mock_db.rollback.assert_awaited_once()


class TestUpdate:
    """Tests for update()."""

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, mock_db, ids):
        with pytest.raises(ValueError, match="school_id"):
            await repository.update(
                mock_db,
                "some-id",
                teacher_id=ids.teacher_1,
                tenant_id=ids.school,
                school_id=ids.other_school,
            )

        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_record_returns_none(self, mock_db, ids):
        mock_db.execute.return_value = _result(None)

        result = await repository.update(
            mock_db,
            "some-id",
            teacher_id=ids.teacher_1,
            tenant_id=ids.school,
            status=AttendanceStatus.ABSENT,
        )

        assert result is None
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_writes_only_given_fields(self, mock_db, sample_attendance_model, ids):
        sample_attendance_model.notes = "keep me"
        mock_db.execute.return_value = _result(sample_attendance_model)

        result = await repository.update(
            mock_db,
            sample_attendance_model.id,
            teacher_id=ids.teacher_1,
            tenant_id=ids.school,
            status=AttendanceStatus.ABSENT,
        )

        assert result is sample_attendance_model
        assert result.status == AttendanceStatus.ABSENT
        assert result.notes == "keep me"
        mock_db.commit.assert_awaited_once()
        mock_db.refresh.assert_awaited_once_with(sample_attendance_model)


class TestDelete:
    """Tests for delete()."""

    @pytest.mark.asyncio
    async def test_delete_returns_true_when_row_removed(self, mock_db, ids):
        mock_db.execute.return_value = _result("deleted-id")

        assert await repository.delete(
            mock_db, "deleted-id", teacher_id=ids.teacher_1, tenant_id=ids.school
        )
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_returns_false_when_nothing_matched(self, mock_db, ids):
        mock_db.execute.return_value = _result(None)

        assert not await repository.delete(
            mock_db, "missing", teacher_id=ids.teacher_1, tenant_id=ids.school
        )


class TestSetStatuses:
    """Tests for set_statuses()."""

    @pytest.mark.asyncio
    async def test_single_commit_for_all_changes(self, mock_db, sample_attendance_model):
        other = MagicMock()
        other.id = "other-id"
        mock_db.execute.side_effect = [_result(sample_attendance_model.id), _result(other.id)]

        applied = await repository.set_statuses(
            mock_db,
            [
                (
                    sample_attendance_model,
                    AttendanceStatus.PENDING_PRESENT,
                    AttendanceStatus.CONFIRMED_PRESENT,
                ),
                (other, AttendanceStatus.PENDING_ABSENT, AttendanceStatus.CONFIRMED_ABSENT),
            ],
        )

        assert applied == [sample_attendance_model, other]
        assert mock_db.execute.await_count == 2
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_is_conditional_on_observed_status(self, mock_db, sample_attendance_model):
        mock_db.execute.return_value = _result(sample_attendance_model.id)

        await repository.set_statuses(
            mock_db,
            [
                (
                    sample_attendance_model,
                    AttendanceStatus.PENDING_PRESENT,
                    AttendanceStatus.CONFIRMED_PRESENT,
                )
            ],
        )

        stmt = mock_db.execute.call_args.args[0]
        compiled = stmt.compile()
        assert "UPDATE attendance" in str(compiled)
        assert "attendance.status = " in str(compiled).split("WHERE", 1)[1]
        assert sample_attendance_model.id in compiled.params.values()

    @pytest.mark.asyncio
    async def test_row_changed_since_read_is_skipped(self, mock_db, sample_attendance_model):
        """No row matches the observed status: the record is left alone."""
        mock_db.execute.return_value = _result(None)

        applied = await repository.set_statuses(
            mock_db,
            [
                (
                    sample_attendance_model,
                    AttendanceStatus.PENDING_PRESENT,
                    AttendanceStatus.CONFIRMED_PRESENT,
                )
            ],
        )

        assert applied == []
        assert sample_attendance_model.status == AttendanceStatus.PRESENT

    @pytest.mark.asyncio
    async def test_no_changes_no_commit(self, mock_db):
        assert await repository.set_statuses(mock_db, []) == []

        mock_db.execute.assert_not_awaited()
        mock_db.commit.assert_not_awaited()
