"""
Unit tests for fire-and-forget access logging.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.access_logs import service
from app.modules.access_logs.models import AccessAction


def _session_maker(session):
    """async_session_maker stand-in yielding ``session``."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestLogAttendanceEvent:
    """Tests for log_attendance_event()."""

    @pytest.mark.asyncio
    async def test_write_is_scheduled_in_background(self, mock_db):
        with (
            patch.object(service, "async_session_maker", _session_maker(mock_db)),
            patch.object(service.repository, "create", AsyncMock()) as mock_create,
        ):
            task = service.log_attendance_event(
                AccessAction.ATTENDANCE_CREATE,
                user_id="teacher-1",
                school_id="school-1",
                route="POST /teacher/attendance",
                details={"attendance_id": "a-1"},
                ip_address="10.0.0.1",
            )
            assert task is not None
            await task

        mock_create.assert_awaited_once()
        kwargs = mock_create.call_args.kwargs
        assert kwargs["action"] == "attendance_create"
        assert kwargs["success"] is True
        assert kwargs["user_id"] == "teacher-1"
        assert kwargs["details"] == {"attendance_id": "a-1"}

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self, mock_db):
        with (
            patch.object(service, "async_session_maker", _session_maker(mock_db)),
            patch.object(service.repository, "create", AsyncMock(side_effect=RuntimeError("db down"))),
        ):
            task = service.log_attendance_event(
                AccessAction.ATTENDANCE_DELETE,
                user_id="teacher-1",
                school_id="school-1",
                route="DELETE /teacher/attendance/x",
            )
            await task

        assert task.exception() is None

    @pytest.mark.asyncio
    async def test_drain_waits_for_pending_writes(self, mock_db):
        with (
            patch.object(service, "async_session_maker", _session_maker(mock_db)),
            patch.object(service.repository, "create", AsyncMock()) as mock_create,
        ):
            service.log_attendance_event(
                AccessAction.ATTENDANCE_UPDATE,
                user_id="teacher-1",
                school_id="school-1",
                route="PUT /teacher/attendance/x",
                success=False,
            )
            await service.drain_pending_writes()

        mock_create.assert_awaited_once()

    def test_without_event_loop_returns_none(self):
        task = service.log_attendance_event(
            AccessAction.ATTENDANCE_CREATE,
            user_id="teacher-1",
            school_id="school-1",
            route="internal",
        )

        assert task is None
