"""
Unit tests for attendance request schemas.
"""

from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.modules.attendance.schemas import AttendanceCreate, AttendanceResponse, AttendanceUpdate
from app.modules.attendance.status import AttendanceStatus


def _create_payload(**overrides):
    payload = {
        "student_id": str(uuid4()),
        "date": date(2025, 10, 3).isoformat(),
        "status": "present",
    }
    payload.update(overrides)
    return payload


class TestAttendanceCreate:
    """Tests for AttendanceCreate validation."""

    def test_valid_payload(self):
        body = AttendanceCreate(**_create_payload(notes="bus was late"))

        assert body.status == AttendanceStatus.PRESENT
        assert body.notes == "bus was late"

    def test_today_is_allowed(self):
        today = datetime.now(UTC).date()
        body = AttendanceCreate(**_create_payload(date=today.isoformat()))
        assert body.date == today

    def test_future_date_rejected(self):
        with pytest.raises(ValidationError, match="future"):
            AttendanceCreate(**_create_payload(date=(date.today() + timedelta(days=2)).isoformat()))

    def test_date_before_2020_rejected(self):
        with pytest.raises(ValidationError, match="2020-01-01"):
            AttendanceCreate(**_create_payload(date="2019-12-31"))

    @pytest.mark.parametrize("status", ["pending_present", "confirmed_absent"])
    def test_derived_statuses_rejected(self, status):
        with pytest.raises(ValidationError):
            AttendanceCreate(**_create_payload(status=status))

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            AttendanceCreate(**_create_payload(status="late"))

    def test_notes_length_bound(self):
        AttendanceCreate(**_create_payload(notes="x" * 10_000))

        with pytest.raises(ValidationError):
            AttendanceCreate(**_create_payload(notes="x" * 10_001))

    def test_student_id_must_be_uuid(self):
        with pytest.raises(ValidationError):
            AttendanceCreate(**_create_payload(student_id="not-a-uuid"))


class TestAttendanceUpdate:
    """Tests for AttendanceUpdate validation."""

    def test_requires_a_field(self):
        with pytest.raises(ValidationError, match="At least one field"):
            AttendanceUpdate()

    def test_null_status_rejected(self):
        with pytest.raises(ValidationError):
            AttendanceUpdate(status=None)

    def test_pending_status_rejected(self):
        with pytest.raises(ValidationError):
            AttendanceUpdate(status="pending_absent")

    def test_changes_contains_only_sent_fields(self):
        assert AttendanceUpdate(status="absent").changes() == {"status": AttendanceStatus.ABSENT}

    def test_explicit_null_notes_kept_in_changes(self):
        """notes: null clears the notes, so it must reach the service."""
        assert AttendanceUpdate(notes=None).changes() == {"notes": None}

    def test_status_and_notes(self):
        changes = AttendanceUpdate(status="present", notes="ok").changes()
        assert changes == {"status": AttendanceStatus.PRESENT, "notes": "ok"}


class TestAttendanceResponse:
    """Tests for the derived fields on AttendanceResponse."""

    @pytest.mark.parametrize(
        "status, label, final",
        [
            (AttendanceStatus.PRESENT, "Present", True),
            (AttendanceStatus.PENDING_ABSENT, "Pending Absent", False),
            (AttendanceStatus.CONFIRMED_PRESENT, "Confirmed Present", True),
        ],
    )
    def test_label_and_finality(self, status, label, final):
        now = datetime.now(UTC)
        response = AttendanceResponse(
            id=str(uuid4()),
            student_id=str(uuid4()),
            teacher_id=str(uuid4()),
            date=date(2025, 10, 3),
            status=status,
            created_at=now,
            updated_at=now,
        )

        dumped = response.model_dump()
        assert dumped["status_label"] == label
        assert dumped["is_final"] is final
