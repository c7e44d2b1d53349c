"""
Unit tests for attendance statuses and the normalizer.
"""

import pytest

from app.modules.attendance.status import (
    BASE_STATUS,
    REQUESTABLE_STATUSES,
    STATUS_LABELS,
    AttendanceStatus,
    is_confirmed,
    is_consensus,
    is_pending,
    normalize,
    status_label,
    to_confirmed,
    to_pending,
)


class TestNormalize:
    """Tests for normalize()."""

    def test_every_status_is_mapped(self):
        """Every member has a base vote and a label."""
        for status in AttendanceStatus:
            assert status in BASE_STATUS
            assert status in STATUS_LABELS

    @pytest.mark.parametrize(
        "status,expected",
        [
            (AttendanceStatus.PRESENT, AttendanceStatus.PRESENT),
            (AttendanceStatus.PENDING_PRESENT, AttendanceStatus.PRESENT),
            (AttendanceStatus.CONFIRMED_PRESENT, AttendanceStatus.PRESENT),
            (AttendanceStatus.ABSENT, AttendanceStatus.ABSENT),
            (AttendanceStatus.PENDING_ABSENT, AttendanceStatus.ABSENT),
            (AttendanceStatus.CONFIRMED_ABSENT, AttendanceStatus.ABSENT),
        ],
    )
    def test_normalize_maps_to_base_vote(self, status, expected):
        assert normalize(status) == expected

    def test_normalize_is_idempotent(self):
        """normalize(normalize(s)) == normalize(s) for every status."""
        for status in AttendanceStatus:
            assert normalize(normalize(status)) == normalize(status)

    def test_normalize_accepts_string_values(self):
        assert normalize("confirmed_absent") == AttendanceStatus.ABSENT

    def test_normalize_rejects_unknown_value(self):
        with pytest.raises(ValueError):
            normalize("late")


class TestStatusForms:
    """Tests for pending/confirmed conversions and predicates."""

    def test_to_pending(self):
        assert to_pending(AttendanceStatus.PRESENT) == AttendanceStatus.PENDING_PRESENT
        assert to_pending(AttendanceStatus.CONFIRMED_ABSENT) == AttendanceStatus.PENDING_ABSENT
        assert to_pending(AttendanceStatus.PENDING_PRESENT) == AttendanceStatus.PENDING_PRESENT

    def test_to_confirmed(self):
        assert to_confirmed(AttendanceStatus.PENDING_PRESENT) == AttendanceStatus.CONFIRMED_PRESENT
        assert to_confirmed(AttendanceStatus.ABSENT) == AttendanceStatus.CONFIRMED_ABSENT

    def test_pending_statuses(self):
        pending = {s for s in AttendanceStatus if is_pending(s)}
        assert pending == {AttendanceStatus.PENDING_PRESENT, AttendanceStatus.PENDING_ABSENT}

    def test_confirmed_is_complement_of_pending(self):
        for status in AttendanceStatus:
            assert is_confirmed(status) is not is_pending(status)

    def test_consensus_only_for_confirmed_forms(self):
        consensus = {s for s in AttendanceStatus if is_consensus(s)}
        assert consensus == {AttendanceStatus.CONFIRMED_PRESENT, AttendanceStatus.CONFIRMED_ABSENT}

    def test_only_present_and_absent_are_requestable(self):
        assert REQUESTABLE_STATUSES == {AttendanceStatus.PRESENT, AttendanceStatus.ABSENT}

    def test_status_label(self):
        assert status_label(AttendanceStatus.PENDING_PRESENT) == "Pending Present"
        assert status_label("confirmed_absent") == "Confirmed Absent"
