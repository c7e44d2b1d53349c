"""
Attendance Status

The six attendance statuses and the pure helpers the consensus engine is
built on.

- Single teacher: PRESENT / ABSENT are final on first write.
- Co-teaching: PENDING_* until every assigned teacher has voted and agrees,
  then CONFIRMED_*.

Every helper is driven by an explicit mapping keyed by every member of
``AttendanceStatus``; adding a status without mapping it fails at import.
"""

import enum


class AttendanceStatus(str, enum.Enum):
    """Status of one teacher's attendance record."""

    # Final states for single teacher
    PRESENT = "present"
    ABSENT = "absent"

    # Intermediate states for co-teaching consensus
    PENDING_PRESENT = "pending_present"
    PENDING_ABSENT = "pending_absent"

    # Final states for co-teaching with consensus
    CONFIRMED_PRESENT = "confirmed_present"
    CONFIRMED_ABSENT = "confirmed_absent"


# Statuses a teacher may submit; everything else is derived by the resolver
REQUESTABLE_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.ABSENT})

BASE_STATUS: dict[AttendanceStatus, AttendanceStatus] = {
    AttendanceStatus.PRESENT: AttendanceStatus.PRESENT,
    AttendanceStatus.PENDING_PRESENT: AttendanceStatus.PRESENT,
    AttendanceStatus.CONFIRMED_PRESENT: AttendanceStatus.PRESENT,
    AttendanceStatus.ABSENT: AttendanceStatus.ABSENT,
    AttendanceStatus.PENDING_ABSENT: AttendanceStatus.ABSENT,
    AttendanceStatus.CONFIRMED_ABSENT: AttendanceStatus.ABSENT,
}

PENDING_FORM: dict[AttendanceStatus, AttendanceStatus] = {
    AttendanceStatus.PRESENT: AttendanceStatus.PENDING_PRESENT,
    AttendanceStatus.ABSENT: AttendanceStatus.PENDING_ABSENT,
}

CONFIRMED_FORM: dict[AttendanceStatus, AttendanceStatus] = {
    AttendanceStatus.PRESENT: AttendanceStatus.CONFIRMED_PRESENT,
    AttendanceStatus.ABSENT: AttendanceStatus.CONFIRMED_ABSENT,
}

PENDING_STATUSES = frozenset({AttendanceStatus.PENDING_PRESENT, AttendanceStatus.PENDING_ABSENT})

CONSENSUS_STATUSES = frozenset(
    {AttendanceStatus.CONFIRMED_PRESENT, AttendanceStatus.CONFIRMED_ABSENT}
)

STATUS_LABELS: dict[AttendanceStatus, str] = {
    AttendanceStatus.PRESENT: "Present",
    AttendanceStatus.ABSENT: "Absent",
    AttendanceStatus.PENDING_PRESENT: "Pending Present",
    AttendanceStatus.PENDING_ABSENT: "Pending Absent",
    AttendanceStatus.CONFIRMED_PRESENT: "Confirmed Present",
    AttendanceStatus.CONFIRMED_ABSENT: "Confirmed Absent",
}

_missing = set(AttendanceStatus) - BASE_STATUS.keys() | set(AttendanceStatus) - STATUS_LABELS.keys()
if _missing:
    raise RuntimeError(f"Unmapped attendance statuses: {sorted(s.value for s in _missing)}")


def normalize(status: AttendanceStatus) -> AttendanceStatus:
    """
    Map any status to its base vote, PRESENT or ABSENT.

    Example: CONFIRMED_PRESENT -> PRESENT, PENDING_ABSENT -> ABSENT
    """
    return BASE_STATUS[AttendanceStatus(status)]


def to_pending(status: AttendanceStatus) -> AttendanceStatus:
    """Return the pending form of the status's vote."""
    return PENDING_FORM[normalize(status)]


def to_confirmed(status: AttendanceStatus) -> AttendanceStatus:
    """Return the confirmed form of the status's vote."""
    return CONFIRMED_FORM[normalize(status)]


def is_pending(status: AttendanceStatus) -> bool:
    """True if the record is awaiting co-teacher agreement."""
    return AttendanceStatus(status) in PENDING_STATUSES


def is_confirmed(status: AttendanceStatus) -> bool:
    """True for final states: single-teacher PRESENT/ABSENT and CONFIRMED_*."""
    return AttendanceStatus(status) not in PENDING_STATUSES


def is_consensus(status: AttendanceStatus) -> bool:
    """True only for CONFIRMED_PRESENT / CONFIRMED_ABSENT."""
    return AttendanceStatus(status) in CONSENSUS_STATUSES


def status_label(status: AttendanceStatus) -> str:
    """Display label for a status."""
    return STATUS_LABELS[AttendanceStatus(status)]
