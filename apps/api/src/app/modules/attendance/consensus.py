"""
Consensus Resolver

Decides the stored status of a teacher's attendance record.

- Single-teacher mode (one assigned teacher): the requested status is final.
- Co-teaching mode (two or more assigned teachers): the record stays
  PENDING_* until every assigned teacher has voted. Unanimous votes become
  CONFIRMED_*; a split vote stays in the pending form of the caller's vote.

Statuses are always re-derived from the records currently in the store, so a
decision made from slightly stale sibling state is corrected by the next write
for the same student and date.
"""

import enum
import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.attendance import repository
from app.modules.attendance.models import Attendance
from app.modules.attendance.status import (
    AttendanceStatus,
    is_consensus,
    is_pending,
    normalize,
    to_confirmed,
    to_pending,
)
from app.modules.roster.oracle import RosterOracle

logger = logging.getLogger(__name__)


class ConsensusMode(str, enum.Enum):
    SINGLE = "single"
    CO_TEACHING = "co_teaching"


async def resolve_mode(roster: RosterOracle, student_id: str, tenant_id: str) -> ConsensusMode:
    """
    Ask the roster whether the student is co-taught.

    A roster failure must not block recording attendance, so it falls back
    to single-teacher mode.
    """
    try:
        co_teaching = await roster.is_co_teaching(student_id, tenant_id)
    except Exception as e:
        logger.warning(
            f"Roster lookup failed for student {student_id}, using single-teacher mode: {e}"
        )
        return ConsensusMode.SINGLE

    return ConsensusMode.CO_TEACHING if co_teaching else ConsensusMode.SINGLE


async def determine_initial_status(
    roster: RosterOracle,
    student_id: str,
    tenant_id: str,
    requested_status: AttendanceStatus,
) -> AttendanceStatus:
    """
    Status for a freshly submitted vote, before siblings are considered.

    Single-teacher: the requested status as-is.
    Co-teaching: PRESENT -> PENDING_PRESENT, ABSENT -> PENDING_ABSENT; other
    values pass through.
    """
    requested_status = AttendanceStatus(requested_status)
    mode = await resolve_mode(roster, student_id, tenant_id)

    if mode is ConsensusMode.SINGLE:
        return requested_status

    match requested_status:
        case AttendanceStatus.PRESENT | AttendanceStatus.ABSENT:
            return to_pending(requested_status)
        case _:
            return requested_status


def tally_votes(
    votes: Iterable[AttendanceStatus], assigned_count: int
) -> AttendanceStatus | None:
    """
    Tally a full turnout of votes.

    Returns:
        CONFIRMED_PRESENT or CONFIRMED_ABSENT when every one of the
        ``assigned_count`` votes agrees, otherwise None
    """
    present = absent = 0
    for vote in votes:
        match normalize(vote):
            case AttendanceStatus.PRESENT:
                present += 1
            case AttendanceStatus.ABSENT:
                absent += 1

    if assigned_count > 0 and present == assigned_count:
        return to_confirmed(AttendanceStatus.PRESENT)
    if assigned_count > 0 and absent == assigned_count:
        return to_confirmed(AttendanceStatus.ABSENT)
    return None


async def reconcile(
    db: AsyncSession,
    roster: RosterOracle,
    *,
    student_id: str,
    date: date,
    tenant_id: str,
    teacher_id: str,
    new_status: AttendanceStatus,
) -> AttendanceStatus:
    """
    Derive the caller's status from every assigned teacher's current vote.

    The caller's own stored record (present on update) is replaced by
    ``new_status``; it is never counted twice.
    """
    new_status = AttendanceStatus(new_status)
    mode = await resolve_mode(roster, student_id, tenant_id)
    if mode is ConsensusMode.SINGLE:
        return new_status

    try:
        assigned = set(await roster.assigned_teachers(student_id, tenant_id))
    except Exception as e:
        logger.warning(
            f"Assigned teacher lookup failed for student {student_id}, "
            f"using single-teacher mode: {e}"
        )
        return new_status

    if not assigned:
        logger.warning(f"Student {student_id} reported co-taught with no assigned teachers")
        return new_status

    records = await repository.list_for_student_date(
        db, student_id=student_id, date=date, tenant_id=tenant_id
    )
    votes: dict[str, AttendanceStatus] = {
        record.teacher_id: record.status
        for record in records
        if record.teacher_id != teacher_id and record.teacher_id in assigned
    }
    if teacher_id in assigned:
        votes[teacher_id] = new_status

    if not assigned.issubset(votes):
        logger.debug(
            f"Awaiting votes for student {student_id} on {date}: "
            f"{len(votes)}/{len(assigned)} recorded"
        )
        return to_pending(new_status)

    decided = tally_votes(votes.values(), len(assigned))
    if decided is None:
        logger.info(
            f"Co-teachers disagree for student {student_id} on {date}; record stays pending"
        )
        return to_pending(new_status)

    logger.info(f"Consensus reached for student {student_id} on {date}: {decided.value}")
    return decided


def settle_sibling_status(
    sibling_status: AttendanceStatus, caller_status: AttendanceStatus
) -> AttendanceStatus:
    """
    Re-derive a sibling record's status after the caller's decision.

    - Caller confirmed: siblings with the same vote take the confirmed status.
    - Caller pending: confirmed siblings drop back to their own pending form.
    - Anything else leaves the sibling unchanged.
    """
    sibling_status = AttendanceStatus(sibling_status)
    caller_status = AttendanceStatus(caller_status)

    if is_consensus(caller_status):
        if normalize(sibling_status) == normalize(caller_status):
            return caller_status
        return sibling_status

    if is_pending(caller_status) and is_consensus(sibling_status):
        return to_pending(sibling_status)

    return sibling_status


async def settle_siblings(
    db: AsyncSession,
    *,
    student_id: str,
    date: date,
    tenant_id: str,
    teacher_id: str,
    caller_status: AttendanceStatus,
) -> list[Attendance]:
    """
    Apply ``settle_sibling_status`` to every other teacher's record.

    A sibling whose status moved after it was read is left as its own
    teacher last wrote it.

    Returns:
        The sibling records whose status changed
    """
    records = await repository.list_for_student_date(
        db, student_id=student_id, date=date, tenant_id=tenant_id
    )

    changes: list[tuple[Attendance, AttendanceStatus, AttendanceStatus]] = []
    for record in records:
        if record.teacher_id == teacher_id:
            continue
        observed = AttendanceStatus(record.status)
        settled = settle_sibling_status(observed, caller_status)
        if settled != observed:
            changes.append((record, observed, settled))

    if not changes:
        return []

    applied = await repository.set_statuses(db, changes)
    logger.info(
        f"Settled {len(applied)} of {len(changes)} sibling record(s) for student "
        f"{student_id} on {date} to follow {AttendanceStatus(caller_status).value}"
    )
    return applied


async def has_consensus(
    db: AsyncSession,
    *,
    student_id: str,
    date: date,
    tenant_id: str,
) -> bool:
    """True if any record for the student and date is CONFIRMED_*."""
    records = await repository.list_for_student_date(
        db, student_id=student_id, date=date, tenant_id=tenant_id
    )
    return any(is_consensus(record.status) for record in records)
