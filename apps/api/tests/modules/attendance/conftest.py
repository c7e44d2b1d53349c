"""
Fixtures for attendance tests.

``FakeRoster`` stands in for the roster oracle and ``FakeAttendanceStore``
for the repository module, so consensus scenarios can run end to end
through the service without a database.
"""

from datetime import UTC, date, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from app.modules.attendance.errors import DuplicateAttendanceError
from app.modules.attendance.models import Attendance
from app.modules.attendance.status import AttendanceStatus
from app.modules.roster.schemas import StudentInfo

SCHOOL_ID = "11111111-1111-1111-1111-111111111111"
OTHER_SCHOOL_ID = "22222222-2222-2222-2222-222222222222"
TEACHER_1 = "aaaaaaaa-0000-0000-0000-000000000001"
TEACHER_2 = "aaaaaaaa-0000-0000-0000-000000000002"
TEACHER_3 = "aaaaaaaa-0000-0000-0000-000000000003"
STUDENT_A = "bbbbbbbb-0000-0000-0000-00000000000a"
STUDENT_B = "bbbbbbbb-0000-0000-0000-00000000000b"
STUDENT_C = "bbbbbbbb-0000-0000-0000-00000000000c"
DAY = date(2025, 10, 3)


class FakeRoster:
    """In-memory roster: student_id -> assigned teacher ids."""

    def __init__(self, assignments: dict[str, list[str]] | None = None, fail: bool = False):
        self.assignments = assignments or {}
        self.fail = fail
        self.students = {
            student_id: StudentInfo(id=student_id, first_name="Student", last_name=student_id[-1])
            for student_id in self.assignments
        }

    async def assigned_teachers(self, student_id: str, tenant_id: str) -> list[str]:
        if self.fail:
            raise RuntimeError("roster unavailable")
        return list(self.assignments.get(student_id, []))

    async def is_co_teaching(self, student_id: str, tenant_id: str) -> bool:
        return len(await self.assigned_teachers(student_id, tenant_id)) >= 2

    async def can_teacher_access_student(
        self, teacher_id: str, student_id: str, tenant_id: str
    ) -> bool:
        return teacher_id in self.assignments.get(student_id, [])

    async def teacher_roster(self, teacher_id: str, tenant_id: str) -> list[StudentInfo]:
        return [
            self.students[student_id]
            for student_id, teachers in self.assignments.items()
            if teacher_id in teachers
        ]


class FakeAttendanceStore:
    """In-memory stand-in for ``app.modules.attendance.repository``."""

    def __init__(self):
        self.records: list[SimpleNamespace] = []

    def add(self, *, teacher_id, student_id, status, on_date=DAY, tenant_id=SCHOOL_ID, notes=None):
        now = datetime.now(UTC)
        record = SimpleNamespace(
            id=str(uuid4()),
            school_id=tenant_id,
            teacher_id=teacher_id,
            student_id=student_id,
            date=on_date,
            status=AttendanceStatus(status),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        self.records.append(record)
        return record

    def status_of(self, teacher_id: str, student_id: str = STUDENT_A, on_date: date = DAY):
        for record in self.records:
            if (record.teacher_id, record.student_id, record.date) == (
                teacher_id,
                student_id,
                on_date,
            ):
                return record.status
        return None

    async def create(self, db, *, tenant_id, teacher_id, student_id, date, status, notes=None):
        for record in self.records:
            if (record.school_id, record.student_id, record.teacher_id, record.date) == (
                tenant_id,
                student_id,
                teacher_id,
                date,
            ):
                raise DuplicateAttendanceError(student_id, date)
        return self.add(
            teacher_id=teacher_id,
            student_id=student_id,
            status=status,
            on_date=date,
            tenant_id=tenant_id,
            notes=notes,
        )

    async def get_in_tenant(self, db, attendance_id, *, tenant_id):
        for record in self.records:
            if record.id == attendance_id and record.school_id == tenant_id:
                return record
        return None

    async def get_by_id(self, db, attendance_id, *, teacher_id, tenant_id):
        record = await self.get_in_tenant(db, attendance_id, tenant_id=tenant_id)
        return record if record and record.teacher_id == teacher_id else None

    async def update(self, db, attendance_id, *, teacher_id, tenant_id, **changes):
        record = await self.get_by_id(
            db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id
        )
        if record is None:
            return None
        for key, value in changes.items():
            setattr(record, key, value)
        record.updated_at = datetime.now(UTC)
        return record

    async def delete(self, db, attendance_id, *, teacher_id, tenant_id):
        record = await self.get_by_id(
            db, attendance_id, teacher_id=teacher_id, tenant_id=tenant_id
        )
        if record is None:
            return False
        self.records.remove(record)
        return True

    async def list_for_student_date(self, db, *, student_id, date, tenant_id):
        return [
            record
            for record in self.records
            if (record.student_id, record.date, record.school_id) == (student_id, date, tenant_id)
        ]

    async def list_for_teacher_date(self, db, *, teacher_id, date, tenant_id):
        return [
            record
            for record in self.records
            if (record.teacher_id, record.date, record.school_id) == (teacher_id, date, tenant_id)
        ]

    async def list_student_history(self, db, *, student_id, tenant_id, limit=30):
        records = [
            record
            for record in self.records
            if record.student_id == student_id and record.school_id == tenant_id
        ]
        records.sort(key=lambda r: (r.date, r.created_at), reverse=True)
        return records[:limit]

    async def set_statuses(self, db, changes):
        applied = []
        for record, observed, status in changes:
            if record.status != observed:
                continue
            record.status = status
            applied.append(record)
        return applied


@pytest.fixture
def store():
    return FakeAttendanceStore()


@pytest.fixture
def make_roster():
    """Factory for FakeRoster instances."""
    return FakeRoster


@pytest.fixture
def co_taught_roster():
    """STUDENT_A taught by TEACHER_1 and TEACHER_2; STUDENT_B by TEACHER_1 only."""
    return FakeRoster({STUDENT_A: [TEACHER_1, TEACHER_2], STUDENT_B: [TEACHER_1]})


@pytest.fixture
def patched_store(store):
    """Route service and consensus repository calls to the in-memory store."""
    with (
        patch("app.modules.attendance.service.repository", store),
        patch("app.modules.attendance.consensus.repository", store),
        patch("app.modules.attendance.view.repository", store),
        patch("app.modules.attendance.service.log_attendance_event") as mock_audit,
    ):
        store.audit = mock_audit
        yield store


@pytest.fixture
def ids():
    """Fixed tenant, teacher, student ids and day used across tests."""
    return SimpleNamespace(
        school=SCHOOL_ID,
        other_school=OTHER_SCHOOL_ID,
        teacher_1=TEACHER_1,
        teacher_2=TEACHER_2,
        teacher_3=TEACHER_3,
        student_a=STUDENT_A,
        student_b=STUDENT_B,
        student_c=STUDENT_C,
        day=DAY,
    )


@pytest.fixture
def sample_attendance_model():
    """Create a sample attendance model."""
    record = MagicMock(spec=Attendance)
    record.id = str(uuid4())
    record.school_id = SCHOOL_ID
    record.teacher_id = TEACHER_1
    record.student_id = STUDENT_A
    record.date = DAY
    record.status = AttendanceStatus.PRESENT
    record.notes = None
    record.created_at = datetime.now(UTC)
    record.updated_at = datetime.now(UTC)
    return record
