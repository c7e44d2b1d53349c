"""
Teacher Attendance Router

API endpoints for teachers recording daily attendance.
All endpoints require a valid JWT for a teacher or school admin with a school.

Endpoints:
- GET /teacher/attendance?date=YYYY-MM-DD - Daily view of the teacher's roster
- POST /teacher/attendance - Record attendance for a student
- GET /teacher/attendance/{id} - Get one of the teacher's records
- PUT /teacher/attendance/{id} - Update status and/or notes
- DELETE /teacher/attendance/{id} - Delete one of the teacher's records
- GET /teacher/attendance/students/{student_id}/history - Student history
- GET /teacher/attendance/students/{student_id}/consensus?date= - Consensus check

Security:
- Teachers only see and change their own records
- Students must be on the teacher's roster
- Write endpoints are rate limited per teacher
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_teacher
from app.core.database import get_db
from app.core.rate_limit import limit_attendance_writes
from app.modules.attendance import service
from app.modules.attendance.errors import AttendanceServiceError
from app.modules.attendance.schemas import (
    AttendanceCreate,
    AttendanceHistoryResponse,
    AttendanceResponse,
    AttendanceUpdate,
    ConsensusResponse,
    DailyAttendanceView,
)
from app.modules.attendance.service import HISTORY_DEFAULT_LIMIT, HISTORY_MAX_LIMIT, RequestContext
from app.modules.roster.oracle import RosterOracle, SqlRosterOracle

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Dependencies & Helpers
# ============================================


async def get_roster_oracle(db: AsyncSession = Depends(get_db)) -> RosterOracle:
    """Roster oracle sharing the request's session."""
    return SqlRosterOracle(db)


def _request_context(request: Request) -> RequestContext:
    return RequestContext(
        route=f"{request.method} {request.url.path}",
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def _handle_service_error(e: AttendanceServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


# ============================================
# Daily View & Recording
# ============================================


@router.get(
    "",
    response_model=DailyAttendanceView,
    summary="Daily Attendance View",
    description="""
Get the teacher's attendance records for a date, the roster students still
missing a record, and summary counts.

**Status values:**
- `present` / `absent`: final (single teacher)
- `pending_present` / `pending_absent`: waiting for co-teachers
- `confirmed_present` / `confirmed_absent`: co-teachers agreed
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not a teacher"},
    },
)
async def get_daily_view(
    on_date: date = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
    roster: RosterOracle = Depends(get_roster_oracle),
    teacher: CurrentUser = Depends(get_current_teacher),
) -> DailyAttendanceView:
    try:
        return await service.get_daily_view(
            db, roster, teacher_id=teacher.id, tenant_id=teacher.school_id, date=on_date
        )
    except AttendanceServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error building daily view: {e}")
        raise _internal_error() from e


@router.post(
    "",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record Attendance",
    description="""
Record attendance for a student on the teacher's roster.

Submit `present` or `absent`. For co-taught students the stored status is
`pending_*` until every assigned teacher has recorded, then `confirmed_*` if
they all agree.
""",
    responses={
        403: {"description": "Teacher is not assigned to the student"},
        409: {"description": "Attendance already recorded for this student and date"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def create_attendance(
    request: Request,
    payload: AttendanceCreate,
    db: AsyncSession = Depends(get_db),
    roster: RosterOracle = Depends(get_roster_oracle),
    teacher: CurrentUser = Depends(limit_attendance_writes),
) -> AttendanceResponse:
    try:
        record = await service.record_attendance(
            db,
            roster,
            teacher_id=teacher.id,
            tenant_id=teacher.school_id,
            student_id=str(payload.student_id),
            date=payload.date,
            requested_status=payload.status,
            notes=payload.notes,
            context=_request_context(request),
        )
        return AttendanceResponse.model_validate(record)

    except AttendanceServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error recording attendance: {e}")
        raise _internal_error() from e


# ============================================
# Student Endpoints
# ============================================


@router.get(
    "/students/{student_id}/history",
    response_model=AttendanceHistoryResponse,
    summary="Student Attendance History",
    responses={403: {"description": "Teacher is not assigned to the student"}},
)
async def get_student_history(
    student_id: UUID,
    limit: int = Query(HISTORY_DEFAULT_LIMIT, ge=1, le=HISTORY_MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
    roster: RosterOracle = Depends(get_roster_oracle),
    teacher: CurrentUser = Depends(get_current_teacher),
) -> AttendanceHistoryResponse:
    """Every teacher's records for the student, most recent first."""
    try:
        await service.ensure_student_access(
            roster, teacher_id=teacher.id, student_id=str(student_id), tenant_id=teacher.school_id
        )
        records = await service.get_student_history(
            db, student_id=str(student_id), tenant_id=teacher.school_id, limit=limit
        )
        return AttendanceHistoryResponse(
            student_id=str(student_id),
            records=[AttendanceResponse.model_validate(record) for record in records],
            count=len(records),
        )

    except AttendanceServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting history for student {student_id}: {e}")
        raise _internal_error() from e


@router.get(
    "/students/{student_id}/consensus",
    response_model=ConsensusResponse,
    summary="Consensus Check",
    responses={403: {"description": "Teacher is not assigned to the student"}},
)
async def get_consensus(
    student_id: UUID,
    on_date: date = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
    roster: RosterOracle = Depends(get_roster_oracle),
    teacher: CurrentUser = Depends(get_current_teacher),
) -> ConsensusResponse:
    """Whether co-teachers have confirmed the student's attendance for the date."""
    try:
        await service.ensure_student_access(
            roster, teacher_id=teacher.id, student_id=str(student_id), tenant_id=teacher.school_id
        )
        agreed = await service.check_consensus(
            db, student_id=str(student_id), date=on_date, tenant_id=teacher.school_id
        )
        return ConsensusResponse(student_id=str(student_id), date=on_date, has_consensus=agreed)

    except AttendanceServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error checking consensus for student {student_id}: {e}")
        raise _internal_error() from e


# ============================================
# Single Record Endpoints
# ============================================


@router.get(
    "/{attendance_id}",
    response_model=AttendanceResponse,
    summary="Get Attendance Record",
    responses={
        403: {"description": "Record belongs to another teacher"},
        404: {"description": "Record not found"},
    },
)
async def get_attendance(
    attendance_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: CurrentUser = Depends(get_current_teacher),
) -> AttendanceResponse:
    try:
        record = await service.get_attendance(
            db, str(attendance_id), teacher_id=teacher.id, tenant_id=teacher.school_id
        )
        return AttendanceResponse.model_validate(record)

    except AttendanceServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting attendance {attendance_id}: {e}")
        raise _internal_error() from e


@router.put(
    "/{attendance_id}",
    response_model=AttendanceResponse,
    summary="Update Attendance",
    description="""
Update status and/or notes on one of the teacher's records.

A status change is reconciled with the other teachers' records for the same
student and date.
""",
    responses={
        403: {"description": "Record belongs to another teacher"},
        404: {"description": "Record not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def update_attendance(
    request: Request,
    attendance_id: UUID,
    payload: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    roster: RosterOracle = Depends(get_roster_oracle),
    teacher: CurrentUser = Depends(limit_attendance_writes),
) -> AttendanceResponse:
    try:
        record = await service.update_attendance(
            db,
            roster,
            str(attendance_id),
            teacher_id=teacher.id,
            tenant_id=teacher.school_id,
            changes=payload.changes(),
            context=_request_context(request),
        )
        return AttendanceResponse.model_validate(record)

    except AttendanceServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating attendance {attendance_id}: {e}")
        raise _internal_error() from e


@router.delete(
    "/{attendance_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Attendance",
    responses={
        403: {"description": "Record belongs to another teacher"},
        404: {"description": "Record not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def delete_attendance(
    request: Request,
    attendance_id: UUID,
    db: AsyncSession = Depends(get_db),
    teacher: CurrentUser = Depends(limit_attendance_writes),
) -> Response:
    try:
        deleted = await service.delete_attendance(
            db,
            str(attendance_id),
            teacher_id=teacher.id,
            tenant_id=teacher.school_id,
            context=_request_context(request),
        )
    except AttendanceServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error deleting attendance {attendance_id}: {e}")
        raise _internal_error() from e

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "NOT_FOUND",
                "message": f"Attendance record {attendance_id} not found",
            },
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
