from fastapi import APIRouter

from app.modules.attendance import router as attendance_router

api_router = APIRouter()

api_router.include_router(
    attendance_router, prefix="/teacher/attendance", tags=["Teacher - Attendance"]
)
