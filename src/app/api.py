from fastapi import APIRouter

from app.modules.attendance import router as attendance_router
from app.modules.enrollment import admin_router as admin_enrollments_router

api_router = APIRouter()

api_router.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])

api_router.include_router(
    admin_enrollments_router,
    prefix="/admin/enrollments",
    tags=["Admin - Enrollments"],
)
