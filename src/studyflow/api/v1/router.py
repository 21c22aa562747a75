"""Primary API router definition."""

from fastapi import APIRouter

from . import (
    advisor_notes,
    advisor_students,
    assessments,
    auth,
    courses,
    enrollments,
    marks,
    notifications,
    remarks,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(courses.router)
api_router.include_router(enrollments.router)
api_router.include_router(assessments.router)
api_router.include_router(marks.router)
api_router.include_router(marks.peer_router)
api_router.include_router(remarks.router)
api_router.include_router(advisor_students.router)
api_router.include_router(advisor_notes.router)
api_router.include_router(notifications.router)


@api_router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "ok"}
