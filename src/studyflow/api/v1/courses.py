"""Course catalogue and roster endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...schemas import (
    AddStudentsReport,
    AddStudentsRequest,
    CourseAck,
    CourseCreate,
    CourseRead,
    CourseUpdate,
    ErrorResponse,
    Message,
    UserRead,
)
from ...services import course_service
from ...services.notification_service import NotificationOutbox, get_outbox

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get(
    "",
    response_model=List[CourseRead],
    summary="List courses",
    responses={
        200: {
            "description": "Courses ordered by code",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "course_id": 3,
                            "course_code": "CS201",
                            "course_name": "Data Structures",
                            "lecturer_id": 4,
                            "credit_hours": 3,
                            "lecturer": {
                                "user_id": 4,
                                "username": "dr.tan",
                                "full_name": "Dr. Mei Tan",
                                "matric_number": None,
                            },
                            "created_at": "2025-09-01T08:00:00",
                        }
                    ]
                }
            },
        }
    },
)
def list_courses(
    *,
    lecturer_id: Optional[int] = Query(None, description="Only courses taught by this lecturer"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[CourseRead]:
    """Every authenticated user may browse the catalogue."""

    courses = course_service.list_courses(
        db,
        actor=actor,
        lecturer_id=lecturer_id,
        limit=limit,
        offset=offset,
    )
    return list(courses)


@router.get("/{course_id}", response_model=CourseRead, summary="Get a course")
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> CourseRead:
    return course_service.get_course(db, actor=actor, course_id=course_id)


@router.post(
    "",
    response_model=CourseAck,
    status_code=status.HTTP_201_CREATED,
    summary="Create a course",
    responses={
        201: {
            "description": "Course created",
            "content": {"application/json": {"example": {"message": "Course created successfully", "course_id": 3}}},
        },
        400: {"model": ErrorResponse, "description": "Referenced lecturer is missing or not a lecturer"},
        403: {"model": ErrorResponse, "description": "Lecturer tried to assign the course to someone else"},
        409: {"model": ErrorResponse, "description": "Course code already in use"},
    },
)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> CourseAck:
    """Create a course and announce it to students, lecturers and advisors.

    Example request body::

        {
            "course_code": "CS201",
            "course_name": "Data Structures",
            "lecturer_id": 4,
            "credit_hours": 3
        }
    """

    try:
        course = course_service.create_course(db, actor=actor, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    course_id = course.course_id
    outbox.flush(db)
    return CourseAck(message="Course created successfully", course_id=course_id)


@router.put("/{course_id}", response_model=CourseAck, summary="Update a course")
def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> CourseAck:
    """Owning lecturer or admin; only admins may reassign the lecturer."""

    try:
        course_service.update_course(db, actor=actor, course_id=course_id, payload=payload)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return CourseAck(message="Course updated successfully", course_id=course_id)


@router.delete(
    "/{course_id}",
    response_model=Message,
    summary="Delete a course",
    responses={409: {"model": ErrorResponse, "description": "Course still has enrollments or components"}},
)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        course_service.delete_course(db, actor=actor, course_id=course_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Course deleted successfully")


@router.get(
    "/{course_id}/eligible-students",
    response_model=List[UserRead],
    summary="Students not yet enrolled in a course",
)
def eligible_students(
    course_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[UserRead]:
    return list(course_service.eligible_students(db, actor=actor, course_id=course_id))


@router.post(
    "/{course_id}/add-students",
    response_model=AddStudentsReport,
    summary="Enroll several students at once",
    responses={
        200: {
            "description": "Per-student outcome",
            "content": {
                "application/json": {
                    "example": {
                        "message": "1 student(s) added, 1 failed.",
                        "added": 1,
                        "failed": 1,
                        "details": [
                            {"student_id": 7, "success": True, "message": "Enrolled"},
                            {"student_id": 8, "success": False, "message": "Student is already enrolled in this course."},
                        ],
                    }
                }
            },
        }
    },
)
def add_students(
    course_id: int,
    payload: AddStudentsRequest,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> AddStudentsReport:
    """Each student is enrolled in its own transaction.

    Example request body::

        {
            "student_ids": [7, 8]
        }
    """

    report = course_service.add_students(
        db,
        actor=actor,
        course_id=course_id,
        student_ids=payload.student_ids,
        outbox=outbox,
    )
    outbox.flush(db)
    return AddStudentsReport(**report)
