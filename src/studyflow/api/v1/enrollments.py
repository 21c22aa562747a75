"""Enrollment endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...schemas import EnrollmentAck, EnrollmentCreate, EnrollmentRead, EnrollmentUpdate, ErrorResponse, Message
from ...services import enrollment_service
from ...services.notification_service import NotificationOutbox, get_outbox

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.get(
    "",
    response_model=List[EnrollmentRead],
    summary="List enrollments",
    responses={403: {"model": ErrorResponse, "description": "Advisors cannot list enrollments"}},
)
def list_enrollments(
    *,
    course_id: Optional[int] = Query(None),
    student_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[EnrollmentRead]:
    """Admins see all enrollments, lecturers those of their courses, students their own."""

    enrollments = enrollment_service.list_enrollments(
        db,
        actor=actor,
        course_id=course_id,
        student_id=student_id,
        limit=limit,
        offset=offset,
    )
    return list(enrollments)


@router.get("/{enrollment_id}", response_model=EnrollmentRead, summary="Get an enrollment")
def get_enrollment(
    enrollment_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> EnrollmentRead:
    return enrollment_service.get_enrollment(db, actor=actor, enrollment_id=enrollment_id)


@router.post(
    "",
    response_model=EnrollmentAck,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a student",
    responses={
        201: {
            "description": "Enrollment created",
            "content": {
                "application/json": {"example": {"message": "Enrollment created successfully", "enrollment_id": 21}}
            },
        },
        409: {"model": ErrorResponse, "description": "Student already enrolled"},
    },
)
def create_enrollment(
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> EnrollmentAck:
    """Admin-only enrollment.

    Example request body::

        {
            "student_id": 7,
            "course_id": 3
        }
    """

    try:
        enrollment = enrollment_service.create_enrollment(db, actor=actor, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    enrollment_id = enrollment.enrollment_id
    outbox.flush(db)
    return EnrollmentAck(message="Enrollment created successfully", enrollment_id=enrollment_id)


@router.put("/{enrollment_id}", response_model=EnrollmentAck, summary="Update an enrollment")
def update_enrollment(
    enrollment_id: int,
    payload: EnrollmentUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> EnrollmentAck:
    try:
        enrollment_service.update_enrollment(db, actor=actor, enrollment_id=enrollment_id, payload=payload)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return EnrollmentAck(message="Enrollment updated successfully", enrollment_id=enrollment_id)


@router.delete("/{enrollment_id}", response_model=Message, summary="Delete an enrollment")
def delete_enrollment(
    enrollment_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        enrollment_service.delete_enrollment(db, actor=actor, enrollment_id=enrollment_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Enrollment deleted successfully")
