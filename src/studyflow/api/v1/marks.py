"""Student mark endpoints, grading grids and mark reports."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...schemas import (
    AssessmentMarkRow,
    BatchMarkReport,
    BatchMarkRequest,
    ErrorResponse,
    MarkAck,
    MarkCreate,
    MarkRead,
    MarkUpdate,
    Message,
    PeerMarkRow,
    StudentGradeReport,
    StudentMarkRow,
)
from ...services import mark_service
from ...services.notification_service import NotificationOutbox, get_outbox

router = APIRouter(prefix="/student-marks", tags=["student-marks"])
peer_router = APIRouter(tags=["student-marks"])


@router.get("", response_model=List[MarkRead], summary="List student marks")
def list_marks(
    *,
    course_id: Optional[int] = Query(None),
    student_id: Optional[int] = Query(None),
    component_id: Optional[int] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[MarkRead]:
    return mark_service.list_marks(
        db,
        actor=actor,
        course_id=course_id,
        student_id=student_id,
        component_id=component_id,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/course/{course_id}/assessment/{assessment_id}",
    response_model=List[AssessmentMarkRow],
    summary="Marks of every enrolled student on one component",
    responses={
        200: {
            "description": "One row per enrolled student; ungraded students have null marks",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "enrollment_id": 21,
                            "student_id": 7,
                            "student_name": "Amira Kamal",
                            "matric_number": "A20231456",
                            "mark_id": 40,
                            "mark_obtained": 42.5,
                            "max_mark": 50,
                        },
                        {
                            "enrollment_id": 22,
                            "student_id": 8,
                            "student_name": "Ben Osei",
                            "matric_number": "A20231502",
                            "mark_id": None,
                            "mark_obtained": None,
                            "max_mark": 50,
                        },
                    ]
                }
            },
        }
    },
)
def course_assessment_marks(
    course_id: int,
    assessment_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[AssessmentMarkRow]:
    return mark_service.course_assessment_marks(
        db,
        actor=actor,
        course_id=course_id,
        component_id=assessment_id,
    )


@router.get("/student/{student_id}", response_model=List[StudentMarkRow], summary="A student's marks")
def student_marks(
    student_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[StudentMarkRow]:
    """Visible to the student, their advisor, admins and (for their courses) lecturers."""

    return mark_service.student_marks(db, actor=actor, student_id=student_id)


@router.get(
    "/student/{student_id}/summary",
    response_model=StudentGradeReport,
    summary="Weighted grade per enrolled course",
    responses={
        200: {
            "description": "Course summaries",
            "content": {
                "application/json": {
                    "example": {
                        "student_id": 7,
                        "courses": [
                            {
                                "course_id": 3,
                                "course_code": "CS201",
                                "course_name": "Data Structures",
                                "credit_hours": 3,
                                "overall_percentage": 86.0,
                                "letter_grade": "B",
                                "total_weighted_percentage": 86.0,
                                "graded_weight_percentage": 100.0,
                                "total_weight_percentage": 100.0,
                            }
                        ],
                    }
                }
            },
        }
    },
)
def student_summary(
    student_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> StudentGradeReport:
    """Ungraded components count as zero against the course's total weight."""

    return mark_service.student_summary(db, actor=actor, student_id=student_id)


@router.get("/{mark_id}", response_model=MarkRead, summary="Get a mark")
def get_mark(
    mark_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> MarkRead:
    return mark_service.get_mark(db, actor=actor, mark_id=mark_id)


@router.post(
    "",
    response_model=MarkAck,
    status_code=status.HTTP_201_CREATED,
    summary="Record a mark",
    responses={
        201: {
            "description": "Mark recorded",
            "content": {"application/json": {"example": {"message": "Student mark added successfully", "mark_id": 40}}},
        },
        400: {"model": ErrorResponse, "description": "Mark outside 0..max_mark or component of another course"},
        409: {"model": ErrorResponse, "description": "Mark already recorded for this component"},
    },
)
def create_mark(
    payload: MarkCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> MarkAck:
    """Record a mark for an enrollment.

    Example request body::

        {
            "enrollment_id": 21,
            "component_id": 11,
            "mark_obtained": 42.5
        }
    """

    try:
        mark = mark_service.create_mark(db, actor=actor, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    mark_id = mark.mark_id
    outbox.flush(db)
    return MarkAck(message="Student mark added successfully", mark_id=mark_id)


@router.post(
    "/batch-update",
    response_model=BatchMarkReport,
    summary="Save a grid of marks",
    responses={
        200: {
            "description": "Aggregate outcome; failed cells are listed in errors",
            "content": {
                "application/json": {
                    "example": {
                        "message": "2 mark(s) processed, 1 failed.",
                        "inserted": 1,
                        "updated": 1,
                        "cleared": 0,
                        "errors": [
                            {
                                "index": 2,
                                "student_id": 9,
                                "assessment_component_id": 11,
                                "error": "Student is not enrolled in this course.",
                            }
                        ],
                    }
                }
            },
        }
    },
)
def batch_update(
    payload: BatchMarkRequest,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> BatchMarkReport:
    """Insert, update or clear (``"mark": null``) marks cell by cell.

    Example request body::

        {
            "marks": [
                {"student_id": 7, "assessment_component_id": 11, "course_id": 3, "mark": 42.5},
                {"student_id": 8, "assessment_component_id": 11, "course_id": 3, "mark": null}
            ]
        }
    """

    report = mark_service.batch_update(db, actor=actor, items=payload.marks, outbox=outbox)
    outbox.flush(db)
    return BatchMarkReport(**report)


@router.put("/{mark_id}", response_model=MarkAck, summary="Update a mark")
def update_mark(
    mark_id: int,
    payload: MarkUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> MarkAck:
    try:
        mark_service.update_mark(db, actor=actor, mark_id=mark_id, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    outbox.flush(db)
    return MarkAck(message="Student mark updated successfully", mark_id=mark_id)


@router.delete("/{mark_id}", response_model=Message, summary="Delete a mark")
def delete_mark(
    mark_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        mark_service.delete_mark(db, actor=actor, mark_id=mark_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Student mark deleted successfully")


@peer_router.get(
    "/all-student-marks",
    response_model=List[PeerMarkRow],
    response_model_exclude_unset=True,
    summary="Marks for peer comparison",
)
def all_student_marks(
    *,
    course_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[PeerMarkRow]:
    """Students and advisors get anonymised rows; staff get full details."""

    return mark_service.peer_marks(db, actor=actor, course_id=course_id)
