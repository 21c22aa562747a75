"""Advisor assignment endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...schemas import AdvisorLinkAck, AdvisorLinkCreate, AdvisorLinkRead, AdvisorLinkUpdate, ErrorResponse, Message
from ...services import advisor_service
from ...services.notification_service import NotificationOutbox, get_outbox

router = APIRouter(prefix="/advisor-student", tags=["advisor-student"])


@router.get("", response_model=List[AdvisorLinkRead], summary="List advisor assignments")
def list_links(
    *,
    advisor_id: Optional[int] = Query(None),
    student_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[AdvisorLinkRead]:
    links = advisor_service.list_links(db, actor=actor, advisor_id=advisor_id, student_id=student_id)
    return list(links)


@router.get("/{advisor_student_id}", response_model=AdvisorLinkRead, summary="Get an advisor assignment")
def get_link(
    advisor_student_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> AdvisorLinkRead:
    return advisor_service.get_link(db, actor=actor, advisor_student_id=advisor_student_id)


@router.post(
    "",
    response_model=AdvisorLinkAck,
    status_code=status.HTTP_201_CREATED,
    summary="Assign an advisor to a student",
    responses={
        201: {
            "description": "Assignment created",
            "content": {
                "application/json": {
                    "example": {"message": "Advisor assigned successfully", "advisor_student_id": 2}
                }
            },
        },
        400: {"model": ErrorResponse, "description": "advisor_id or student_id has the wrong role"},
        409: {"model": ErrorResponse, "description": "Student already has an advisor"},
    },
)
def create_link(
    payload: AdvisorLinkCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> AdvisorLinkAck:
    """Admin-only.

    Example request body::

        {
            "advisor_id": 5,
            "student_id": 7
        }
    """

    try:
        link = advisor_service.create_link(db, actor=actor, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    advisor_student_id = link.advisor_student_id
    outbox.flush(db)
    return AdvisorLinkAck(message="Advisor assigned successfully", advisor_student_id=advisor_student_id)


@router.put("/{advisor_student_id}", response_model=AdvisorLinkAck, summary="Update an advisor assignment")
def update_link(
    advisor_student_id: int,
    payload: AdvisorLinkUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> AdvisorLinkAck:
    try:
        advisor_service.update_link(db, actor=actor, advisor_student_id=advisor_student_id, payload=payload)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return AdvisorLinkAck(message="Advisor assignment updated successfully", advisor_student_id=advisor_student_id)


@router.delete("/{advisor_student_id}", response_model=Message, summary="Remove an advisor assignment")
def delete_link(
    advisor_student_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        advisor_service.delete_link(db, actor=actor, advisor_student_id=advisor_student_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Advisor assignment deleted successfully")
