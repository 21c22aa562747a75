"""Remark request endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...models import RemarkStatus
from ...schemas import ErrorResponse, Message, RemarkAck, RemarkCreate, RemarkRead, RemarkUpdate
from ...services import remark_service
from ...services.notification_service import NotificationOutbox, get_outbox

router = APIRouter(prefix="/remark-requests", tags=["remark-requests"])


@router.get("", response_model=List[RemarkRead], summary="List remark requests")
def list_requests(
    *,
    status_filter: Optional[RemarkStatus] = Query(None, alias="status"),
    course_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[RemarkRead]:
    """Scoped to own requests (students), advisees (advisors) or taught courses (lecturers)."""

    return remark_service.list_requests(db, actor=actor, status=status_filter, course_id=course_id)


@router.get("/{request_id}", response_model=RemarkRead, summary="Get a remark request")
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> RemarkRead:
    return remark_service.get_request(db, actor=actor, request_id=request_id)


@router.post(
    "",
    response_model=RemarkAck,
    status_code=status.HTTP_201_CREATED,
    summary="Request a remark",
    responses={
        201: {
            "description": "Request submitted",
            "content": {
                "application/json": {"example": {"message": "Remark request submitted successfully", "request_id": 5}}
            },
        },
        403: {"model": ErrorResponse, "description": "Not a student, or not the student's own mark"},
        409: {"model": ErrorResponse, "description": "A request already exists for this mark"},
    },
)
def create_request(
    payload: RemarkCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> RemarkAck:
    """Students ask for one of their marks to be reviewed.

    Example request body::

        {
            "mark_id": 40,
            "justification": "Question 3 was marked against the wrong rubric."
        }
    """

    try:
        remark = remark_service.create_request(db, actor=actor, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    request_id = remark.request_id
    outbox.flush(db)
    return RemarkAck(message="Remark request submitted successfully", request_id=request_id)


@router.put(
    "/{request_id}",
    response_model=RemarkAck,
    summary="Review a remark request",
    responses={
        400: {"model": ErrorResponse, "description": "Status may only become approved or rejected"},
        409: {"model": ErrorResponse, "description": "Request already resolved"},
    },
)
def update_request(
    request_id: int,
    payload: RemarkUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> RemarkAck:
    """Approve or reject a pending request and/or edit the lecturer notes.

    Example request body::

        {
            "status": "approved",
            "lecturer_notes": "Re-marked; two marks added to Q3."
        }
    """

    try:
        remark_service.update_request(db, actor=actor, request_id=request_id, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    outbox.flush(db)
    return RemarkAck(message="Remark request updated successfully", request_id=request_id)


@router.delete("/{request_id}", response_model=Message, summary="Delete a remark request")
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    """Students may withdraw their own request while it is still pending."""

    try:
        remark_service.delete_request(db, actor=actor, request_id=request_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Remark request deleted successfully")
