"""Advisor note endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...schemas import AdvisorNoteAck, AdvisorNoteCreate, AdvisorNoteRead, AdvisorNoteUpdate, ErrorResponse, Message
from ...services import advisor_service
from ...services.notification_service import NotificationOutbox, get_outbox

router = APIRouter(prefix="/advisor-notes", tags=["advisor-notes"])


@router.get("", response_model=List[AdvisorNoteRead], summary="List advisor notes")
def list_notes(
    *,
    student_id: Optional[int] = Query(None),
    follow_up_only: bool = Query(False, description="Only notes that need a follow-up"),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[AdvisorNoteRead]:
    notes = advisor_service.list_notes(db, actor=actor, student_id=student_id, follow_up_only=follow_up_only)
    return list(notes)


@router.get("/{note_id}", response_model=AdvisorNoteRead, summary="Get an advisor note")
def get_note(
    note_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> AdvisorNoteRead:
    return advisor_service.get_note(db, actor=actor, note_id=note_id)


@router.post(
    "",
    response_model=AdvisorNoteAck,
    status_code=status.HTTP_201_CREATED,
    summary="Write an advisor note",
    responses={
        201: {
            "description": "Note saved and student notified",
            "content": {"application/json": {"example": {"message": "Advisor note created successfully", "note_id": 14}}},
        },
        403: {"model": ErrorResponse, "description": "Student is not the advisor's advisee"},
    },
)
def create_note(
    payload: AdvisorNoteCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> AdvisorNoteAck:
    """Record a meeting with an advisee.

    Example request body::

        {
            "student_id": 7,
            "notes": "Discussed workload for next semester.",
            "date": "2025-10-02",
            "recommendations": ["Drop one elective", "Book a study-skills session"],
            "follow_up_required": true
        }
    """

    try:
        note = advisor_service.create_note(db, actor=actor, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    note_id = note.note_id
    outbox.flush(db)
    return AdvisorNoteAck(message="Advisor note created successfully", note_id=note_id)


@router.put("/{note_id}", response_model=AdvisorNoteAck, summary="Update an advisor note")
def update_note(
    note_id: int,
    payload: AdvisorNoteUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> AdvisorNoteAck:
    try:
        advisor_service.update_note(db, actor=actor, note_id=note_id, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    outbox.flush(db)
    return AdvisorNoteAck(message="Advisor note updated successfully", note_id=note_id)


@router.delete("/{note_id}", response_model=Message, summary="Delete an advisor note")
def delete_note(
    note_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        advisor_service.delete_note(db, actor=actor, note_id=note_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Advisor note deleted successfully")
