"""Assessment component endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...schemas import ComponentAck, ComponentCreate, ComponentRead, ComponentUpdate, ErrorResponse, Message
from ...services import assessment_service
from ...services.notification_service import NotificationOutbox, get_outbox

router = APIRouter(prefix="/assessment-components", tags=["assessment-components"])


@router.get("", response_model=List[ComponentRead], summary="List assessment components")
def list_components(
    *,
    course_id: Optional[int] = Query(None, description="Only components of this course"),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[ComponentRead]:
    """Lecturers see their courses, students the courses they are enrolled in."""

    return list(assessment_service.list_components(db, actor=actor, course_id=course_id))


@router.get("/{component_id}", response_model=ComponentRead, summary="Get an assessment component")
def get_component(
    component_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> ComponentRead:
    return assessment_service.get_component(db, actor=actor, component_id=component_id)


@router.post(
    "",
    response_model=ComponentAck,
    status_code=status.HTTP_201_CREATED,
    summary="Add an assessment component",
    responses={
        201: {
            "description": "Component created",
            "content": {
                "application/json": {
                    "example": {"message": "Assessment component created successfully", "component_id": 11}
                }
            },
        },
        403: {"model": ErrorResponse, "description": "Not the course lecturer"},
    },
)
def create_component(
    payload: ComponentCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
    outbox: NotificationOutbox = Depends(get_outbox),
) -> ComponentAck:
    """Add a weighted component; enrolled students are notified.

    Example request body::

        {
            "course_id": 3,
            "component_name": "Midterm",
            "max_mark": 50,
            "weight_percentage": 30,
            "is_final_exam": false
        }
    """

    try:
        component = assessment_service.create_component(db, actor=actor, payload=payload, outbox=outbox)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    component_id = component.component_id
    outbox.flush(db)
    return ComponentAck(message="Assessment component created successfully", component_id=component_id)


@router.put("/{component_id}", response_model=ComponentAck, summary="Update an assessment component")
def update_component(
    component_id: int,
    payload: ComponentUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> ComponentAck:
    try:
        assessment_service.update_component(db, actor=actor, component_id=component_id, payload=payload)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return ComponentAck(message="Assessment component updated successfully", component_id=component_id)


@router.delete("/{component_id}", response_model=Message, summary="Delete an assessment component")
def delete_component(
    component_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        assessment_service.delete_component(db, actor=actor, component_id=component_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Assessment component deleted successfully")
