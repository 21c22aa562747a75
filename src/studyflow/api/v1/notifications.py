"""Notification inbox endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...schemas import Message, NotificationAck, NotificationRead
from ...services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRead], summary="List notifications")
def list_notifications(
    *,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[NotificationRead]:
    """Own notifications, newest first. Admins see everyone's."""

    notifications = notification_service.list_notifications(
        db,
        actor=actor,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    return list(notifications)


@router.put("/{notification_id}/read", response_model=NotificationAck, summary="Mark a notification read")
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> NotificationAck:
    try:
        notification_service.mark_read(db, actor=actor, notification_id=notification_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return NotificationAck(message="Notification marked as read", notification_id=notification_id)


@router.delete("/{notification_id}", response_model=Message, summary="Delete a notification")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        notification_service.delete_notification(db, actor=actor, notification_id=notification_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="Notification deleted successfully")
