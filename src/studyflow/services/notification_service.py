"""Notification fanout and inbox management.

Sends are best effort: :func:`notify` and :func:`notify_roles` swallow and
log persistence errors so the mutation that triggered them is never affected.
Handlers collect events in a :class:`NotificationOutbox` while their
transaction is open and flush it once the commit has succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..core.security import Claims
from ..models import Notification, Role, User
from ..utils.datetime import utc_now
from .policy import Ownership, authorize, is_admin

logger = logging.getLogger(__name__)

NOTIFIABLE_ROLES = frozenset(role.value for role in Role)


def notify(
    session: Session,
    user_id: int,
    title: str,
    message: str,
    type: str,
    related_id: Optional[int] = None,
) -> bool:
    """Insert a single notification and commit it; return ``False`` on failure."""

    try:
        session.add(
            Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                related_id=related_id,
            )
        )
        session.commit()
        return True
    except SQLAlchemyError:
        session.rollback()
        logger.exception("failed to notify user %s (%s)", user_id, type)
        return False


def notify_roles(
    session: Session,
    roles: Iterable[str],
    title: str,
    message: str,
    type: str,
    related_id: Optional[int] = None,
) -> dict:
    """Send one notification to every user holding any of ``roles``."""

    requested = {str(role).lower() for role in roles}
    allowed = sorted(requested & NOTIFIABLE_ROLES)
    rejected = sorted(requested - NOTIFIABLE_ROLES)
    if rejected:
        logger.warning("ignoring unknown notification roles: %s", ", ".join(rejected))
    if not allowed:
        return {"success": False, "count": 0, "error": "No valid roles provided."}

    try:
        recipients = session.execute(
            select(User.user_id).where(User.role.in_([Role(role) for role in allowed]))
        ).scalars().all()
        session.add_all(
            [
                Notification(
                    user_id=user_id,
                    title=title,
                    message=message,
                    type=type,
                    related_id=related_id,
                )
                for user_id in recipients
            ]
        )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("failed to notify roles %s (%s)", allowed, type)
        return {"success": False, "count": 0, "error": "Failed to send notifications."}

    return {"success": True, "count": len(recipients)}


@dataclass(frozen=True)
class NotificationEvent:
    """Something a handler wants to tell people about once it has committed."""

    title: str
    message: str
    type: str
    related_id: Optional[int] = None
    user_ids: Sequence[int] = ()
    roles: Sequence[str] = ()


@dataclass
class NotificationOutbox:
    """Per-request buffer of notification events (outbox pattern)."""

    events: List[NotificationEvent] = field(default_factory=list)

    def to_user(
        self,
        user_id: int,
        title: str,
        message: str,
        type: str,
        related_id: Optional[int] = None,
    ) -> None:
        self.events.append(NotificationEvent(title, message, type, related_id, user_ids=(user_id,)))

    def to_users(
        self,
        user_ids: Iterable[int],
        title: str,
        message: str,
        type: str,
        related_id: Optional[int] = None,
    ) -> None:
        recipients = tuple(dict.fromkeys(user_ids))
        if recipients:
            self.events.append(NotificationEvent(title, message, type, related_id, user_ids=recipients))

    def to_roles(
        self,
        roles: Iterable[str],
        title: str,
        message: str,
        type: str,
        related_id: Optional[int] = None,
    ) -> None:
        self.events.append(NotificationEvent(title, message, type, related_id, roles=tuple(roles)))

    def discard(self) -> None:
        self.events.clear()

    def flush(self, session: Session) -> int:
        """Deliver queued events; returns how many notification rows were written.

        Must only be called after the triggering transaction has committed.
        """

        delivered = 0
        pending, self.events = self.events, []
        for event in pending:
            try:
                if event.roles:
                    result = notify_roles(
                        session, event.roles, event.title, event.message, event.type, event.related_id
                    )
                    delivered += result["count"]
                for user_id in event.user_ids:
                    if notify(session, user_id, event.title, event.message, event.type, event.related_id):
                        delivered += 1
            except Exception:
                logger.exception("notification event %r could not be delivered", event.type)
        return delivered


def get_outbox() -> NotificationOutbox:
    """FastAPI dependency returning a fresh outbox for the request."""

    return NotificationOutbox()


def _ensure_notification(session: Session, notification_id: int) -> Notification:
    notification = session.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError(f"Notification {notification_id} not found")
    return notification


def list_notifications(
    session: Session,
    *,
    actor: Claims,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Notification]:
    """Own notifications, newest first; admins see every user's."""

    stmt = (
        select(Notification)
        .order_by(Notification.created_at.desc(), Notification.notification_id.desc())
        .offset(offset)
        .limit(limit)
    )
    if not is_admin(actor):
        stmt = stmt.where(Notification.user_id == actor.user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    return session.execute(stmt).scalars().all()


def mark_read(session: Session, *, actor: Claims, notification_id: int) -> Notification:
    notification = _ensure_notification(session, notification_id)
    authorize(actor, "notification", "update", Ownership(user_id=notification.user_id))
    notification.is_read = True
    session.flush()
    return notification


def delete_notification(session: Session, *, actor: Claims, notification_id: int) -> None:
    notification = _ensure_notification(session, notification_id)
    authorize(actor, "notification", "delete", Ownership(user_id=notification.user_id))
    session.delete(notification)
    session.flush()


def purge_read_notifications(
    session: Session,
    *,
    older_than_days: int,
    current_time: Optional[datetime] = None,
) -> int:
    """Delete read notifications created before the retention window."""

    now = current_time or utc_now()
    cutoff = now - timedelta(days=older_than_days)
    result = session.execute(
        delete(Notification)
        .where(Notification.is_read.is_(True), Notification.created_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
