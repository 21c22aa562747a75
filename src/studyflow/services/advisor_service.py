"""Advisor-student assignments and advisor notes."""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..core.errors import NotFoundError, ValidationError
from ..core.security import Claims
from ..models import AdvisorNote, AdvisorStudent, Role
from ..schemas import AdvisorLinkCreate, AdvisorLinkUpdate, AdvisorNoteCreate, AdvisorNoteUpdate
from ..utils.persistence import apply_changes, flush_or_conflict, patch_values
from .notification_service import NotificationOutbox
from .policy import Ownership, authorize, ensure_role
from .user_service import ensure_user_with_role

DUPLICATE_LINK = "This student already has an assigned advisor."


def _display_name(actor: Claims) -> str:
    return actor.full_name or actor.username or f"User {actor.user_id}"


def ensure_link(session: Session, advisor_student_id: int) -> AdvisorStudent:
    stmt = (
        select(AdvisorStudent)
        .options(joinedload(AdvisorStudent.advisor), joinedload(AdvisorStudent.student))
        .where(AdvisorStudent.advisor_student_id == advisor_student_id)
    )
    link = session.execute(stmt).scalar_one_or_none()
    if link is None:
        raise NotFoundError(f"Advisor assignment {advisor_student_id} not found")
    return link


def link_ownership(link: AdvisorStudent) -> Ownership:
    return Ownership(
        advisor_ids=frozenset({link.advisor_id}),
        student_ids=frozenset({link.student_id}),
    )


def list_links(
    session: Session,
    *,
    actor: Claims,
    advisor_id: Optional[int] = None,
    student_id: Optional[int] = None,
) -> Sequence[AdvisorStudent]:
    ensure_role(actor, "advisor_student", "read")

    stmt = (
        select(AdvisorStudent)
        .options(joinedload(AdvisorStudent.advisor), joinedload(AdvisorStudent.student))
        .order_by(AdvisorStudent.advisor_student_id)
    )
    if actor.role == Role.ADVISOR.value:
        stmt = stmt.where(AdvisorStudent.advisor_id == actor.user_id)
    elif actor.role == Role.STUDENT.value:
        stmt = stmt.where(AdvisorStudent.student_id == actor.user_id)

    if advisor_id is not None:
        stmt = stmt.where(AdvisorStudent.advisor_id == advisor_id)
    if student_id is not None:
        stmt = stmt.where(AdvisorStudent.student_id == student_id)
    return session.execute(stmt).scalars().all()


def get_link(session: Session, *, actor: Claims, advisor_student_id: int) -> AdvisorStudent:
    link = ensure_link(session, advisor_student_id)
    authorize(actor, "advisor_student", "read", link_ownership(link))
    return link


def create_link(
    session: Session,
    *,
    actor: Claims,
    payload: AdvisorLinkCreate,
    outbox: NotificationOutbox,
) -> AdvisorStudent:
    """Assign an advisor; a student can only have one."""

    advisor = ensure_user_with_role(session, payload.advisor_id, Role.ADVISOR)
    student = ensure_user_with_role(session, payload.student_id, Role.STUDENT)
    authorize(actor, "advisor_student", "create")

    link = AdvisorStudent(advisor_id=advisor.user_id, student_id=student.user_id)
    session.add(link)
    flush_or_conflict(session, DUPLICATE_LINK)

    advisor_name = advisor.full_name or advisor.username
    student_name = student.full_name or student.username
    outbox.to_user(
        student.user_id,
        "Advisor assigned",
        f"{advisor_name} is now your academic advisor.",
        "advisor",
        link.advisor_student_id,
    )
    outbox.to_user(
        advisor.user_id,
        "New advisee",
        f"{student_name} has been assigned to you as an advisee.",
        "advisor",
        link.advisor_student_id,
    )
    return link


def update_link(
    session: Session,
    *,
    actor: Claims,
    advisor_student_id: int,
    payload: AdvisorLinkUpdate,
) -> AdvisorStudent:
    link = ensure_link(session, advisor_student_id)
    changes = patch_values(payload)
    if "advisor_id" in changes:
        ensure_user_with_role(session, changes["advisor_id"], Role.ADVISOR)
    if "student_id" in changes:
        ensure_user_with_role(session, changes["student_id"], Role.STUDENT)
    authorize(actor, "advisor_student", "update", link_ownership(link))

    apply_changes(link, changes)
    flush_or_conflict(session, DUPLICATE_LINK)
    return link


def delete_link(session: Session, *, actor: Claims, advisor_student_id: int) -> None:
    """Remove an assignment along with the notes written under it."""

    link = ensure_link(session, advisor_student_id)
    authorize(actor, "advisor_student", "delete", link_ownership(link))
    session.delete(link)
    session.flush()


def _link_for_student(session: Session, student_id: int) -> AdvisorStudent:
    link = session.execute(
        select(AdvisorStudent).where(AdvisorStudent.student_id == student_id)
    ).scalar_one_or_none()
    if link is None:
        raise ValidationError(f"Student {student_id} has no assigned advisor.")
    return link


def ensure_note(session: Session, note_id: int) -> AdvisorNote:
    stmt = (
        select(AdvisorNote)
        .options(
            joinedload(AdvisorNote.link).joinedload(AdvisorStudent.advisor),
            joinedload(AdvisorNote.link).joinedload(AdvisorStudent.student),
        )
        .where(AdvisorNote.note_id == note_id)
    )
    note = session.execute(stmt).scalar_one_or_none()
    if note is None:
        raise NotFoundError(f"Advisor note {note_id} not found")
    return note


def list_notes(
    session: Session,
    *,
    actor: Claims,
    student_id: Optional[int] = None,
    follow_up_only: bool = False,
) -> Sequence[AdvisorNote]:
    ensure_role(actor, "advisor_note", "read")

    stmt = (
        select(AdvisorNote)
        .join(AdvisorStudent, AdvisorStudent.advisor_student_id == AdvisorNote.advisor_student_id)
        .options(
            joinedload(AdvisorNote.link).joinedload(AdvisorStudent.advisor),
            joinedload(AdvisorNote.link).joinedload(AdvisorStudent.student),
        )
        .order_by(AdvisorNote.meeting_date.desc(), AdvisorNote.note_id.desc())
    )
    if actor.role == Role.ADVISOR.value:
        stmt = stmt.where(AdvisorStudent.advisor_id == actor.user_id)
    elif actor.role == Role.STUDENT.value:
        stmt = stmt.where(AdvisorStudent.student_id == actor.user_id)

    if student_id is not None:
        stmt = stmt.where(AdvisorStudent.student_id == student_id)
    if follow_up_only:
        stmt = stmt.where(AdvisorNote.follow_up_required.is_(True))
    return session.execute(stmt).scalars().unique().all()


def get_note(session: Session, *, actor: Claims, note_id: int) -> AdvisorNote:
    note = ensure_note(session, note_id)
    authorize(actor, "advisor_note", "read", link_ownership(note.link))
    return note


def create_note(
    session: Session,
    *,
    actor: Claims,
    payload: AdvisorNoteCreate,
    outbox: NotificationOutbox,
) -> AdvisorNote:
    if payload.advisor_student_id is not None:
        link = session.get(AdvisorStudent, payload.advisor_student_id)
        if link is None:
            raise ValidationError(f"Advisor assignment {payload.advisor_student_id} does not exist.")
        if payload.student_id is not None and payload.student_id != link.student_id:
            raise ValidationError("student_id does not match the advisor assignment.")
    else:
        link = _link_for_student(session, payload.student_id)
    authorize(actor, "advisor_note", "create", link_ownership(link))

    note = AdvisorNote(
        advisor_student_id=link.advisor_student_id,
        note_content=payload.note_content,
        meeting_date=payload.meeting_date or date.today(),
        recommendations=list(payload.recommendations),
        follow_up_required=payload.follow_up_required,
    )
    session.add(note)
    flush_or_conflict(session, "Advisor note could not be saved.")

    outbox.to_user(
        link.student_id,
        "New Advisor Notes for you",
        f"{_display_name(actor)} has added a new note for you!",
        "Advisor Notes",
        note.note_id,
    )
    return note


def update_note(
    session: Session,
    *,
    actor: Claims,
    note_id: int,
    payload: AdvisorNoteUpdate,
    outbox: NotificationOutbox,
) -> AdvisorNote:
    note = ensure_note(session, note_id)
    authorize(actor, "advisor_note", "update", link_ownership(note.link))

    changes = patch_values(payload)
    if "recommendations" in changes:
        changes["recommendations"] = list(changes["recommendations"])
    apply_changes(note, changes)
    session.flush()

    outbox.to_user(
        note.link.student_id,
        "Advisor Notes updated",
        f"{_display_name(actor)} has updated a note!",
        "Advisor Notes",
        note.note_id,
    )
    return note


def delete_note(session: Session, *, actor: Claims, note_id: int) -> None:
    note = ensure_note(session, note_id)
    authorize(actor, "advisor_note", "delete", link_ownership(note.link))
    session.delete(note)
    session.flush()
