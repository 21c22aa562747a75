"""Remark requests and their pending -> approved/rejected lifecycle."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.security import Claims
from ..models import AdvisorStudent, Course, Enrollment, RemarkRequest, RemarkStatus, Role, StudentMark
from ..schemas import RemarkCreate, RemarkUpdate
from ..utils.datetime import utc_now
from ..utils.persistence import apply_changes, flush_or_conflict, patch_values
from .mark_service import ensure_mark
from .notification_service import NotificationOutbox
from .policy import Ownership, authorize, ensure_role, is_admin

DUPLICATE_REQUEST = "A remark request already exists for this mark."


def _with_mark_chain(stmt):
    return stmt.options(
        joinedload(RemarkRequest.mark).joinedload(StudentMark.enrollment).joinedload(Enrollment.course),
        joinedload(RemarkRequest.mark).joinedload(StudentMark.component),
        joinedload(RemarkRequest.student),
    )


def ensure_request(session: Session, request_id: int, *, for_update: bool = False) -> RemarkRequest:
    stmt = _with_mark_chain(select(RemarkRequest)).where(RemarkRequest.request_id == request_id)
    if for_update:
        stmt = stmt.with_for_update(of=RemarkRequest)
    remark = session.execute(stmt).scalar_one_or_none()
    if remark is None:
        raise NotFoundError(f"Remark request {request_id} not found")
    return remark


def _advisor_ids(session: Session, student_id: int) -> frozenset:
    stmt = select(AdvisorStudent.advisor_id).where(AdvisorStudent.student_id == student_id)
    return frozenset(session.execute(stmt).scalars().all())


def remark_ownership(session: Session, remark: RemarkRequest) -> Ownership:
    return Ownership(
        lecturer_id=remark.mark.enrollment.course.lecturer_id,
        student_ids=frozenset({remark.student_id}),
        advisor_ids=_advisor_ids(session, remark.student_id),
        status=remark.status.value,
    )


def _remark_row(remark: RemarkRequest) -> dict:
    mark = remark.mark
    course = mark.enrollment.course
    return {
        "request_id": remark.request_id,
        "mark_id": remark.mark_id,
        "student_id": remark.student_id,
        "student_name": remark.student.full_name,
        "course_id": course.course_id,
        "course_code": course.course_code,
        "component_id": mark.component_id,
        "component_name": mark.component.component_name,
        "mark_obtained": mark.mark_obtained,
        "max_mark": mark.component.max_mark,
        "justification": remark.justification,
        "status": remark.status,
        "lecturer_notes": remark.lecturer_notes,
        "resolved_by": remark.resolved_by,
        "resolved_at": remark.resolved_at,
        "created_at": remark.created_at,
    }


def list_requests(
    session: Session,
    *,
    actor: Claims,
    status: Optional[RemarkStatus] = None,
    course_id: Optional[int] = None,
) -> List[dict]:
    ensure_role(actor, "remark_request", "read")

    stmt = (
        _with_mark_chain(select(RemarkRequest))
        .join(StudentMark, StudentMark.mark_id == RemarkRequest.mark_id)
        .join(Enrollment, Enrollment.enrollment_id == StudentMark.enrollment_id)
        .join(Course, Course.course_id == Enrollment.course_id)
        .order_by(RemarkRequest.created_at.desc(), RemarkRequest.request_id.desc())
    )
    if actor.role == Role.LECTURER.value:
        stmt = stmt.where(Course.lecturer_id == actor.user_id)
    elif actor.role == Role.STUDENT.value:
        stmt = stmt.where(RemarkRequest.student_id == actor.user_id)
    elif actor.role == Role.ADVISOR.value:
        advisees = select(AdvisorStudent.student_id).where(AdvisorStudent.advisor_id == actor.user_id)
        stmt = stmt.where(RemarkRequest.student_id.in_(advisees))

    if status is not None:
        stmt = stmt.where(RemarkRequest.status == status)
    if course_id is not None:
        stmt = stmt.where(Course.course_id == course_id)
    return [_remark_row(remark) for remark in session.execute(stmt).scalars().unique().all()]


def get_request(session: Session, *, actor: Claims, request_id: int) -> dict:
    remark = ensure_request(session, request_id)
    authorize(actor, "remark_request", "read", remark_ownership(session, remark))
    return _remark_row(remark)


def create_request(
    session: Session,
    *,
    actor: Claims,
    payload: RemarkCreate,
    outbox: NotificationOutbox,
) -> RemarkRequest:
    """File a remark request for one of the student's own marks."""

    mark = ensure_mark(session, payload.mark_id)
    student_id = mark.enrollment.student_id
    authorize(actor, "remark_request", "create", Ownership(student_ids=frozenset({student_id})))

    existing = session.execute(
        select(RemarkRequest.request_id).where(RemarkRequest.mark_id == mark.mark_id)
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(DUPLICATE_REQUEST)

    remark = RemarkRequest(
        mark_id=mark.mark_id,
        student_id=student_id,
        justification=payload.justification,
        status=RemarkStatus.PENDING,
    )
    session.add(remark)
    flush_or_conflict(session, DUPLICATE_REQUEST)

    course = mark.enrollment.course
    requester = mark.enrollment.student.full_name or mark.enrollment.student.username
    outbox.to_user(
        course.lecturer_id,
        "New remark request",
        f"{requester} requested a remark for {mark.component.component_name} in {course.course_code}.",
        "remark_request",
        remark.request_id,
    )
    return remark


def update_request(
    session: Session,
    *,
    actor: Claims,
    request_id: int,
    payload: RemarkUpdate,
    outbox: NotificationOutbox,
) -> RemarkRequest:
    """Review a request; resolving it is a one-way transition out of pending."""

    remark = ensure_request(session, request_id, for_update=True)
    authorize(actor, "remark_request", "update", remark_ownership(session, remark))

    changes = patch_values(payload, nullable=("lecturer_notes",))
    if "justification" in changes and not is_admin(actor):
        raise AuthorizationError("Only an administrator can edit the justification.")

    new_status = changes.pop("status", None)
    if new_status is not None:
        if new_status == RemarkStatus.PENDING:
            raise ValidationError("Status can only be changed to approved or rejected.")
        if remark.status != RemarkStatus.PENDING:
            raise ConflictError(f"Remark request has already been {remark.status.value}.")
        remark.status = new_status
        remark.resolved_by = actor.user_id
        remark.resolved_at = utc_now()

    apply_changes(remark, changes)
    session.flush()

    if new_status is not None:
        course = remark.mark.enrollment.course
        outbox.to_user(
            remark.student_id,
            f"Remark request {new_status.value}",
            f"Your remark request for {remark.mark.component.component_name} in "
            f"{course.course_code} was {new_status.value}.",
            "remark_request",
            remark.request_id,
        )
    return remark


def delete_request(session: Session, *, actor: Claims, request_id: int) -> None:
    remark = ensure_request(session, request_id)
    authorize(actor, "remark_request", "delete", remark_ownership(session, remark))
    session.delete(remark)
    session.flush()
