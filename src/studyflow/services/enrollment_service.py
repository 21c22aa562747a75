"""Enrollment management with role-scoped listings."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..core.errors import ConflictError, NotFoundError
from ..core.security import Claims
from ..models import Course, Enrollment, Role, StudentMark
from ..schemas import EnrollmentCreate, EnrollmentUpdate
from ..utils.persistence import apply_changes, flush_or_conflict, patch_values
from .course_service import ensure_course
from .notification_service import NotificationOutbox
from .policy import Ownership, authorize, ensure_role
from .user_service import ensure_user_with_role

DUPLICATE_ENROLLMENT = "Student is already enrolled in this course."


def ensure_enrollment(session: Session, enrollment_id: int) -> Enrollment:
    stmt = (
        select(Enrollment)
        .options(joinedload(Enrollment.course))
        .where(Enrollment.enrollment_id == enrollment_id)
    )
    enrollment = session.execute(stmt).scalar_one_or_none()
    if enrollment is None:
        raise NotFoundError(f"Enrollment {enrollment_id} not found")
    return enrollment


def enrollment_ownership(enrollment: Enrollment) -> Ownership:
    return Ownership(
        lecturer_id=enrollment.course.lecturer_id,
        student_ids=frozenset({enrollment.student_id}),
    )


def list_enrollments(
    session: Session,
    *,
    actor: Claims,
    course_id: Optional[int] = None,
    student_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0,
) -> Sequence[Enrollment]:
    """Admins see everything, lecturers their courses, students themselves."""

    ensure_role(actor, "enrollment", "read")

    stmt = (
        select(Enrollment)
        .join(Course, Course.course_id == Enrollment.course_id)
        .options(joinedload(Enrollment.student), joinedload(Enrollment.course))
        .order_by(Enrollment.enrollment_id)
        .offset(offset)
        .limit(limit)
    )
    if actor.role == Role.LECTURER.value:
        stmt = stmt.where(Course.lecturer_id == actor.user_id)
    elif actor.role == Role.STUDENT.value:
        stmt = stmt.where(Enrollment.student_id == actor.user_id)

    if course_id is not None:
        stmt = stmt.where(Enrollment.course_id == course_id)
    if student_id is not None:
        stmt = stmt.where(Enrollment.student_id == student_id)
    return session.execute(stmt).scalars().all()


def get_enrollment(session: Session, *, actor: Claims, enrollment_id: int) -> Enrollment:
    enrollment = ensure_enrollment(session, enrollment_id)
    authorize(actor, "enrollment", "read", enrollment_ownership(enrollment))
    return enrollment


def create_enrollment(
    session: Session,
    *,
    actor: Claims,
    payload: EnrollmentCreate,
    outbox: NotificationOutbox,
) -> Enrollment:
    course = ensure_course(session, payload.course_id)
    ensure_user_with_role(session, payload.student_id, Role.STUDENT)
    authorize(actor, "enrollment", "create", Ownership(lecturer_id=course.lecturer_id))

    enrollment = Enrollment(student_id=payload.student_id, course_id=course.course_id)
    if payload.enrollment_date is not None:
        enrollment.enrollment_date = payload.enrollment_date
    session.add(enrollment)
    flush_or_conflict(session, DUPLICATE_ENROLLMENT)

    outbox.to_user(
        payload.student_id,
        "Course enrollment",
        f"You have been enrolled in {course.course_code} - {course.course_name}.",
        "enrollment",
        enrollment.enrollment_id,
    )
    return enrollment


def update_enrollment(
    session: Session,
    *,
    actor: Claims,
    enrollment_id: int,
    payload: EnrollmentUpdate,
) -> Enrollment:
    enrollment = ensure_enrollment(session, enrollment_id)
    changes = patch_values(payload)

    if "course_id" in changes:
        ensure_course(session, changes["course_id"])
    if "student_id" in changes:
        ensure_user_with_role(session, changes["student_id"], Role.STUDENT)
    authorize(actor, "enrollment", "update", enrollment_ownership(enrollment))

    # marks and remark requests belong to the original student and course
    moved = [
        field
        for field in ("student_id", "course_id")
        if changes.get(field, getattr(enrollment, field)) != getattr(enrollment, field)
    ]
    if moved:
        has_marks = session.execute(
            select(StudentMark.mark_id).where(StudentMark.enrollment_id == enrollment.enrollment_id).limit(1)
        ).first()
        if has_marks is not None:
            target = "another student" if "student_id" in moved else "another course"
            raise ConflictError(f"Enrollment has recorded marks and cannot be moved to {target}.")

    apply_changes(enrollment, changes)
    flush_or_conflict(session, DUPLICATE_ENROLLMENT)
    return enrollment


def delete_enrollment(session: Session, *, actor: Claims, enrollment_id: int) -> None:
    """Remove an enrollment; its marks and remark requests go with it."""

    enrollment = ensure_enrollment(session, enrollment_id)
    authorize(actor, "enrollment", "delete", enrollment_ownership(enrollment))
    session.delete(enrollment)
    flush_or_conflict(session, "Enrollment cannot be deleted while records reference it.")
