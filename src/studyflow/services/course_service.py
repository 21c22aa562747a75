"""Course catalogue and course roster management."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.database import transaction
from ..core.errors import ApiError, ConflictError, NotFoundError, ValidationError
from ..core.security import Claims
from ..models import Course, Enrollment, Role, User
from ..schemas import CourseCreate, CourseUpdate
from ..utils.persistence import apply_changes, flush_or_conflict, patch_values
from .notification_service import NotificationOutbox
from .policy import Ownership, authorize, ensure_role
from .user_service import ensure_user_with_role

logger = logging.getLogger(__name__)

DUPLICATE_CODE = "A course with this course code already exists."


def ensure_course(session: Session, course_id: int, *, for_update: bool = False) -> Course:
    stmt = select(Course).where(Course.course_id == course_id)
    if for_update:
        stmt = stmt.with_for_update()
    course = session.execute(stmt).scalar_one_or_none()
    if course is None:
        raise NotFoundError(f"Course {course_id} not found")
    return course


def course_ownership(course: Course) -> Ownership:
    return Ownership(lecturer_id=course.lecturer_id)


def enrolled_student_ids(session: Session, course_id: int) -> frozenset:
    stmt = select(Enrollment.student_id).where(Enrollment.course_id == course_id)
    return frozenset(session.execute(stmt).scalars().all())


def list_courses(
    session: Session,
    *,
    actor: Claims,
    lecturer_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0,
) -> Sequence[Course]:
    ensure_role(actor, "course", "read")

    stmt = (
        select(Course)
        .options(joinedload(Course.lecturer))
        .order_by(Course.course_code)
        .offset(offset)
        .limit(limit)
    )
    if lecturer_id is not None:
        stmt = stmt.where(Course.lecturer_id == lecturer_id)
    return session.execute(stmt).scalars().all()


def get_course(session: Session, *, actor: Claims, course_id: int) -> Course:
    course = ensure_course(session, course_id)
    authorize(actor, "course", "read", course_ownership(course))
    return course


def create_course(
    session: Session,
    *,
    actor: Claims,
    payload: CourseCreate,
    outbox: NotificationOutbox,
) -> Course:
    """Create a course; lecturers may only assign it to themselves."""

    lecturer_id = payload.lecturer_id
    if lecturer_id is None:
        if actor.role != Role.LECTURER.value:
            raise ValidationError("lecturer_id is required.")
        lecturer_id = actor.user_id

    ensure_user_with_role(session, lecturer_id, Role.LECTURER)
    authorize(actor, "course", "create", Ownership(lecturer_id=lecturer_id))

    course = Course(
        course_code=payload.course_code,
        course_name=payload.course_name,
        lecturer_id=lecturer_id,
        credit_hours=payload.credit_hours,
    )
    session.add(course)
    flush_or_conflict(session, DUPLICATE_CODE)

    outbox.to_roles(
        [Role.STUDENT.value, Role.LECTURER.value, Role.ADVISOR.value],
        "New course available",
        f"{course.course_code} - {course.course_name} has been added to the catalogue.",
        "course",
        course.course_id,
    )
    return course


def update_course(session: Session, *, actor: Claims, course_id: int, payload: CourseUpdate) -> Course:
    course = ensure_course(session, course_id, for_update=True)
    changes = patch_values(payload)

    new_lecturer_id = changes.get("lecturer_id")
    if new_lecturer_id is not None and new_lecturer_id != course.lecturer_id:
        ensure_user_with_role(session, new_lecturer_id, Role.LECTURER)

    authorize(actor, "course", "update", course_ownership(course))
    if new_lecturer_id is not None:
        authorize(actor, "course", "reassign", Ownership(lecturer_id=new_lecturer_id))

    apply_changes(course, changes)
    flush_or_conflict(session, DUPLICATE_CODE)
    return course


def delete_course(session: Session, *, actor: Claims, course_id: int) -> None:
    course = ensure_course(session, course_id)
    authorize(actor, "course", "delete", course_ownership(course))

    session.delete(course)
    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(
            "Course cannot be deleted while it has enrollments or assessment components."
        ) from exc


def eligible_students(session: Session, *, actor: Claims, course_id: int) -> Sequence[User]:
    """Students who are not yet enrolled in the course."""

    course = ensure_course(session, course_id)
    authorize(actor, "course_roster", "read", course_ownership(course))

    enrolled = select(Enrollment.student_id).where(Enrollment.course_id == course_id)
    stmt = (
        select(User)
        .where(User.role == Role.STUDENT, User.user_id.not_in(enrolled))
        .order_by(User.full_name, User.user_id)
    )
    return session.execute(stmt).scalars().all()


def _enroll_one(session: Session, course: Course, student_id: int) -> Enrollment:
    ensure_user_with_role(session, student_id, Role.STUDENT)
    existing = session.execute(
        select(Enrollment.enrollment_id).where(
            Enrollment.course_id == course.course_id,
            Enrollment.student_id == student_id,
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError("Student is already enrolled in this course.")

    enrollment = Enrollment(student_id=student_id, course_id=course.course_id)
    session.add(enrollment)
    flush_or_conflict(session, "Student is already enrolled in this course.")
    return enrollment


def add_students(
    session: Session,
    *,
    actor: Claims,
    course_id: int,
    student_ids: Sequence[int],
    outbox: NotificationOutbox,
) -> dict:
    """Enroll several students, committing each one independently."""

    course = ensure_course(session, course_id)
    authorize(actor, "course_roster", "create", course_ownership(course))
    course_label = f"{course.course_code} - {course.course_name}"

    details = []
    for student_id in dict.fromkeys(student_ids):
        try:
            with transaction(session):
                enrollment = _enroll_one(session, course, student_id)
        except ApiError as exc:
            details.append({"student_id": student_id, "success": False, "message": exc.detail})
            continue
        except SQLAlchemyError:
            logger.exception("failed to enroll student %s in course %s", student_id, course_id)
            details.append({"student_id": student_id, "success": False, "message": "Database error"})
            continue

        details.append({"student_id": student_id, "success": True, "message": "Enrolled"})
        outbox.to_user(
            student_id,
            "Course enrollment",
            f"You have been enrolled in {course_label}.",
            "enrollment",
            enrollment.enrollment_id,
        )

    added = sum(1 for item in details if item["success"])
    failed = len(details) - added
    return {
        "message": f"{added} student(s) added, {failed} failed.",
        "added": added,
        "failed": failed,
        "details": details,
    }

