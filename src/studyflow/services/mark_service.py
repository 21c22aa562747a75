"""Recording marks, grading grids and mark reports."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased, joinedload

from ..core.database import transaction
from ..core.errors import ApiError, ConflictError, NotFoundError, ValidationError
from ..core.security import Claims
from ..models import AdvisorStudent, AssessmentComponent, Course, Enrollment, Role, StudentMark, User
from ..schemas import BatchMarkItem, MarkCreate, MarkUpdate
from ..utils.datetime import utc_now
from ..utils.persistence import flush_or_conflict, patch_values
from .assessment_service import ensure_component
from .course_service import ensure_course
from .enrollment_service import ensure_enrollment
from .grading import ComponentWeight, summarize_course
from .notification_service import NotificationOutbox
from .policy import Ownership, authorize, ensure_role
from .user_service import ensure_user

logger = logging.getLogger(__name__)

DUPLICATE_MARK = "A mark for this student and assessment component already exists."


def ensure_mark(session: Session, mark_id: int, *, for_update: bool = False) -> StudentMark:
    stmt = (
        select(StudentMark)
        .options(
            joinedload(StudentMark.enrollment).joinedload(Enrollment.course),
            joinedload(StudentMark.enrollment).joinedload(Enrollment.student),
            joinedload(StudentMark.component),
        )
        .where(StudentMark.mark_id == mark_id)
    )
    if for_update:
        stmt = stmt.with_for_update(of=StudentMark)
    mark = session.execute(stmt).scalar_one_or_none()
    if mark is None:
        raise NotFoundError(f"Student mark {mark_id} not found")
    return mark


def mark_ownership(mark: StudentMark) -> Ownership:
    return Ownership(
        lecturer_id=mark.enrollment.course.lecturer_id,
        student_ids=frozenset({mark.enrollment.student_id}),
    )


def check_bounds(mark_obtained: float, component: AssessmentComponent) -> None:
    """Marks must lie in ``[0, max_mark]``, both ends inclusive."""

    max_mark = float(component.max_mark)
    if mark_obtained < 0 or mark_obtained > max_mark:
        raise ValidationError(
            f"Mark must be between 0 and {max_mark:g} for {component.component_name}."
        )


def _mark_row(mark: StudentMark) -> dict:
    enrollment = mark.enrollment
    component = mark.component
    return {
        "mark_id": mark.mark_id,
        "enrollment_id": mark.enrollment_id,
        "component_id": mark.component_id,
        "student_id": enrollment.student_id,
        "student_name": enrollment.student.full_name,
        "course_id": enrollment.course_id,
        "course_code": enrollment.course.course_code,
        "component_name": component.component_name,
        "max_mark": component.max_mark,
        "weight_percentage": component.weight_percentage,
        "mark_obtained": mark.mark_obtained,
        "recorded_by": mark.recorded_by,
        "recorded_at": mark.recorded_at,
    }


def _notify_student(
    outbox: NotificationOutbox,
    mark: StudentMark,
    enrollment: Enrollment,
    component: AssessmentComponent,
    course: Course,
    *,
    updated: bool,
) -> None:
    verb = "updated" if updated else "recorded"
    outbox.to_user(
        enrollment.student_id,
        f"Mark {verb}",
        f"Your mark for {component.component_name} in {course.course_code} was {verb}: "
        f"{float(mark.mark_obtained):g}/{float(component.max_mark):g}.",
        "mark",
        mark.mark_id,
    )


def list_marks(
    session: Session,
    *,
    actor: Claims,
    course_id: Optional[int] = None,
    student_id: Optional[int] = None,
    component_id: Optional[int] = None,
    limit: int = 200,
    offset: int = 0,
) -> List[dict]:
    ensure_role(actor, "student_mark", "read")

    stmt = (
        select(StudentMark)
        .join(Enrollment, Enrollment.enrollment_id == StudentMark.enrollment_id)
        .join(Course, Course.course_id == Enrollment.course_id)
        .options(
            joinedload(StudentMark.enrollment).joinedload(Enrollment.course),
            joinedload(StudentMark.enrollment).joinedload(Enrollment.student),
            joinedload(StudentMark.component),
        )
        .order_by(StudentMark.mark_id)
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
    if component_id is not None:
        stmt = stmt.where(StudentMark.component_id == component_id)

    return [_mark_row(mark) for mark in session.execute(stmt).scalars().unique().all()]


def get_mark(session: Session, *, actor: Claims, mark_id: int) -> dict:
    mark = ensure_mark(session, mark_id)
    authorize(actor, "student_mark", "read", mark_ownership(mark))
    return _mark_row(mark)


def create_mark(
    session: Session,
    *,
    actor: Claims,
    payload: MarkCreate,
    outbox: NotificationOutbox,
) -> StudentMark:
    enrollment = ensure_enrollment(session, payload.enrollment_id)
    component = ensure_component(session, payload.component_id, for_update=True)
    if component.course_id != enrollment.course_id:
        raise ValidationError("Assessment component does not belong to the enrollment's course.")
    authorize(actor, "student_mark", "create", Ownership(lecturer_id=enrollment.course.lecturer_id))
    check_bounds(payload.mark_obtained, component)

    existing = session.execute(
        select(StudentMark.mark_id).where(
            StudentMark.enrollment_id == enrollment.enrollment_id,
            StudentMark.component_id == component.component_id,
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(DUPLICATE_MARK)

    mark = StudentMark(
        enrollment_id=enrollment.enrollment_id,
        component_id=component.component_id,
        mark_obtained=payload.mark_obtained,
        recorded_by=actor.user_id,
    )
    session.add(mark)
    flush_or_conflict(session, DUPLICATE_MARK)

    _notify_student(outbox, mark, enrollment, component, enrollment.course, updated=False)
    return mark


def update_mark(
    session: Session,
    *,
    actor: Claims,
    mark_id: int,
    payload: MarkUpdate,
    outbox: NotificationOutbox,
) -> StudentMark:
    mark = ensure_mark(session, mark_id, for_update=True)
    authorize(actor, "student_mark", "update", mark_ownership(mark))

    changes = patch_values(payload)
    check_bounds(changes["mark_obtained"], mark.component)

    mark.mark_obtained = changes["mark_obtained"]
    mark.recorded_by = actor.user_id
    mark.recorded_at = utc_now()
    session.flush()

    _notify_student(outbox, mark, mark.enrollment, mark.component, mark.enrollment.course, updated=True)
    return mark


def delete_mark(session: Session, *, actor: Claims, mark_id: int) -> None:
    mark = ensure_mark(session, mark_id)
    authorize(actor, "student_mark", "delete", mark_ownership(mark))
    session.delete(mark)
    session.flush()


def course_assessment_marks(
    session: Session,
    *,
    actor: Claims,
    course_id: int,
    component_id: int,
) -> List[dict]:
    """Every enrolled student with their mark on ``component_id`` (or ``None``)."""

    course = ensure_course(session, course_id)
    component = ensure_component(session, component_id)
    if component.course_id != course.course_id:
        raise NotFoundError(f"Assessment component {component_id} not found in course {course_id}")
    authorize(actor, "student_mark", "read", Ownership(lecturer_id=course.lecturer_id))

    stmt = (
        select(Enrollment, User, StudentMark)
        .join(User, User.user_id == Enrollment.student_id)
        .outerjoin(
            StudentMark,
            and_(
                StudentMark.enrollment_id == Enrollment.enrollment_id,
                StudentMark.component_id == component_id,
            ),
        )
        .where(Enrollment.course_id == course_id)
        .order_by(User.full_name, User.user_id)
    )
    rows = []
    for enrollment, student, mark in session.execute(stmt).all():
        rows.append(
            {
                "enrollment_id": enrollment.enrollment_id,
                "student_id": student.user_id,
                "student_name": student.full_name,
                "matric_number": student.matric_number,
                "mark_id": mark.mark_id if mark is not None else None,
                "mark_obtained": mark.mark_obtained if mark is not None else None,
                "max_mark": component.max_mark,
            }
        )
    return rows


def _apply_batch_item(
    session: Session,
    actor: Claims,
    item: BatchMarkItem,
    outbox: NotificationOutbox,
) -> Optional[str]:
    """Apply one grid cell; returns "inserted", "updated", "cleared" or ``None``."""

    course = ensure_course(session, item.course_id)
    component = ensure_component(session, item.assessment_component_id, for_update=True)
    if component.course_id != course.course_id:
        raise ValidationError("Assessment component does not belong to this course.")
    authorize(actor, "student_mark", "update", Ownership(lecturer_id=course.lecturer_id))

    enrollment = session.execute(
        select(Enrollment).where(
            Enrollment.student_id == item.student_id,
            Enrollment.course_id == course.course_id,
        )
    ).scalar_one_or_none()
    if enrollment is None:
        raise ValidationError("Student is not enrolled in this course.")

    existing = session.execute(
        select(StudentMark)
        .where(
            StudentMark.enrollment_id == enrollment.enrollment_id,
            StudentMark.component_id == component.component_id,
        )
        .with_for_update()
    ).scalar_one_or_none()

    if item.mark is None:
        if existing is None:
            return None
        session.delete(existing)
        session.flush()
        return "cleared"

    check_bounds(item.mark, component)
    if existing is not None:
        existing.mark_obtained = item.mark
        existing.recorded_by = actor.user_id
        existing.recorded_at = utc_now()
        session.flush()
        mark, outcome = existing, "updated"
    else:
        mark = StudentMark(
            enrollment_id=enrollment.enrollment_id,
            component_id=component.component_id,
            mark_obtained=item.mark,
            recorded_by=actor.user_id,
        )
        session.add(mark)
        flush_or_conflict(session, DUPLICATE_MARK)
        outcome = "inserted"

    _notify_student(outbox, mark, enrollment, component, course, updated=outcome == "updated")
    return outcome


def batch_update(
    session: Session,
    *,
    actor: Claims,
    items: Sequence[BatchMarkItem],
    outbox: NotificationOutbox,
) -> dict:
    """Insert, update or clear a grid of marks; each cell commits on its own."""

    ensure_role(actor, "student_mark", "update")

    counts = {"inserted": 0, "updated": 0, "cleared": 0}
    errors = []
    for index, item in enumerate(items):
        queued = len(outbox.events)
        try:
            with transaction(session):
                outcome = _apply_batch_item(session, actor, item, outbox)
        except ApiError as exc:
            detail = exc.detail
        except SQLAlchemyError:
            logger.exception("batch mark item %s failed", index)
            detail = "Database error"
        else:
            if outcome is not None:
                counts[outcome] += 1
            continue

        del outbox.events[queued:]
        errors.append(
            {
                "index": index,
                "student_id": item.student_id,
                "assessment_component_id": item.assessment_component_id,
                "error": detail,
            }
        )

    processed = sum(counts.values())
    return {
        "message": f"{processed} mark(s) processed, {len(errors)} failed.",
        **counts,
        "errors": errors,
    }


def peer_marks(session: Session, *, actor: Claims, course_id: Optional[int] = None) -> List[dict]:
    """All recorded marks for peer comparison, anonymised for non-staff."""

    ensure_role(actor, "peer_marks", "read")

    student = aliased(User)
    recorder = aliased(User)
    stmt = (
        select(StudentMark, Enrollment, student, Course, AssessmentComponent, recorder)
        .join(Enrollment, Enrollment.enrollment_id == StudentMark.enrollment_id)
        .join(student, student.user_id == Enrollment.student_id)
        .join(Course, Course.course_id == Enrollment.course_id)
        .join(AssessmentComponent, AssessmentComponent.component_id == StudentMark.component_id)
        .join(recorder, recorder.user_id == StudentMark.recorded_by)
        .order_by(Course.course_name, AssessmentComponent.component_name, StudentMark.mark_obtained.desc())
    )
    if course_id is not None:
        stmt = stmt.where(Enrollment.course_id == course_id)

    anonymise = actor.role in (Role.STUDENT.value, Role.ADVISOR.value)
    labels: Dict[int, str] = {}
    rows = []
    for mark, enrollment, student_user, course, component, recorded_by in session.execute(stmt).all():
        row = {
            "course_id": course.course_id,
            "course_code": course.course_code,
            "course_name": course.course_name,
            "component_id": component.component_id,
            "component_name": component.component_name,
            "max_mark": component.max_mark,
            "weight_percentage": component.weight_percentage,
            "mark_obtained": mark.mark_obtained,
        }
        if anonymise:
            is_self = enrollment.student_id == actor.user_id
            if is_self:
                row["student_name"] = student_user.full_name or student_user.username
            else:
                label = labels.get(enrollment.student_id)
                if label is None:
                    label = labels[enrollment.student_id] = f"Student {len(labels) + 1}"
                row["student_name"] = label
            row["is_current_user"] = is_self
        else:
            row["student_id"] = enrollment.student_id
            row["student_name"] = student_user.full_name or student_user.username
            row["matric_number"] = student_user.matric_number
            row["recorded_by_name"] = recorded_by.full_name or recorded_by.username
        rows.append(row)
    return rows


def _record_ownership(session: Session, student: User) -> Ownership:
    advisor_ids = session.execute(
        select(AdvisorStudent.advisor_id).where(AdvisorStudent.student_id == student.user_id)
    ).scalars().all()
    return Ownership(user_id=student.user_id, advisor_ids=frozenset(advisor_ids))


def _ensure_student(session: Session, student_id: int) -> User:
    student = ensure_user(session, student_id)
    if student.role != Role.STUDENT:
        raise NotFoundError(f"Student {student_id} not found")
    return student


def student_marks(session: Session, *, actor: Claims, student_id: int) -> List[dict]:
    """One student's marks; lecturers only see their own courses."""

    student = _ensure_student(session, student_id)
    authorize(actor, "student_record", "read", _record_ownership(session, student))

    stmt = (
        select(StudentMark, Course, AssessmentComponent)
        .join(Enrollment, Enrollment.enrollment_id == StudentMark.enrollment_id)
        .join(Course, Course.course_id == Enrollment.course_id)
        .join(AssessmentComponent, AssessmentComponent.component_id == StudentMark.component_id)
        .where(Enrollment.student_id == student_id)
        .order_by(Course.course_code, AssessmentComponent.component_id)
    )
    if actor.role == Role.LECTURER.value:
        stmt = stmt.where(Course.lecturer_id == actor.user_id)

    return [
        {
            "mark_id": mark.mark_id,
            "course_id": course.course_id,
            "course_code": course.course_code,
            "course_name": course.course_name,
            "component_id": component.component_id,
            "component_name": component.component_name,
            "max_mark": component.max_mark,
            "weight_percentage": component.weight_percentage,
            "is_final_exam": component.is_final_exam,
            "mark_obtained": mark.mark_obtained,
            "recorded_at": mark.recorded_at,
        }
        for mark, course, component in session.execute(stmt).all()
    ]


def student_summary(session: Session, *, actor: Claims, student_id: int) -> dict:
    """Weighted percentage and letter grade for each enrolled course."""

    student = _ensure_student(session, student_id)
    authorize(actor, "student_record", "read", _record_ownership(session, student))

    course_stmt = (
        select(Enrollment, Course)
        .join(Course, Course.course_id == Enrollment.course_id)
        .where(Enrollment.student_id == student_id)
        .order_by(Course.course_code)
    )
    if actor.role == Role.LECTURER.value:
        course_stmt = course_stmt.where(Course.lecturer_id == actor.user_id)

    summaries = []
    for enrollment, course in session.execute(course_stmt).all():
        components = session.execute(
            select(AssessmentComponent).where(AssessmentComponent.course_id == course.course_id)
        ).scalars().all()
        marks = dict(
            session.execute(
                select(StudentMark.component_id, StudentMark.mark_obtained).where(
                    StudentMark.enrollment_id == enrollment.enrollment_id
                )
            ).all()
        )
        grade = summarize_course(
            [
                ComponentWeight(c.component_id, float(c.max_mark), float(c.weight_percentage))
                for c in components
            ],
            marks,
        )
        summaries.append(
            {
                "course_id": course.course_id,
                "course_code": course.course_code,
                "course_name": course.course_name,
                "credit_hours": course.credit_hours,
                "overall_percentage": grade.overall_percentage,
                "letter_grade": grade.letter_grade,
                "total_weighted_percentage": grade.total_weighted_percentage,
                "graded_weight_percentage": grade.graded_weight_percentage,
                "total_weight_percentage": grade.total_weight_percentage,
            }
        )

    return {"student_id": student_id, "courses": summaries}
