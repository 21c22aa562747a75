"""Assessment components of a course."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ..core.errors import NotFoundError, ValidationError
from ..core.security import Claims
from ..models import AssessmentComponent, Course, Enrollment, Role, StudentMark
from ..schemas import ComponentCreate, ComponentUpdate
from ..utils.persistence import apply_changes, flush_or_conflict, patch_values
from .course_service import ensure_course, enrolled_student_ids
from .notification_service import NotificationOutbox
from .policy import Ownership, authorize, ensure_role


def ensure_component(session: Session, component_id: int, *, for_update: bool = False) -> AssessmentComponent:
    stmt = (
        select(AssessmentComponent)
        .options(joinedload(AssessmentComponent.course))
        .where(AssessmentComponent.component_id == component_id)
    )
    if for_update:
        stmt = stmt.with_for_update(of=AssessmentComponent)
    component = session.execute(stmt).scalar_one_or_none()
    if component is None:
        raise NotFoundError(f"Assessment component {component_id} not found")
    return component


def component_ownership(session: Session, component: AssessmentComponent) -> Ownership:
    return Ownership(
        lecturer_id=component.course.lecturer_id,
        student_ids=enrolled_student_ids(session, component.course_id),
    )


def list_components(
    session: Session,
    *,
    actor: Claims,
    course_id: Optional[int] = None,
) -> Sequence[AssessmentComponent]:
    """Components visible to the actor, optionally narrowed to one course."""

    ensure_role(actor, "assessment_component", "read")

    stmt = (
        select(AssessmentComponent)
        .join(Course, Course.course_id == AssessmentComponent.course_id)
        .options(joinedload(AssessmentComponent.course))
        .order_by(AssessmentComponent.course_id, AssessmentComponent.component_id)
    )
    if actor.role == Role.LECTURER.value:
        stmt = stmt.where(Course.lecturer_id == actor.user_id)
    elif actor.role == Role.STUDENT.value:
        enrolled = select(Enrollment.course_id).where(Enrollment.student_id == actor.user_id)
        stmt = stmt.where(AssessmentComponent.course_id.in_(enrolled))

    if course_id is not None:
        stmt = stmt.where(AssessmentComponent.course_id == course_id)
    return session.execute(stmt).scalars().all()


def get_component(session: Session, *, actor: Claims, component_id: int) -> AssessmentComponent:
    component = ensure_component(session, component_id)
    authorize(actor, "assessment_component", "read", component_ownership(session, component))
    return component


def create_component(
    session: Session,
    *,
    actor: Claims,
    payload: ComponentCreate,
    outbox: NotificationOutbox,
) -> AssessmentComponent:
    course = ensure_course(session, payload.course_id)
    authorize(actor, "assessment_component", "create", Ownership(lecturer_id=course.lecturer_id))

    component = AssessmentComponent(
        course_id=course.course_id,
        component_name=payload.component_name,
        max_mark=payload.max_mark,
        weight_percentage=payload.weight_percentage,
        is_final_exam=payload.is_final_exam,
    )
    session.add(component)
    flush_or_conflict(session, "Assessment component could not be created.")

    outbox.to_users(
        sorted(enrolled_student_ids(session, course.course_id)),
        "New assessment component",
        f"{component.component_name} ({component.weight_percentage:g}%) was added to {course.course_code}.",
        "assessment",
        component.component_id,
    )
    return component


def update_component(
    session: Session,
    *,
    actor: Claims,
    component_id: int,
    payload: ComponentUpdate,
) -> AssessmentComponent:
    component = ensure_component(session, component_id, for_update=True)
    authorize(actor, "assessment_component", "update", Ownership(lecturer_id=component.course.lecturer_id))

    changes = patch_values(payload)
    new_max = changes.get("max_mark")
    if new_max is not None:
        highest = session.execute(
            select(func.max(StudentMark.mark_obtained)).where(StudentMark.component_id == component_id)
        ).scalar_one()
        if highest is not None and float(highest) > new_max:
            raise ValidationError(
                f"max_mark cannot be lower than an already recorded mark ({float(highest):g})."
            )

    apply_changes(component, changes)
    flush_or_conflict(session, "Assessment component could not be updated.")
    return component


def delete_component(session: Session, *, actor: Claims, component_id: int) -> None:
    """Delete a component together with its recorded marks."""

    component = ensure_component(session, component_id)
    authorize(actor, "assessment_component", "delete", Ownership(lecturer_id=component.course.lecturer_id))
    session.delete(component)
    flush_or_conflict(session, "Assessment component cannot be deleted while records reference it.")
