"""Declarative authorization policy.

Every gate in the API goes through :func:`authorize` (single resource, with
ownership resolved by the caller) or :func:`ensure_role` (collection
endpoints, which then scope their queries per role). Admins are always
allowed. Roles without an entry for a ``(resource, action)`` pair are denied
with ``ROLE_DENIED``; otherwise each check attached to the role must pass,
and the first failing check supplies the 403 reason.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from ..core.errors import AuthorizationError
from ..core.security import Claims
from ..models import RemarkStatus, Role

logger = logging.getLogger(__name__)

ROLE_DENIED = "Access denied for this role."

ADMIN = Role.ADMIN.value
LECTURER = Role.LECTURER.value
STUDENT = Role.STUDENT.value
ADVISOR = Role.ADVISOR.value


@dataclass(frozen=True)
class Ownership:
    """Ids that relate a resource to the people allowed to touch it."""

    lecturer_id: Optional[int] = None
    student_ids: FrozenSet[int] = frozenset()
    advisor_ids: FrozenSet[int] = frozenset()
    user_id: Optional[int] = None
    status: Optional[str] = None


Predicate = Callable[[Claims, Ownership], bool]


@dataclass(frozen=True)
class Check:
    predicate: Predicate
    reason: str


def _anyone(actor: Claims, owners: Ownership) -> bool:
    return True


def _teaches(actor: Claims, owners: Ownership) -> bool:
    return owners.lecturer_id is not None and owners.lecturer_id == actor.user_id


def _is_student(actor: Claims, owners: Ownership) -> bool:
    return actor.user_id in owners.student_ids


def _advises(actor: Claims, owners: Ownership) -> bool:
    return actor.user_id in owners.advisor_ids


def _is_subject(actor: Claims, owners: Ownership) -> bool:
    return owners.user_id is not None and owners.user_id == actor.user_id


def _is_pending(actor: Claims, owners: Ownership) -> bool:
    return owners.status == RemarkStatus.PENDING.value


def _allow(predicate: Predicate, reason: str) -> Tuple[Check, ...]:
    return (Check(predicate, reason),)


POLICY: Dict[Tuple[str, str], Dict[str, Tuple[Check, ...]]] = {
    ("user", "read"): {
        LECTURER: _allow(_is_subject, "You can only view your own profile."),
        STUDENT: _allow(_is_subject, "You can only view your own profile."),
        ADVISOR: _allow(_is_subject, "You can only view your own profile."),
    },
    ("user", "list"): {},
    ("user", "create"): {},
    ("user", "update"): {},
    ("user", "delete"): {},
    ("lecturer_students", "read"): {
        LECTURER: _allow(_is_subject, "You can only view students in your own courses."),
    },
    ("course", "read"): {
        LECTURER: _allow(_anyone, ""),
        STUDENT: _allow(_anyone, ""),
        ADVISOR: _allow(_anyone, ""),
    },
    ("course", "create"): {
        LECTURER: _allow(_teaches, "Lecturers can only create courses assigned to themselves."),
    },
    ("course", "update"): {
        LECTURER: _allow(_teaches, "You can only update courses you teach."),
    },
    ("course", "reassign"): {
        LECTURER: _allow(_teaches, "Only an administrator can assign a course to another lecturer."),
    },
    ("course", "delete"): {},
    ("course_roster", "read"): {
        LECTURER: _allow(_teaches, "You can only view eligible students for courses you teach."),
    },
    ("course_roster", "create"): {
        LECTURER: _allow(_teaches, "You can only add students to courses you teach."),
    },
    ("enrollment", "read"): {
        LECTURER: _allow(_teaches, "You can only view enrollments for courses you teach."),
        STUDENT: _allow(_is_student, "You can only view your own enrollments."),
    },
    ("enrollment", "create"): {},
    ("enrollment", "update"): {},
    ("enrollment", "delete"): {},
    ("assessment_component", "read"): {
        LECTURER: _allow(_teaches, "You can only view components of courses you teach."),
        STUDENT: _allow(_is_student, "You can only view components of courses you are enrolled in."),
    },
    ("assessment_component", "create"): {
        LECTURER: _allow(_teaches, "You can only add components to courses you teach."),
    },
    ("assessment_component", "update"): {
        LECTURER: _allow(_teaches, "You can only update components of courses you teach."),
    },
    ("assessment_component", "delete"): {
        LECTURER: _allow(_teaches, "You can only delete components of courses you teach."),
    },
    ("student_mark", "read"): {
        LECTURER: _allow(_teaches, "You can only view marks for courses you teach."),
        STUDENT: _allow(_is_student, "You can only view your own marks."),
    },
    ("student_mark", "create"): {
        LECTURER: _allow(_teaches, "You can only record marks for courses you teach."),
    },
    ("student_mark", "update"): {
        LECTURER: _allow(_teaches, "You can only update marks for courses you teach."),
    },
    ("student_mark", "delete"): {
        LECTURER: _allow(_teaches, "You can only delete marks for courses you teach."),
    },
    ("student_record", "read"): {
        # lecturers see the record filtered down to the courses they teach
        LECTURER: _allow(_anyone, ""),
        STUDENT: _allow(_is_subject, "You can only view your own academic record."),
        ADVISOR: _allow(_advises, "You can only view the records of your advisees."),
    },
    ("peer_marks", "read"): {
        LECTURER: _allow(_anyone, ""),
        STUDENT: _allow(_anyone, ""),
        ADVISOR: _allow(_anyone, ""),
    },
    ("remark_request", "read"): {
        LECTURER: _allow(_teaches, "You can only view remark requests for courses you teach."),
        STUDENT: _allow(_is_student, "You can only view your own remark requests."),
        ADVISOR: _allow(_advises, "You can only view remark requests of your advisees."),
    },
    ("remark_request", "create"): {
        STUDENT: _allow(_is_student, "You can only request a remark for your own marks."),
    },
    ("remark_request", "update"): {
        LECTURER: _allow(_teaches, "You can only review remark requests for courses you teach."),
    },
    ("remark_request", "delete"): {
        LECTURER: _allow(_teaches, "You can only delete remark requests for courses you teach."),
        STUDENT: (
            Check(_is_student, "You can only delete your own remark requests."),
            Check(_is_pending, "Only pending remark requests can be deleted."),
        ),
    },
    ("advisor_student", "read"): {
        ADVISOR: _allow(_advises, "You can only view your own advisor assignments."),
        STUDENT: _allow(_is_student, "You can only view your own advisor assignment."),
    },
    ("advisor_student", "create"): {},
    ("advisor_student", "update"): {},
    ("advisor_student", "delete"): {},
    ("advisor_note", "read"): {
        ADVISOR: _allow(_advises, "You can only view notes you have written."),
        STUDENT: _allow(_is_student, "You can only view notes written about you."),
    },
    ("advisor_note", "create"): {
        ADVISOR: _allow(_advises, "You can only add notes for your own advisees."),
    },
    ("advisor_note", "update"): {
        ADVISOR: _allow(_advises, "You can only update notes for your own advisees."),
    },
    ("advisor_note", "delete"): {
        ADVISOR: _allow(_advises, "You can only delete notes for your own advisees."),
    },
    ("notification", "read"): {
        LECTURER: _allow(_is_subject, "You can only view your own notifications."),
        STUDENT: _allow(_is_subject, "You can only view your own notifications."),
        ADVISOR: _allow(_is_subject, "You can only view your own notifications."),
    },
    ("notification", "update"): {
        LECTURER: _allow(_is_subject, "You can only update your own notifications."),
        STUDENT: _allow(_is_subject, "You can only update your own notifications."),
        ADVISOR: _allow(_is_subject, "You can only update your own notifications."),
    },
    ("notification", "delete"): {
        LECTURER: _allow(_is_subject, "You can only delete your own notifications."),
        STUDENT: _allow(_is_subject, "You can only delete your own notifications."),
        ADVISOR: _allow(_is_subject, "You can only delete your own notifications."),
    },
}


def is_admin(actor: Claims) -> bool:
    return actor.role == ADMIN


def _checks_for(actor: Claims, resource: str, action: str) -> Tuple[Check, ...]:
    try:
        rules = POLICY[(resource, action)]
    except KeyError:
        raise LookupError(f"no policy registered for {resource}:{action}") from None

    checks = rules.get(actor.role)
    if checks is None:
        logger.debug("role %s denied %s:%s", actor.role, resource, action)
        raise AuthorizationError(ROLE_DENIED)
    return checks


def ensure_role(actor: Claims, resource: str, action: str) -> None:
    """Role-only gate for collection endpoints."""

    if is_admin(actor):
        return
    _checks_for(actor, resource, action)


def authorize(
    actor: Claims,
    resource: str,
    action: str,
    owners: Optional[Ownership] = None,
) -> None:
    """Raise ``AuthorizationError`` unless ``actor`` may perform ``action``."""

    if is_admin(actor):
        return

    owners = owners or Ownership()
    for check in _checks_for(actor, resource, action):
        if not check.predicate(actor, owners):
            logger.debug(
                "user %s (%s) denied %s:%s: %s",
                actor.user_id,
                actor.role,
                resource,
                action,
                check.reason,
            )
            raise AuthorizationError(check.reason)
