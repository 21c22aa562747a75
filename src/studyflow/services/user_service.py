"""User administration."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.security import Claims, hash_secret
from ..models import Course, Enrollment, Role, User
from ..schemas import UserCreate, UserUpdate
from ..utils.persistence import apply_changes, flush_or_conflict, patch_values
from .policy import Ownership, authorize, ensure_role

DUPLICATE_USER = "A user with this username, email or matric number already exists."


def ensure_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def ensure_user_with_role(session: Session, user_id: int, role: Role, label: Optional[str] = None) -> User:
    """Resolve a user referenced from a payload and check their role.

    A missing or wrong-role reference is a bad request, not a 404, because
    the URL itself resolved fine.
    """

    label = label or role.value
    user = session.get(User, user_id)
    if user is None:
        raise ValidationError(f"{label.capitalize()} {user_id} does not exist.")
    if user.role != role:
        raise ValidationError(f"User {user_id} is not a {role.value}.")
    return user


def list_users(
    session: Session,
    *,
    actor: Claims,
    role: Optional[Role] = None,
    limit: int = 100,
    offset: int = 0,
) -> Sequence[User]:
    ensure_role(actor, "user", "list")

    stmt = select(User).order_by(User.user_id).offset(offset).limit(limit)
    if role is not None:
        stmt = stmt.where(User.role == role)
    return session.execute(stmt).scalars().all()


def get_user(session: Session, *, actor: Claims, user_id: int) -> User:
    user = ensure_user(session, user_id)
    authorize(actor, "user", "read", Ownership(user_id=user.user_id))
    return user


def create_user(session: Session, *, actor: Claims, payload: UserCreate) -> User:
    authorize(actor, "user", "create")

    user = User(
        username=payload.username,
        password_hash=hash_secret(payload.password),
        role=payload.role,
        email=payload.email,
        full_name=payload.full_name,
        matric_number=payload.matric_number,
        pin_hash=hash_secret(payload.pin) if payload.pin else None,
        profile_picture=payload.profile_picture,
    )
    session.add(user)
    flush_or_conflict(session, DUPLICATE_USER)
    return user


def update_user(session: Session, *, actor: Claims, user_id: int, payload: UserUpdate) -> User:
    user = ensure_user(session, user_id)
    authorize(actor, "user", "update", Ownership(user_id=user.user_id))

    changes = patch_values(
        payload,
        nullable=("email", "full_name", "matric_number", "pin", "profile_picture"),
    )
    if "password" in changes:
        changes["password_hash"] = hash_secret(changes.pop("password"))
    if "pin" in changes:
        pin = changes.pop("pin")
        changes["pin_hash"] = hash_secret(pin) if pin else None

    apply_changes(user, changes)
    flush_or_conflict(session, DUPLICATE_USER)
    return user


def delete_user(session: Session, *, actor: Claims, user_id: int) -> None:
    user = ensure_user(session, user_id)
    authorize(actor, "user", "delete", Ownership(user_id=user.user_id))
    if user.user_id == actor.user_id:
        raise ValidationError("You cannot delete your own account.")

    session.delete(user)
    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError("User cannot be deleted while records reference them.") from exc


def list_lecturer_students(session: Session, *, actor: Claims, lecturer_id: int) -> Sequence[User]:
    """Distinct students enrolled in any course taught by ``lecturer_id``."""

    lecturer = ensure_user(session, lecturer_id)
    authorize(actor, "lecturer_students", "read", Ownership(user_id=lecturer.user_id))
    if lecturer.role != Role.LECTURER:
        raise ValidationError(f"User {lecturer_id} is not a lecturer.")

    stmt = (
        select(User)
        .join(Enrollment, Enrollment.student_id == User.user_id)
        .join(Course, Course.course_id == Enrollment.course_id)
        .where(Course.lecturer_id == lecturer_id)
        .distinct()
        .order_by(User.full_name, User.user_id)
    )
    return session.execute(stmt).scalars().all()
