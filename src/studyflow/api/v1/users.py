"""User administration endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import ApiError
from ...core.security import Claims, get_current_actor
from ...models import Role
from ...schemas import ErrorResponse, Message, UserAck, UserCreate, UserRead, UserUpdate
from ...services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserRead], summary="List users")
def list_users(
    *,
    role: Optional[Role] = Query(None, description="Only return users with this role"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[UserRead]:
    """Admin-only directory listing."""

    return list(user_service.list_users(db, actor=actor, role=role, limit=limit, offset=offset))


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get a user",
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> UserRead:
    """Admins may read anyone; everyone else only themselves."""

    return user_service.get_user(db, actor=actor, user_id=user_id)


@router.get(
    "/{lecturer_id}/students",
    response_model=List[UserRead],
    summary="Students taught by a lecturer",
)
def list_lecturer_students(
    lecturer_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> List[UserRead]:
    return list(user_service.list_lecturer_students(db, actor=actor, lecturer_id=lecturer_id))


@router.post(
    "",
    response_model=UserAck,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    responses={
        201: {
            "description": "User created",
            "content": {"application/json": {"example": {"message": "User created successfully", "user_id": 12}}},
        },
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Username, email or matric number taken"},
    },
)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> UserAck:
    """Create an account of any role.

    Example request body::

        {
            "username": "amira.k",
            "password": "s3cret",
            "role": "student",
            "email": "amira.k@example.edu",
            "full_name": "Amira Kamal",
            "matric_number": "A20231456",
            "pin": "4821"
        }
    """

    try:
        user = user_service.create_user(db, actor=actor, payload=payload)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return UserAck(message="User created successfully", user_id=user.user_id)


@router.put("/{user_id}", response_model=UserAck, summary="Update a user")
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> UserAck:
    try:
        user_service.update_user(db, actor=actor, user_id=user_id, payload=payload)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return UserAck(message="User updated successfully", user_id=user_id)


@router.delete("/{user_id}", response_model=Message, summary="Delete a user")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Claims = Depends(get_current_actor),
) -> Message:
    try:
        user_service.delete_user(db, actor=actor, user_id=user_id)
        db.commit()
    except ApiError:
        db.rollback()
        raise
    return Message(message="User deleted successfully")
