"""Login endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import TokenVerifier, get_token_verifier
from ...schemas import ErrorResponse, LoginRequest, LoginResponse, LoginUser
from ...services import auth_service

router = APIRouter(tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Exchange credentials for an access token",
    responses={
        200: {
            "description": "Authenticated",
            "content": {
                "application/json": {
                    "example": {
                        "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "user": {
                            "user_id": 7,
                            "username": "amira.k",
                            "role": "student",
                            "email": "amira.k@example.edu",
                            "full_name": "Amira Kamal",
                            "matric_number": "A20231456",
                            "profile_picture": None,
                        },
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Username or password missing"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> LoginResponse:
    """Authenticate with a password or PIN.

    Example request body::

        {
            "username": "amira.k",
            "password": "s3cret"
        }
    """

    token, user = auth_service.login(
        db,
        verifier,
        username=payload.username,
        password=payload.password,
    )
    return LoginResponse(token=token, user=LoginUser.model_validate(user))
