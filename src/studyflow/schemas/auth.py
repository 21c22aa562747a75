"""Pydantic schemas for the login endpoint."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..models import Role


class LoginRequest(BaseModel):
    """Credentials; either the password or the PIN is accepted in ``password``."""

    username: Optional[str] = None
    password: Optional[str] = None


class LoginUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    username: str
    role: Role
    email: Optional[str] = None
    full_name: Optional[str] = None
    matric_number: Optional[str] = None
    profile_picture: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    user: LoginUser
