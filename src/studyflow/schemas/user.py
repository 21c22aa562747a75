"""Pydantic schemas for user administration."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import Role


class UserRead(BaseModel):
    """User response payload; credential hashes are never exposed."""

    model_config = ConfigDict(from_attributes=True)

    user_id: int
    username: str
    role: Role
    email: Optional[str] = None
    full_name: Optional[str] = None
    matric_number: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: datetime


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)
    role: Role
    email: Optional[str] = Field(None, max_length=255)
    full_name: Optional[str] = Field(None, max_length=255)
    matric_number: Optional[str] = Field(None, max_length=50)
    pin: Optional[str] = Field(None, min_length=1, max_length=20)
    profile_picture: Optional[str] = Field(None, max_length=500)


class UserUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    username: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=1, max_length=128)
    role: Optional[Role] = None
    email: Optional[str] = Field(None, max_length=255)
    full_name: Optional[str] = Field(None, max_length=255)
    matric_number: Optional[str] = Field(None, max_length=50)
    pin: Optional[str] = Field(None, min_length=1, max_length=20)
    profile_picture: Optional[str] = Field(None, max_length=500)


class UserAck(BaseModel):
    message: str
    user_id: int
