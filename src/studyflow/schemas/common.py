"""Shared response shapes and lightweight projections."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Body returned for every non-2xx response."""

    error: str


class UserBrief(BaseModel):
    """Lightweight projection of user details."""

    model_config = ConfigDict(from_attributes=True)

    user_id: int
    username: str
    full_name: Optional[str] = None
    matric_number: Optional[str] = None


class CourseBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: int
    course_code: str
    course_name: str
