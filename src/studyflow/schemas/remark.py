"""Pydantic schemas for remark requests."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models import RemarkStatus


class RemarkRead(BaseModel):
    """Remark request joined with the mark it concerns."""

    request_id: int
    mark_id: int
    student_id: int
    student_name: Optional[str] = None
    course_id: int
    course_code: str
    component_id: int
    component_name: str
    mark_obtained: float
    max_mark: float
    justification: str
    status: RemarkStatus
    lecturer_notes: Optional[str] = None
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime


class RemarkCreate(BaseModel):
    mark_id: int
    justification: str = Field(..., min_length=1, max_length=2000)


class RemarkUpdate(BaseModel):
    """Lecturer/admin update; ``justification`` may only be edited by admins."""

    status: Optional[RemarkStatus] = None
    lecturer_notes: Optional[str] = Field(None, max_length=2000)
    justification: Optional[str] = Field(None, min_length=1, max_length=2000)


class RemarkAck(BaseModel):
    message: str
    request_id: int
