"""Pydantic schemas for courses and course rosters."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import UserBrief


class CourseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: int
    course_code: str
    course_name: str
    lecturer_id: int
    credit_hours: int
    lecturer: Optional[UserBrief] = None
    created_at: datetime


class CourseCreate(BaseModel):
    """Request body for creating a course.

    Lecturers may omit ``lecturer_id``; the course is then assigned to them.
    """

    course_code: str = Field(..., min_length=1, max_length=20)
    course_name: str = Field(..., min_length=1, max_length=255)
    lecturer_id: Optional[int] = None
    credit_hours: int = Field(3, gt=0, le=30)


class CourseUpdate(BaseModel):
    course_code: Optional[str] = Field(None, min_length=1, max_length=20)
    course_name: Optional[str] = Field(None, min_length=1, max_length=255)
    lecturer_id: Optional[int] = None
    credit_hours: Optional[int] = Field(None, gt=0, le=30)


class CourseAck(BaseModel):
    message: str
    course_id: int


class AddStudentsRequest(BaseModel):
    student_ids: List[int] = Field(..., min_length=1)


class AddStudentResult(BaseModel):
    student_id: int
    success: bool
    message: str


class AddStudentsReport(BaseModel):
    """Per-student outcome of a bulk enrollment."""

    message: str
    added: int
    failed: int
    details: List[AddStudentResult]
