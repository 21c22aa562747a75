"""Pydantic schemas for enrollments."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .common import CourseBrief, UserBrief


class EnrollmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enrollment_id: int
    student_id: int
    course_id: int
    enrollment_date: datetime
    student: UserBrief
    course: CourseBrief


class EnrollmentCreate(BaseModel):
    student_id: int
    course_id: int
    enrollment_date: Optional[datetime] = None


class EnrollmentUpdate(BaseModel):
    student_id: Optional[int] = None
    course_id: Optional[int] = None
    enrollment_date: Optional[datetime] = None


class EnrollmentAck(BaseModel):
    message: str
    enrollment_id: int
