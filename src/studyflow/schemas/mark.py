"""Pydantic schemas for student marks, batch grading and grade summaries."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MarkRead(BaseModel):
    """Mark joined with its student, course and component."""

    mark_id: int
    enrollment_id: int
    component_id: int
    student_id: int
    student_name: Optional[str] = None
    course_id: int
    course_code: str
    component_name: str
    max_mark: float
    weight_percentage: float
    mark_obtained: float
    recorded_by: int
    recorded_at: datetime


class MarkCreate(BaseModel):
    enrollment_id: int
    component_id: int
    mark_obtained: float = Field(..., ge=0)


class MarkUpdate(BaseModel):
    mark_obtained: Optional[float] = Field(None, ge=0)


class MarkAck(BaseModel):
    message: str
    mark_id: int


class AssessmentMarkRow(BaseModel):
    """One enrolled student and their mark (or ``None``) on a component."""

    enrollment_id: int
    student_id: int
    student_name: Optional[str] = None
    matric_number: Optional[str] = None
    mark_id: Optional[int] = None
    mark_obtained: Optional[float] = None
    max_mark: float


class BatchMarkItem(BaseModel):
    """Single grid cell; ``mark: null`` clears an existing mark."""

    student_id: int
    assessment_component_id: int
    course_id: int
    mark: Optional[float] = None


class BatchMarkRequest(BaseModel):
    marks: List[BatchMarkItem] = Field(..., min_length=1)


class BatchMarkError(BaseModel):
    index: int
    student_id: int
    assessment_component_id: int
    error: str


class BatchMarkReport(BaseModel):
    message: str
    inserted: int
    updated: int
    cleared: int
    errors: List[BatchMarkError]


class PeerMarkRow(BaseModel):
    """Peer comparison row.

    Students and advisors receive anonymised rows: ``student_name`` is a
    stable "Student N" label, ``is_current_user`` flags their own rows, and
    the identifying fields are omitted.
    """

    student_name: str
    student_id: Optional[int] = None
    matric_number: Optional[str] = None
    is_current_user: Optional[bool] = None
    course_id: int
    course_code: str
    course_name: str
    component_id: int
    component_name: str
    max_mark: float
    weight_percentage: float
    mark_obtained: float
    recorded_by_name: Optional[str] = None


class StudentMarkRow(BaseModel):
    mark_id: int
    course_id: int
    course_code: str
    course_name: str
    component_id: int
    component_name: str
    max_mark: float
    weight_percentage: float
    is_final_exam: bool
    mark_obtained: float
    recorded_at: datetime


class CourseGradeSummary(BaseModel):
    course_id: int
    course_code: str
    course_name: str
    credit_hours: int
    overall_percentage: float
    letter_grade: str
    total_weighted_percentage: float
    graded_weight_percentage: float
    total_weight_percentage: float


class StudentGradeReport(BaseModel):
    student_id: int
    courses: List[CourseGradeSummary]
