"""Pydantic schemas for assessment components."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import CourseBrief


class ComponentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    component_id: int
    course_id: int
    component_name: str
    max_mark: float
    weight_percentage: float
    is_final_exam: bool
    course: CourseBrief


class ComponentCreate(BaseModel):
    course_id: int
    component_name: str = Field(..., min_length=1, max_length=255)
    max_mark: float = Field(..., gt=0)
    weight_percentage: float = Field(..., ge=0, le=100)
    is_final_exam: bool = False


class ComponentUpdate(BaseModel):
    component_name: Optional[str] = Field(None, min_length=1, max_length=255)
    max_mark: Optional[float] = Field(None, gt=0)
    weight_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_final_exam: Optional[bool] = None


class ComponentAck(BaseModel):
    message: str
    component_id: int
