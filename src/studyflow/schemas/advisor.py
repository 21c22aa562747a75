"""Pydantic schemas for advisor assignments and advisor notes."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .common import UserBrief


class AdvisorLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    advisor_student_id: int
    advisor_id: int
    student_id: int
    assigned_at: datetime
    advisor: UserBrief
    student: UserBrief


class AdvisorLinkCreate(BaseModel):
    advisor_id: int
    student_id: int


class AdvisorLinkUpdate(BaseModel):
    advisor_id: Optional[int] = None
    student_id: Optional[int] = None


class AdvisorLinkAck(BaseModel):
    message: str
    advisor_student_id: int


class AdvisorNoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    note_id: int
    advisor_student_id: int
    note_content: str
    meeting_date: date
    recommendations: List[str]
    follow_up_required: bool
    created_at: datetime
    updated_at: datetime
    link: AdvisorLinkRead


class AdvisorNoteCreate(BaseModel):
    """Request body for a new advisor note.

    The advisee is identified either by ``advisor_student_id`` or by
    ``student_id``. ``notes`` and ``date`` are accepted as aliases for
    ``note_content`` and ``meeting_date``.
    """

    advisor_student_id: Optional[int] = None
    student_id: Optional[int] = None
    note_content: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("note_content", "notes"),
    )
    meeting_date: Optional[date] = Field(
        None,
        validation_alias=AliasChoices("meeting_date", "date"),
    )
    recommendations: List[str] = Field(default_factory=list)
    follow_up_required: bool = False

    @model_validator(mode="after")
    def _require_advisee(self) -> "AdvisorNoteCreate":
        if self.advisor_student_id is None and self.student_id is None:
            raise ValueError("Either advisor_student_id or student_id is required.")
        return self


class AdvisorNoteUpdate(BaseModel):
    note_content: Optional[str] = Field(
        None,
        min_length=1,
        validation_alias=AliasChoices("note_content", "notes"),
    )
    meeting_date: Optional[date] = Field(
        None,
        validation_alias=AliasChoices("meeting_date", "date"),
    )
    recommendations: Optional[List[str]] = None
    follow_up_required: Optional[bool] = None


class AdvisorNoteAck(BaseModel):
    message: str
    note_id: int
