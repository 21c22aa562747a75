"""Advisor assignments and the notes advisors keep on their advisees."""

from datetime import date

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class AdvisorStudent(Base):
    """Links a student to their single academic advisor."""

    __tablename__ = "advisor_student"
    __table_args__ = (
        UniqueConstraint("student_id", name="advisor_student_student_unique"),
    )

    advisor_student_id = Column(Integer, primary_key=True, autoincrement=True)
    advisor_id = Column(Integer, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False)
    assigned_at = Column(DateTime, default=utc_now, nullable=False)

    advisor = relationship("User", foreign_keys=[advisor_id])
    student = relationship("User", foreign_keys=[student_id])


class AdvisorNote(Base):
    __tablename__ = "advisor_notes"

    note_id = Column(Integer, primary_key=True, autoincrement=True)
    advisor_student_id = Column(
        Integer, ForeignKey("advisor_student.advisor_student_id", ondelete="CASCADE"), nullable=False
    )
    note_content = Column(Text, nullable=False)
    meeting_date = Column(Date, nullable=False, default=date.today)
    recommendations = Column(JSON, nullable=False, default=list)
    follow_up_required = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    link = relationship("AdvisorStudent", foreign_keys=[advisor_student_id])
