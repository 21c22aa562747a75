"""Recorded mark for one enrollment on one component."""


from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class StudentMark(Base):
    __tablename__ = "student_marks"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "component_id", name="student_marks_enrollment_component_unique"),
        CheckConstraint("mark_obtained >= 0", name="student_marks_mark_non_negative"),
    )

    mark_id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_id = Column(
        Integer, ForeignKey("enrollments.enrollment_id", ondelete="CASCADE"), nullable=False
    )
    component_id = Column(
        Integer, ForeignKey("assessment_components.component_id", ondelete="CASCADE"), nullable=False
    )
    mark_obtained = Column(Numeric(6, 2, asdecimal=False), nullable=False)
    recorded_by = Column(Integer, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False)
    recorded_at = Column(DateTime, default=utc_now, nullable=False)

    enrollment = relationship("Enrollment", foreign_keys=[enrollment_id])
    component = relationship("AssessmentComponent", foreign_keys=[component_id])
    recorder = relationship("User", foreign_keys=[recorded_by])
