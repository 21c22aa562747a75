"""Graded component of a course (quiz, assignment, final exam)."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from ..core.database import Base


class AssessmentComponent(Base):
    """Weighted component; weights are not required to sum to 100."""

    __tablename__ = "assessment_components"
    __table_args__ = (
        CheckConstraint("max_mark > 0", name="assessment_components_max_mark_positive"),
        CheckConstraint(
            "weight_percentage >= 0 AND weight_percentage <= 100",
            name="assessment_components_weight_range",
        ),
    )

    component_id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, ForeignKey("courses.course_id", ondelete="RESTRICT"), nullable=False)
    component_name = Column(String(255), nullable=False)
    max_mark = Column(Numeric(6, 2, asdecimal=False), nullable=False)
    weight_percentage = Column(Numeric(5, 2, asdecimal=False), nullable=False)
    is_final_exam = Column(Boolean, nullable=False, default=False)

    course = relationship("Course", foreign_keys=[course_id])
