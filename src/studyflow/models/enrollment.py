"""Enrollment linking a student to a course."""


from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="enrollments_student_course_unique"),
    )

    enrollment_id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.course_id", ondelete="RESTRICT"), nullable=False)
    enrollment_date = Column(DateTime, default=utc_now, nullable=False)

    student = relationship("User", foreign_keys=[student_id])
    course = relationship("Course", foreign_keys=[course_id])
