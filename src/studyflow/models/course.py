"""Course model owned by a lecturer."""


from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class Course(Base):
    """A taught course; deletion is blocked while components or enrollments exist."""

    __tablename__ = "courses"
    __table_args__ = (
        UniqueConstraint("course_code", name="courses_course_code_unique"),
        CheckConstraint("credit_hours > 0", name="courses_credit_hours_positive"),
    )

    course_id = Column(Integer, primary_key=True, autoincrement=True)
    course_code = Column(String(20), nullable=False)
    course_name = Column(String(255), nullable=False)
    lecturer_id = Column(Integer, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False)
    credit_hours = Column(Integer, nullable=False, default=3)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    lecturer = relationship("User", foreign_keys=[lecturer_id])
