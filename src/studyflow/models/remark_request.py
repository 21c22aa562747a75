"""Student request to have a recorded mark reviewed."""

import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class RemarkStatus(str, enum.Enum):
    """Lifecycle states; approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RemarkRequest(Base):
    __tablename__ = "remark_requests"
    __table_args__ = (
        UniqueConstraint("mark_id", name="remark_requests_mark_unique"),
    )

    request_id = Column(Integer, primary_key=True, autoincrement=True)
    mark_id = Column(Integer, ForeignKey("student_marks.mark_id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False)
    justification = Column(Text, nullable=False)
    status = Column(
        SAEnum(RemarkStatus, name="remark_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RemarkStatus.PENDING,
    )
    lecturer_notes = Column(Text)
    resolved_by = Column(Integer, ForeignKey("users.user_id", ondelete="RESTRICT"))
    resolved_at = Column(DateTime)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    mark = relationship("StudentMark", foreign_keys=[mark_id])
    student = relationship("User", foreign_keys=[student_id])
    resolver = relationship("User", foreign_keys=[resolved_by])
