"""In-app notification addressed to one user."""


from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from ..core.database import Base
from ..utils.datetime import utc_now


class Notification(Base):
    """Append-only apart from ``is_read``; removed with its recipient."""

    __tablename__ = "notifications"

    notification_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    related_id = Column(Integer)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
