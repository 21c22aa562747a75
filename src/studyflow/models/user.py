"""User account model shared by every role."""

import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, Integer, String, UniqueConstraint

from ..core.database import Base
from ..utils.datetime import utc_now


class Role(str, enum.Enum):
    """Roles recognised by the authorization policy."""

    ADMIN = "admin"
    LECTURER = "lecturer"
    STUDENT = "student"
    ADVISOR = "advisor"


class User(Base):
    """Represents an admin, lecturer, student or advisor account."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username", name="users_username_unique"),
        UniqueConstraint("email", name="users_email_unique"),
        UniqueConstraint("matric_number", name="users_matric_number_unique"),
    )

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(Role, name="user_role", values_callable=lambda e: [m.value for m in e]), nullable=False)
    email = Column(String(255))
    full_name = Column(String(255))
    matric_number = Column(String(50))
    pin_hash = Column(String(255))
    profile_picture = Column(String(500))
    created_at = Column(DateTime, default=utc_now, nullable=False)
