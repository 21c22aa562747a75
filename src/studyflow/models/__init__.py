"""SQLAlchemy models for StudyFlow."""

from .advisor import AdvisorNote, AdvisorStudent
from .assessment_component import AssessmentComponent
from .course import Course
from .enrollment import Enrollment
from .notification import Notification
from .remark_request import RemarkRequest, RemarkStatus
from .student_mark import StudentMark
from .user import Role, User

__all__ = [
    "AdvisorNote",
    "AdvisorStudent",
    "AssessmentComponent",
    "Course",
    "Enrollment",
    "Notification",
    "RemarkRequest",
    "RemarkStatus",
    "Role",
    "StudentMark",
    "User",
]
