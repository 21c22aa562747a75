"""Public schema exports."""

from .advisor import (
	AdvisorLinkAck,
	AdvisorLinkCreate,
	AdvisorLinkRead,
	AdvisorLinkUpdate,
	AdvisorNoteAck,
	AdvisorNoteCreate,
	AdvisorNoteRead,
	AdvisorNoteUpdate,
)
from .assessment import ComponentAck, ComponentCreate, ComponentRead, ComponentUpdate
from .auth import LoginRequest, LoginResponse, LoginUser
from .common import CourseBrief, ErrorResponse, Message, UserBrief
from .course import (
	AddStudentResult,
	AddStudentsReport,
	AddStudentsRequest,
	CourseAck,
	CourseCreate,
	CourseRead,
	CourseUpdate,
)
from .enrollment import EnrollmentAck, EnrollmentCreate, EnrollmentRead, EnrollmentUpdate
from .mark import (
	AssessmentMarkRow,
	BatchMarkError,
	BatchMarkItem,
	BatchMarkReport,
	BatchMarkRequest,
	CourseGradeSummary,
	MarkAck,
	MarkCreate,
	MarkRead,
	MarkUpdate,
	PeerMarkRow,
	StudentGradeReport,
	StudentMarkRow,
)
from .notification import NotificationAck, NotificationRead
from .remark import RemarkAck, RemarkCreate, RemarkRead, RemarkUpdate
from .user import UserAck, UserCreate, UserRead, UserUpdate

__all__ = [
	"AddStudentResult",
	"AddStudentsReport",
	"AddStudentsRequest",
	"AdvisorLinkAck",
	"AdvisorLinkCreate",
	"AdvisorLinkRead",
	"AdvisorLinkUpdate",
	"AdvisorNoteAck",
	"AdvisorNoteCreate",
	"AdvisorNoteRead",
	"AdvisorNoteUpdate",
	"AssessmentMarkRow",
	"BatchMarkError",
	"BatchMarkItem",
	"BatchMarkReport",
	"BatchMarkRequest",
	"ComponentAck",
	"ComponentCreate",
	"ComponentRead",
	"ComponentUpdate",
	"CourseAck",
	"CourseBrief",
	"CourseCreate",
	"CourseGradeSummary",
	"CourseRead",
	"CourseUpdate",
	"EnrollmentAck",
	"EnrollmentCreate",
	"EnrollmentRead",
	"EnrollmentUpdate",
	"ErrorResponse",
	"LoginRequest",
	"LoginResponse",
	"LoginUser",
	"MarkAck",
	"MarkCreate",
	"MarkRead",
	"MarkUpdate",
	"Message",
	"NotificationAck",
	"NotificationRead",
	"PeerMarkRow",
	"RemarkAck",
	"RemarkCreate",
	"RemarkRead",
	"RemarkUpdate",
	"StudentGradeReport",
	"StudentMarkRow",
	"UserAck",
	"UserBrief",
	"UserCreate",
	"UserRead",
	"UserUpdate",
]
