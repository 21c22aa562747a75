"""Service layer exports."""

from . import (
	advisor_service,
	assessment_service,
	auth_service,
	course_service,
	enrollment_service,
	grading,
	mark_service,
	notification_service,
	policy,
	remark_service,
	user_service,
)

__all__ = [
	"advisor_service",
	"assessment_service",
	"auth_service",
	"course_service",
	"enrollment_service",
	"grading",
	"mark_service",
	"notification_service",
	"policy",
	"remark_service",
	"user_service",
]
