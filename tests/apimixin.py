"""A unittest mixin that wires the API to a private in-memory database."""

import itertools

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyflow.core.database import Base, enable_foreign_keys, get_db
from studyflow.core.security import get_token_verifier, hash_secret
from studyflow.main import app
from studyflow.models import (
    AdvisorStudent,
    AssessmentComponent,
    Course,
    Enrollment,
    Notification,
    RemarkRequest,
    RemarkStatus,
    Role,
    StudentMark,
    User,
)


class ApiMixin:
    """Mixin for tests that talk to the HTTP API.

    Every test gets a fresh schema, a TestClient whose requests use that
    schema, and helpers to add rows and to mint tokens.
    """

    _ids = itertools.count(1)

    def setUp(self):
        super().setUp()
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
        enable_foreign_keys(self.engine)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)
        self.session = self.SessionLocal()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        self.session.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()
        super().tearDown()

    def _add(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    @classmethod
    def unique(cls, prefix):
        return "%s%d" % (prefix, next(cls._ids))

    def add_user(self, role=Role.STUDENT, username=None, password="secret", pin=None, **kwargs):
        username = username or self.unique(Role(role).value)
        args = {
            "username": username,
            "password_hash": hash_secret(password),
            "role": Role(role),
            "full_name": username.replace(".", " ").title(),
            "email": "%s@example.edu" % username,
            "pin_hash": hash_secret(pin) if pin else None,
        }
        if Role(role) == Role.STUDENT:
            args["matric_number"] = self.unique("M")
        args.update(kwargs)
        return self._add(User(**args))

    def add_admin(self, **kwargs):
        return self.add_user(Role.ADMIN, **kwargs)

    def add_lecturer(self, **kwargs):
        return self.add_user(Role.LECTURER, **kwargs)

    def add_student(self, **kwargs):
        return self.add_user(Role.STUDENT, **kwargs)

    def add_advisor(self, **kwargs):
        return self.add_user(Role.ADVISOR, **kwargs)

    def add_course(self, lecturer, course_code=None, **kwargs):
        args = {
            "course_code": course_code or self.unique("CS"),
            "course_name": "Course",
            "lecturer_id": lecturer.user_id,
        }
        args.update(kwargs)
        return self._add(Course(**args))

    def add_enrollment(self, student, course):
        return self._add(Enrollment(student_id=student.user_id, course_id=course.course_id))

    def add_component(self, course, max_mark=100, weight_percentage=50, **kwargs):
        args = {
            "course_id": course.course_id,
            "component_name": self.unique("Component "),
            "max_mark": max_mark,
            "weight_percentage": weight_percentage,
        }
        args.update(kwargs)
        return self._add(AssessmentComponent(**args))

    def add_mark(self, enrollment, component, mark_obtained, recorded_by):
        return self._add(
            StudentMark(
                enrollment_id=enrollment.enrollment_id,
                component_id=component.component_id,
                mark_obtained=mark_obtained,
                recorded_by=recorded_by.user_id,
            )
        )

    def add_remark(self, mark, student, justification="Please re-check", status=RemarkStatus.PENDING):
        return self._add(
            RemarkRequest(
                mark_id=mark.mark_id,
                student_id=student.user_id,
                justification=justification,
                status=status,
            )
        )

    def add_advisor_link(self, advisor, student):
        return self._add(AdvisorStudent(advisor_id=advisor.user_id, student_id=student.user_id))

    def token_for(self, user):
        return get_token_verifier().issue(
            user_id=user.user_id,
            username=user.username,
            role=user.role.value,
            full_name=user.full_name,
        )

    def auth(self, user):
        return {"Authorization": "Bearer %s" % self.token_for(user)}

    def notifications_for(self, user):
        self.session.expire_all()
        stmt = (
            select(Notification)
            .where(Notification.user_id == user.user_id)
            .order_by(Notification.notification_id)
        )
        return self.session.execute(stmt).scalars().all()

    def fetch(self, model, pk):
        self.session.expire_all()
        return self.session.get(model, pk)
