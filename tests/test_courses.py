"""Tests for course management and course rosters."""

import unittest
from unittest import mock

from sqlalchemy.exc import SQLAlchemyError

from studyflow.models import Course, Enrollment

from .apimixin import ApiMixin


class TestCourseCrud(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.add_admin()
        self.lecturer = self.add_lecturer()
        self.other_lecturer = self.add_lecturer()
        self.student = self.add_student()
        self.advisor = self.add_advisor()

    def test_lecturer_creates_course_for_self(self):
        response = self.client.post(
            "/api/v1/courses",
            json={"course_code": "CS201", "course_name": "Data Structures"},
            headers=self.auth(self.lecturer),
        )
        self.assertEqual(response.status_code, 201, response.json())
        course = self.fetch(Course, response.json()["course_id"])
        self.assertEqual(course.lecturer_id, self.lecturer.user_id)

    def test_lecturer_cannot_assign_course_to_someone_else(self):
        response = self.client.post(
            "/api/v1/courses",
            json={
                "course_code": "CS202",
                "course_name": "Algorithms",
                "lecturer_id": self.other_lecturer.user_id,
            },
            headers=self.auth(self.lecturer),
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Lecturers can only create courses assigned to themselves."})

    def test_student_cannot_create_course(self):
        response = self.client.post(
            "/api/v1/courses",
            json={"course_code": "CS203", "course_name": "Compilers", "lecturer_id": self.lecturer.user_id},
            headers=self.auth(self.student),
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Access denied for this role."})

    def test_lecturer_id_must_reference_a_lecturer(self):
        response = self.client.post(
            "/api/v1/courses",
            json={"course_code": "CS204", "course_name": "Networks", "lecturer_id": self.student.user_id},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 400)

    def test_duplicate_course_code(self):
        self.add_course(self.lecturer, course_code="CS300")
        response = self.client.post(
            "/api/v1/courses",
            json={"course_code": "CS300", "course_name": "Again", "lecturer_id": self.lecturer.user_id},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 409)

    def test_course_creation_notifies_roles(self):
        response = self.client.post(
            "/api/v1/courses",
            json={"course_code": "CS301", "course_name": "Databases", "lecturer_id": self.lecturer.user_id},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 201)
        for user in (self.lecturer, self.other_lecturer, self.student, self.advisor):
            notifications = self.notifications_for(user)
            self.assertEqual(len(notifications), 1)
            self.assertEqual(notifications[0].related_id, response.json()["course_id"])
        self.assertEqual(self.notifications_for(self.admin), [])

    def test_notification_failure_does_not_fail_creation(self):
        with mock.patch(
            "studyflow.services.notification_service.notify_roles",
            side_effect=SQLAlchemyError("notifications table is gone"),
        ):
            response = self.client.post(
                "/api/v1/courses",
                json={"course_code": "CS302", "course_name": "Security", "lecturer_id": self.lecturer.user_id},
                headers=self.auth(self.admin),
            )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["message"], "Course created successfully")
        self.assertIsNotNone(self.fetch(Course, response.json()["course_id"]))

    def test_everyone_can_list_courses(self):
        self.add_course(self.lecturer)
        for user in (self.admin, self.lecturer, self.student, self.advisor):
            response = self.client.get("/api/v1/courses", headers=self.auth(user))
            self.assertEqual(response.status_code, 200)
            self.assertEqual(len(response.json()), 1)

    def test_get_missing_course(self):
        response = self.client.get("/api/v1/courses/999", headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 404)

    def test_only_owner_updates(self):
        course = self.add_course(self.lecturer)
        response = self.client.put(
            "/api/v1/courses/%d" % course.course_id,
            json={"course_name": "Renamed"},
            headers=self.auth(self.other_lecturer),
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "You can only update courses you teach."})

        response = self.client.put(
            "/api/v1/courses/%d" % course.course_id,
            json={"course_name": "Renamed"},
            headers=self.auth(self.lecturer),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.fetch(Course, course.course_id).course_name, "Renamed")

    def test_lecturer_cannot_reassign(self):
        course = self.add_course(self.lecturer)
        response = self.client.put(
            "/api/v1/courses/%d" % course.course_id,
            json={"lecturer_id": self.other_lecturer.user_id},
            headers=self.auth(self.lecturer),
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.put(
            "/api/v1/courses/%d" % course.course_id,
            json={"lecturer_id": self.other_lecturer.user_id},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 200)

    def test_empty_update_is_rejected(self):
        course = self.add_course(self.lecturer)
        response = self.client.put(
            "/api/v1/courses/%d" % course.course_id,
            json={},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No valid fields provided for update."})

    def test_delete_blocked_by_enrollments(self):
        course = self.add_course(self.lecturer)
        self.add_enrollment(self.student, course)
        response = self.client.delete("/api/v1/courses/%d" % course.course_id, headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 409)
        self.assertIsNotNone(self.fetch(Course, course.course_id))

    def test_delete_empty_course(self):
        course = self.add_course(self.lecturer)
        course_id = course.course_id
        url = "/api/v1/courses/%d" % course_id
        response = self.client.delete(url, headers=self.auth(self.lecturer))
        self.assertEqual(response.status_code, 403)
        response = self.client.delete(url, headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.fetch(Course, course_id))


class TestCourseRoster(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.lecturer = self.add_lecturer()
        self.other_lecturer = self.add_lecturer()
        self.course = self.add_course(self.lecturer)
        self.enrolled = self.add_student()
        self.free = self.add_student()
        self.add_enrollment(self.enrolled, self.course)

    def test_eligible_students(self):
        response = self.client.get(
            "/api/v1/courses/%d/eligible-students" % self.course.course_id,
            headers=self.auth(self.lecturer),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["user_id"] for row in response.json()], [self.free.user_id])

    def test_eligible_students_requires_course_lecturer(self):
        response = self.client.get(
            "/api/v1/courses/%d/eligible-students" % self.course.course_id,
            headers=self.auth(self.other_lecturer),
        )
        self.assertEqual(response.status_code, 403)

    def test_add_students_reports_each_item(self):
        response = self.client.post(
            "/api/v1/courses/%d/add-students" % self.course.course_id,
            json={"student_ids": [self.free.user_id, self.enrolled.user_id, self.lecturer.user_id]},
            headers=self.auth(self.lecturer),
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["added"], 1)
        self.assertEqual(body["failed"], 2)
        outcome = {item["student_id"]: item["success"] for item in body["details"]}
        self.assertEqual(
            outcome,
            {self.free.user_id: True, self.enrolled.user_id: False, self.lecturer.user_id: False},
        )

        self.session.expire_all()
        enrolled = self.session.query(Enrollment).filter_by(course_id=self.course.course_id).count()
        self.assertEqual(enrolled, 2)
        self.assertEqual(len(self.notifications_for(self.free)), 1)
        self.assertEqual(self.notifications_for(self.enrolled), [])


if __name__ == "__main__":
    unittest.main()
