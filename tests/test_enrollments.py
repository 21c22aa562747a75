"""Tests for enrollment endpoints."""

import unittest

from studyflow.models import Enrollment

from .apimixin import ApiMixin


class TestEnrollments(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.add_admin()
        self.lecturer = self.add_lecturer()
        self.other_lecturer = self.add_lecturer()
        self.advisor = self.add_advisor()
        self.student = self.add_student()
        self.classmate = self.add_student()
        self.course = self.add_course(self.lecturer)
        self.other_course = self.add_course(self.other_lecturer)

    def enroll(self, student, course, user=None):
        return self.client.post(
            "/api/v1/enrollments",
            json={"student_id": student.user_id, "course_id": course.course_id},
            headers=self.auth(user or self.admin),
        )

    def test_admin_enrolls_and_student_is_notified(self):
        response = self.enroll(self.student, self.course)
        self.assertEqual(response.status_code, 201)
        notifications = self.notifications_for(self.student)
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0].type, "enrollment")

    def test_duplicate_enrollment_is_409(self):
        self.assertEqual(self.enroll(self.student, self.course).status_code, 201)
        response = self.enroll(self.student, self.course)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "Student is already enrolled in this course."})

    def test_only_admin_enrolls(self):
        response = self.enroll(self.student, self.course, user=self.lecturer)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Access denied for this role."})

    def test_enrolling_a_non_student_is_400(self):
        response = self.enroll(self.advisor, self.course)
        self.assertEqual(response.status_code, 400)

    def test_listing_is_scoped_by_role(self):
        self.add_enrollment(self.student, self.course)
        self.add_enrollment(self.classmate, self.course)
        self.add_enrollment(self.student, self.other_course)

        admin_rows = self.client.get("/api/v1/enrollments", headers=self.auth(self.admin)).json()
        self.assertEqual(len(admin_rows), 3)

        lecturer_rows = self.client.get("/api/v1/enrollments", headers=self.auth(self.lecturer)).json()
        self.assertEqual({row["course_id"] for row in lecturer_rows}, {self.course.course_id})
        self.assertEqual(len(lecturer_rows), 2)

        student_rows = self.client.get("/api/v1/enrollments", headers=self.auth(self.student)).json()
        self.assertEqual({row["student_id"] for row in student_rows}, {self.student.user_id})
        self.assertEqual(len(student_rows), 2)

    def test_advisor_cannot_list(self):
        response = self.client.get("/api/v1/enrollments", headers=self.auth(self.advisor))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Access denied for this role."})

    def test_student_cannot_read_classmate_enrollment(self):
        enrollment = self.add_enrollment(self.classmate, self.course)
        response = self.client.get(
            "/api/v1/enrollments/%d" % enrollment.enrollment_id,
            headers=self.auth(self.student),
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "You can only view your own enrollments."})

    def test_missing_enrollment_is_404_before_authorization(self):
        response = self.client.get("/api/v1/enrollments/404", headers=self.auth(self.advisor))
        self.assertEqual(response.status_code, 404)

    def test_delete_enrollment_removes_marks(self):
        enrollment = self.add_enrollment(self.student, self.course)
        component = self.add_component(self.course)
        self.add_mark(enrollment, component, 50, self.lecturer)
        response = self.client.delete(
            "/api/v1/enrollments/%d" % enrollment.enrollment_id,
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 200)
        marks = self.client.get("/api/v1/student-marks", headers=self.auth(self.admin)).json()
        self.assertEqual(marks, [])

    def test_enrollment_with_marks_keeps_its_student(self):
        enrollment = self.add_enrollment(self.student, self.course)
        enrollment_id = enrollment.enrollment_id
        component = self.add_component(self.course)
        mark = self.add_mark(enrollment, component, 40, self.lecturer)
        remark = self.add_remark(mark, self.student)
        request_id = remark.request_id

        response = self.client.put(
            "/api/v1/enrollments/%d" % enrollment_id,
            json={"student_id": self.classmate.user_id},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            response.json(),
            {"error": "Enrollment has recorded marks and cannot be moved to another student."},
        )
        self.assertEqual(self.fetch(Enrollment, enrollment_id).student_id, self.student.user_id)

        url = "/api/v1/remark-requests/%d" % request_id
        self.assertEqual(self.client.get(url, headers=self.auth(self.student)).status_code, 200)
        self.assertEqual(self.client.get(url, headers=self.auth(self.classmate)).status_code, 403)

    def test_enrollment_with_marks_keeps_its_course(self):
        enrollment = self.add_enrollment(self.student, self.course)
        enrollment_id = enrollment.enrollment_id
        self.add_mark(enrollment, self.add_component(self.course), 40, self.lecturer)

        response = self.client.put(
            "/api/v1/enrollments/%d" % enrollment_id,
            json={"course_id": self.other_course.course_id},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 409)

    def test_enrollment_without_marks_can_change_student(self):
        enrollment = self.add_enrollment(self.student, self.course)
        enrollment_id = enrollment.enrollment_id
        response = self.client.put(
            "/api/v1/enrollments/%d" % enrollment_id,
            json={"student_id": self.classmate.user_id},
            headers=self.auth(self.admin),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.fetch(Enrollment, enrollment_id).student_id, self.classmate.user_id)


if __name__ == "__main__":
    unittest.main()
