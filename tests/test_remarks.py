"""Tests for the remark request lifecycle."""

import unittest

from studyflow.models import RemarkRequest, RemarkStatus
from studyflow.utils.datetime import utc_now

from .apimixin import ApiMixin


class TestRemarkRequests(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.add_admin()
        self.lecturer = self.add_lecturer()
        self.other_lecturer = self.add_lecturer()
        self.student = self.add_student()
        self.classmate = self.add_student()
        self.course = self.add_course(self.lecturer, course_code="MA101")
        self.enrollment = self.add_enrollment(self.student, self.course)
        self.classmate_enrollment = self.add_enrollment(self.classmate, self.course)
        self.component = self.add_component(self.course)
        self.mark = self.add_mark(self.enrollment, self.component, 55, self.lecturer)
        self.classmate_mark = self.add_mark(self.classmate_enrollment, self.component, 65, self.lecturer)

    def file_request(self, mark=None, user=None):
        return self.client.post(
            "/api/v1/remark-requests",
            json={"mark_id": (mark or self.mark).mark_id, "justification": "Question 2 was skipped."},
            headers=self.auth(user or self.student),
        )

    def review(self, remark, body, user=None):
        return self.client.put(
            "/api/v1/remark-requests/%d" % remark.request_id,
            json=body,
            headers=self.auth(user or self.lecturer),
        )

    def test_student_files_request_and_lecturer_is_notified(self):
        response = self.file_request()
        self.assertEqual(response.status_code, 201)
        remark = self.fetch(RemarkRequest, response.json()["request_id"])
        self.assertEqual(remark.status, RemarkStatus.PENDING)
        self.assertEqual(remark.student_id, self.student.user_id)

        [notification] = self.notifications_for(self.lecturer)
        self.assertEqual(notification.type, "remark_request")
        self.assertEqual(notification.related_id, remark.request_id)

    def test_second_request_for_same_mark_is_409(self):
        self.assertEqual(self.file_request().status_code, 201)
        response = self.file_request()
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "A remark request already exists for this mark."})

    def test_cannot_request_remark_of_someone_elses_mark(self):
        response = self.file_request(mark=self.classmate_mark)
        self.assertEqual(response.status_code, 403)

    def test_lecturer_cannot_file_request(self):
        self.assertEqual(self.file_request(user=self.lecturer).status_code, 403)

    def test_approve_stamps_resolution_and_notifies_student(self):
        remark = self.add_remark(self.mark, self.student)
        before = utc_now()
        response = self.review(remark, {"status": "approved", "lecturer_notes": "Re-marked Q2."})
        self.assertEqual(response.status_code, 200)

        remark = self.fetch(RemarkRequest, remark.request_id)
        self.assertEqual(remark.status, RemarkStatus.APPROVED)
        self.assertEqual(remark.resolved_by, self.lecturer.user_id)
        self.assertIsNone(remark.resolved_at.tzinfo)
        self.assertLessEqual(before, remark.resolved_at)
        self.assertLessEqual(remark.resolved_at, utc_now())
        self.assertEqual(remark.lecturer_notes, "Re-marked Q2.")

        [notification] = self.notifications_for(self.student)
        self.assertEqual(notification.title, "Remark request approved")

    def test_resolved_request_cannot_change_again(self):
        remark = self.add_remark(self.mark, self.student, status=RemarkStatus.REJECTED)
        response = self.review(remark, {"status": "approved"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.fetch(RemarkRequest, remark.request_id).status, RemarkStatus.REJECTED)

    def test_status_cannot_go_back_to_pending(self):
        remark = self.add_remark(self.mark, self.student)
        self.assertEqual(self.review(remark, {"status": "pending"}).status_code, 400)

    def test_notes_can_be_edited_after_resolution(self):
        remark = self.add_remark(self.mark, self.student, status=RemarkStatus.APPROVED)
        response = self.review(remark, {"lecturer_notes": "Updated explanation."})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.notifications_for(self.student), [])

    def test_only_admin_edits_justification(self):
        remark = self.add_remark(self.mark, self.student)
        self.assertEqual(self.review(remark, {"justification": "Changed"}).status_code, 403)
        response = self.review(remark, {"justification": "Changed"}, user=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.fetch(RemarkRequest, remark.request_id).justification, "Changed")

    def test_empty_update_is_400(self):
        remark = self.add_remark(self.mark, self.student)
        response = self.review(remark, {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No valid fields provided for update."})

    def test_other_lecturer_cannot_review(self):
        remark = self.add_remark(self.mark, self.student)
        self.assertEqual(self.review(remark, {"status": "approved"}, user=self.other_lecturer).status_code, 403)

    def test_student_deletes_only_pending_request(self):
        pending = self.add_remark(self.mark, self.student)
        pending_id = pending.request_id
        resolved = self.add_remark(self.classmate_mark, self.classmate, status=RemarkStatus.APPROVED)

        response = self.client.delete(
            "/api/v1/remark-requests/%d" % resolved.request_id, headers=self.auth(self.classmate)
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Only pending remark requests can be deleted."})

        response = self.client.delete(
            "/api/v1/remark-requests/%d" % pending_id, headers=self.auth(self.student)
        )
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.fetch(RemarkRequest, pending_id))

    def test_listing_is_scoped(self):
        own = self.add_remark(self.mark, self.student)
        other = self.add_remark(self.classmate_mark, self.classmate, status=RemarkStatus.APPROVED)
        advisor = self.add_advisor()
        self.add_advisor_link(advisor, self.classmate)

        def listed(user, **params):
            response = self.client.get("/api/v1/remark-requests", params=params, headers=self.auth(user))
            self.assertEqual(response.status_code, 200)
            return {row["request_id"] for row in response.json()}

        self.assertEqual(listed(self.student), {own.request_id})
        self.assertEqual(listed(advisor), {other.request_id})
        self.assertEqual(listed(self.other_lecturer), set())
        self.assertEqual(listed(self.lecturer), {own.request_id, other.request_id})
        self.assertEqual(listed(self.admin, status="pending"), {own.request_id})


if __name__ == "__main__":
    unittest.main()
