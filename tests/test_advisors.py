"""Tests for advisor assignments and advisor notes."""

import unittest

from studyflow.models import AdvisorNote, AdvisorStudent

from .apimixin import ApiMixin


class TestAdvisorAssignments(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.add_admin()
        self.advisor = self.add_advisor(full_name="Dr Ngozi Eze")
        self.second_advisor = self.add_advisor()
        self.student = self.add_student(full_name="Lukas Brandt")

    def assign(self, advisor_id, student_id, user=None):
        return self.client.post(
            "/api/v1/advisor-student",
            json={"advisor_id": advisor_id, "student_id": student_id},
            headers=self.auth(user or self.admin),
        )

    def test_assignment_notifies_both_sides(self):
        response = self.assign(self.advisor.user_id, self.student.user_id)
        self.assertEqual(response.status_code, 201)
        link = self.fetch(AdvisorStudent, response.json()["advisor_student_id"])
        self.assertEqual(link.advisor_id, self.advisor.user_id)

        [to_student] = self.notifications_for(self.student)
        self.assertIn("Dr Ngozi Eze", to_student.message)
        [to_advisor] = self.notifications_for(self.advisor)
        self.assertIn("Lukas Brandt", to_advisor.message)

    def test_student_has_at_most_one_advisor(self):
        self.assertEqual(self.assign(self.advisor.user_id, self.student.user_id).status_code, 201)
        response = self.assign(self.second_advisor.user_id, self.student.user_id)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "This student already has an assigned advisor."})

    def test_roles_are_checked(self):
        lecturer = self.add_lecturer()
        self.assertEqual(self.assign(lecturer.user_id, self.student.user_id).status_code, 400)
        self.assertEqual(self.assign(self.advisor.user_id, lecturer.user_id).status_code, 400)
        self.assertEqual(self.assign(self.advisor.user_id, 9999).status_code, 400)

    def test_only_admin_assigns(self):
        response = self.assign(self.advisor.user_id, self.student.user_id, user=self.advisor)
        self.assertEqual(response.status_code, 403)

    def test_advisor_sees_only_own_assignments(self):
        own = self.add_advisor_link(self.advisor, self.student)
        other = self.add_advisor_link(self.second_advisor, self.add_student())

        response = self.client.get("/api/v1/advisor-student", headers=self.auth(self.advisor))
        self.assertEqual([row["advisor_student_id"] for row in response.json()], [own.advisor_student_id])

        response = self.client.get(
            "/api/v1/advisor-student/%d" % other.advisor_student_id, headers=self.auth(self.advisor)
        )
        self.assertEqual(response.status_code, 403)

    def test_lecturer_cannot_list_assignments(self):
        response = self.client.get("/api/v1/advisor-student", headers=self.auth(self.add_lecturer()))
        self.assertEqual(response.status_code, 403)

    def test_removing_assignment_removes_notes(self):
        link = self.add_advisor_link(self.advisor, self.student)
        note = AdvisorNote(advisor_student_id=link.advisor_student_id, note_content="Met", recommendations=[])
        self.session.add(note)
        self.session.commit()
        note_id = note.note_id

        response = self.client.delete(
            "/api/v1/advisor-student/%d" % link.advisor_student_id, headers=self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.fetch(AdvisorNote, note_id))


class TestAdvisorNotes(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.advisor = self.add_advisor(full_name="Dr Ngozi Eze")
        self.other_advisor = self.add_advisor()
        self.student = self.add_student()
        self.link = self.add_advisor_link(self.advisor, self.student)

    def test_note_by_student_id_with_legacy_field_names(self):
        response = self.client.post(
            "/api/v1/advisor-notes",
            json={
                "student_id": self.student.user_id,
                "notes": "Discussed module choices.",
                "date": "2024-03-01",
                "recommendations": ["Take MA202"],
                "follow_up_required": True,
            },
            headers=self.auth(self.advisor),
        )
        self.assertEqual(response.status_code, 201)

        note = self.fetch(AdvisorNote, response.json()["note_id"])
        self.assertEqual(note.advisor_student_id, self.link.advisor_student_id)
        self.assertEqual(note.note_content, "Discussed module choices.")
        self.assertEqual(note.meeting_date.isoformat(), "2024-03-01")
        self.assertEqual(note.recommendations, ["Take MA202"])

        [notification] = self.notifications_for(self.student)
        self.assertEqual(notification.title, "New Advisor Notes for you")
        self.assertEqual(notification.message, "Dr Ngozi Eze has added a new note for you!")
        self.assertEqual(notification.type, "Advisor Notes")

    def test_advisee_is_required(self):
        response = self.client.post(
            "/api/v1/advisor-notes", json={"notes": "Orphan"}, headers=self.auth(self.advisor)
        )
        self.assertEqual(response.status_code, 400)

    def test_student_without_advisor(self):
        loner = self.add_student()
        response = self.client.post(
            "/api/v1/advisor-notes",
            json={"student_id": loner.user_id, "notes": "Hi"},
            headers=self.auth(self.advisor),
        )
        self.assertEqual(response.status_code, 400)

    def test_other_advisor_is_forbidden(self):
        response = self.client.post(
            "/api/v1/advisor-notes",
            json={"advisor_student_id": self.link.advisor_student_id, "notes": "Not mine"},
            headers=self.auth(self.other_advisor),
        )
        self.assertEqual(response.status_code, 403)

    def test_update_notifies_student(self):
        note = AdvisorNote(advisor_student_id=self.link.advisor_student_id, note_content="Met", recommendations=[])
        self.session.add(note)
        self.session.commit()

        response = self.client.put(
            "/api/v1/advisor-notes/%d" % note.note_id,
            json={"notes": "Met twice"},
            headers=self.auth(self.advisor),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.fetch(AdvisorNote, note.note_id).note_content, "Met twice")
        [notification] = self.notifications_for(self.student)
        self.assertEqual(notification.title, "Advisor Notes updated")

    def test_student_reads_own_notes(self):
        note = AdvisorNote(advisor_student_id=self.link.advisor_student_id, note_content="Met", recommendations=[])
        self.session.add(note)
        self.session.commit()

        response = self.client.get("/api/v1/advisor-notes", headers=self.auth(self.student))
        self.assertEqual([row["note_id"] for row in response.json()], [note.note_id])
        response = self.client.get(
            "/api/v1/advisor-notes/%d" % note.note_id, headers=self.auth(self.add_student())
        )
        self.assertEqual(response.status_code, 403)


if __name__ == "__main__":
    unittest.main()
