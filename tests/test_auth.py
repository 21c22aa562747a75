"""Tests for login, token verification and the HTTP envelope."""

import unittest
from unittest import mock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from studyflow.core.errors import AuthenticationError
from studyflow.core.security import TokenVerifier
from studyflow.main import app

from .apimixin import ApiMixin


class TestLogin(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.student = self.add_student(username="amira.k", password="s3cret", pin="4821")

    def test_login_with_password(self):
        response = self.client.post("/api/v1/login", json={"username": "amira.k", "password": "s3cret"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["user"]["user_id"], self.student.user_id)
        self.assertEqual(body["user"]["role"], "student")
        self.assertNotIn("password_hash", body["user"])
        self.assertNotIn("pin", body["user"])

        me = self.client.get(
            "/api/v1/users/%d" % self.student.user_id,
            headers={"Authorization": "Bearer %s" % body["token"]},
        )
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["username"], "amira.k")

    def test_login_with_pin(self):
        response = self.client.post("/api/v1/login", json={"username": "amira.k", "password": "4821"})
        self.assertEqual(response.status_code, 200)

    def test_wrong_password(self):
        response = self.client.post("/api/v1/login", json={"username": "amira.k", "password": "nope"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Invalid credentials"})

    def test_unknown_user(self):
        response = self.client.post("/api/v1/login", json={"username": "ghost", "password": "s3cret"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Invalid credentials"})

    def test_missing_fields(self):
        response = self.client.post("/api/v1/login", json={"username": "amira.k"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Username and password required"})


class TestBearerToken(ApiMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.add_admin()

    def test_missing_token(self):
        response = self.client.get("/api/v1/courses")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Token not provided"})

    def test_garbage_token(self):
        response = self.client.get("/api/v1/courses", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Invalid or expired token"})

    def test_token_signed_with_other_secret(self):
        token = TokenVerifier("another-secret").issue(user_id=self.admin.user_id, username="x", role="admin")
        response = self.client.get("/api/v1/courses", headers={"Authorization": "Bearer %s" % token})
        self.assertEqual(response.status_code, 401)

    def test_expired_token(self):
        verifier = TokenVerifier("k", ttl_seconds=-60)
        token = verifier.issue(user_id=1, username="x", role="admin")
        with self.assertRaises(AuthenticationError) as ctx:
            verifier.verify(token)
        self.assertEqual(ctx.exception.detail, "Invalid or expired token")

    def test_round_trip_claims(self):
        verifier = TokenVerifier("k")
        claims = verifier.verify(verifier.issue(user_id=5, username="dr.tan", role="lecturer", full_name="Dr Tan"))
        self.assertEqual(claims.user_id, 5)
        self.assertEqual(claims.role, "lecturer")
        self.assertEqual(claims.username, "dr.tan")
        self.assertEqual(claims.full_name, "Dr Tan")


class TestEnvelope(ApiMixin, unittest.TestCase):

    def test_health_needs_no_token(self):
        response = self.client.get("/api/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_validation_errors_are_400(self):
        admin = self.add_admin()
        response = self.client.post("/api/v1/courses", json={"course_name": "No code"}, headers=self.auth(admin))
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_preflight_returns_204(self):
        response = self.client.options(
            "/api/v1/courses",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )
        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.headers["access-control-allow-origin"], "http://localhost:5173")
        self.assertEqual(response.headers["access-control-allow-credentials"], "true")

    def test_simple_request_echoes_origin(self):
        response = self.client.get("/api/v1/health", headers={"Origin": "https://portal.example.edu"})
        self.assertEqual(response.headers["access-control-allow-origin"], "https://portal.example.edu")

    def test_database_failure_is_rendered_as_json(self):
        admin = self.add_admin()
        failure = OperationalError("SELECT 1", {}, Exception("connection lost"))
        with mock.patch("studyflow.services.course_service.list_courses", side_effect=failure):
            with self.assertLogs("studyflow.main", level="ERROR"):
                response = self.client.get("/api/v1/courses", headers=self.auth(admin))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Database error"})

    def test_unexpected_failure_is_rendered_as_json(self):
        admin = self.add_admin()
        client = TestClient(app, raise_server_exceptions=False)
        with mock.patch("studyflow.services.course_service.list_courses", side_effect=RuntimeError("boom")):
            with self.assertLogs("studyflow.main", level="ERROR"):
                response = client.get("/api/v1/courses", headers=self.auth(admin))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})


if __name__ == "__main__":
    unittest.main()
