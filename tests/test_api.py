"""HTTP tests: access guards, error bodies and the main flows through FastAPI's TestClient."""

import unittest
import uuid
from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from app.core.database import get_db
from app.core.security import get_token_service
from app.main import app
from app.models import Booking, User
from tests.support import DEFAULT_PASSWORD, make_session_factory, make_user

API = "/api"


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.SessionLocal = make_session_factory()

        def _override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = _override_get_db
        self.client = TestClient(app)
        self.db = self.SessionLocal()
        self.tokens = get_token_service()

    def tearDown(self) -> None:
        self.db.close()
        app.dependency_overrides.clear()

    def _auth(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens.issue(user)}"}

    def _register_payload(self, **overrides: str) -> dict[str, str]:
        payload = {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "username": "ada",
            "email": "Ada@Example.com",
            "phone": "555-0101",
            "country": "GB",
            "password": DEFAULT_PASSWORD,
            "dob": "1815-12-10",
            "gender": "female",
        }
        payload.update(overrides)
        return payload


class TestAccountEndpoints(ApiTestCase):
    def test_register_login_me(self) -> None:
        r = self.client.post(f"{API}/users/register", json=self._register_payload())
        self.assertEqual(r.status_code, 201)
        body = r.json()
        self.assertEqual(body["message"], "Account created.")
        self.assertEqual(body["user"]["email"], "ada@example.com")
        self.assertEqual(body["user"]["role"], "member")
        self.assertNotIn("passwordHash", body["user"])
        self.assertNotIn("password_hash", body["user"])

        r = self.client.post(
            f"{API}/users/login",
            json={"email": "ada@example.com", "password": DEFAULT_PASSWORD},
        )
        self.assertEqual(r.status_code, 200)
        token = r.json()["token"]

        r = self.client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["username"], "ada")

    def test_register_duplicate_email_any_case(self) -> None:
        first = self.client.post(f"{API}/users/register", json=self._register_payload())
        second = self.client.post(
            f"{API}/users/register",
            json=self._register_payload(email="ADA@EXAMPLE.COM", username="ada2"),
        )
        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 409)
        self.assertIn("Email", second.json()["message"])

    def test_register_missing_fields_and_short_password(self) -> None:
        r = self.client.post(f"{API}/users/register", json={"email": "x@example.com"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["message"], "Missing required fields.")
        r = self.client.post(
            f"{API}/users/register", json=self._register_payload(password="1234567")
        )
        self.assertEqual(r.status_code, 400)

    def test_login_errors(self) -> None:
        make_user(self.db, username="ada", email="ada@example.com")
        r = self.client.post(f"{API}/users/login", json={"email": "ada@example.com"})
        self.assertEqual(r.status_code, 400)
        r = self.client.post(
            f"{API}/users/login", json={"email": "ada@example.com", "password": "wrong-pass"}
        )
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["message"], "Invalid credentials.")

    def test_banned_login_returns_ban(self) -> None:
        make_user(
            self.db,
            username="ada",
            email="ada@example.com",
            is_banned=True,
            ban_reason="spam",
        )
        r = self.client.post(
            f"{API}/users/login",
            json={"email": "ada@example.com", "password": DEFAULT_PASSWORD},
        )
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.json()["ban"], {"reason": "spam", "until": None})
        self.assertNotIn("token", r.json())

    def test_update_me_ignores_role(self) -> None:
        user = make_user(self.db, username="ada")
        r = self.client.put(
            f"{API}/users/me",
            json={"firstName": "Augusta", "role": "admin"},
            headers=self._auth(user),
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["firstName"], "Augusta")
        self.assertEqual(r.json()["user"]["role"], "member")

    def test_change_password_then_delete(self) -> None:
        user = make_user(self.db, username="ada")
        headers = self._auth(user)
        r = self.client.post(
            f"{API}/users/change-password",
            json={"oldPassword": "nope-nope", "newPassword": "another-pass"},
            headers=headers,
        )
        self.assertEqual(r.status_code, 401)
        r = self.client.post(
            f"{API}/users/change-password",
            json={"oldPassword": DEFAULT_PASSWORD, "newPassword": "another-pass"},
            headers=headers,
        )
        self.assertEqual(r.status_code, 200)
        r = self.client.delete(f"{API}/users/delete", headers=headers)
        self.assertEqual(r.status_code, 200)
        r = self.client.get(f"{API}/users/me", headers=headers)
        self.assertEqual(r.status_code, 404)


class TestGuards(ApiTestCase):
    def test_missing_and_invalid_token(self) -> None:
        r = self.client.get(f"{API}/users/me")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.headers.get("www-authenticate"), "Bearer")
        r = self.client.get(
            f"{API}/bookings/me", headers={"Authorization": "Bearer not-a-token"}
        )
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["message"], "Invalid or expired token")

    def test_member_token_rejected_by_admin_guard(self) -> None:
        member = make_user(self.db, username="member")
        r = self.client.get(f"{API}/admin/users", headers=self._auth(member))
        self.assertEqual(r.status_code, 403)

    def test_demoted_admin_rejected_before_token_expires(self) -> None:
        admin = make_user(self.db, username="boss", role="admin")
        headers = self._auth(admin)
        self.assertEqual(
            self.client.get(f"{API}/admin/users", headers=headers).status_code, 200
        )
        admin.role = "member"
        self.db.commit()
        self.assertEqual(
            self.client.get(f"{API}/admin/users", headers=headers).status_code, 403
        )

    def test_deleted_admin_rejected(self) -> None:
        admin = make_user(self.db, username="boss", role="admin")
        headers = self._auth(admin)
        self.db.delete(admin)
        self.db.commit()
        r = self.client.get(f"{API}/admin/bookings", headers=headers)
        self.assertEqual(r.status_code, 401)


class TestBookingEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.member = make_user(self.db, username="member")
        self.admin = make_user(self.db, username="boss", role="admin")

    def _create(self, **overrides: object) -> dict:
        payload: dict[str, object] = {
            "type": "callback",
            "duration": 15,
            "platform": "phone",
            "scheduledAt": "2030-02-02T10:00:00Z",
            "notes": "call me",
        }
        payload.update(overrides)
        return self.client.post(
            f"{API}/bookings", json=payload, headers=self._auth(self.member)
        )

    def test_create_and_list_own(self) -> None:
        r = self._create()
        self.assertEqual(r.status_code, 201)
        booking = r.json()["booking"]
        self.assertEqual(booking["status"], "pending")
        self.assertEqual(booking["userId"], str(self.member.id))
        self.assertIsNone(booking["rescheduledTo"])

        r = self.client.get(f"{API}/bookings/me", headers=self._auth(self.member))
        self.assertEqual(r.status_code, 200)
        self.assertEqual([b["id"] for b in r.json()["bookings"]], [booking["id"]])

    def test_create_after_account_deleted(self) -> None:
        headers = self._auth(self.member)
        r = self.client.delete(f"{API}/users/delete", headers=headers)
        self.assertEqual(r.status_code, 200)
        r = self.client.post(
            f"{API}/bookings",
            json={
                "type": "callback",
                "duration": 15,
                "platform": "phone",
                "scheduledAt": "2030-02-02T10:00:00Z",
            },
            headers=headers,
        )
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["message"], "User not found")
        self.db.expire_all()
        self.assertEqual(self.db.query(Booking).count(), 0)

    def test_timestamps_carry_utc_offset(self) -> None:
        booking = self._create(scheduledAt="2030-02-02T10:00:00").json()["booking"]
        scheduled = datetime.fromisoformat(booking["scheduledAt"])
        self.assertEqual(scheduled.utcoffset(), timedelta(0))
        self.assertEqual(scheduled.replace(tzinfo=None), datetime(2030, 2, 2, 10, 0))
        self.assertEqual(datetime.fromisoformat(booking["createdAt"]).utcoffset(), timedelta(0))

    def test_create_invalid(self) -> None:
        self.assertEqual(self._create(scheduledAt="garbage").status_code, 400)
        self.assertEqual(self._create(platform="").status_code, 400)

    def test_admin_moderation_flow(self) -> None:
        booking_id = self._create().json()["booking"]["id"]
        url = f"{API}/admin/bookings/{booking_id}"
        headers = self._auth(self.admin)

        r = self.client.patch(
            url,
            json={"action": "reschedule", "rescheduledTo": "2030-03-03T09:00:00Z", "adminNote": "later"},
            headers=headers,
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["booking"]["status"], "rescheduled")
        self.assertTrue(r.json()["booking"]["rescheduledTo"].startswith("2030-03-03T09:00:00"))
        self.assertEqual(r.json()["booking"]["user"]["username"], "member")

        r = self.client.patch(url, json={"action": "reschedule", "rescheduledTo": "nah"}, headers=headers)
        self.assertEqual(r.status_code, 400)

        r = self.client.patch(url, json={"action": "approve"}, headers=headers)
        self.assertEqual(r.json()["booking"]["status"], "approved")
        self.assertIsNone(r.json()["booking"]["rescheduledTo"])

        r = self.client.patch(url, json={"action": "delete"}, headers=headers)
        self.assertEqual(r.status_code, 400)

    def test_admin_transition_null_note(self) -> None:
        booking_id = self._create().json()["booking"]["id"]
        r = self.client.patch(
            f"{API}/admin/bookings/{booking_id}",
            json={"action": "cancel", "adminNote": None},
            headers=self._auth(self.admin),
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["booking"]["status"], "cancelled")
        self.assertEqual(r.json()["booking"]["adminNote"], "")

    def test_admin_transition_bad_ids(self) -> None:
        headers = self._auth(self.admin)
        r = self.client.patch(f"{API}/admin/bookings/xyz", json={"action": "approve"}, headers=headers)
        self.assertEqual(r.status_code, 400)
        r = self.client.patch(
            f"{API}/admin/bookings/{uuid.uuid4()}", json={"action": "approve"}, headers=headers
        )
        self.assertEqual(r.status_code, 404)

    def test_member_cannot_moderate(self) -> None:
        booking_id = self._create().json()["booking"]["id"]
        r = self.client.patch(
            f"{API}/admin/bookings/{booking_id}",
            json={"action": "approve"},
            headers=self._auth(self.member),
        )
        self.assertEqual(r.status_code, 403)

    def test_admin_list_meta(self) -> None:
        self._create()
        r = self.client.get(
            f"{API}/admin/bookings",
            params={"limit": 1000, "page": 0, "q": "CALL"},
            headers=self._auth(self.admin),
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["meta"], {"page": 1, "limit": 100, "total": 1, "pages": 1})


class TestAdminUserEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = make_user(self.db, username="boss", role="admin")
        self.member = make_user(self.db, username="member")
        self.headers = self._auth(self.admin)

    def test_self_protection(self) -> None:
        own = f"{API}/admin/users/{self.admin.id}"
        self.assertEqual(self.client.delete(own, headers=self.headers).status_code, 400)
        self.assertEqual(self.client.post(f"{own}/ban", json={}, headers=self.headers).status_code, 400)
        r = self.client.patch(f"{own}/role", json={"role": "member"}, headers=self.headers)
        self.assertEqual(r.status_code, 400)
        self.db.expire_all()
        admin = self.db.get(User, self.admin.id)
        self.assertEqual(admin.role, "admin")
        self.assertFalse(admin.is_banned)

    def test_ban_unban_role_delete(self) -> None:
        target = f"{API}/admin/users/{self.member.id}"
        r = self.client.post(f"{target}/ban", json={"reason": "rude"}, headers=self.headers)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["banReason"], "rude")
        self.assertTrue(r.json()["user"]["isBanned"])

        r = self.client.post(f"{target}/unban", headers=self.headers)
        self.assertFalse(r.json()["user"]["isBanned"])

        r = self.client.patch(f"{target}/role", json={"role": "superuser"}, headers=self.headers)
        self.assertEqual(r.status_code, 400)
        r = self.client.patch(f"{target}/role", json={"role": "admin"}, headers=self.headers)
        self.assertEqual(r.json()["user"]["role"], "admin")

        self.assertEqual(self.client.delete(target, headers=self.headers).status_code, 200)
        self.assertEqual(self.client.delete(target, headers=self.headers).status_code, 404)
        r = self.client.post(f"{target}/unban", headers=self.headers)
        self.assertEqual(r.status_code, 404)

    def test_ban_with_null_reason_uses_default(self) -> None:
        r = self.client.post(
            f"{API}/admin/users/{self.member.id}/ban",
            json={"reason": None, "until": None},
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["banReason"], "No reason provided")

    def test_list_users_hides_password_hash(self) -> None:
        r = self.client.get(f"{API}/admin/users", params={"q": "memb"}, headers=self.headers)
        self.assertEqual(r.status_code, 200)
        users = r.json()["users"]
        self.assertEqual([u["username"] for u in users], ["member"])
        self.assertNotIn("passwordHash", users[0])
        self.assertEqual(r.json()["meta"]["limit"], 20)


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        r = self.client.get(f"{API}/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "ok")
        self.assertEqual(r.json()["database"], "connected")


class TestUnhandledErrors(ApiTestCase):
    def test_unexpected_exception_is_logged_and_hidden(self) -> None:
        member = make_user(self.db, username="member")
        headers = self._auth(member)

        def _broken_db():
            raise RuntimeError("secret db dsn leaked")
            yield

        app.dependency_overrides[get_db] = _broken_db
        client = TestClient(app, raise_server_exceptions=False)
        with self.assertLogs("app.core.errors", level="ERROR") as logs:
            r = client.get(f"{API}/users/me", headers=headers)
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"message": "Internal server error"})
        self.assertNotIn("secret", r.text)
        self.assertIn("secret db dsn leaked", "\n".join(logs.output))


if __name__ == "__main__":
    unittest.main()
