"""
End-to-end tests of the HTTP surface against an in-memory SQLite store and a
fake identity provider.
Run from the project root: python -m pytest tests/test_api.py -v
"""
import unittest
from unittest import mock

from fastapi.testclient import TestClient

from api.deps import get_identity
from main import create_app
from services import paths
from tests.fakes import APP_ID, FakeIdentityProvider, make_settings

LOAN = {
    "loanType": "Personal",
    "purpose": "Medical",
    "panNumber": "ABCDE1234F",
    "requestedLoanAmount": 50000,
}


class ApiTestCase(unittest.TestCase):
    settings_overrides: dict = {}

    def setUp(self):
        self.identity = FakeIdentityProvider()
        self.app = create_app(make_settings(**self.settings_overrides))
        self.app.dependency_overrides[get_identity] = lambda: self.identity
        self.client = TestClient(self.app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

        self.user_token = self.identity.add_user("u1")
        self.admin_token = self.identity.add_user("admin1", admin=True)

    @staticmethod
    def auth(token):
        return {"Authorization": f"Bearer {token}"}

    def apply(self, token=None, **overrides):
        return self.client.post(
            "/api/apply-loan",
            json={**LOAN, **overrides},
            headers=self.auth(token or self.user_token),
        )


class TestSignup(ApiTestCase):
    def test_signup_creates_user_and_profile(self):
        """Signup -> identity record plus profile document."""
        resp = self.client.post(
            "/api/signup",
            json={"email": "new@example.com", "password": "secret123", "mobile": "+919876543210"},
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["message"], "User created successfully!")
        uid = body["uid"]
        self.assertEqual(self.identity.users[uid]["email"], "new@example.com")

        profile = self.client.portal.call(self.app.state.store.get, paths.user_profile_path(APP_ID, uid))
        self.assertEqual(profile["email"], "new@example.com")
        self.assertEqual(profile["mobile"], "+919876543210")
        self.assertIn("createdAt", profile)

    def test_signup_duplicate_email(self):
        """Duplicate email -> 409 and no new records."""
        payload = {"email": "dup@example.com", "password": "secret123", "mobile": "+919876543210"}
        self.assertEqual(self.client.post("/api/signup", json=payload).status_code, 201)
        users_before = len(self.identity.users)

        resp = self.client.post("/api/signup", json=payload)

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["message"], "Email already registered.")
        self.assertEqual(len(self.identity.users), users_before)
        profiles = self.client.portal.call(self.app.state.store.list, paths.users_collection(APP_ID))
        self.assertEqual(len(profiles), 1)

    def test_signup_missing_fields(self):
        """Missing mobile -> 400 with the required-fields message."""
        resp = self.client.post("/api/signup", json={"email": "a@example.com", "password": "secret123"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Email, password, and mobile are required.")

    def test_signup_blank_email(self):
        """Blank email -> 400 with the required-fields message."""
        resp = self.client.post("/api/signup", json={"email": "", "password": "x", "mobile": "+919876543210"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Email, password, and mobile are required.")

    def test_signup_profile_write_failure_removes_identity(self):
        """Profile write fails -> 500, identity record removed, no profile left."""
        store = self.app.state.store
        with mock.patch.object(store, "set", side_effect=RuntimeError("store down")):
            resp = self.client.post(
                "/api/signup",
                json={"email": "new@example.com", "password": "secret123", "mobile": "+919876543210"},
            )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["error"], "Error creating user")
        self.assertEqual(len(self.identity.deleted), 1)
        self.assertNotIn(self.identity.deleted[0], self.identity.users)
        self.assertEqual(self.client.portal.call(store.list, paths.users_collection(APP_ID)), [])

    def test_signup_cleanup_failure_keeps_original_error(self):
        """Profile write and identity cleanup both fail -> still the signup 500."""
        store = self.app.state.store
        with mock.patch.object(store, "set", side_effect=RuntimeError("store down")), mock.patch.object(
            self.identity, "delete_user", side_effect=RuntimeError("auth down")
        ) as delete_user:
            with self.assertLogs("services.accounts", level="ERROR") as logs:
                resp = self.client.post(
                    "/api/signup",
                    json={"email": "new@example.com", "password": "secret123", "mobile": "+919876543210"},
                )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["error"], "Error creating user")
        delete_user.assert_called_once()
        self.assertTrue(any("Could not remove identity record" in line for line in logs.output))

    def test_signup_malformed_email(self):
        """Malformed email -> 400 with validation details."""
        resp = self.client.post(
            "/api/signup", json={"email": "not-an-email", "password": "secret123", "mobile": "+919876543210"}
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("details", resp.json())


class TestAuth(ApiTestCase):
    def test_missing_token(self):
        """No Authorization header -> 401 on every protected route."""
        for method, url in (
            ("post", "/api/apply-loan"),
            ("get", "/api/loan-status"),
            ("get", "/api/admin/applications"),
            ("put", "/api/admin/applications/x/status"),
        ):
            kwargs = {"json": {}} if method in ("post", "put") else {}
            resp = getattr(self.client, method)(url, **kwargs)
            self.assertEqual(resp.status_code, 401, url)
            self.assertEqual(resp.json()["message"], "No token provided.")

    def test_invalid_token(self):
        """Token the identity provider rejects -> 401."""
        resp = self.client.get("/api/loan-status", headers=self.auth("forged"))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["message"], "Invalid or expired token.")

    def test_non_admin_forbidden(self):
        """Signed-in non-admin -> 403 on admin routes."""
        resp = self.client.get("/api/admin/applications", headers=self.auth(self.user_token))
        self.assertEqual(resp.status_code, 403)
        resp = self.client.put(
            "/api/admin/applications/x/status", json={"status": "Approved"}, headers=self.auth(self.user_token)
        )
        self.assertEqual(resp.status_code, 403)

    def test_admin_role_on_profile(self):
        """role "admin" on the profile grants admin access."""
        token = self.identity.add_user("staff")
        store = self.app.state.store
        self.client.portal.call(store.set, paths.user_profile_path(APP_ID, "staff"), {"role": "admin"})
        resp = self.client.get("/api/admin/applications", headers=self.auth(token))
        self.assertEqual(resp.status_code, 200)


class TestAdminRoleDisabled(ApiTestCase):
    settings_overrides = {"admin_role_required": False}

    def test_any_user_is_admin(self):
        """With enforcement off any signed-in user reaches admin routes."""
        resp = self.client.get("/api/admin/applications", headers=self.auth(self.user_token))
        self.assertEqual(resp.status_code, 200)


class TestLoanLifecycle(ApiTestCase):
    def test_apply_then_status_then_admin_list(self):
        """Apply -> Pending entry in both the user's status list and the admin list."""
        resp = self.apply()
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["message"], "Loan application submitted successfully!")
        application_id = body["applicationId"]

        own = self.client.get("/api/loan-status", headers=self.auth(self.user_token)).json()
        self.assertEqual(len(own), 1)
        self.assertEqual(own[0]["id"], application_id)
        self.assertEqual(own[0]["status"], "Pending")
        self.assertEqual(own[0]["userId"], "u1")

        everything = self.client.get("/api/admin/applications", headers=self.auth(self.admin_token)).json()
        entry = next(a for a in everything if a["applicationId"] == application_id)
        self.assertEqual(entry["status"], "Pending")
        for name in ("loanType", "purpose", "panNumber", "requestedLoanAmount", "appliedDate"):
            self.assertEqual(entry[name], own[0][name])

    def test_admin_approves(self):
        """Admin approval with repayment shows up for the user and the admin."""
        application_id = self.apply().json()["applicationId"]

        resp = self.client.put(
            f"/api/admin/applications/{application_id}/status",
            json={"status": "Approved", "repayment": "Paid"},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], f"Application {application_id} status updated to Approved.")

        own = self.client.get("/api/loan-status", headers=self.auth(self.user_token)).json()
        self.assertEqual((own[0]["id"], own[0]["status"], own[0]["repayment"]), (application_id, "Approved", "Paid"))

        detail = self.client.get(
            f"/api/admin/applications/{application_id}", headers=self.auth(self.admin_token)
        ).json()
        self.assertEqual((detail["status"], detail["repayment"]), ("Approved", "Paid"))

    def test_users_only_see_their_own(self):
        """loan-status only lists the caller's applications."""
        other_token = self.identity.add_user("u2")
        mine = self.apply().json()["applicationId"]
        theirs = self.apply(token=other_token, loanType="Home").json()["applicationId"]

        own = self.client.get("/api/loan-status", headers=self.auth(self.user_token)).json()
        self.assertEqual([a["id"] for a in own], [mine])

        everything = self.client.get("/api/admin/applications", headers=self.auth(self.admin_token)).json()
        self.assertEqual({a["id"] for a in everything}, {mine, theirs})

    def test_apply_missing_fields(self):
        """Missing required loan fields -> 400 naming them."""
        resp = self.client.post(
            "/api/apply-loan",
            json={"loanType": "Personal", "purpose": "Medical"},
            headers=self.auth(self.user_token),
        )
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["message"], "Missing required loan application fields.")
        self.assertEqual(body["fields"], ["panNumber", "requestedLoanAmount"])

    def test_apply_rejects_non_numeric_amount(self):
        """Non-numeric amount -> 400."""
        resp = self.apply(requestedLoanAmount="a lot")
        self.assertEqual(resp.status_code, 400)

    def test_update_requires_status(self):
        """Status update without status -> 400."""
        application_id = self.apply().json()["applicationId"]
        resp = self.client.put(
            f"/api/admin/applications/{application_id}/status",
            json={"repayment": "Paid"},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Status is required.")

    def test_update_rejects_unknown_status(self):
        """Status outside the enum -> 400."""
        application_id = self.apply().json()["applicationId"]
        resp = self.client.put(
            f"/api/admin/applications/{application_id}/status",
            json={"status": "Closed"},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(resp.status_code, 400)

    def test_update_unknown_application(self):
        """Unknown application id -> 404 and nothing created."""
        resp = self.client.put(
            "/api/admin/applications/does-not-exist/status",
            json={"status": "Approved"},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(resp.status_code, 404)
        everything = self.client.get("/api/admin/applications", headers=self.auth(self.admin_token)).json()
        self.assertEqual(everything, [])

    def test_get_unknown_application(self):
        """Unknown application id on the detail route -> 404."""
        resp = self.client.get("/api/admin/applications/missing", headers=self.auth(self.admin_token))
        self.assertEqual(resp.status_code, 404)


class TestMisc(ApiTestCase):
    def test_health(self):
        """Health check responds ok."""
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_unknown_path_serves_index(self):
        """Unmatched path -> index.html."""
        resp = self.client.get("/dashboard/loans")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("text/html", resp.headers["content-type"])
        self.assertIn("Loan Portal", resp.text)

    def test_path_traversal_serves_index(self):
        """Paths escaping the static directory fall back to index.html."""
        resp = self.client.get("/..%2F..%2Fconfig.py")
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn("BaseSettings", resp.text)


if __name__ == "__main__":
    unittest.main()
