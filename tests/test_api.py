"""HTTP-level tests: auth gate, permission gate, error mapping and the main endpoints."""

import tempfile
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from app.core import security
from app.core.config import settings
from app.core.database import get_db
from app.core.security import create_refresh_token
from app.main import app
from app.models import Role
from app.scripts.seed import DEFAULT_USER_ROLE, SUPER_ADMIN_ROLE, seed_defaults
from app.services.email import get_email_service
from app.services.storage import LocalBlobStorage, get_storage

from db_support import DEFAULT_PASSWORD, add_user, make_sessionmaker

API = "/api/v1"


class ApiTestCase(unittest.TestCase):
    """Runs the app against in-memory SQLite, a temp blob directory and a mock mailer."""

    def setUp(self) -> None:
        patcher = patch.object(security, "BCRYPT_ROUNDS", 4)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.SessionLocal = make_sessionmaker()
        self.db = self.SessionLocal()
        self.addCleanup(self.db.close)
        seed_defaults(self.db)

        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.storage = LocalBlobStorage(tmp.name)
        self.mailer = MagicMock()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_storage] = lambda: self.storage
        app.dependency_overrides[get_email_service] = lambda: self.mailer
        self.addCleanup(app.dependency_overrides.clear)

        self.client = TestClient(app)

    def _role(self, name: str) -> Role:
        return self.db.query(Role).filter(Role.name == name).one()

    def register(self, email: str = "alice@x.com", password: str = "Password123!"):
        return self.client.post(
            f"{API}/users/register",
            json={"email": email, "password": password, "firstName": "Alice", "lastName": "Smith"},
        )

    def login(self, email: str, password: str = DEFAULT_PASSWORD):
        return self.client.post(f"{API}/users/login", json={"email": email, "password": password})

    def auth_headers(self, email: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
        token = self.login(email, password).json()["token"]
        return {"Authorization": f"Bearer {token}"}


class TestRegistrationAndLogin(ApiTestCase):
    def test_register_returns_token_and_public_user(self) -> None:
        response = self.register()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["message"], "User registered successfully")
        self.assertTrue(body["token"])
        self.assertEqual(body["user"]["email"], "alice@x.com")
        self.assertEqual(body["user"]["firstName"], "Alice")
        self.assertNotIn("passwordHash", body["user"])
        self.mailer.send_welcome_email.assert_called_once()

    def test_duplicate_email_rejected(self) -> None:
        self.register()
        response = self.register()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Email already registered"})

    def test_invalid_body_is_400(self) -> None:
        response = self.client.post(
            f"{API}/users/register",
            json={"email": "not-an-email", "password": "short", "firstName": "", "lastName": "S"},
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["message"], "Invalid request body")
        self.assertTrue(body["errors"])

    def test_whitespace_only_names_rejected(self) -> None:
        response = self.client.post(
            f"{API}/users/register",
            json={
                "email": "w@x.com",
                "password": "Password123!",
                "firstName": "   ",
                "lastName": " ",
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid request body")

    def test_names_are_trimmed(self) -> None:
        response = self.client.post(
            f"{API}/users/register",
            json={
                "email": "t@x.com",
                "password": "Password123!",
                "firstName": " Tom ",
                "lastName": "Lee ",
            },
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["firstName"], "Tom")
        self.assertEqual(response.json()["user"]["lastName"], "Lee")

    def test_login_returns_both_tokens_and_roles(self) -> None:
        self.register()
        response = self.login("alice@x.com", "Password123!")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["token"])
        self.assertTrue(body["refreshToken"])
        self.assertEqual([r["name"] for r in body["user"]["roles"]], [DEFAULT_USER_ROLE])

    def test_login_failures_are_indistinguishable(self) -> None:
        self.register()
        wrong_password = self.login("alice@x.com", "Wrong123456!")
        unknown_email = self.login("nobody@x.com", "Password123!")
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_email.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_email.json())

    def test_refresh_issues_access_token(self) -> None:
        self.register()
        refresh_token = self.login("alice@x.com", "Password123!").json()["refreshToken"]
        response = self.client.post(f"{API}/users/refresh", json={"refreshToken": refresh_token})
        self.assertEqual(response.status_code, 200)
        token = response.json()["token"]
        profile = self.client.get(
            f"{API}/users/profile", headers={"Authorization": f"Bearer {token}"}
        )
        self.assertEqual(profile.status_code, 200)

    def test_refresh_rejects_access_token(self) -> None:
        token = self.register().json()["token"]
        response = self.client.post(f"{API}/users/refresh", json={"refreshToken": token})
        self.assertEqual(response.status_code, 401)


class TestAuthenticationGate(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = add_user(self.db, "bob@x.com", roles=[self._role(DEFAULT_USER_ROLE)])

    def test_missing_header(self) -> None:
        response = self.client.get(f"{API}/users/profile")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Authentication required"})
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")

    def test_wrong_scheme(self) -> None:
        token = self.login("bob@x.com").json()["token"]
        for header in (f"Basic {token}", f"bearer {token}", token):
            response = self.client.get(f"{API}/users/profile", headers={"Authorization": header})
            self.assertEqual(response.status_code, 401, header)
            self.assertEqual(response.json()["message"], "Authentication required")

    def test_garbage_token(self) -> None:
        response = self.client.get(
            f"{API}/users/profile", headers={"Authorization": "Bearer garbage"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Invalid token"})

    def test_extra_space_in_token_is_invalid_token(self) -> None:
        token = self.login("bob@x.com").json()["token"]
        response = self.client.get(
            f"{API}/users/profile", headers={"Authorization": f"Bearer {token} extra"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Invalid token"})

    def test_refresh_token_is_not_an_access_token(self) -> None:
        headers = {"Authorization": f"Bearer {create_refresh_token(self.user.id)}"}
        response = self.client.get(f"{API}/users/profile", headers=headers)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Invalid token"})

    def test_profile_read_and_update(self) -> None:
        headers = self.auth_headers("bob@x.com")
        profile = self.client.get(f"{API}/users/profile", headers=headers).json()["user"]
        self.assertEqual(profile["email"], "bob@x.com")
        self.assertTrue(profile["isActive"])
        self.assertIsNotNone(profile["lastLogin"])

        response = self.client.put(
            f"{API}/users/profile", headers=headers, json={"firstName": "Robert"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["firstName"], "Robert")
        self.assertEqual(response.json()["user"]["lastName"], "User")

        blank = self.client.put(f"{API}/users/profile", headers=headers, json={"lastName": "  "})
        self.assertEqual(blank.status_code, 400)

    def test_deactivated_user_token_refused_on_next_request(self) -> None:
        admin = add_user(self.db, "admin@x.com", roles=[self._role(SUPER_ADMIN_ROLE)])
        bob_headers = self.auth_headers("bob@x.com")
        self.assertEqual(
            self.client.get(f"{API}/users/profile", headers=bob_headers).status_code, 200
        )

        response = self.client.post(
            f"{API}/users/{self.user.id}/deactivate", headers=self.auth_headers(admin.email)
        )
        self.assertEqual(response.status_code, 200)
        self.mailer.send_deactivation_email.assert_called_once()

        response = self.client.get(f"{API}/users/profile", headers=bob_headers)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.login("bob@x.com").status_code, 401)


class TestPermissionGate(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        grants = self._role(DEFAULT_USER_ROLE).permissions
        reader = Role(name="Reader", permissions=[p for p in grants if p.name == "document:read"])
        self.db.add(reader)
        self.db.commit()
        add_user(self.db, "alice@x.com", roles=[reader])
        add_user(self.db, "admin@x.com", roles=[self._role(SUPER_ADMIN_ROLE)])

    def test_missing_permission_is_403(self) -> None:
        headers = self.auth_headers("alice@x.com")
        self.assertEqual(self.client.get(f"{API}/documents", headers=headers).status_code, 200)
        response = self.client.delete(f"{API}/documents/1", headers=headers)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"message": "Insufficient permissions"})

    def test_admin_endpoints_need_permission(self) -> None:
        headers = self.auth_headers("alice@x.com")
        self.assertEqual(self.client.get(f"{API}/users", headers=headers).status_code, 403)
        self.assertEqual(self.client.get(f"{API}/roles", headers=headers).status_code, 403)

    def test_unauthenticated_beats_forbidden(self) -> None:
        response = self.client.delete(f"{API}/documents/1")
        self.assertEqual(response.status_code, 401)

    def test_list_users_paginated(self) -> None:
        response = self.client.get(
            f"{API}/users", params={"page": 1, "limit": 1}, headers=self.auth_headers("admin@x.com")
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total"], 2)
        self.assertEqual(body["totalPages"], 2)
        self.assertEqual(len(body["users"]), 1)


class TestRoleManagementApi(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        add_user(self.db, "admin@x.com", roles=[self._role(SUPER_ADMIN_ROLE)])
        self.member = add_user(self.db, "carol@x.com")
        self.headers = self.auth_headers("admin@x.com")

    def test_role_lifecycle_changes_member_access(self) -> None:
        created = self.client.post(
            f"{API}/roles",
            headers=self.headers,
            json={"name": "Reader", "description": "Reads", "permissions": ["document:read"]},
        )
        self.assertEqual(created.status_code, 201)
        role = created.json()["role"]
        self.assertEqual([p["name"] for p in role["permissions"]], ["document:read"])

        carol = self.auth_headers("carol@x.com")
        self.assertEqual(self.client.get(f"{API}/documents", headers=carol).status_code, 403)

        assigned = self.client.post(
            f"{API}/roles/assign",
            headers=self.headers,
            json={"userId": self.member.id, "roleId": role["id"]},
        )
        self.assertEqual(assigned.status_code, 200)
        self.assertEqual(self.client.get(f"{API}/documents", headers=carol).status_code, 200)

        updated = self.client.put(
            f"{API}/roles/{role['id']}", headers=self.headers, json={"permissions": []}
        )
        self.assertEqual(updated.json()["role"]["permissions"], [])
        self.assertEqual(self.client.get(f"{API}/documents", headers=carol).status_code, 403)

        deleted = self.client.delete(f"{API}/roles/{role['id']}", headers=self.headers)
        self.assertEqual(deleted.status_code, 204)
        missing = self.client.get(f"{API}/roles/{role['id']}", headers=self.headers)
        self.assertEqual(missing.status_code, 404)

    def test_remove_role_from_user(self) -> None:
        role_id = self._role(DEFAULT_USER_ROLE).id
        self.client.post(
            f"{API}/roles/assign",
            headers=self.headers,
            json={"userId": self.member.id, "roleId": role_id},
        )
        response = self.client.delete(
            f"{API}/roles/users/{self.member.id}/roles/{role_id}", headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["roles"], [])

    def test_default_role_cannot_be_deleted(self) -> None:
        role_id = self._role(DEFAULT_USER_ROLE).id
        response = self.client.delete(f"{API}/roles/{role_id}", headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Cannot delete default role"})

    def test_blank_role_name_rejected(self) -> None:
        response = self.client.post(f"{API}/roles", headers=self.headers, json={"name": "   "})
        self.assertEqual(response.status_code, 400)
        created = self.client.post(f"{API}/roles", headers=self.headers, json={"name": " Editor "})
        self.assertEqual(created.json()["role"]["name"], "Editor")

    def test_unknown_permission_name(self) -> None:
        response = self.client.post(
            f"{API}/roles", headers=self.headers, json={"name": "Bad", "permissions": ["x:read"]}
        )
        self.assertEqual(response.status_code, 404)

    def test_permission_catalogue(self) -> None:
        listed = self.client.get(f"{API}/permissions", headers=self.headers).json()["permissions"]
        self.assertIn("role:manage", [p["name"] for p in listed])
        created = self.client.post(
            f"{API}/permissions", headers=self.headers, json={"resource": "report", "action": "read"}
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["permission"]["name"], "report:read")
        duplicate = self.client.post(
            f"{API}/permissions", headers=self.headers, json={"resource": "report", "action": "read"}
        )
        self.assertEqual(duplicate.status_code, 400)


class TestDocumentsApi(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        user_role = self._role(DEFAULT_USER_ROLE)
        add_user(self.db, "owner@x.com", roles=[user_role])
        add_user(self.db, "other@x.com", roles=[user_role])
        self.owner = self.auth_headers("owner@x.com")
        self.other = self.auth_headers("other@x.com")

    def _upload(self, is_public: bool = False, content: bytes = b"hello world"):
        return self.client.post(
            f"{API}/documents",
            headers=self.owner,
            files={"file": ("notes.txt", content, "text/plain")},
            data={"isPublic": "true" if is_public else "false", "metadata": '{"tag": "q3"}'},
        )

    def test_upload_and_download(self) -> None:
        response = self._upload()
        self.assertEqual(response.status_code, 201)
        document = response.json()["document"]
        self.assertEqual(document["originalName"], "notes.txt")
        self.assertEqual(document["size"], 11)
        self.assertEqual(document["metadata"], {"provider": "local", "tag": "q3"})

        content = self.client.get(
            f"{API}/documents/{document['id']}/content", headers=self.owner
        )
        self.assertEqual(content.status_code, 200)
        self.assertEqual(content.content, b"hello world")
        self.assertIn("notes.txt", content.headers["content-disposition"])

    def test_private_document_forbidden_to_others(self) -> None:
        document_id = self._upload().json()["document"]["id"]
        response = self.client.get(f"{API}/documents/{document_id}", headers=self.other)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"message": "Access denied"})

    def test_public_document_listed_for_others(self) -> None:
        self._upload()
        self._upload(is_public=True)
        body = self.client.get(f"{API}/documents", headers=self.other).json()
        self.assertEqual(body["total"], 1)
        self.assertTrue(body["documents"][0]["isPublic"])

    def test_invalid_metadata_json(self) -> None:
        response = self.client.post(
            f"{API}/documents",
            headers=self.owner,
            files={"file": ("a.txt", b"x", "text/plain")},
            data={"metadata": "{not json"},
        )
        self.assertEqual(response.status_code, 400)

    def test_empty_upload(self) -> None:
        response = self.client.post(
            f"{API}/documents",
            headers=self.owner,
            files={"file": ("a.txt", b"", "text/plain")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "No file uploaded"})

    def test_update_and_delete_owner_only(self) -> None:
        document_id = self._upload().json()["document"]["id"]
        forbidden = self.client.patch(
            f"{API}/documents/{document_id}", headers=self.other, json={"isPublic": True}
        )
        self.assertEqual(forbidden.status_code, 403)

        updated = self.client.patch(
            f"{API}/documents/{document_id}",
            headers=self.owner,
            json={"isPublic": True, "metadata": {"stage": "final"}},
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["document"]["metadata"]["stage"], "final")
        self.assertEqual(updated.json()["document"]["metadata"]["tag"], "q3")

        self.assertEqual(
            self.client.delete(f"{API}/documents/{document_id}", headers=self.other).status_code,
            403,
        )
        self.assertEqual(
            self.client.delete(f"{API}/documents/{document_id}", headers=self.owner).status_code,
            200,
        )
        self.assertEqual(
            self.client.get(f"{API}/documents/{document_id}", headers=self.owner).status_code,
            404,
        )


class TestServiceEndpoints(ApiTestCase):
    def test_health(self) -> None:
        self.storage.ensure_ready()
        response = self.client.get(f"{API}/health/")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")
        self.assertEqual(body["storage"], "available")

    def _failing_login(self, app_env: str):
        client = TestClient(app, raise_server_exceptions=False)
        with patch.object(settings, "APP_ENV", app_env):
            with patch("app.services.accounts.login", side_effect=RuntimeError("boom")):
                with self.assertLogs("app.main", level="ERROR"):
                    return client.post(
                        f"{API}/users/login", json={"email": "a@x.com", "password": "whatever"}
                    )

    def test_unexpected_error_hides_detail_in_prod(self) -> None:
        response = self._failing_login("prod")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Internal Server Error"})

    def test_unexpected_error_includes_detail_in_dev(self) -> None:
        response = self._failing_login("dev")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["message"], "Internal Server Error")
        self.assertEqual(response.json()["error"], "boom")

    def test_unknown_route_uses_message_body(self) -> None:
        response = self.client.get(f"{API}/nope")
        self.assertEqual(response.status_code, 404)
        self.assertIn("message", response.json())


if __name__ == "__main__":
    unittest.main()
