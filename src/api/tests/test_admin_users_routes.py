"""Tests for /admin/users routes and the require_admin dependency."""

import unittest

from fastapi.testclient import TestClient

from api.main import app
from api.dependencies import get_password_hasher, get_session_store, get_user_directory
from adapter.fake.session_store import FakeSessionStore
from adapter.fake.user_directory import FakeUserDirectory
from adapter.security.bcrypt_hasher import BcryptPasswordHasher


class TestAdminUsers(unittest.TestCase):

    def setUp(self):
        self.directory = FakeUserDirectory()
        self.sessions = FakeSessionStore()
        self.hasher = BcryptPasswordHasher(rounds=4)
        app.dependency_overrides[get_user_directory] = lambda: self.directory
        app.dependency_overrides[get_session_store] = lambda: self.sessions
        app.dependency_overrides[get_password_hasher] = lambda: self.hasher

        password_hash = self.hasher.hash('Secret123!')
        self.admin = self.directory.create('admin@example.com', 'Ad', 'Min', password_hash=password_hash, role='admin')
        self.buyer = self.directory.create('buyer@example.com', 'Bu', 'Yer', password_hash=password_hash)

        self.admin_client = self._logged_in('admin@example.com')
        self.buyer_client = self._logged_in('buyer@example.com')

    def tearDown(self):
        app.dependency_overrides.clear()

    def _logged_in(self, email: str) -> TestClient:
        client = TestClient(app)
        response = client.post("/auth/login", json={"email": email, "password": "Secret123!"})
        assert response.status_code == 200
        return client

    def test_buyer_is_forbidden(self):
        response = self.buyer_client.get(f"/admin/users/{self.admin.id}")

        assert response.status_code == 403

    def test_anonymous_is_unauthorized(self):
        response = TestClient(app).get(f"/admin/users/{self.buyer.id}")

        assert response.status_code == 401

    def test_admin_reads_user(self):
        response = self.admin_client.get(f"/admin/users/{self.buyer.id}")

        assert response.status_code == 200
        assert response.json()["email"] == "buyer@example.com"

    def test_unknown_user(self):
        assert self.admin_client.get("/admin/users/missing").status_code == 404
        assert self.admin_client.patch("/admin/users/missing", json={"is_active": False}).status_code == 404

    def test_deactivation_locks_out_existing_session(self):
        assert self.buyer_client.get("/auth/me").status_code == 200

        response = self.admin_client.patch(f"/admin/users/{self.buyer.id}", json={"is_active": False})

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert self.buyer_client.get("/auth/me").status_code == 403

    def test_promotion_applies_to_existing_session(self):
        assert self.buyer_client.get(f"/admin/users/{self.admin.id}").status_code == 403

        self.admin_client.patch(f"/admin/users/{self.buyer.id}", json={"role": "admin"})

        assert self.buyer_client.get(f"/admin/users/{self.admin.id}").status_code == 200

    def test_admin_cannot_deactivate_self(self):
        response = self.admin_client.patch(f"/admin/users/{self.admin.id}", json={"is_active": False})

        assert response.status_code == 400
        assert self.directory.get_by_id(self.admin.id).is_active

    def test_admin_lists_users(self):
        response = self.admin_client.get("/admin/users")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {u["email"] for u in data["users"]} == {"admin@example.com", "buyer@example.com"}
        assert all("password_hash" not in u for u in data["users"])

    def test_list_filters_and_paginates(self):
        self.directory.create('carol@example.com', 'Carol', 'White', provider_id='g-1')

        by_role = self.admin_client.get("/admin/users", params={"role": "buyer"}).json()
        by_search = self.admin_client.get("/admin/users", params={"search": "WHITE"}).json()
        page = self.admin_client.get("/admin/users", params={"skip": 1, "limit": 1}).json()

        assert by_role["total"] == 2
        assert [u["email"] for u in by_search["users"]] == ["carol@example.com"]
        assert page["total"] == 3
        assert len(page["users"]) == 1
        assert page["skip"] == 1

    def test_list_is_admin_only(self):
        assert self.buyer_client.get("/admin/users").status_code == 403
        assert TestClient(app).get("/admin/users").status_code == 401

    def test_list_rejects_oversized_page(self):
        assert self.admin_client.get("/admin/users", params={"limit": 1000}).status_code == 422

    def test_empty_update_rejected(self):
        assert self.admin_client.patch(f"/admin/users/{self.buyer.id}", json={}).status_code == 400


if __name__ == '__main__':
    unittest.main()
