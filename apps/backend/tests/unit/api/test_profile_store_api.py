"""
Name: Profile Store API Tests

Responsibilities:
  - Bearer token required on every route (RFC7807 401)
  - /auth/me, /auth/register (201 vs 200), /auth/profile
  - /admin/users listing and moderation (admin only, 204)
  - /notifications for the affected user
"""

import pytest
from fastapi.testclient import TestClient
from tesoros.api.main import create_app
from tesoros.container import get_identity_directory, get_profile_repository
from tesoros.domain.entities import Identity, UserRole

pytestmark = pytest.mark.unit


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def _bearer(subject_id: str, email: str | None = None) -> dict[str, str]:
    identity = Identity(
        subject_id=subject_id, email=email or f"{subject_id}@example.com"
    )
    token = get_identity_directory().issue_token(identity)
    return {"Authorization": f"Bearer {token}"}


def _seed_admin(profile_factory):
    admin, _ = get_profile_repository().create_if_absent(
        profile_factory(role=UserRole.ADMIN, subject_id="admin-sub")
    )
    return admin


class TestAuthentication:
    def test_missing_token_is_problem_json_401(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_garbage_token_is_401(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_healthz_is_public(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.headers["x-request-id"]

    def test_safe_request_id_is_propagated(self, client):
        response = client.get("/healthz", headers={"X-Request-Id": "req-42"})
        assert response.headers["x-request-id"] == "req-42"

    def test_unsafe_request_id_is_replaced(self, client):
        response = client.get("/auth/me", headers={"X-Request-Id": "bad id!"})
        assert response.headers["x-request-id"] != "bad id!"
        assert response.json()["request_id"] == response.headers["x-request-id"]


class TestMyProfile:
    def test_me_is_404_before_registration(self, client):
        response = client.get("/auth/me", headers=_bearer("sub-1"))
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_register_then_me_in_camel_case(self, client):
        headers = _bearer("sub-1", "Ana@Example.com")

        created = client.post(
            "/auth/register", json={"name": "Ana", "role": "seller"}, headers=headers
        )
        again = client.post(
            "/auth/register", json={"name": "Ana", "role": "seller"}, headers=headers
        )
        me = client.get("/auth/me", headers=headers)

        assert created.status_code == 201
        assert again.status_code == 200
        body = me.json()
        assert body["subjectId"] == "sub-1"
        assert body["isApproved"] is False
        assert body["needsRoleSelection"] is False
        assert body["isActive"] is True
        assert "avatar" not in body

    def test_register_admin_is_forbidden(self, client):
        response = client.post(
            "/auth/register",
            json={"name": "Eve", "role": "admin"},
            headers=_bearer("sub-1"),
        )
        assert response.status_code == 403

    def test_register_without_role_is_422(self, client):
        response = client.post(
            "/auth/register", json={"name": "Ana"}, headers=_bearer("sub-1")
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_update_profile_name(self, client):
        headers = _bearer("sub-1")
        client.post("/auth/register", json={"name": "Ana", "role": "buyer"}, headers=headers)

        response = client.put("/auth/profile", json={"name": "Ana María"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Ana María"

    def test_update_role_after_onboarding_is_forbidden(self, client):
        headers = _bearer("sub-1")
        client.post("/auth/register", json={"name": "Ana", "role": "buyer"}, headers=headers)

        response = client.put("/auth/profile", json={"role": "seller"}, headers=headers)
        assert response.status_code == 403


class TestAdmin:
    def test_non_admin_cannot_list_users(self, client):
        headers = _bearer("sub-1")
        client.post("/auth/register", json={"name": "Ana", "role": "buyer"}, headers=headers)

        response = client.get("/admin/users", headers=headers)
        assert response.status_code == 403

    def test_admin_approves_pending_seller(self, client, profile_factory):
        _seed_admin(profile_factory)
        admin_headers = _bearer("admin-sub")
        seller_headers = _bearer("seller-sub")
        seller = client.post(
            "/auth/register", json={"name": "Luz", "role": "seller"}, headers=seller_headers
        ).json()

        pending = client.get("/admin/users?pending=true", headers=admin_headers)
        assert [u["id"] for u in pending.json()] == [seller["id"]]

        response = client.put(
            f"/admin/users/{seller['id']}/approve",
            json={"reason": "Documentos completos"},
            headers=admin_headers,
        )
        assert response.status_code == 204

        me = client.get("/auth/me", headers=seller_headers).json()
        assert me["isApproved"] is True

        notifications = client.get("/notifications", headers=seller_headers).json()
        assert len(notifications) == 1
        assert notifications[0]["read"] is False
        assert "Documentos completos" in notifications[0]["message"]

        read = client.put(
            f"/notifications/{notifications[0]['id']}/read", headers=seller_headers
        )
        assert read.status_code == 204
        assert client.get("/notifications", headers=seller_headers).json()[0]["read"] is True

    def test_moderation_without_body(self, client, profile_factory):
        _seed_admin(profile_factory)
        buyer = client.post(
            "/auth/register",
            json={"name": "Leo", "role": "buyer"},
            headers=_bearer("buyer-sub"),
        ).json()

        response = client.put(
            f"/admin/users/{buyer['id']}/suspend", headers=_bearer("admin-sub")
        )
        assert response.status_code == 204

    def test_invalid_transition_is_409(self, client, profile_factory):
        _seed_admin(profile_factory)
        buyer = client.post(
            "/auth/register",
            json={"name": "Leo", "role": "buyer"},
            headers=_bearer("buyer-sub"),
        ).json()

        response = client.put(
            f"/admin/users/{buyer['id']}/approve", json={}, headers=_bearer("admin-sub")
        )
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_unknown_action_is_422(self, client, profile_factory):
        admin = _seed_admin(profile_factory)
        response = client.put(
            f"/admin/users/{admin.id}/promote", json={}, headers=_bearer("admin-sub")
        )
        assert response.status_code == 422
