"""Tests for authentication endpoints."""
from datetime import timedelta

from rentalhub.core.security import create_access_token


class TestLogin:
    """Test /auth/login endpoint."""

    def test_login_success(self, client, test_user):
        """Test successful login returns token."""
        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "testpass123"}
        )
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"

    def test_login_wrong_password(self, client, test_user):
        """Test login with wrong password fails."""
        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "wrongpass"}
        )
        assert response.status_code == 401
        assert "Incorrect email or password" in response.json()["detail"]

    def test_login_nonexistent_user(self, client):
        response = client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": "anypass"}
        )
        assert response.status_code == 401

    def test_login_inactive_user(self, client, db_session, test_user):
        test_user.is_active = False
        db_session.commit()
        response = client.post(
            "/auth/login",
            json={"email": "test@example.com", "password": "testpass123"}
        )
        assert response.status_code == 401

    def test_login_invalid_email_format(self, client):
        response = client.post(
            "/auth/login",
            json={"email": "not-an-email", "password": "anypass"}
        )
        assert response.status_code == 422


class TestGetMe:
    """Test /auth/me endpoint."""

    def test_get_me_tenant_user(self, client, tenant, auth_headers):
        """A tenant-linked user sees their room and may request overrides but not review them."""
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "test@example.com"
        assert data["role"] == "USER"
        assert data["tenant_id"] == tenant.tenant_id
        assert data["room_id"] == tenant.room_id
        assert data["capabilities"]["can_request_curfew_override"] is True
        assert data["capabilities"]["can_review_curfew_requests"] is False
        assert data["capabilities"]["can_change_curfew_status"] is False

    def test_get_me_admin(self, client, admin_headers):
        response = client.get("/auth/me", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["tenant_id"] is None
        assert data["capabilities"]["is_admin"] is True
        assert data["capabilities"]["can_review_curfew_requests"] is True

    def test_get_me_invalid_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_get_me_expired_token(self, client, test_user):
        token = create_access_token(test_user.email, expires_delta=timedelta(minutes=-5))
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_get_me_unknown_subject(self, client, test_user):
        token = create_access_token("ghost@example.com")
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestUserAdministration:

    def test_admin_creates_user(self, client, admin_headers):
        response = client.post(
            "/auth/users",
            json={
                "email": "new@example.com",
                "full_name": "New Tenant",
                "password": "secret123",
                "role": "user",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "USER"

        login = client.post("/auth/login", json={"email": "new@example.com", "password": "secret123"})
        assert login.status_code == 200

    def test_duplicate_email_rejected(self, client, admin_headers, test_user):
        response = client.post(
            "/auth/users",
            json={
                "email": "test@example.com",
                "full_name": "Dup",
                "password": "secret123",
            },
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_invalid_role_rejected(self, client, admin_headers):
        response = client.post(
            "/auth/users",
            json={
                "email": "x@example.com",
                "full_name": "X",
                "password": "secret123",
                "role": "Superuser",
            },
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_regular_user_cannot_create_users(self, client, auth_headers):
        response = client.post(
            "/auth/users",
            json={"email": "x@example.com", "full_name": "X", "password": "secret123"},
            headers=auth_headers,
        )
        assert response.status_code == 403

    def test_list_users_admin_only(self, client, admin_headers, auth_headers):
        assert client.get("/auth/users", headers=auth_headers).status_code == 403
        response = client.get("/auth/users", headers=admin_headers)
        assert response.status_code == 200
        assert {u["email"] for u in response.json()} == {"admin@example.com", "test@example.com"}
