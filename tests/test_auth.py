"""
Authentication Endpoint Tests

- POST /api/auth/register
- POST /api/auth/login
- POST /api/auth/logout
- GET /api/auth/me
- PUT /api/auth/profile

Covers credential rotation: after a new login, a profile update or a logout
the previously issued credential no longer authenticates.
"""

from fastapi import status
from fastapi.testclient import TestClient

from bibliobuzz.models.user import User
from bibliobuzz.services.security import create_session_token


def get_auth_header(user: User) -> dict:
    token = create_session_token(user.id, user.session_version)
    return {"Authorization": f"Bearer {token}"}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


REGISTER_PAYLOAD = {
    "username": "newreader",
    "email": "newreader@example.com",
    "password": "SecurePass123",
}


# =============================================================================
# Registration
# =============================================================================


class TestRegister:
    """Tests for POST /api/auth/register"""

    def test_register_success(self, client: TestClient):
        response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["user"]["username"] == "newreader"
        assert data["user"]["email"] == "newreader@example.com"
        assert data["user"]["role"] == "reader"
        assert data["user"]["is_admin"] is False
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert "hashed_password" not in data["user"]

    def test_register_sets_http_only_cookie(self, client: TestClient):
        response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("jwt=")
        assert "httponly" in set_cookie.lower()
        assert "samesite=lax" in set_cookie.lower()

    def test_register_cookie_authenticates_follow_up_requests(self, client: TestClient):
        client.post("/api/auth/register", json=REGISTER_PAYLOAD)

        response = client.get("/api/auth/me")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["username"] == "newreader"

    def test_register_duplicate_email(self, client: TestClient, sample_user: User):
        payload = {**REGISTER_PAYLOAD, "email": sample_user.email}
        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"] == "conflict"

    def test_register_duplicate_username(self, client: TestClient, sample_user: User):
        payload = {**REGISTER_PAYLOAD, "username": sample_user.username}
        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_register_weak_password(self, client: TestClient):
        payload = {**REGISTER_PAYLOAD, "password": "short"}
        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "validation_error"

    def test_register_invalid_email(self, client: TestClient):
        payload = {**REGISTER_PAYLOAD, "email": "not-an-email"}
        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    """Tests for POST /api/auth/login"""

    def test_login_success(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": "SecurePass123"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["user"]["id"] == sample_user.id
        assert data["expires_in"] == 30 * 24 * 60 * 60
        assert "jwt" in response.cookies

    def test_login_email_is_case_insensitive(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/auth/login",
            json={"email": "TestUser@Example.com", "password": "SecurePass123"},
        )

        assert response.status_code == status.HTTP_200_OK

    def test_login_wrong_password(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": "WrongPass123"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {
            "error": "unauthenticated",
            "detail": "Invalid email or password",
        }

    def test_login_unknown_email(self, client: TestClient):
        response = client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": "SecurePass123"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid email or password"

    def test_new_login_supersedes_old_credential(self, client: TestClient, sample_user: User):
        credentials = {"email": "testuser@example.com", "password": "SecurePass123"}
        first = client.post("/api/auth/login", json=credentials).json()["access_token"]
        second = client.post("/api/auth/login", json=credentials).json()["access_token"]
        client.cookies.clear()

        assert client.get("/api/auth/me", headers=bearer(first)).status_code == 401
        assert client.get("/api/auth/me", headers=bearer(second)).status_code == 200


# =============================================================================
# Logout
# =============================================================================


class TestLogout:
    """Tests for POST /api/auth/logout"""

    def test_logout_revokes_credential(self, client: TestClient, sample_user: User):
        token = client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": "SecurePass123"},
        ).json()["access_token"]

        response = client.post("/api/auth/logout")
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert "jwt" not in client.cookies

        assert client.get("/api/auth/me", headers=bearer(token)).status_code == 401

    def test_logout_requires_authentication(self, client: TestClient):
        response = client.post("/api/auth/logout")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Current User
# =============================================================================


class TestMe:
    """Tests for GET /api/auth/me"""

    def test_me_returns_identity(self, client: TestClient, sample_user: User):
        response = client.get("/api/auth/me", headers=get_auth_header(sample_user))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == sample_user.id
        assert data["review_count"] == 0

    def test_me_counts_reviews(self, client: TestClient, sample_review):
        response = client.get("/api/auth/me", headers=get_auth_header(sample_review.user))

        assert response.json()["review_count"] == 1

    def test_me_without_credential(self, client: TestClient):
        response = client.get("/api/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthenticated"

    def test_me_with_garbage_token(self, client: TestClient):
        response = client.get("/api/auth/me", headers=bearer("not-a-jwt"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Profile
# =============================================================================


class TestProfile:
    """Tests for PUT /api/auth/profile"""

    def test_update_username(self, client: TestClient, sample_user: User):
        response = client.put(
            "/api/auth/profile",
            json={"username": "renamed"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["username"] == "renamed"

    def test_update_rotates_credential(self, client: TestClient, sample_user: User):
        old_headers = get_auth_header(sample_user)

        response = client.put("/api/auth/profile", json={"username": "renamed"}, headers=old_headers)
        new_token = response.json()["access_token"]
        client.cookies.clear()

        assert client.get("/api/auth/me", headers=old_headers).status_code == 401
        assert client.get("/api/auth/me", headers=bearer(new_token)).status_code == 200

    def test_update_password_allows_new_login(self, client: TestClient, sample_user: User):
        client.put(
            "/api/auth/profile",
            json={"password": "BrandNewPass9"},
            headers=get_auth_header(sample_user),
        )
        client.cookies.clear()

        old = client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": "SecurePass123"},
        )
        new = client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": "BrandNewPass9"},
        )

        assert old.status_code == 401
        assert new.status_code == 200

    def test_update_to_taken_email(self, client: TestClient, sample_user: User, second_user: User):
        response = client.put(
            "/api/auth/profile",
            json={"email": second_user.email},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
