"""
Tests for registration, login and the session check.
"""
import pytest

from app.config import settings

pytestmark = pytest.mark.api


def _register(client, email="anna@example.com", password="correct-horse"):
    return client.post("/api/auth/register", json={"email": email, "password": password})


class TestAuth:

    def test_register(self, anon_client):
        response = _register(anon_client)

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "anna@example.com"
        assert data["isActive"] is True
        assert "hashedPassword" not in data

    def test_register_duplicate_email(self, anon_client):
        _register(anon_client)

        response = _register(anon_client, email="Anna@Example.com")

        assert response.status_code == 400
        assert response.json() == {"error": "User with this email already exists"}

    def test_register_short_password(self, anon_client):
        response = _register(anon_client, password="short")

        assert response.status_code == 400
        assert "8 characters" in response.json()["error"]

    def test_login_sets_session_cookie(self, anon_client):
        _register(anon_client)

        response = anon_client.post(
            "/api/auth/login", data={"username": "anna@example.com", "password": "correct-horse"}
        )

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        assert settings.SESSION_COOKIE_NAME in response.cookies

        me = anon_client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "anna@example.com"

    def test_bearer_token(self, anon_client):
        _register(anon_client)
        token = anon_client.post(
            "/api/auth/login", data={"username": "anna@example.com", "password": "correct-horse"}
        ).json()["access_token"]
        anon_client.cookies.clear()

        me = anon_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.status_code == 200

    def test_wrong_password(self, anon_client):
        _register(anon_client)

        response = anon_client.post(
            "/api/auth/login", data={"username": "anna@example.com", "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Incorrect email or password"}

    def test_protected_route_without_session(self, anon_client):
        response = anon_client.get("/api/shopping-lists")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_invalid_token(self, anon_client):
        response = anon_client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_logout(self, anon_client):
        _register(anon_client)
        anon_client.post(
            "/api/auth/login", data={"username": "anna@example.com", "password": "correct-horse"}
        )

        response = anon_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert anon_client.get("/api/auth/me").status_code == 401
