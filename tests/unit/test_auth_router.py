"""Tests for the authentication endpoints and gate."""

import pytest
from fastapi.testclient import TestClient

from src.core.config import Settings
from src.main import create_app
from tests.conftest import TEST_ADMIN_JOIN_CODE


def _signup(client: TestClient, email: str = "alice@example.com", **extra: str) -> dict:
    payload = {"name": "Alice", "email": email, "password": "pw-123456", **extra}
    response = client.post("/auth/signup", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["user"]


@pytest.mark.unit
def test_health_check(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.unit
def test_signup_returns_user_without_password(client: TestClient):
    response = client.post(
        "/auth/signup",
        json={"name": "Alice", "email": "alice@example.com", "password": "pw", "profileImageUrl": "http://img/a.png"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Signup successful"
    assert body["user"]["role"] == "user"
    assert body["user"]["profileImageUrl"] == "http://img/a.png"
    assert "password" not in body["user"]
    assert "passwordHash" not in body["user"]


@pytest.mark.unit
def test_signup_with_admin_join_code(client: TestClient):
    user = _signup(client, adminJoinCode=TEST_ADMIN_JOIN_CODE)

    assert user["role"] == "admin"


@pytest.mark.unit
def test_signup_duplicate_email(client: TestClient):
    _signup(client)

    response = client.post("/auth/signup", json={"name": "Alice", "email": "alice@example.com", "password": "x"})

    assert response.status_code == 400
    assert response.json() == {"message": "User already exists"}


@pytest.mark.unit
def test_signup_missing_fields(client: TestClient):
    response = client.post("/auth/signup", json={"email": "alice@example.com"})

    assert response.status_code == 400
    assert response.json() == {"message": "All fields are required"}


@pytest.mark.unit
def test_signin_sets_http_only_cookie_and_profile_uses_it(client: TestClient):
    user = _signup(client)

    response = client.post("/auth/signin", json={"email": "alice@example.com", "password": "pw-123456"})

    assert response.status_code == 200
    assert response.json()["id"] == user["id"]
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith("access_token=")
    assert "HttpOnly" in set_cookie

    profile = client.get("/auth/profile")
    assert profile.status_code == 200
    assert profile.json()["email"] == "alice@example.com"


@pytest.mark.unit
def test_signin_bad_credentials(client: TestClient):
    _signup(client)

    wrong_password = client.post("/auth/signin", json={"email": "alice@example.com", "password": "nope"})
    unknown_email = client.post("/auth/signin", json={"email": "bob@example.com", "password": "pw-123456"})

    assert wrong_password.status_code == unknown_email.status_code == 400
    assert wrong_password.json() == unknown_email.json() == {"message": "Invalid email or password"}


@pytest.mark.unit
def test_signout_clears_cookie(client: TestClient):
    _signup(client)
    client.post("/auth/signin", json={"email": "alice@example.com", "password": "pw-123456"})

    response = client.post("/auth/signout")

    assert response.status_code == 200
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith("access_token=")
    assert "Max-Age=0" in set_cookie


@pytest.mark.unit
def test_profile_requires_token(client: TestClient):
    response = client.get("/auth/profile")

    assert response.status_code == 401
    assert response.json() == {"message": "Not authenticated"}


@pytest.mark.unit
def test_profile_rejects_garbage_token(client: TestClient):
    response = client.get("/auth/profile", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid access token"}


@pytest.mark.unit
def test_update_profile(client: TestClient):
    _signup(client)
    client.post("/auth/signin", json={"email": "alice@example.com", "password": "pw-123456"})

    response = client.put("/auth/profile", json={"name": "Alice Liddell", "password": "new-password"})

    assert response.status_code == 200
    assert response.json()["name"] == "Alice Liddell"

    signin = client.post("/auth/signin", json={"email": "alice@example.com", "password": "new-password"})
    assert signin.status_code == 200


@pytest.mark.unit
def test_missing_signing_secret_is_server_error(test_settings: Settings, patched_db):
    app = create_app(test_settings.model_copy(update={"secret_key": None}))
    client = TestClient(app)

    response = client.get("/auth/profile", headers={"Authorization": "Bearer whatever"})

    assert response.status_code == 500
    assert response.json() == {"message": "Access token signing is not configured"}


@pytest.mark.unit
def test_signup_and_signin_with_apostrophe_email(client: TestClient):
    payload = {"name": "Pat", "email": "pat.o'neil@example.com", "password": "pw"}

    signup = client.post("/auth/signup", json=payload)
    signin = client.post("/auth/signin", json={"email": payload["email"], "password": "pw"})

    assert signup.status_code == 201
    assert signin.status_code == 200
    assert signin.json()["email"] == "pat.o'neil@example.com"


@pytest.mark.unit
def test_update_profile_rejects_blank_name(client: TestClient):
    client.post("/auth/signup", json={"name": "Alice", "email": "alice@example.com", "password": "pw"})
    client.post("/auth/signin", json={"email": "alice@example.com", "password": "pw"})

    response = client.put("/auth/profile", json={"name": "   "})

    assert response.status_code == 400
    assert response.json() == {"message": "Name cannot be empty"}
