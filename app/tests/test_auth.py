"""
Tests for authentication endpoints
"""
from fastapi import status

from app.core.config import settings
from app.core.security import decode_access_token
from app.tests.utils import DEFAULT_PASSWORD, auth_headers, login


def _register(client, email="new.hire@example.com", password="Str0ng!Pass"):
    return client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "first_name": "New", "last_name": "Hire"},
    )


def test_register_returns_profile_without_hash(client, seeded):
    response = _register(client)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["email"] == "new.hire@example.com"
    assert data["role"]["slug"] == "employee"
    assert "password_hash" not in data
    assert "password" not in data


def test_register_duplicate_email_is_conflict(client, seeded):
    _register(client)

    response = _register(client, email="NEW.HIRE@example.com")

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "conflict"


def test_register_weak_password_is_validation_failure(client, seeded):
    response = _register(client, password="password")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    data = response.json()
    assert data["kind"] == "validation_failed"
    assert data["errors"]


def test_register_invalid_email_is_validation_failure(client, seeded):
    response = _register(client, email="not-an-email")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["kind"] == "validation_failed"


def test_auth_login_success(client, employee_user):
    """Test successful login returns tokens, the user and the refresh cookie"""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "employee@example.com", "password": DEFAULT_PASSWORD},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert data["user"]["id"] == employee_user.id
    assert int(decode_access_token(data["access_token"])["sub"]) == employee_user.id
    assert response.cookies.get(settings.REFRESH_COOKIE_NAME) == data["refresh_token"]
    assert "httponly" in response.headers["set-cookie"].lower()


def test_auth_login_failures_look_the_same(client, make_user):
    make_user(email="active@example.com")
    make_user(email="inactive@example.com", is_active=False)

    bodies = []
    for email, password in (
        ("active@example.com", "Wr0ng!Pass"),
        ("nobody@example.com", DEFAULT_PASSWORD),
        ("inactive@example.com", DEFAULT_PASSWORD),
    ):
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        data = response.json()
        bodies.append((data["kind"], data["detail"]))

    assert len(set(bodies)) == 1


def test_refresh_with_body_token_rotates(client, employee_user):
    tokens = login(client, "employee@example.com")
    client.cookies.clear()

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["refresh_token"] != tokens["refresh_token"]

    replay = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_with_cookie(client, employee_user):
    login(client, "employee@example.com")

    first = client.post("/api/v1/auth/refresh")
    assert first.status_code == status.HTTP_200_OK

    # The cookie jar now holds the rotated token
    second = client.post("/api/v1/auth/refresh")
    assert second.status_code == status.HTTP_200_OK
    assert second.json()["refresh_token"] != first.json()["refresh_token"]


def test_refresh_without_token(client, seeded):
    response = client.post("/api/v1/auth/refresh")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["kind"] == "unauthorized"


def test_logout_requires_access_token(client, seeded):
    assert client.post("/api/v1/auth/logout").status_code == status.HTTP_401_UNAUTHORIZED


def test_logout_everywhere(client, employee_user):
    first = login(client, "employee@example.com")
    second = login(client, "employee@example.com")
    client.cookies.clear()

    response = client.post(
        "/api/v1/auth/logout",
        headers={"Authorization": f"Bearer {second['access_token']}"},
    )
    assert response.status_code == status.HTTP_200_OK

    for tokens in (first, second):
        refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert refreshed.status_code == status.HTTP_401_UNAUTHORIZED


def test_logout_single_session(client, employee_user):
    laptop = login(client, "employee@example.com")
    phone = login(client, "employee@example.com")
    client.cookies.clear()

    client.post(
        "/api/v1/auth/logout",
        json={"refresh_token": laptop["refresh_token"]},
        headers={"Authorization": f"Bearer {laptop['access_token']}"},
    )

    assert client.post(
        "/api/v1/auth/refresh", json={"refresh_token": laptop["refresh_token"]}
    ).status_code == status.HTTP_401_UNAUTHORIZED
    assert client.post(
        "/api/v1/auth/refresh", json={"refresh_token": phone["refresh_token"]}
    ).status_code == status.HTTP_200_OK


def test_me(client, employee_user):
    response = client.get("/api/v1/auth/me", headers=auth_headers(client, "employee@example.com"))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == "employee@example.com"


def test_change_password_wrong_current(client, employee_user):
    tokens = login(client, "employee@example.com")
    client.cookies.clear()

    response = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "Wr0ng!Pass", "new_password": "N3w!Password"},
        headers={"Authorization": f"Bearer {tokens['access_token']}"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["kind"] == "invalid_credential"
    assert client.post(
        "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    ).status_code == status.HTTP_200_OK


def test_change_password_ends_sessions(client, employee_user):
    tokens = login(client, "employee@example.com")
    client.cookies.clear()

    response = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "N3w!Password"},
        headers={"Authorization": f"Bearer {tokens['access_token']}"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert client.post(
        "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    ).status_code == status.HTTP_401_UNAUTHORIZED
    login(client, "employee@example.com", "N3w!Password")
