# tests/v1/test_auth.py
"""Registration, login and profile endpoint tests."""

from fastapi import status
from fastapi.testclient import TestClient

from buzzbyte_stage.core.security import create_access_token, decode_access_token
from buzzbyte_stage.models import User
from tests.conftest import TEST_PASSWORD


def _register(client: TestClient, **overrides):
    payload = {"name": "Ada", "email": "Ada@Example.com", "password": "correct-horse"}
    payload.update(overrides)
    return client.post("/api/v1/auth/register", json=payload)


def test_register_returns_token_and_user(client: TestClient) -> None:
    response = _register(client)

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["name"] == "Ada"
    assert "password_hash" not in body["user"]
    assert decode_access_token(body["token"]) == body["user"]["id"]


def test_register_rejects_duplicate_email_case_insensitively(client: TestClient) -> None:
    assert _register(client).status_code == status.HTTP_201_CREATED

    response = _register(client, email="ADA@example.com")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["field"] == "email"


def test_register_rejects_short_password(client: TestClient) -> None:
    response = _register(client, password="short")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["field"] == "password"


def test_login_with_valid_credentials(client: TestClient, test_user: User) -> None:
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "TEST@example.com", "password": TEST_PASSWORD},
    )

    assert response.status_code == status.HTTP_200_OK
    assert decode_access_token(response.json()["token"]) == test_user.id


def test_login_with_wrong_password(client: TestClient, test_user: User) -> None:
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "test@example.com", "password": "not-the-password"},
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json() == {
        "detail": "The provided credentials are incorrect.",
        "field": "email",
    }


def test_me_requires_token(client: TestClient) -> None:
    assert client.get("/api/v1/auth/me").status_code == status.HTTP_401_UNAUTHORIZED


def test_me_rejects_garbage_token(client: TestClient) -> None:
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_me_rejects_deleted_user(client: TestClient, db_session, test_user: User) -> None:
    headers = {"Authorization": f"Bearer {create_access_token(test_user.id)}"}
    test_user.deleted_at = test_user.created_at
    db_session.flush()

    assert client.get("/api/v1/auth/me", headers=headers).status_code == status.HTTP_401_UNAUTHORIZED


def test_me_returns_current_user(
    client: TestClient, test_user: User, auth_token: dict[str, str]
) -> None:
    response = client.get("/api/v1/auth/me", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["id"] == test_user.id


def test_profile_update_changes_name(client: TestClient, auth_token: dict[str, str]) -> None:
    response = client.put("/api/v1/auth/profile", json={"name": "Renamed"}, headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["name"] == "Renamed"
    assert response.json()["user"]["email"] == "test@example.com"


def test_profile_update_rejects_taken_email(
    client: TestClient, auth_token: dict[str, str], other_user: User
) -> None:
    response = client.put(
        "/api/v1/auth/profile",
        json={"email": other_user.email},
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["field"] == "email"


def test_avatar_upload_replaces_previous_image(
    client: TestClient, auth_token: dict[str, str], storage
) -> None:
    first = client.post(
        "/api/v1/auth/avatar",
        files={"image": ("me.png", b"first", "image/png")},
        headers=auth_token,
    )
    second = client.post(
        "/api/v1/auth/avatar",
        files={"image": ("me.jpg", b"second", "image/jpeg")},
        headers=auth_token,
    )

    assert first.status_code == second.status_code == status.HTTP_200_OK
    old_key = first.json()["user"]["avatar_key"]
    new_key = second.json()["user"]["avatar_key"]
    assert old_key != new_key
    assert storage.deleted == [old_key]
    assert storage.objects[new_key] == b"second"


def test_avatar_upload_rejects_non_images(client: TestClient, auth_token: dict[str, str]) -> None:
    response = client.post(
        "/api/v1/auth/avatar",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["field"] == "image"


def test_logout_is_acknowledged(client: TestClient, auth_token: dict[str, str]) -> None:
    response = client.post("/api/v1/auth/logout", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Logged out successfully"}
