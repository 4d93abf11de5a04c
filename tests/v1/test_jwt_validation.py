# tests/v1/test_jwt_validation.py
"""Tests for JWT token validation edge cases."""

from datetime import UTC, datetime, timedelta

from fastapi import status
from jose import jwt

from buzzbyte_stage.core.security import create_access_token, decode_access_token
from buzzbyte_stage.core.settings import settings


def _encode(claims: dict, *, secret: str | None = None, algorithm: str | None = None) -> str:
    return jwt.encode(
        claims,
        secret or settings.secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )


class TestDecodeAccessToken:
    """Unit checks for the token decoder."""

    def test_round_trips_user_id(self):
        assert decode_access_token(create_access_token(42)) == 42

    def test_rejects_non_numeric_subject(self):
        token = _encode({"sub": "not-a-number"})
        assert decode_access_token(token) is None

    def test_rejects_missing_subject(self):
        token = _encode({"exp": datetime.now(UTC) + timedelta(minutes=5)})
        assert decode_access_token(token) is None


class TestJWTValidationEdgeCases:
    """Requests carrying bad tokens are turned away with 401."""

    def test_jwt_without_bearer_prefix(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "InvalidToken123"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_with_malformed_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.valid.jwt"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_jwt_with_wrong_secret(self, client, test_user):
        token = _encode({"sub": str(test_user.id)}, secret="wrong_secret_key")

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_with_wrong_algorithm(self, client, test_user):
        token = _encode({"sub": str(test_user.id)}, algorithm="HS512")

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_with_expired_token(self, client, test_user):
        token = _encode(
            {"sub": str(test_user.id), "exp": datetime.now(UTC) - timedelta(minutes=1)}
        )

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_for_unknown_user(self, client):
        token = create_access_token(987654)

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"detail": "User not found"}
