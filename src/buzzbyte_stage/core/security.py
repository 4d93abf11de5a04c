"""Password hashing and access token helpers."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from nacl import pwhash
from nacl.exceptions import InvalidkeyError

from buzzbyte_stage.core.settings import settings


def hash_password(password: str) -> str:
    """Return an Argon2id hash string for ``password``."""
    hashed = pwhash.argon2id.str(
        password.encode("utf-8"),
        opslimit=settings.password_opslimit,
        memlimit=settings.password_memlimit,
    )
    return hashed.decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Return True when ``password`` matches the stored Argon2id hash."""
    try:
        return pwhash.verify(password_hash.encode("ascii"), password.encode("utf-8"))
    except InvalidkeyError:
        return False


def create_access_token(subject: int | str, extra_claims: dict[str, str] | None = None) -> str:
    """Create JWT access token for user authentication."""
    to_encode: dict[str, object] = {"sub": str(subject)}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> int | None:
    """Return the user id carried by ``token`` or None when it is invalid."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None
