"""Account registration, login and profile helpers."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from buzzbyte_stage.core import security
from buzzbyte_stage.core.errors import ValidationFailedError
from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.db.errors import is_unique_violation
from buzzbyte_stage.models.user import User
from buzzbyte_stage.schemas.user import ProfileUpdate, UserRegister
from buzzbyte_stage.services.storage import AssetStorage, delete_asset_quietly

__all__ = [
    "authenticate",
    "get_active_user",
    "get_user_by_email",
    "register_user",
    "update_avatar",
    "update_profile",
]

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS = "The provided credentials are incorrect."
EMAIL_TAKEN = "The email has already been taken."
AVATAR_CONTENT_TYPES = {"image/jpeg": ".jpg", "image/png": ".png", "image/gif": ".gif"}


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Return the user registered under ``email`` (case-insensitive)."""
    return db.scalars(select(User).where(User.email == _normalize_email(email))).first()


def get_active_user(db: Session, user_id: int) -> User | None:
    """Return a user that has not been soft-deleted."""
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def register_user(db: Session, payload: UserRegister) -> User:
    """Create an account; duplicate emails raise ``ValidationFailedError``."""
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"The password must be at least {MIN_PASSWORD_LENGTH} characters.",
            field="password",
        )
    email = _normalize_email(payload.email)
    if get_user_by_email(db, email) is not None:
        raise ValidationFailedError(EMAIL_TAKEN, field="email")

    user = User(
        email=email,
        name=payload.name.strip(),
        password_hash=security.hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise ValidationFailedError(EMAIL_TAKEN, field="email") from exc
        raise
    db.refresh(user)
    logger.info("Registered user %d", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Return the user matching the credentials or raise ``ValidationFailedError``."""
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        raise ValidationFailedError(INVALID_CREDENTIALS, field="email")
    if not security.verify_password(password, user.password_hash):
        raise ValidationFailedError(INVALID_CREDENTIALS, field="email")
    return user


def update_profile(db: Session, user: User, update: ProfileUpdate) -> User:
    """Apply partial profile updates to ``user``."""
    update_dict = update.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in update_dict:
        email = _normalize_email(update_dict["email"])
        existing = get_user_by_email(db, email)
        if existing is not None and existing.id != user.id:
            raise ValidationFailedError(EMAIL_TAKEN, field="email")
        user.email = email
    if "name" in update_dict:
        user.name = update_dict["name"].strip()

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise ValidationFailedError(EMAIL_TAKEN, field="email") from exc
        raise
    db.refresh(user)
    return user


def update_avatar(
    db: Session,
    user: User,
    *,
    data: bytes,
    content_type: str,
    storage: AssetStorage,
) -> User:
    """Store a new avatar image and drop the previous one."""
    suffix = AVATAR_CONTENT_TYPES.get(content_type)
    if suffix is None:
        raise ValidationFailedError(
            "The image must be a file of type: jpeg, png, gif.",
            field="image",
        )
    if not data or len(data) > settings.max_upload_bytes:
        raise ValidationFailedError(
            "The image must be a non-empty file within the size limit.",
            field="image",
        )

    previous = user.avatar_key
    new_key = storage.save(
        data,
        prefix="profile-images",
        suffix=suffix,
        content_type=content_type,
    )
    user.avatar_key = new_key
    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_asset_quietly(storage, new_key)
        raise
    db.refresh(user)
    delete_asset_quietly(storage, previous)
    return user
