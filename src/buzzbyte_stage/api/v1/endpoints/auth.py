# src/buzzbyte_stage/api/v1/endpoints/auth.py
"""Authentication and profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, File, UploadFile, status

from buzzbyte_stage.api.v1.dependencies import CurrentUserDep, SessionDep, StorageDep
from buzzbyte_stage.core.security import create_access_token
from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.schemas.common import ErrorResponse, MessageResponse
from buzzbyte_stage.schemas.user import (
    AuthResponse,
    ProfileUpdate,
    UserEnvelope,
    UserLogin,
    UserRegister,
    UserResponse,
)
from buzzbyte_stage.services import user_service

router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
    responses={422: {"model": ErrorResponse}},
)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: SessionDep) -> AuthResponse:
    """Create an account and return an access token for it."""
    user = user_service.register_user(db, payload)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
    )


@router.post("/login", response_model=AuthResponse)
def login(payload: UserLogin, db: SessionDep) -> AuthResponse:
    """Exchange email and password for an access token."""
    user = user_service.authenticate(db, payload.email, payload.password)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
    )


@router.get("/me", response_model=UserEnvelope)
def me(current_user: CurrentUserDep) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.model_validate(current_user))


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> UserEnvelope:
    user = user_service.update_profile(db, current_user, payload)
    return UserEnvelope(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/avatar", response_model=UserEnvelope)
def upload_avatar(
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: StorageDep,
    image: UploadFile = File(...),
) -> UserEnvelope:
    """Replace the caller's profile image."""
    data = image.file.read(settings.max_upload_bytes + 1)
    user = user_service.update_avatar(
        db,
        current_user,
        data=data,
        content_type=image.content_type or "",
        storage=storage,
    )
    return UserEnvelope(
        message="Profile image updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(current_user: CurrentUserDep) -> MessageResponse:
    """Acknowledge logout; tokens are stateless and expire on their own."""
    return MessageResponse(message="Logged out successfully")
