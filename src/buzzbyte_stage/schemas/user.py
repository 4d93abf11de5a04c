"""User and authentication schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRegister(BaseModel):
    """Schema for registering a new account."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class UserLogin(BaseModel):
    """Schema for password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    """Partial profile update; omitted fields are left untouched."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = Field(None, max_length=255)


class UserPublic(BaseModel):
    """Public identity shown next to posts and comments."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    avatar_key: str | None = None


class UserResponse(UserPublic):
    """Full account view returned to the account owner."""

    email: str
    created_at: datetime


class AuthResponse(BaseModel):
    """Token issued after register or login."""

    message: str
    user: UserResponse
    token: str
    token_type: str = "bearer"


class UserEnvelope(BaseModel):
    user: UserResponse
    message: str | None = None
