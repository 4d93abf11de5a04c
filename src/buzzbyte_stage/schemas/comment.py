"""Comment schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserPublic


class CommentWrite(BaseModel):
    """Schema for creating or editing a comment."""

    body: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    body: str
    created_at: datetime
    updated_at: datetime
    author: UserPublic


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]


class CommentEnvelope(BaseModel):
    comment: CommentResponse
    message: str | None = None
