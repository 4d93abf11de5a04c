"""Post-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from buzzbyte_stage.services.lifecycle import UrgencyTier

from .comment import CommentResponse
from .tag import TagResponse
from .user import UserPublic


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=10)
    excerpt: str | None = Field(None, max_length=500)
    tag_ids: list[int] = Field(..., min_length=1, description="At least one existing tag id")


class PostUpdate(BaseModel):
    """Partial post update; ``tag_ids`` replaces the tag set when present."""

    title: str | None = Field(None, min_length=1, max_length=255)
    body: str | None = Field(None, min_length=10)
    excerpt: str | None = Field(None, max_length=500)
    tag_ids: list[int] | None = Field(None, min_length=1)


class PostView(BaseModel):
    """Post read model including computed lifecycle and engagement fields."""

    id: int
    user_id: int
    title: str
    body: str
    excerpt: str | None
    cover_image_key: str | None
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    is_expired: bool
    is_expiring_soon: bool
    seconds_remaining: int
    urgency: UrgencyTier
    likes_count: int
    comments_count: int
    is_liked: bool
    tags: list[TagResponse]
    author: UserPublic


class PostDetailView(PostView):
    comments: list[CommentResponse] = Field(default_factory=list)


class PostListResponse(BaseModel):
    data: list[PostView]
    message: str = "Posts retrieved successfully"


class PostEnvelope(BaseModel):
    post: PostView
    message: str | None = None


class PostDetailEnvelope(BaseModel):
    post: PostDetailView
