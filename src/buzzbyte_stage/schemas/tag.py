"""Tag schemas."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .user import UserPublic


class TagWrite(BaseModel):
    """Schema for creating or renaming a tag."""

    name: str = Field(..., min_length=1, max_length=50)


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str


class TagWithCount(TagResponse):
    posts_count: int = 0


class TagPostSummary(BaseModel):
    """Compact post entry listed on a tag page."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    excerpt: str | None = None
    author: UserPublic


class TagDetail(TagWithCount):
    posts: list[TagPostSummary] = Field(default_factory=list)


class TagListResponse(BaseModel):
    tags: list[TagWithCount]


class TagEnvelope(BaseModel):
    tag: TagResponse
    message: str | None = None


class TagDetailEnvelope(BaseModel):
    tag: TagDetail
