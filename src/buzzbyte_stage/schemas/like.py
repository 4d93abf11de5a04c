"""Like toggle schemas."""
from __future__ import annotations

from pydantic import BaseModel


class LikeToggleResponse(BaseModel):
    """State of the caller's like after a toggle."""

    liked: bool
    likes_count: int
