"""SQLAlchemy models for the BuzzByte application."""

from .comment import Comment
from .like import PostLike
from .post import Post, post_tag
from .sweep_lease import SweepLease
from .tag import Tag
from .user import User

__all__ = [
    "Comment",
    "Post", "post_tag",
    "PostLike",
    "SweepLease",
    "Tag",
    "User",
]
