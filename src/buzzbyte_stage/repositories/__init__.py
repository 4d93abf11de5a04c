"""Data access helpers grouped by aggregate."""

from .comment_repo import CommentRepository
from .post_repo import PostRepository
from .tag_repo import TagRepository

__all__ = ["CommentRepository", "PostRepository", "TagRepository"]
