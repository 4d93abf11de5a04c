"""Data access helpers for working with comments."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from buzzbyte_stage.models import Comment

__all__ = ["CommentRepository"]


class CommentRepository:
    """Thin wrapper around database access for comment entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_live(self, comment_id: int) -> Comment | None:
        """Return a comment that has not been soft-deleted, author loaded."""
        stmt = (
            select(Comment)
            .options(joinedload(Comment.author))
            .where(Comment.id == comment_id, Comment.deleted_at.is_(None))
        )
        return self.session.scalars(stmt).first()

    def list_for_post(self, post_id: int) -> list[Comment]:
        """Return live comments on a post, newest first."""
        stmt = (
            select(Comment)
            .options(joinedload(Comment.author))
            .where(Comment.post_id == post_id, Comment.deleted_at.is_(None))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return list(self.session.scalars(stmt))
