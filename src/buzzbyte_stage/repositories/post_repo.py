"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import ColumnElement, and_, func, or_, select
from sqlalchemy.orm import Session, selectinload

from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.models import Comment, Post, PostLike, Tag
from buzzbyte_stage.services.lifecycle import expiry_cutoff

__all__ = ["PostRepository", "active_post_clause", "contains_pattern"]

LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """Return an ILIKE substring pattern matching ``text`` literally."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def active_post_clause(now: datetime) -> ColumnElement[bool]:
    """Return the WHERE clause matching posts that are neither deleted nor expired."""
    return and_(
        Post.deleted_at.is_(None),
        Post.created_at > expiry_cutoff(now, settings.post_ttl),
    )


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_active(self, post_id: int, now: datetime) -> Post | None:
        """Return an active post with its author and tags loaded."""
        stmt = (
            select(Post)
            .options(selectinload(Post.author), selectinload(Post.tags))
            .where(Post.id == post_id, active_post_clause(now))
        )
        return self.session.scalars(stmt).first()

    def is_active(self, post_id: int, now: datetime) -> bool:
        """Return True when the post exists and is neither deleted nor expired."""
        stmt = select(Post.id).where(Post.id == post_id, active_post_clause(now))
        return self.session.scalar(stmt) is not None

    def list_active(
        self,
        now: datetime,
        *,
        tag_slug: str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Post]:
        """Return active posts newest first, optionally filtered by tag slug or text."""
        stmt = (
            select(Post)
            .options(selectinload(Post.author), selectinload(Post.tags))
            .where(active_post_clause(now))
        )
        if tag_slug:
            stmt = stmt.where(Post.tags.any(Tag.slug == tag_slug))
        if search:
            pattern = contains_pattern(search)
            stmt = stmt.where(
                or_(
                    Post.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Post.body.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))

    def like_counts(self, post_ids: Sequence[int]) -> dict[int, int]:
        """Return like totals keyed by post id."""
        if not post_ids:
            return {}
        rows = self.session.execute(
            select(PostLike.post_id, func.count())
            .where(PostLike.post_id.in_(post_ids))
            .group_by(PostLike.post_id)
        )
        return {post_id: count for post_id, count in rows}

    def comment_counts(self, post_ids: Sequence[int]) -> dict[int, int]:
        """Return live comment totals keyed by post id."""
        if not post_ids:
            return {}
        rows = self.session.execute(
            select(Comment.post_id, func.count())
            .where(Comment.post_id.in_(post_ids), Comment.deleted_at.is_(None))
            .group_by(Comment.post_id)
        )
        return {post_id: count for post_id, count in rows}

    def liked_post_ids(self, user_id: int, post_ids: Iterable[int]) -> set[int]:
        """Return the subset of ``post_ids`` liked by ``user_id``."""
        ids = list(post_ids)
        if not ids:
            return set()
        rows = self.session.scalars(
            select(PostLike.post_id).where(
                PostLike.user_id == user_id,
                PostLike.post_id.in_(ids),
            )
        )
        return set(rows)

    def count_likes(self, post_id: int) -> int:
        """Return the current like total for one post."""
        return self.session.scalar(
            select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
        ) or 0
