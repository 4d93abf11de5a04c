"""Data access helpers for working with tags."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from buzzbyte_stage.models import Post, Tag, post_tag
from buzzbyte_stage.repositories.post_repo import (
    LIKE_ESCAPE,
    active_post_clause,
    contains_pattern,
)

__all__ = ["TagRepository"]


class TagRepository:
    """Thin wrapper around database access for tag entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, tag_id: int) -> Tag | None:
        return self.session.get(Tag, tag_id)

    def get_by_name_key(self, name_key: str) -> Tag | None:
        return self.session.scalars(select(Tag).where(Tag.name_key == name_key)).first()

    def get_by_slug(self, slug: str) -> Tag | None:
        return self.session.scalars(select(Tag).where(Tag.slug == slug)).first()

    def get_many(self, tag_ids: Sequence[int]) -> list[Tag]:
        """Return the tags among ``tag_ids`` that exist."""
        if not tag_ids:
            return []
        return list(self.session.scalars(select(Tag).where(Tag.id.in_(set(tag_ids)))))

    def list_with_counts(self, search: str | None = None) -> list[tuple[Tag, int]]:
        """Return every tag ordered by name together with its post association count."""
        count = (
            select(func.count())
            .select_from(post_tag)
            .where(post_tag.c.tag_id == Tag.id)
            .correlate(Tag)
            .scalar_subquery()
        )
        stmt = select(Tag, count)
        if search:
            stmt = stmt.where(Tag.name.ilike(contains_pattern(search), escape=LIKE_ESCAPE))
        stmt = stmt.order_by(Tag.name)
        return [(tag, posts_count) for tag, posts_count in self.session.execute(stmt)]

    def posts_count(self, tag_id: int) -> int:
        return self.session.scalar(
            select(func.count()).select_from(post_tag).where(post_tag.c.tag_id == tag_id)
        ) or 0

    def recent_active_posts(self, tag_id: int, now: datetime, limit: int = 10) -> list[Post]:
        """Return the newest active posts carrying the tag, authors loaded."""
        stmt = (
            select(Post)
            .join(post_tag, post_tag.c.post_id == Post.id)
            .options(selectinload(Post.author))
            .where(post_tag.c.tag_id == tag_id, active_post_clause(now))
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt))
