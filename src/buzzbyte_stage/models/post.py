"""SQLAlchemy models for posts and their tag association."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buzzbyte_stage.db.session import Base
from buzzbyte_stage.db.time import utcnow

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .tag import Tag
    from .user import User

post_tag = Table(
    "post_tag",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Index("ix_post_tag_tag_id", "tag_id"),
)


class Post(Base):
    """Ephemeral blog post.

    ``created_at`` is immutable and authoritative for the lifecycle: a post
    expires once ``post_ttl`` has elapsed since creation. Expiry is computed,
    never stored; the sweeper later sets ``deleted_at``.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_deleted_at_created_at", "deleted_at", "created_at"),
        Index("ix_posts_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cover_image_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships raise on lazy access; repositories load them explicitly.
    author: Mapped[User] = relationship("User", lazy="raise")
    tags: Mapped[list[Tag]] = relationship(
        "Tag",
        secondary=post_tag,
        lazy="raise",
        order_by="Tag.name",
    )
