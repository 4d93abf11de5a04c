"""SQLAlchemy model for post tags."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from buzzbyte_stage.db.session import Base
from buzzbyte_stage.db.time import utcnow


class Tag(Base):
    """Globally shared label attached to posts.

    Tags have no owner; any authenticated user may create, rename or delete
    them. Deleting a tag removes its association rows only.
    """

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    # casefold(NFKC(name)) with collapsed whitespace; case folding can triple the length.
    name_key: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(60), unique=True, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
