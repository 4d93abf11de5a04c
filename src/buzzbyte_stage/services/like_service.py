"""Idempotent like toggle."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from buzzbyte_stage.core.errors import NotFoundError
from buzzbyte_stage.db.errors import is_unique_violation
from buzzbyte_stage.db.time import utcnow
from buzzbyte_stage.models import PostLike, User
from buzzbyte_stage.repositories.post_repo import PostRepository
from buzzbyte_stage.schemas.like import LikeToggleResponse

__all__ = ["toggle_like"]

logger = logging.getLogger(__name__)


def toggle_like(
    db: Session,
    *,
    user: User,
    post_id: int,
    now: datetime | None = None,
) -> LikeToggleResponse:
    """Flip the caller's like on a post and return the new state.

    Concurrent toggles by the same user converge: an insert that loses the
    race on the primary key reports ``liked=True`` and a delete that finds
    no row reports ``liked=False``.
    """
    repo = PostRepository(db)
    if not repo.is_active(post_id, now or utcnow()):
        raise NotFoundError("Post not found")

    existing = db.scalar(
        select(PostLike.post_id).where(
            PostLike.user_id == user.id,
            PostLike.post_id == post_id,
        )
    )
    if existing is not None:
        db.execute(
            delete(PostLike).where(
                PostLike.user_id == user.id,
                PostLike.post_id == post_id,
            )
        )
        liked = False
    else:
        try:
            with db.begin_nested():
                db.add(PostLike(user_id=user.id, post_id=post_id))
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.debug("Concurrent like on post %d by user %d", post_id, user.id)
        liked = True

    db.commit()
    return LikeToggleResponse(liked=liked, likes_count=repo.count_likes(post_id))
