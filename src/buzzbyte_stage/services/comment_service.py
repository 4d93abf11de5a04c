"""Comment operations scoped to a single post."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from buzzbyte_stage.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from buzzbyte_stage.db.time import utcnow
from buzzbyte_stage.models import Comment, User
from buzzbyte_stage.repositories.comment_repo import CommentRepository
from buzzbyte_stage.repositories.post_repo import PostRepository

__all__ = [
    "create_comment",
    "delete_comment",
    "list_comments",
    "update_comment",
]

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


def _clean_body(body: str) -> str:
    text = body.strip()
    if not text:
        raise ValidationFailedError("The body field is required.", field="body")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationFailedError(
            f"The body may not be greater than {MAX_COMMENT_LENGTH} characters.",
            field="body",
        )
    return text


def _require_active_post(db: Session, post_id: int, now: datetime | None) -> None:
    if not PostRepository(db).is_active(post_id, now or utcnow()):
        raise NotFoundError("Post not found")


def _load_own_comment(db: Session, comment_id: int, user: User) -> Comment:
    comment = CommentRepository(db).get_live(comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    if comment.user_id != user.id:
        raise ForbiddenError("Only the author can modify this comment")
    return comment


def list_comments(db: Session, post_id: int, *, now: datetime | None = None) -> list[Comment]:
    """Return a post's live comments newest first, authors loaded."""
    _require_active_post(db, post_id, now)
    return CommentRepository(db).list_for_post(post_id)


def create_comment(
    db: Session,
    *,
    post_id: int,
    author: User,
    body: str,
    now: datetime | None = None,
) -> Comment:
    """Add a comment to an active post."""
    text = _clean_body(body)
    _require_active_post(db, post_id, now)

    comment = Comment(post_id=post_id, user_id=author.id, body=text)
    db.add(comment)
    db.commit()
    logger.debug("User %d commented on post %d", author.id, post_id)
    return CommentRepository(db).get_live(comment.id)


def update_comment(db: Session, comment_id: int, *, user: User, body: str) -> Comment:
    """Edit a comment; only its author may do so."""
    comment = _load_own_comment(db, comment_id, user)
    comment.body = _clean_body(body)
    db.commit()
    return CommentRepository(db).get_live(comment_id)


def delete_comment(
    db: Session,
    comment_id: int,
    *,
    user: User,
    now: datetime | None = None,
) -> None:
    """Soft-delete a comment; only its author may do so."""
    comment = _load_own_comment(db, comment_id, user)
    comment.deleted_at = now or utcnow()
    db.commit()
