"""Post authoring and read-model assembly.

Every read and write resolves the post through the active filter, so a
post past its lifetime behaves as if it were already gone even before the
sweeper has purged it.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from buzzbyte_stage.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.db.time import utcnow
from buzzbyte_stage.models import Post, Tag, User
from buzzbyte_stage.repositories.comment_repo import CommentRepository
from buzzbyte_stage.repositories.post_repo import PostRepository
from buzzbyte_stage.repositories.tag_repo import TagRepository
from buzzbyte_stage.schemas.comment import CommentResponse
from buzzbyte_stage.schemas.post import PostCreate, PostDetailView, PostUpdate, PostView
from buzzbyte_stage.schemas.tag import TagResponse
from buzzbyte_stage.schemas.user import UserPublic
from buzzbyte_stage.services.lifecycle import compute_lifecycle
from buzzbyte_stage.services.storage import AssetStorage, delete_asset_quietly

__all__ = [
    "COVER_CONTENT_TYPES",
    "build_post_views",
    "create_post",
    "delete_post",
    "get_post_detail",
    "list_posts",
    "set_cover_image",
    "update_post",
]

logger = logging.getLogger(__name__)

MIN_BODY_LENGTH = 10
COVER_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
POST_NOT_FOUND = "Post not found"


def build_post_views(
    db: Session,
    posts: Sequence[Post],
    *,
    viewer: User | None,
    now: datetime,
) -> list[PostView]:
    """Combine posts with lifecycle state and engagement aggregates."""
    repo = PostRepository(db)
    ids = [post.id for post in posts]
    likes = repo.like_counts(ids)
    comments = repo.comment_counts(ids)
    liked = repo.liked_post_ids(viewer.id, ids) if viewer is not None else set()

    views = []
    for post in posts:
        lifecycle = compute_lifecycle(
            post.created_at,
            now=now,
            ttl=settings.post_ttl,
            warning_window=settings.expiring_soon_window,
        )
        views.append(
            PostView(
                id=post.id,
                user_id=post.user_id,
                title=post.title,
                body=post.body,
                excerpt=post.excerpt,
                cover_image_key=post.cover_image_key,
                created_at=post.created_at,
                updated_at=post.updated_at,
                expires_at=lifecycle.expires_at,
                is_expired=lifecycle.is_expired,
                is_expiring_soon=lifecycle.is_expiring_soon,
                seconds_remaining=lifecycle.seconds_remaining,
                urgency=lifecycle.urgency,
                likes_count=likes.get(post.id, 0),
                comments_count=comments.get(post.id, 0),
                is_liked=post.id in liked,
                tags=[TagResponse.model_validate(tag) for tag in post.tags],
                author=UserPublic.model_validate(post.author),
            )
        )
    return views


def _load_active(db: Session, post_id: int, now: datetime) -> Post:
    post = PostRepository(db).get_active(post_id, now)
    if post is None:
        raise NotFoundError(POST_NOT_FOUND)
    return post


def _load_owned(db: Session, post_id: int, user: User, now: datetime) -> Post:
    post = _load_active(db, post_id, now)
    if post.user_id != user.id:
        raise ForbiddenError("Only the author can modify this post")
    return post


def _resolve_tags(db: Session, tag_ids: Sequence[int]) -> list[Tag]:
    if not tag_ids:
        raise ValidationFailedError("At least one tag is required.", field="tag_ids")
    tags = TagRepository(db).get_many(tag_ids)
    if len(tags) != len(set(tag_ids)):
        raise ValidationFailedError("Selected tag is invalid.", field="tag_ids")
    return tags


def _check_text(title: str | None, body: str | None) -> None:
    if title is not None and not title.strip():
        raise ValidationFailedError("A post title is required.", field="title")
    if body is not None and len(body.strip()) < MIN_BODY_LENGTH:
        raise ValidationFailedError(
            f"Content must be at least {MIN_BODY_LENGTH} characters.",
            field="body",
        )


def list_posts(
    db: Session,
    *,
    viewer: User | None,
    tag: str | None = None,
    search: str | None = None,
    limit: int | None = None,
    offset: int = 0,
    now: datetime | None = None,
) -> list[PostView]:
    """Return active posts newest first."""
    now = now or utcnow()
    posts = PostRepository(db).list_active(
        now,
        tag_slug=tag,
        search=search,
        limit=limit,
        offset=offset,
    )
    return build_post_views(db, posts, viewer=viewer, now=now)


def get_post_view(
    db: Session,
    post_id: int,
    *,
    viewer: User | None,
    now: datetime | None = None,
) -> PostView:
    now = now or utcnow()
    post = _load_active(db, post_id, now)
    return build_post_views(db, [post], viewer=viewer, now=now)[0]


def get_post_detail(
    db: Session,
    post_id: int,
    *,
    viewer: User | None,
    now: datetime | None = None,
) -> PostDetailView:
    """Return one active post together with its live comments."""
    now = now or utcnow()
    view = get_post_view(db, post_id, viewer=viewer, now=now)
    comments = CommentRepository(db).list_for_post(post_id)
    return PostDetailView(
        **view.model_dump(),
        comments=[CommentResponse.model_validate(comment) for comment in comments],
    )


def create_post(
    db: Session,
    *,
    author: User,
    payload: PostCreate,
    now: datetime | None = None,
) -> PostView:
    """Create a post and its tag associations in one transaction."""
    now = now or utcnow()
    _check_text(payload.title, payload.body)
    tags = _resolve_tags(db, payload.tag_ids)

    post = Post(
        user_id=author.id,
        title=payload.title.strip(),
        body=payload.body,
        excerpt=payload.excerpt,
        created_at=now,
        updated_at=now,
    )
    post.tags = tags
    db.add(post)
    db.commit()
    logger.info("User %d created post %d", author.id, post.id)
    return get_post_view(db, post.id, viewer=author, now=now)


def update_post(
    db: Session,
    post_id: int,
    *,
    user: User,
    payload: PostUpdate,
    now: datetime | None = None,
) -> PostView:
    """Apply an owner's partial update; ``tag_ids`` replaces the tag set."""
    now = now or utcnow()
    post = _load_owned(db, post_id, user, now)
    changes = payload.model_dump(exclude_unset=True)
    _check_text(changes.get("title"), changes.get("body"))

    if changes.get("title") is not None:
        post.title = changes["title"].strip()
    if changes.get("body") is not None:
        post.body = changes["body"]
    if "excerpt" in changes:
        post.excerpt = changes["excerpt"]
    if "tag_ids" in changes:
        post.tags = _resolve_tags(db, changes["tag_ids"] or [])

    db.commit()
    return get_post_view(db, post_id, viewer=user, now=now)


def set_cover_image(
    db: Session,
    post_id: int,
    *,
    user: User,
    data: bytes,
    content_type: str,
    storage: AssetStorage,
    now: datetime | None = None,
) -> PostView:
    """Store a new cover for an owned post and delete the replaced one."""
    now = now or utcnow()
    post = _load_owned(db, post_id, user, now)
    suffix = COVER_CONTENT_TYPES.get(content_type)
    if suffix is None:
        raise ValidationFailedError(
            "The cover image must be a file of type: jpeg, png, gif, webp.",
            field="cover_image",
        )
    if not data:
        raise ValidationFailedError("The cover image is empty.", field="cover_image")
    if len(data) > settings.max_upload_bytes:
        raise ValidationFailedError("The cover image is too large.", field="cover_image")

    previous = post.cover_image_key
    new_key = storage.save(data, prefix="post-covers", suffix=suffix, content_type=content_type)
    post.cover_image_key = new_key
    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_asset_quietly(storage, new_key)
        raise
    delete_asset_quietly(storage, previous)
    return get_post_view(db, post_id, viewer=user, now=now)


def delete_post(
    db: Session,
    post_id: int,
    *,
    user: User,
    storage: AssetStorage,
    now: datetime | None = None,
) -> None:
    """Soft-delete an owned post and remove its cover asset."""
    now = now or utcnow()
    post = _load_owned(db, post_id, user, now)
    cover = post.cover_image_key
    post.deleted_at = now
    db.commit()
    delete_asset_quietly(storage, cover)
    logger.info("User %d deleted post %d", user.id, post_id)
