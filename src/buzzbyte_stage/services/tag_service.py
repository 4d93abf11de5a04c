"""Tag normalization and CRUD.

Tag names are compared after Unicode NFKC normalization, whitespace
collapsing and case folding, so ``"Python"`` and ``"ＰＹＴＨＯＮ"`` are the same
tag. Slugs are derived from the name and never auto-suffixed: two distinct
names that reduce to one slug are rejected with a conflict.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from buzzbyte_stage.core.errors import ConflictError, NotFoundError, ValidationFailedError
from buzzbyte_stage.db.errors import is_unique_violation
from buzzbyte_stage.db.time import utcnow
from buzzbyte_stage.models import Tag, post_tag
from buzzbyte_stage.repositories.tag_repo import TagRepository
from buzzbyte_stage.schemas.tag import TagDetail, TagPostSummary, TagWithCount

__all__ = [
    "MAX_TAG_NAME_LENGTH",
    "create_tag",
    "delete_tag",
    "get_tag",
    "get_tag_detail",
    "list_tags",
    "normalize_tag_name",
    "rename_tag",
    "slugify",
    "tag_name_key",
]

logger = logging.getLogger(__name__)

MAX_TAG_NAME_LENGTH = 50
RECENT_POSTS_LIMIT = 10
NAME_TAKEN = "The name has already been taken."

_WHITESPACE = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def normalize_tag_name(name: str) -> str:
    """Return the display form of ``name``: NFKC with single inner spaces."""
    return _WHITESPACE.sub(" ", unicodedata.normalize("NFKC", name)).strip()


def tag_name_key(name: str) -> str:
    """Return the case-insensitive uniqueness key for ``name``."""
    return normalize_tag_name(name).casefold()


def slugify(name: str) -> str:
    """Reduce ``name`` to lowercase ASCII words joined by hyphens."""
    ascii_name = (
        unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    )
    return _NON_SLUG.sub("-", ascii_name.lower()).strip("-")


def _validated_fields(name: str) -> tuple[str, str, str]:
    display = normalize_tag_name(name)
    if not display:
        raise ValidationFailedError("The name field is required.", field="name")
    if len(display) > MAX_TAG_NAME_LENGTH:
        raise ValidationFailedError(
            f"The name may not be greater than {MAX_TAG_NAME_LENGTH} characters.",
            field="name",
        )
    slug = slugify(display)
    if not slug:
        raise ValidationFailedError(
            "The name must contain at least one letter or digit.",
            field="name",
        )
    return display, display.casefold(), slug


def _check_unique(repo: TagRepository, name_key: str, slug: str, tag_id: int | None) -> None:
    same_name = repo.get_by_name_key(name_key)
    if same_name is not None and same_name.id != tag_id:
        raise ValidationFailedError(NAME_TAKEN, field="name")
    same_slug = repo.get_by_slug(slug)
    if same_slug is not None and same_slug.id != tag_id:
        raise ConflictError(
            f"Tag slug '{slug}' is already used by '{same_slug.name}'.",
            field="slug",
        )


def _commit_tag(db: Session, repo: TagRepository, tag: Tag) -> Tag:
    """Commit ``tag``; a unique violation at flush maps to the pre-check errors."""
    name_key, slug, tag_id = tag.name_key, tag.slug, tag.id
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_unique_violation(exc):
            raise
        # The constraint raced the pre-check; report whichever key collided.
        _check_unique(repo, name_key, slug, tag_id)
        raise ConflictError(f"Tag slug '{slug}' is already in use.", field="slug") from exc
    db.refresh(tag)
    return tag


def list_tags(db: Session, search: str | None = None) -> list[TagWithCount]:
    """Return all tags ordered by name with their post counts."""
    repo = TagRepository(db)
    return [
        TagWithCount(id=tag.id, name=tag.name, slug=tag.slug, posts_count=count)
        for tag, count in repo.list_with_counts(search)
    ]


def get_tag(db: Session, tag_id: int) -> Tag:
    tag = TagRepository(db).get(tag_id)
    if tag is None:
        raise NotFoundError("Tag not found")
    return tag


def get_tag_detail(db: Session, tag_id: int, *, now: datetime | None = None) -> TagDetail:
    """Return a tag with its post count and most recent active posts."""
    repo = TagRepository(db)
    tag = get_tag(db, tag_id)
    posts = repo.recent_active_posts(tag.id, now or utcnow(), RECENT_POSTS_LIMIT)
    return TagDetail(
        id=tag.id,
        name=tag.name,
        slug=tag.slug,
        posts_count=repo.posts_count(tag.id),
        posts=[TagPostSummary.model_validate(post) for post in posts],
    )


def create_tag(db: Session, name: str) -> Tag:
    """Create a tag; any authenticated user may do so."""
    repo = TagRepository(db)
    display, name_key, slug = _validated_fields(name)
    _check_unique(repo, name_key, slug, None)

    tag = Tag(name=display, name_key=name_key, slug=slug)
    db.add(tag)
    tag = _commit_tag(db, repo, tag)
    logger.info("Created tag %d (%s)", tag.id, tag.slug)
    return tag


def rename_tag(db: Session, tag_id: int, name: str) -> Tag:
    """Rename a tag and regenerate its slug."""
    repo = TagRepository(db)
    tag = get_tag(db, tag_id)
    display, name_key, slug = _validated_fields(name)
    _check_unique(repo, name_key, slug, tag.id)

    tag.name = display
    tag.name_key = name_key
    tag.slug = slug
    return _commit_tag(db, repo, tag)


def delete_tag(db: Session, tag_id: int) -> None:
    """Hard-delete a tag; association rows go with it."""
    tag = get_tag(db, tag_id)
    db.execute(delete(post_tag).where(post_tag.c.tag_id == tag.id))
    db.delete(tag)
    db.commit()
    logger.info("Deleted tag %d", tag_id)
