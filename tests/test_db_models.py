"""Mapping checks for the ORM models."""

from datetime import timedelta

import pytest
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, InvalidRequestError
from sqlalchemy.orm import Session, attributes

from buzzbyte_stage.models import Comment, Post, PostLike, SweepLease, Tag, User, post_tag


def test_table_names() -> None:
    assert User.__tablename__ == "users"
    assert Tag.__tablename__ == "tags"
    assert Post.__tablename__ == "posts"
    assert Comment.__tablename__ == "comments"
    assert PostLike.__tablename__ == "post_like"
    assert SweepLease.__tablename__ == "sweep_lease"
    assert post_tag.name == "post_tag"


def test_composite_primary_keys() -> None:
    assert {c.name for c in PostLike.__table__.primary_key} == {"user_id", "post_id"}
    assert {c.name for c in post_tag.primary_key} == {"post_id", "tag_id"}


def test_posts_have_lifecycle_index() -> None:
    index_names = {index.name for index in Post.__table__.indexes}
    assert "ix_posts_deleted_at_created_at" in index_names


def test_relationships_are_instrumented_attributes() -> None:
    for attr in (Post.author, Post.tags, Comment.author):
        assert isinstance(attr, attributes.InstrumentedAttribute)


def test_lazy_relationship_access_raises(db_session: Session, test_post: Post) -> None:
    db_session.expire_all()
    post = db_session.scalars(select(Post).where(Post.id == test_post.id)).one()
    with pytest.raises(InvalidRequestError):
        _ = post.tags


def test_duplicate_like_is_rejected(db_session: Session, test_user: User, test_post: Post) -> None:
    db_session.add(PostLike(user_id=test_user.id, post_id=test_post.id))
    db_session.flush()
    with pytest.raises(IntegrityError):
        with db_session.begin_nested():
            db_session.execute(
                insert(PostLike).values(user_id=test_user.id, post_id=test_post.id)
            )


def test_user_is_active_until_soft_deleted(test_user: User) -> None:
    assert test_user.is_active
    test_user.deleted_at = test_user.created_at + timedelta(days=1)
    assert not test_user.is_active
