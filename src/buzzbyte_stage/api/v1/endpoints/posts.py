# src/buzzbyte_stage/api/v1/endpoints/posts.py
"""Post-related endpoints."""

from __future__ import annotations

from fastapi import APIRouter, File, Query, UploadFile, status

from buzzbyte_stage.api.v1.dependencies import CurrentUserDep, SessionDep, StorageDep
from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.schemas.common import ErrorResponse, MessageResponse
from buzzbyte_stage.schemas.like import LikeToggleResponse
from buzzbyte_stage.schemas.post import (
    PostCreate,
    PostDetailEnvelope,
    PostEnvelope,
    PostListResponse,
    PostUpdate,
)
from buzzbyte_stage.services import like_service, post_service

router = APIRouter(
    prefix="/posts",
    tags=["posts"],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


@router.get("", response_model=PostListResponse)
def list_posts(
    current_user: CurrentUserDep,
    db: SessionDep,
    tag: str | None = Query(None, description="Only posts carrying this tag slug"),
    search: str | None = Query(None, description="Case-insensitive title/body match"),
    limit: int | None = Query(None, ge=1, le=100, description="Maximum number of posts"),
    offset: int = Query(0, ge=0),
) -> PostListResponse:
    """List active posts, newest first."""
    posts = post_service.list_posts(
        db,
        viewer=current_user,
        tag=tag,
        search=search,
        limit=limit,
        offset=offset,
    )
    return PostListResponse(data=posts)


@router.post("", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
def create_post(payload: PostCreate, current_user: CurrentUserDep, db: SessionDep) -> PostEnvelope:
    post = post_service.create_post(db, author=current_user, payload=payload)
    return PostEnvelope(post=post, message="Post created successfully")


@router.get("/{post_id}", response_model=PostDetailEnvelope)
def get_post(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> PostDetailEnvelope:
    """Return one active post with its comments."""
    return PostDetailEnvelope(
        post=post_service.get_post_detail(db, post_id, viewer=current_user),
    )


@router.put("/{post_id}", response_model=PostEnvelope)
def update_post(
    post_id: int,
    payload: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostEnvelope:
    post = post_service.update_post(db, post_id, user=current_user, payload=payload)
    return PostEnvelope(post=post, message="Post updated successfully")


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: StorageDep,
) -> MessageResponse:
    post_service.delete_post(db, post_id, user=current_user, storage=storage)
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/cover", response_model=PostEnvelope)
def upload_cover(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: StorageDep,
    cover_image: UploadFile = File(...),
) -> PostEnvelope:
    """Attach or replace a post's cover image."""
    data = cover_image.file.read(settings.max_upload_bytes + 1)
    post = post_service.set_cover_image(
        db,
        post_id,
        user=current_user,
        data=data,
        content_type=cover_image.content_type or "",
        storage=storage,
    )
    return PostEnvelope(post=post, message="Cover image updated successfully")


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
def toggle_like(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> LikeToggleResponse:
    """Like the post if the caller has not yet, otherwise remove the like."""
    return like_service.toggle_like(db, user=current_user, post_id=post_id)
