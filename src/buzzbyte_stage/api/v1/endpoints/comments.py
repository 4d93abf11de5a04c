# src/buzzbyte_stage/api/v1/endpoints/comments.py
"""Comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from buzzbyte_stage.api.v1.dependencies import CurrentUserDep, SessionDep
from buzzbyte_stage.schemas.comment import (
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CommentWrite,
)
from buzzbyte_stage.schemas.common import ErrorResponse, MessageResponse
from buzzbyte_stage.services import comment_service

router = APIRouter(
    tags=["comments"],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


@router.get("/posts/{post_id}/comments", response_model=CommentListResponse)
def list_comments(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> CommentListResponse:
    comments = comment_service.list_comments(db, post_id)
    return CommentListResponse(
        comments=[CommentResponse.model_validate(comment) for comment in comments],
    )


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    post_id: int,
    payload: CommentWrite,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentEnvelope:
    comment = comment_service.create_comment(
        db,
        post_id=post_id,
        author=current_user,
        body=payload.body,
    )
    return CommentEnvelope(
        comment=CommentResponse.model_validate(comment),
        message="Comment created successfully",
    )


@router.put("/comments/{comment_id}", response_model=CommentEnvelope)
def update_comment(
    comment_id: int,
    payload: CommentWrite,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentEnvelope:
    comment = comment_service.update_comment(db, comment_id, user=current_user, body=payload.body)
    return CommentEnvelope(
        comment=CommentResponse.model_validate(comment),
        message="Comment updated successfully",
    )


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
def delete_comment(comment_id: int, current_user: CurrentUserDep, db: SessionDep) -> MessageResponse:
    comment_service.delete_comment(db, comment_id, user=current_user)
    return MessageResponse(message="Comment deleted successfully")
