# src/buzzbyte_stage/api/v1/endpoints/tags.py
"""Tag endpoints; tags are global and editable by any authenticated user."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from buzzbyte_stage.api.v1.dependencies import CurrentUserDep, SessionDep
from buzzbyte_stage.schemas.common import ErrorResponse, MessageResponse
from buzzbyte_stage.schemas.tag import (
    TagDetailEnvelope,
    TagEnvelope,
    TagListResponse,
    TagResponse,
    TagWrite,
)
from buzzbyte_stage.services import tag_service

router = APIRouter(
    prefix="/tags",
    tags=["tags"],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)


@router.get("", response_model=TagListResponse)
def list_tags(
    current_user: CurrentUserDep,
    db: SessionDep,
    search: str | None = Query(None, description="Substring match on the tag name"),
) -> TagListResponse:
    return TagListResponse(tags=tag_service.list_tags(db, search))


@router.post("", response_model=TagEnvelope, status_code=status.HTTP_201_CREATED)
def create_tag(payload: TagWrite, current_user: CurrentUserDep, db: SessionDep) -> TagEnvelope:
    tag = tag_service.create_tag(db, payload.name)
    return TagEnvelope(tag=TagResponse.model_validate(tag), message="Tag created successfully")


@router.get("/{tag_id}", response_model=TagDetailEnvelope)
def get_tag(tag_id: int, current_user: CurrentUserDep, db: SessionDep) -> TagDetailEnvelope:
    """Return a tag with its ten most recent active posts."""
    return TagDetailEnvelope(tag=tag_service.get_tag_detail(db, tag_id))


@router.put("/{tag_id}", response_model=TagEnvelope)
def rename_tag(
    tag_id: int,
    payload: TagWrite,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> TagEnvelope:
    tag = tag_service.rename_tag(db, tag_id, payload.name)
    return TagEnvelope(tag=TagResponse.model_validate(tag), message="Tag updated successfully")


@router.delete("/{tag_id}", response_model=MessageResponse)
def delete_tag(tag_id: int, current_user: CurrentUserDep, db: SessionDep) -> MessageResponse:
    tag_service.delete_tag(db, tag_id)
    return MessageResponse(message="Tag deleted successfully")
