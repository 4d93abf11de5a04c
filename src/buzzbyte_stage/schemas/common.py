"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by mutations without a body."""

    message: str = Field(..., description="Human readable outcome.")


class ErrorResponse(BaseModel):
    """Body returned for domain errors."""

    detail: str
    field: str | None = None
