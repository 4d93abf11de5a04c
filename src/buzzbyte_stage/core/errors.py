"""Typed domain errors raised by the service layer.

Services never raise ``HTTPException`` directly; the API layer maps every
``DomainError`` to a JSON response through a single exception handler.
"""

from __future__ import annotations

from fastapi import status


class DomainError(Exception):
    """Base class for errors that carry a transport status code."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None, *, field: str | None = None) -> None:
        self.detail = detail or self.default_detail
        self.field = field
        super().__init__(self.detail)

    def to_payload(self) -> dict[str, str]:
        """Return the JSON body sent to API clients."""
        payload = {"detail": self.detail}
        if self.field is not None:
            payload["field"] = self.field
        return payload


class NotFoundError(DomainError):
    """Referenced entity does not exist, is soft-deleted or has expired."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ForbiddenError(DomainError):
    """Caller is authenticated but does not own the resource being mutated."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to modify this resource"


class ValidationFailedError(DomainError):
    """Malformed input or a duplicate value for a unique field."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Validation failed"


class ConflictError(DomainError):
    """Write rejected because it collides with an existing derived key."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource conflict"


class AssetStorageError(Exception):
    """Asset backend was unreachable or refused an operation."""


class SweepTimeoutError(Exception):
    """A sweep exceeded its maximum run time."""


__all__ = [
    "AssetStorageError",
    "ConflictError",
    "DomainError",
    "ForbiddenError",
    "NotFoundError",
    "SweepTimeoutError",
    "ValidationFailedError",
]
