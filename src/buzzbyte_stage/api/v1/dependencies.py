"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from buzzbyte_stage.core.security import decode_access_token
from buzzbyte_stage.db.session import get_db
from buzzbyte_stage.models import User
from buzzbyte_stage.services.storage import AssetStorage, get_asset_storage
from buzzbyte_stage.services.user_service import get_active_user

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If the token is missing or invalid, or the user is gone
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise _unauthorized("Could not validate credentials")

    user = get_active_user(db, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_storage() -> AssetStorage:
    """Return the configured asset backend."""
    return get_asset_storage()


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
StorageDep = Annotated[AssetStorage, Depends(get_storage)]
