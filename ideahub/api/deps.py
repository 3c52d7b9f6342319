"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import Cookie, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ideahub.db.session import get_db  # re-export
from ideahub.models.user import User
from ideahub.services.auth import authenticate, get_user_from_token

__all__ = [
    "get_db",
    "get_current_user",
    "get_principal",
    "require_auth",
]

# Cookie name for browser sessions
AUTH_COOKIE = "access_token"


def get_request_token(
    authorization: str | None = Header(None),
    access_token: str | None = Cookie(None),
) -> str | None:
    """Return the request's credentials.

    Checks (in order):
    1. Authorization: Bearer <token> header
    2. access_token cookie
    """
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer ") :]
    return access_token or None


def get_current_user(
    db: Session = Depends(get_db),
    token: str | None = Depends(get_request_token),
) -> User | None:
    """Return the authenticated user or None."""
    if token is None:
        return None
    return get_user_from_token(db, token)


def get_principal(
    db: Session = Depends(get_db),
    token: str | None = Depends(get_request_token),
) -> int | None:
    """Principal for access-controlled operations: user id, or None when anonymous."""
    return authenticate(db, token)


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """Dependency that requires authentication; 401 otherwise."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user
