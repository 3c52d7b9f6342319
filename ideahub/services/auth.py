"""Authentication service: password login and JWT bearer tokens.

authenticate() is the one capability the rest of the core consumes from here:
credentials in, user id (principal) or None out.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from ideahub.config import get_settings
from ideahub.models.user import User

# JWT configuration
ALGORITHM = "HS256"


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    """Validate credentials and return user, or None if invalid."""
    user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user is None:
        return None
    if not user.verify_password(password):
        return None
    return user


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.access_token_expire_hours)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token. Returns payload or None."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def get_user_from_token(db: Session, token: str) -> Optional[User]:
    """Extract user from a JWT token. Returns None if token invalid or user not found."""
    payload = decode_access_token(token)
    if payload is None:
        return None
    username: Optional[str] = payload.get("sub")
    if username is None:
        return None
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


def authenticate(db: Session, token: str | None) -> int | None:
    """Resolve request credentials to a principal (user id), or None for anonymous."""
    if not token:
        return None
    user = get_user_from_token(db, token)
    return user.id if user is not None else None
