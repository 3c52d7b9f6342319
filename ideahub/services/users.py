"""User service: signup and profile updates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ideahub.db.session import transaction
from ideahub.models import User
from ideahub.services.errors import AlreadyExists, NotFound, ValidationError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"display_name", "bio", "avatar_url"})


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    display_name: str | None = None,
) -> User:
    """Create a new user with hashed password.

    Raises ValidationError for blank fields and AlreadyExists when the
    username or email is taken.
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email or not password:
        raise ValidationError("username, email and password are required")

    with transaction(db):
        for field, column, value in (
            ("Username", User.username, username),
            ("Email", User.email, email),
        ):
            if db.execute(select(User.id).where(column == value)).first() is not None:
                raise AlreadyExists(f"{field} is already registered")
        user = User(username=username, email=email, display_name=display_name or username)
        user.set_password(password)
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            raise AlreadyExists("Username or email is already registered") from None
    logger.info("User %s created", user.id)
    return user


def update_profile(db: Session, user_id: int, fields: Mapping[str, Any]) -> User:
    """Update display_name/bio/avatar_url. Counters and identity fields are not editable."""
    unknown = set(fields) - PROFILE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    with transaction(db):
        user = get_user(db, user_id)
        for name, value in fields.items():
            setattr(user, name, value)
    return user
