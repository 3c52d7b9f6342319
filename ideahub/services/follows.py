"""Follows: follow/unfollow with both users' counters kept exact.

Same idempotent policy as stars: re-following or unfollowing a user who is
not followed is a no-op reporting the current state.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ideahub.db.session import transaction
from ideahub.models import Follow, NotificationKind, User
from ideahub.services.errors import Conflict, InvalidOperation, NotFound
from ideahub.services.notifications import notify

logger = logging.getLogger(__name__)


def _lock_users(db: Session, *user_ids: int) -> dict[int, User]:
    # Ascending id order so two opposite follows cannot deadlock
    users = db.execute(
        select(User)
        .where(User.id.in_(user_ids))
        .order_by(User.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalars().all()
    return {u.id: u for u in users}


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return (
        db.execute(
            select(Follow.follower_id).where(
                Follow.follower_id == follower_id, Follow.following_id == following_id
            )
        ).first()
        is not None
    )


def _bump(db: Session, user_id: int, column, delta: int) -> None:
    stmt = update(User).where(User.id == user_id).values({column: column + delta})
    if delta < 0:
        stmt = stmt.where(column > 0)
    db.execute(stmt)


def set_follow(db: Session, follower_id: int, following_id: int, follow: bool) -> bool:
    """Bring the follow edge to the wanted state. Returns the new state.

    Raises InvalidOperation for self-follows and NotFound for unknown users.
    """
    if follower_id == following_id:
        raise InvalidOperation("Cannot follow yourself")

    created = False
    with transaction(db):
        users = _lock_users(db, follower_id, following_id)
        if len(users) != 2:
            raise NotFound("User not found")
        already = is_following(db, follower_id, following_id)
        if follow and not already:
            db.add(Follow(follower_id=follower_id, following_id=following_id))
            try:
                db.flush()
            except IntegrityError:
                raise Conflict("Follow was created concurrently") from None
            _bump(db, follower_id, User.following_count, 1)
            _bump(db, following_id, User.follower_count, 1)
            created = True
        elif not follow and already:
            result = db.execute(
                delete(Follow).where(
                    Follow.follower_id == follower_id, Follow.following_id == following_id
                )
            )
            if result.rowcount == 1:
                _bump(db, follower_id, User.following_count, -1)
                _bump(db, following_id, User.follower_count, -1)
        for user in users.values():
            db.refresh(user)
        follower_name = users[follower_id].username

    if created:
        logger.info("User %s followed user %s", follower_id, following_id)
        notify(
            db,
            following_id,
            NotificationKind.FOLLOW,
            f"{follower_name} started following you",
            related_user_id=follower_id,
        )
    return follow


def list_followers(db: Session, user_id: int) -> list[User]:
    return list(
        db.execute(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id)
            .order_by(User.username)
        ).scalars().all()
    )


def list_following(db: Session, user_id: int) -> list[User]:
    return list(
        db.execute(
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(User.username)
        ).scalars().all()
    )
