"""Stars: star/unstar an idea with Idea.star_count kept exact.

Policy: idempotent. Starring an already-starred idea, or unstarring one that
is not starred, is a no-op that reports the current state.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ideahub.db.session import transaction
from ideahub.models import Idea, NotificationKind, Star
from ideahub.services.errors import Conflict, NotFound
from ideahub.services.ideas import lock_idea
from ideahub.services.notifications import notify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StarState:
    starred: bool
    star_count: int


def is_starred(db: Session, idea_id: uuid.UUID, user_id: int) -> bool:
    return (
        db.execute(
            select(Star.user_id).where(Star.user_id == user_id, Star.idea_id == idea_id)
        ).first()
        is not None
    )


def toggle_star(db: Session, idea_id: uuid.UUID, user_id: int, starred: bool) -> StarState:
    """Bring the (user, idea) star to the wanted state.

    Returns the new state with the star_count committed alongside it.

    The star row and star_count change together under the idea's row lock.
    The counter is only decremented when a row was actually deleted.
    """
    created = False
    with transaction(db):
        idea = lock_idea(db, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        already = is_starred(db, idea_id, user_id)
        if starred and not already:
            db.add(Star(user_id=user_id, idea_id=idea_id))
            try:
                db.flush()
            except IntegrityError:
                raise Conflict("Idea was starred concurrently") from None
            db.execute(
                update(Idea).where(Idea.id == idea_id).values(star_count=Idea.star_count + 1)
            )
            created = True
        elif not starred and already:
            result = db.execute(
                delete(Star).where(Star.user_id == user_id, Star.idea_id == idea_id)
            )
            if result.rowcount == 1:
                db.execute(
                    update(Idea)
                    .where(Idea.id == idea_id, Idea.star_count > 0)
                    .values(star_count=Idea.star_count - 1)
                )
        db.refresh(idea)
        owner_id = idea.owner_id
        title = idea.title
        star_count = idea.star_count

    if created:
        logger.info("Idea %s starred by user %s", idea_id, user_id)
        if owner_id != user_id:
            notify(
                db,
                owner_id,
                NotificationKind.STAR,
                f'Someone starred your idea "{title}"',
                related_user_id=user_id,
                related_idea_id=idea_id,
            )
    return StarState(starred=starred, star_count=star_count)
