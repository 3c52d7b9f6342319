"""Collaborators: invite and remove non-owner users on an idea.

The cap (MAX_COLLABORATORS) is checked against a fresh count taken while the
idea row is locked, so two concurrent invitations at count=2 cannot both land.
The owner never gets a collaborator row.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ideahub.db.session import transaction
from ideahub.models import CollaboratorRole, IdeaCollaborator, NotificationKind, User
from ideahub.services.errors import (
    AlreadyExists,
    Conflict,
    InvalidOperation,
    LimitExceeded,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from ideahub.services.ideas import lock_idea
from ideahub.services.notifications import notify
from ideahub.services.permissions import MAX_COLLABORATORS

logger = logging.getLogger(__name__)


def _parse_role(role: CollaboratorRole | str) -> CollaboratorRole:
    try:
        return CollaboratorRole(role)
    except ValueError:
        raise ValidationError(f"Invalid collaborator role: {role!r}") from None


def count_collaborators(db: Session, idea_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(IdeaCollaborator).where(IdeaCollaborator.idea_id == idea_id)
    ).scalar_one()


def list_collaborators(db: Session, idea_id: uuid.UUID) -> list[IdeaCollaborator]:
    return list(
        db.execute(
            select(IdeaCollaborator)
            .where(IdeaCollaborator.idea_id == idea_id)
            .order_by(IdeaCollaborator.id)
        ).scalars().all()
    )


def add_collaborator(
    db: Session,
    idea_id: uuid.UUID,
    owner_id: int,
    target_user_id: int,
    role: CollaboratorRole | str = CollaboratorRole.VIEWER,
) -> IdeaCollaborator:
    """Add target_user_id to idea_id with role EDITOR or VIEWER.

    Raises:
        NotFound: idea or target user does not exist.
        PermissionDenied: owner_id does not own the idea.
        InvalidOperation: target is the owner.
        AlreadyExists: target is already a collaborator.
        LimitExceeded: the idea already has MAX_COLLABORATORS collaborators.
    """
    role = _parse_role(role)
    with transaction(db):
        idea = lock_idea(db, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        if idea.owner_id != owner_id:
            raise PermissionDenied("Only the idea owner can add collaborators", authenticated=True)
        if target_user_id == idea.owner_id:
            raise InvalidOperation("The idea owner cannot be added as a collaborator")
        existing = db.execute(
            select(IdeaCollaborator.id).where(
                IdeaCollaborator.idea_id == idea_id, IdeaCollaborator.user_id == target_user_id
            )
        ).first()
        if existing is not None:
            raise AlreadyExists("User is already a collaborator")
        if count_collaborators(db, idea_id) >= MAX_COLLABORATORS:
            raise LimitExceeded(
                f"Maximum of {MAX_COLLABORATORS} collaborators allowed per idea"
            )
        if db.get(User, target_user_id) is None:
            raise NotFound("User not found")
        collaborator = IdeaCollaborator(idea_id=idea_id, user_id=target_user_id, role=role)
        db.add(collaborator)
        try:
            db.flush()
        except IntegrityError:
            raise Conflict("Collaborator was added concurrently") from None
        title = idea.title

    logger.info(
        "User %s added to idea %s as %s", target_user_id, idea_id, role.value
    )
    notify(
        db,
        target_user_id,
        NotificationKind.COLLABORATOR_ADDED,
        f'You have been added as a collaborator to "{title}"',
        related_user_id=owner_id,
        related_idea_id=idea_id,
    )
    return collaborator


def remove_collaborator(
    db: Session,
    idea_id: uuid.UUID,
    owner_id: int,
    target_user_id: int,
) -> None:
    """Remove target_user_id from idea_id. Raises NotFound if they are not a collaborator."""
    with transaction(db):
        idea = lock_idea(db, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        if idea.owner_id != owner_id:
            raise PermissionDenied(
                "Only the idea owner can remove collaborators", authenticated=True
            )
        result = db.execute(
            delete(IdeaCollaborator).where(
                IdeaCollaborator.idea_id == idea_id, IdeaCollaborator.user_id == target_user_id
            )
        )
        if result.rowcount == 0:
            raise NotFound("User is not a collaborator on this idea")
    logger.info("User %s removed from idea %s", target_user_id, idea_id)
