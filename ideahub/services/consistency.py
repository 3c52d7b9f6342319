"""Consistency audit: recount denormalized counters and cardinality rules.

Checks, against the committed state:
  - every idea has exactly one workspace
  - no idea has more than MAX_COLLABORATORS collaborator rows
  - no collaborator row names the idea's owner
  - Idea.star_count / Idea.fork_count match the stars and forks that exist
  - User.follower_count / following_count / idea_count match their rows

repair_counters() rewrites every counter from the underlying rows in one
transaction. Cardinality violations are reported, never auto-repaired.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from ideahub.db.session import transaction
from ideahub.models import Follow, Idea, IdeaCollaborator, Star, User, Workspace
from ideahub.services.permissions import MAX_COLLABORATORS

logger = logging.getLogger(__name__)


@dataclass
class InvariantViolation:
    check: str
    entity_id: str
    expected: int | None = None
    actual: int | None = None

    def __str__(self) -> str:
        return f"{self.check} {self.entity_id}: expected={self.expected} actual={self.actual}"


def _star_total():
    return (
        select(func.count())
        .select_from(Star)
        .where(Star.idea_id == Idea.id)
        .scalar_subquery()
    )


def _fork_total():
    fork = aliased(Idea)
    return (
        select(func.count())
        .select_from(fork)
        .where(fork.forked_from_id == Idea.id)
        .correlate(Idea)
        .scalar_subquery()
    )


def _follower_total():
    return (
        select(func.count())
        .select_from(Follow)
        .where(Follow.following_id == User.id)
        .scalar_subquery()
    )


def _following_total():
    return (
        select(func.count())
        .select_from(Follow)
        .where(Follow.follower_id == User.id)
        .scalar_subquery()
    )


def _idea_total():
    return (
        select(func.count())
        .select_from(Idea)
        .where(Idea.owner_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )


def audit_invariants(db: Session) -> list[InvariantViolation]:
    """Return every invariant violation found. Empty list means consistent."""
    violations: list[InvariantViolation] = []

    workspace_total = (
        select(func.count())
        .select_from(Workspace)
        .where(Workspace.idea_id == Idea.id)
        .scalar_subquery()
    )
    collaborator_total = (
        select(func.count())
        .select_from(IdeaCollaborator)
        .where(IdeaCollaborator.idea_id == Idea.id)
        .scalar_subquery()
    )
    idea_rows = db.execute(
        select(
            Idea.id,
            Idea.star_count,
            _star_total(),
            Idea.fork_count,
            _fork_total(),
            workspace_total,
            collaborator_total,
        )
    ).all()
    for idea_id, stars, star_rows, forks, fork_rows, ws_rows, collab_rows in idea_rows:
        if ws_rows != 1:
            violations.append(InvariantViolation("workspace", str(idea_id), 1, ws_rows))
        if collab_rows > MAX_COLLABORATORS:
            violations.append(
                InvariantViolation("collaborator_cap", str(idea_id), MAX_COLLABORATORS, collab_rows)
            )
        if stars != star_rows:
            violations.append(InvariantViolation("star_count", str(idea_id), star_rows, stars))
        if forks != fork_rows:
            violations.append(InvariantViolation("fork_count", str(idea_id), fork_rows, forks))

    owner_rows = db.execute(
        select(IdeaCollaborator.idea_id, IdeaCollaborator.user_id)
        .join(Idea, Idea.id == IdeaCollaborator.idea_id)
        .where(IdeaCollaborator.user_id == Idea.owner_id)
    ).all()
    for idea_id, user_id in owner_rows:
        violations.append(InvariantViolation("owner_collaborator", f"{idea_id}/{user_id}"))

    user_rows = db.execute(
        select(
            User.id,
            User.follower_count,
            _follower_total(),
            User.following_count,
            _following_total(),
            User.idea_count,
            _idea_total(),
        )
    ).all()
    for user_id, followers, follower_rows, following, following_rows, ideas, idea_rows_n in user_rows:
        if followers != follower_rows:
            violations.append(
                InvariantViolation("follower_count", str(user_id), follower_rows, followers)
            )
        if following != following_rows:
            violations.append(
                InvariantViolation("following_count", str(user_id), following_rows, following)
            )
        if ideas != idea_rows_n:
            violations.append(InvariantViolation("idea_count", str(user_id), idea_rows_n, ideas))

    return violations


def repair_counters(db: Session) -> None:
    """Recompute all denormalized counters from their rows."""
    with transaction(db):
        db.execute(
            update(Idea)
            .values(star_count=_star_total(), fork_count=_fork_total())
            .execution_options(synchronize_session=False)
        )
        db.execute(
            update(User)
            .values(
                follower_count=_follower_total(),
                following_count=_following_total(),
                idea_count=_idea_total(),
            )
            .execution_options(synchronize_session=False)
        )
    logger.info("Counters recomputed from stars, forks, follows and ideas")
