"""Access-controlled operations, the entry points the HTTP layer calls.

Each function loads an idea snapshot, asks the permission resolver, and only
then runs the lifecycle operation. Results come back as an Outcome so the
caller gets either a value or a typed DomainError, never a raw exception for
an expected failure. Store failures (SQLAlchemyError) are not domain errors
and propagate unchanged.

An absent principal on an operation that needs one is reported as
PermissionDenied(authenticated=False) (UNAUTHENTICATED); a principal that
fails the predicate gets PermissionDenied(authenticated=True) (FORBIDDEN).
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from ideahub.db.session import transaction
from ideahub.models import (
    CollaboratorRole,
    Comment,
    Idea,
    IdeaCollaborator,
    Notification,
    User,
    Workspace,
)
from ideahub.services import (
    collaborators,
    comments,
    follows,
    ideas,
    listing,
    notifications,
    stars,
    users,
    workspaces,
)
from ideahub.services.errors import DomainError, LimitExceeded, NotFound, PermissionDenied
from ideahub.services.permissions import (
    AUTH_REQUIRED,
    IdeaSnapshot,
    PermissionDecision,
    WorkspacePermissions,
    can_archive,
    can_comment,
    can_delete,
    can_duplicate,
    can_edit,
    can_fork,
    can_invite,
    can_remove_collaborator,
    can_star,
    can_update,
    can_view,
    is_owner,
    permissions_for,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success value or domain error from an access-controlled operation."""

    value: T | None = None
    error: DomainError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the captured DomainError."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: DomainError) -> Outcome[T]:
        return cls(error=error)


def _run(db: Session, operation: str, fn: Callable[[], T]) -> Outcome[T]:
    # The outer transaction ends the snapshot read even when a check fails;
    # lifecycle operations commit their own unit of work inside it.
    try:
        with transaction(db):
            return Outcome.success(fn())
    except DomainError as exc:
        logger.info("%s refused: %s (%s)", operation, exc.reason, exc.kind.value)
        return Outcome.failure(exc)


def _require_principal(principal: int | None) -> int:
    if principal is None:
        raise PermissionDenied(AUTH_REQUIRED, authenticated=False)
    return principal


def _check(decision: PermissionDecision, principal: int | None) -> None:
    if not decision:
        raise PermissionDenied(
            decision.reason or "Permission denied",
            authenticated=principal is not None,
        )


def _snapshot(db: Session, idea_id: uuid.UUID) -> IdeaSnapshot:
    snapshot = ideas.get_idea_snapshot(db, idea_id)
    if snapshot is None:
        raise NotFound("Idea not found")
    return snapshot


def _viewable_idea(db: Session, principal: int | None, idea_id: uuid.UUID) -> Idea:
    idea = ideas.get_idea(db, idea_id)
    if idea is None:
        raise NotFound("Idea not found")
    _check(can_view(IdeaSnapshot.from_idea(idea), principal), principal)
    return idea


# ---------------------------------------------------------------------------
# Ideas
# ---------------------------------------------------------------------------


def create_idea(
    db: Session, principal: int | None, fields: Mapping[str, Any]
) -> Outcome[tuple[Idea, Workspace]]:
    def op():
        owner_id = _require_principal(principal)
        return ideas.create_idea_with_workspace(db, owner_id, fields)

    return _run(db, "create_idea", op)


def get_idea(db: Session, principal: int | None, idea_id: uuid.UUID) -> Outcome[Idea]:
    return _run(db, "get_idea", lambda: _viewable_idea(db, principal, idea_id))


def list_ideas(
    db: Session, principal: int | None, filters: Mapping[str, Any] | None = None
) -> Outcome[listing.IdeaPage]:
    """Published ideas visible to the principal, filtered and paginated.

    filters: visibility, author_id, category, tags (any match), search
    (title/description, case-insensitive), limit, offset.
    """
    return _run(
        db,
        "list_ideas",
        lambda: listing.list_ideas(db, principal, listing.parse_filters(filters)),
    )


def get_permissions(
    db: Session, principal: int | None, idea_id: uuid.UUID
) -> Outcome[WorkspacePermissions]:
    def op():
        snapshot = _snapshot(db, idea_id)
        _check(can_view(snapshot, principal), principal)
        return permissions_for(snapshot, principal)

    return _run(db, "get_permissions", op)


def update_idea(
    db: Session, principal: int | None, idea_id: uuid.UUID, fields: Mapping[str, Any]
) -> Outcome[Idea]:
    def op():
        user_id = _require_principal(principal)
        _check(can_update(_snapshot(db, idea_id), principal), principal)
        return ideas.update_idea(db, idea_id, user_id, fields)

    return _run(db, "update_idea", op)


def delete_idea(db: Session, principal: int | None, idea_id: uuid.UUID) -> Outcome[None]:
    def op():
        user_id = _require_principal(principal)
        _check(can_delete(_snapshot(db, idea_id), principal), principal)
        return ideas.delete_idea(db, idea_id, user_id)

    return _run(db, "delete_idea", op)


def set_archived(
    db: Session, principal: int | None, idea_id: uuid.UUID, archived: bool = True
) -> Outcome[Idea]:
    def op():
        user_id = _require_principal(principal)
        _check(can_archive(_snapshot(db, idea_id), principal), principal)
        return ideas.set_archived(db, idea_id, user_id, archived)

    return _run(db, "set_archived", op)


def fork_idea(
    db: Session,
    principal: int | None,
    idea_id: uuid.UUID,
    overrides: Mapping[str, Any] | None = None,
) -> Outcome[tuple[Idea, Workspace]]:
    def op():
        snapshot = _snapshot(db, idea_id)
        _check(can_fork(snapshot, principal), principal)
        return ideas.fork_idea(db, idea_id, _require_principal(principal), overrides)

    return _run(db, "fork_idea", op)


def duplicate_idea(
    db: Session,
    principal: int | None,
    idea_id: uuid.UUID,
    overrides: Mapping[str, Any] | None = None,
) -> Outcome[tuple[Idea, Workspace]]:
    def op():
        user_id = _require_principal(principal)
        _check(can_duplicate(_snapshot(db, idea_id), principal), principal)
        return ideas.duplicate_idea(db, idea_id, user_id, overrides)

    return _run(db, "duplicate_idea", op)


def star_idea(
    db: Session, principal: int | None, idea_id: uuid.UUID, starred: bool = True
) -> Outcome[stars.StarState]:
    def op():
        _check(can_star(_snapshot(db, idea_id), principal), principal)
        return stars.toggle_star(db, idea_id, _require_principal(principal), starred)

    return _run(db, "star_idea", op)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


def list_collaborators(
    db: Session, principal: int | None, idea_id: uuid.UUID
) -> Outcome[list[IdeaCollaborator]]:
    def op():
        _check(can_view(_snapshot(db, idea_id), principal), principal)
        return collaborators.list_collaborators(db, idea_id)

    return _run(db, "list_collaborators", op)


def add_collaborator(
    db: Session,
    principal: int | None,
    idea_id: uuid.UUID,
    target_user_id: int,
    role: CollaboratorRole | str = CollaboratorRole.VIEWER,
) -> Outcome[IdeaCollaborator]:
    def op():
        user_id = _require_principal(principal)
        snapshot = _snapshot(db, idea_id)
        decision = can_invite(snapshot, principal)
        if not decision and is_owner(snapshot, principal):
            # The owner is allowed in general; only the cap stands in the way
            raise LimitExceeded(decision.reason or "Collaborator limit reached")
        _check(decision, principal)
        return collaborators.add_collaborator(db, idea_id, user_id, target_user_id, role)

    return _run(db, "add_collaborator", op)


def remove_collaborator(
    db: Session, principal: int | None, idea_id: uuid.UUID, target_user_id: int
) -> Outcome[None]:
    def op():
        user_id = _require_principal(principal)
        _check(can_remove_collaborator(_snapshot(db, idea_id), principal), principal)
        return collaborators.remove_collaborator(db, idea_id, user_id, target_user_id)

    return _run(db, "remove_collaborator", op)


# ---------------------------------------------------------------------------
# Workspaces
# ---------------------------------------------------------------------------


def get_workspace(db: Session, principal: int | None, idea_id: uuid.UUID) -> Outcome[Workspace]:
    def op():
        idea = _viewable_idea(db, principal, idea_id)
        if idea.workspace is None:
            raise NotFound("Workspace not found")
        return idea.workspace

    return _run(db, "get_workspace", op)


def update_workspace(
    db: Session,
    principal: int | None,
    idea_id: uuid.UUID,
    content: Any,
    name: str | None = None,
) -> Outcome[Workspace]:
    def op():
        user_id = _require_principal(principal)
        _check(can_edit(_snapshot(db, idea_id), principal), principal)
        return workspaces.update_workspace_content(db, idea_id, user_id, content, name)

    return _run(db, "update_workspace", op)


def list_workspaces(
    db: Session, principal: int | None, user_id: int | None = None
) -> Outcome[list[Workspace]]:
    """A user's workspaces (the principal's own when user_id is None), viewable ones only."""
    return _run(db, "list_workspaces", lambda: listing.list_workspaces(db, principal, user_id))


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def _commentable(db: Session, principal: int | None, comment_id: int) -> tuple[int, Comment]:
    user_id = _require_principal(principal)
    comment = comments.get_comment(db, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    _check(can_comment(_snapshot(db, comment.idea_id), principal), principal)
    return user_id, comment


def list_comments(
    db: Session, principal: int | None, idea_id: uuid.UUID
) -> Outcome[list[Comment]]:
    def op():
        _check(can_view(_snapshot(db, idea_id), principal), principal)
        return comments.list_comments(db, idea_id)

    return _run(db, "list_comments", op)


def add_comment(
    db: Session,
    principal: int | None,
    idea_id: uuid.UUID,
    content: str,
    parent_id: int | None = None,
) -> Outcome[Comment]:
    def op():
        user_id = _require_principal(principal)
        _check(can_comment(_snapshot(db, idea_id), principal), principal)
        return comments.add_comment(db, idea_id, user_id, content, parent_id)

    return _run(db, "add_comment", op)


def update_comment(
    db: Session, principal: int | None, comment_id: int, content: str
) -> Outcome[Comment]:
    def op():
        user_id, comment = _commentable(db, principal, comment_id)
        return comments.update_comment(db, comment.id, user_id, content)

    return _run(db, "update_comment", op)


def delete_comment(db: Session, principal: int | None, comment_id: int) -> Outcome[None]:
    def op():
        user_id, comment = _commentable(db, principal, comment_id)
        return comments.delete_comment(db, comment.id, user_id)

    return _run(db, "delete_comment", op)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def follow_user(
    db: Session, principal: int | None, target_user_id: int, follow: bool = True
) -> Outcome[bool]:
    def op():
        return follows.set_follow(db, _require_principal(principal), target_user_id, follow)

    return _run(db, "follow_user", op)


def update_profile(
    db: Session, principal: int | None, fields: Mapping[str, Any]
) -> Outcome[User]:
    return _run(
        db, "update_profile", lambda: users.update_profile(db, _require_principal(principal), fields)
    )


def list_notifications(
    db: Session, principal: int | None, unread_only: bool = False
) -> Outcome[list[Notification]]:
    return _run(
        db,
        "list_notifications",
        lambda: notifications.list_notifications(db, _require_principal(principal), unread_only),
    )


def mark_notifications_read(db: Session, principal: int | None) -> Outcome[int]:
    return _run(
        db,
        "mark_notifications_read",
        lambda: notifications.mark_all_read(db, _require_principal(principal)),
    )
