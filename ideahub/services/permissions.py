"""Permission resolver — who may view, edit, fork, invite to and administer an idea.

Pure decisions over an idea snapshot and an optional principal (user id, or
None for anonymous). Nothing here touches the database and nothing raises:
every predicate returns a PermissionDecision carrying a reason when denied.

Matrix:
  - Owner: view, edit, invite (while under the collaborator cap), archive,
    delete, duplicate. Never fork (duplicate instead).
  - EDITOR collaborator: view, edit.
  - VIEWER collaborator: view only, regardless of visibility.
  - Authenticated non-member: view and fork public ideas.
  - Anonymous: view public ideas only.

Ownership strictly dominates a collaborator row for the same user.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ideahub.models.enums import CollaboratorRole, IdeaStatus, Visibility

if TYPE_CHECKING:
    from ideahub.models.idea import Idea

MAX_COLLABORATORS = 3


class Role(str, Enum):
    """Effective role of a principal on an idea."""

    OWNER = "OWNER"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"
    NONE = "NONE"


_ROLE_FOR_COLLABORATOR: dict[CollaboratorRole, Role] = {
    CollaboratorRole.EDITOR: Role.EDITOR,
    CollaboratorRole.VIEWER: Role.VIEWER,
}


@dataclass(frozen=True)
class CollaboratorEntry:
    user_id: int
    role: CollaboratorRole


@dataclass(frozen=True)
class IdeaSnapshot:
    """Immutable view of an idea and its collaborator list."""

    id: uuid.UUID | None
    owner_id: int
    visibility: Visibility
    status: IdeaStatus = IdeaStatus.PUBLISHED
    collaborators: tuple[CollaboratorEntry, ...] = ()

    @classmethod
    def from_idea(cls, idea: Idea) -> IdeaSnapshot:
        return cls(
            id=idea.id,
            owner_id=idea.owner_id,
            visibility=Visibility(idea.visibility),
            status=IdeaStatus(idea.status),
            collaborators=tuple(
                CollaboratorEntry(user_id=c.user_id, role=CollaboratorRole(c.role))
                for c in idea.collaborators
            ),
        )


@dataclass(frozen=True)
class PermissionDecision:
    """Outcome of a permission check. Truthy when allowed."""

    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class WorkspacePermissions:
    """Everything a client needs to render controls for one idea/workspace."""

    can_view: bool
    can_edit: bool
    can_invite: bool
    can_archive: bool
    can_fork: bool
    role: Role


ALLOWED = PermissionDecision(allowed=True)

AUTH_REQUIRED = "Authentication required"


def _deny(reason: str) -> PermissionDecision:
    return PermissionDecision(allowed=False, reason=reason)


def _find_collaborator(idea: Any, user_id: int) -> Any | None:
    for entry in idea.collaborators:
        if entry.user_id == user_id:
            return entry
    return None


def is_owner(idea: Any, principal: int | None) -> bool:
    return principal is not None and idea.owner_id == principal


def role_of(idea: Any, principal: int | None) -> Role:
    """Return the principal's role. Visibility plays no part: a stranger on a
    public idea is still NONE."""
    if principal is None:
        return Role.NONE
    if idea.owner_id == principal:
        return Role.OWNER
    entry = _find_collaborator(idea, principal)
    if entry is None:
        return Role.NONE
    return _ROLE_FOR_COLLABORATOR[CollaboratorRole(entry.role)]


def _is_public(idea: Any) -> bool:
    return Visibility(idea.visibility) is Visibility.PUBLIC


def can_view(idea: Any, principal: int | None) -> PermissionDecision:
    if _is_public(idea):
        return ALLOWED
    if principal is None:
        return _deny("Authentication required to view this idea")
    if role_of(idea, principal) is not Role.NONE:
        return ALLOWED
    return _deny("You do not have permission to view this idea")


def can_edit(idea: Any, principal: int | None) -> PermissionDecision:
    if principal is None:
        return _deny(AUTH_REQUIRED)
    role = role_of(idea, principal)
    if role in (Role.OWNER, Role.EDITOR):
        return ALLOWED
    if role is Role.VIEWER:
        return _deny("Viewers cannot edit this idea")
    return _deny("You do not have permission to edit this idea")


def _owner_only(idea: Any, principal: int | None, action: str) -> PermissionDecision:
    if principal is None:
        return _deny(AUTH_REQUIRED)
    if idea.owner_id == principal:
        return ALLOWED
    return _deny(f"Only the idea owner can {action}")


def can_invite(idea: Any, principal: int | None) -> PermissionDecision:
    decision = _owner_only(idea, principal, "add collaborators")
    if not decision:
        return decision
    if len(idea.collaborators) >= MAX_COLLABORATORS:
        return _deny(f"Maximum of {MAX_COLLABORATORS} collaborators allowed per idea")
    return ALLOWED


def can_remove_collaborator(idea: Any, principal: int | None) -> PermissionDecision:
    return _owner_only(idea, principal, "remove collaborators")


def can_update(idea: Any, principal: int | None) -> PermissionDecision:
    return _owner_only(idea, principal, "update this idea")


def can_archive(idea: Any, principal: int | None) -> PermissionDecision:
    return _owner_only(idea, principal, "archive this idea")


def can_delete(idea: Any, principal: int | None) -> PermissionDecision:
    return _owner_only(idea, principal, "delete this idea")


def can_duplicate(idea: Any, principal: int | None) -> PermissionDecision:
    return _owner_only(idea, principal, "duplicate this idea")


def can_fork(idea: Any, principal: int | None) -> PermissionDecision:
    if principal is None:
        return _deny("Authentication required to fork ideas")
    if idea.owner_id == principal:
        return _deny("Cannot fork your own idea; duplicate it instead")
    if not _is_public(idea):
        return _deny("Only public ideas can be forked")
    return ALLOWED


def can_star(idea: Any, principal: int | None) -> PermissionDecision:
    if principal is None:
        return _deny("Authentication required to star ideas")
    return can_view(idea, principal)


def permissions_for(idea: Any, principal: int | None) -> WorkspacePermissions:
    return WorkspacePermissions(
        can_view=can_view(idea, principal).allowed,
        can_edit=can_edit(idea, principal).allowed,
        can_invite=can_invite(idea, principal).allowed,
        can_archive=can_archive(idea, principal).allowed,
        can_fork=can_fork(idea, principal).allowed,
        role=role_of(idea, principal),
    )


def can_comment(idea: Any, principal: int | None) -> PermissionDecision:
    if principal is None:
        return _deny("Authentication required to comment")
    return can_view(idea, principal)
