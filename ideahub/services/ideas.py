"""Idea lifecycle — create, fork, duplicate, update, archive and delete.

Every operation runs as one transaction (see ideahub.db.session.transaction).
An Idea is never written without its Workspace, and the denormalized counters
(Idea.fork_count, User.idea_count) move in the same transaction as the rows
they count. Counter writes are SQL expressions on a locked row, never
read-modify-write in Python.

Permission checks belong to ideahub.services.access; the functions here
re-validate only what must hold under the row lock (existence, ownership).
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from ideahub.db.session import transaction
from ideahub.models import (
    EMPTY_WORKSPACE_CONTENT,
    Comment,
    Idea,
    IdeaCollaborator,
    IdeaStatus,
    NotificationKind,
    Star,
    User,
    Visibility,
    Workspace,
)
from ideahub.services.errors import InvalidOperation, NotFound, PermissionDenied, ValidationError
from ideahub.services.notifications import notify
from ideahub.services.permissions import IdeaSnapshot

logger = logging.getLogger(__name__)

REQUIRED_IDEA_FIELDS = ("title", "description", "category")

# Fields an owner may change after creation; owner_id and counters are never client-writable
UPDATABLE_IDEA_FIELDS = frozenset(
    {
        "title",
        "description",
        "content",
        "category",
        "tags",
        "license",
        "language",
        "visibility",
        "status",
    }
)

NULLABLE_IDEA_FIELDS = frozenset({"content", "language"})

COPY_OVERRIDE_FIELDS = frozenset({"title", "description"})


# ---------------------------------------------------------------------------
# Loading and locking
# ---------------------------------------------------------------------------


def lock_idea(db: Session, idea_id: uuid.UUID) -> Idea | None:
    """Load the idea row with a write lock held until the transaction ends.

    Concurrent writers touching the same idea's collaborators or counters
    queue here. populate_existing refreshes any copy already in the session.
    """
    return db.execute(
        select(Idea)
        .where(Idea.id == idea_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def get_idea(db: Session, idea_id: uuid.UUID) -> Idea | None:
    """Idea with collaborators and workspace loaded, or None."""
    return db.execute(
        select(Idea)
        .where(Idea.id == idea_id)
        .options(selectinload(Idea.collaborators), selectinload(Idea.workspace))
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def get_idea_snapshot(db: Session, idea_id: uuid.UUID) -> IdeaSnapshot | None:
    idea = get_idea(db, idea_id)
    if idea is None:
        return None
    return IdeaSnapshot.from_idea(idea)


def get_workspace(db: Session, idea_id: uuid.UUID) -> Workspace | None:
    return db.execute(select(Workspace).where(Workspace.idea_id == idea_id)).scalar_one_or_none()


# ---------------------------------------------------------------------------
# Field handling
# ---------------------------------------------------------------------------


def _parse_visibility(value: Any) -> Visibility:
    try:
        return Visibility(value)
    except ValueError:
        raise ValidationError(f"Invalid visibility: {value!r}") from None


def _parse_status(value: Any) -> IdeaStatus:
    try:
        return IdeaStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}") from None


def _require_text(fields: Mapping[str, Any], names: tuple[str, ...]) -> None:
    missing = [n for n in names if not isinstance(fields.get(n), str) or not fields[n].strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _copied_status(source: Idea) -> IdeaStatus:
    # Copies start live even when the source has been archived
    if source.status == IdeaStatus.ARCHIVED:
        return IdeaStatus.PUBLISHED
    return IdeaStatus(source.status)


def _workspace_for(idea: Idea, content: dict | None) -> Workspace:
    return Workspace(
        idea_id=idea.id,
        owner_id=idea.owner_id,
        name=idea.title,
        content=copy.deepcopy(content) if content is not None else copy.deepcopy(EMPTY_WORKSPACE_CONTENT),
        is_public=idea.visibility == Visibility.PUBLIC,
        archived=False,
    )


def _bump_idea_count(db: Session, user_id: int, delta: int) -> None:
    stmt = update(User).where(User.id == user_id).values(idea_count=User.idea_count + delta)
    if delta < 0:
        stmt = stmt.where(User.idea_count > 0)
    db.execute(stmt)


def _require_owner(idea: Idea, requester_id: int, action: str) -> None:
    if idea.owner_id != requester_id:
        raise PermissionDenied(f"Only the idea owner can {action}", authenticated=True)


# ---------------------------------------------------------------------------
# Lifecycle operations
# ---------------------------------------------------------------------------


def create_idea_with_workspace(
    db: Session,
    owner_id: int,
    fields: Mapping[str, Any],
) -> tuple[Idea, Workspace]:
    """Insert an Idea and its Workspace in one transaction.

    fields: title, description, category (required); content, tags, license,
    language, visibility (default PUBLIC), status (DRAFT or PUBLISHED,
    default PUBLISHED), workspace_content (initial canvas/document state).
    """
    _require_text(fields, REQUIRED_IDEA_FIELDS)
    visibility = _parse_visibility(fields.get("visibility") or Visibility.PUBLIC)
    status = _parse_status(fields.get("status") or IdeaStatus.PUBLISHED)
    if status == IdeaStatus.ARCHIVED:
        raise ValidationError("A new idea cannot start archived")
    workspace_content = fields.get("workspace_content")
    if workspace_content is not None and not isinstance(workspace_content, dict):
        raise ValidationError("workspace_content must be an object")

    with transaction(db):
        if db.get(User, owner_id) is None:
            raise NotFound("User not found")
        idea = Idea(
            id=uuid.uuid4(),
            title=fields["title"].strip(),
            description=fields["description"].strip(),
            content=fields.get("content"),
            category=fields["category"].strip(),
            tags=list(fields.get("tags") or []),
            license=fields.get("license") or "MIT",
            language=fields.get("language"),
            owner_id=owner_id,
            visibility=visibility,
            status=status,
            star_count=0,
            fork_count=0,
            is_fork=False,
        )
        db.add(idea)
        db.flush()
        workspace = _workspace_for(idea, workspace_content)
        db.add(workspace)
        db.flush()
        _bump_idea_count(db, owner_id, 1)
    logger.info("Idea %s created with workspace %s by user %s", idea.id, workspace.id, owner_id)
    return idea, workspace


def _copy_idea(
    db: Session,
    source: Idea,
    new_owner_id: int,
    overrides: Mapping[str, Any],
    *,
    as_fork: bool,
) -> tuple[Idea, Workspace]:
    unknown = set(overrides) - COPY_OVERRIDE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be overridden: {', '.join(sorted(unknown))}")
    suffix = "(Fork)" if as_fork else "(Copy)"
    source_workspace = get_workspace(db, source.id)
    idea = Idea(
        id=uuid.uuid4(),
        title=(overrides.get("title") or f"{source.title} {suffix}").strip(),
        description=(overrides.get("description") or source.description).strip(),
        content=source.content,
        category=source.category,
        tags=list(source.tags or []),
        license=source.license,
        language=source.language,
        owner_id=new_owner_id,
        visibility=Visibility.PUBLIC if as_fork else Visibility(source.visibility),
        status=_copied_status(source),
        star_count=0,
        fork_count=0,
        is_fork=as_fork,
        forked_from_id=source.id if as_fork else None,
    )
    db.add(idea)
    db.flush()
    workspace = _workspace_for(idea, source_workspace.content if source_workspace else None)
    db.add(workspace)
    db.flush()
    _bump_idea_count(db, new_owner_id, 1)
    return idea, workspace


def fork_idea(
    db: Session,
    source_idea_id: uuid.UUID,
    requester_id: int,
    overrides: Mapping[str, Any] | None = None,
) -> tuple[Idea, Workspace]:
    """Fork a public idea into a new, independent idea owned by requester_id.

    The fork and its workspace copy are created and the source's fork_count is
    incremented in one transaction. The caller is responsible for can_fork.
    """
    with transaction(db):
        source = lock_idea(db, source_idea_id)
        if source is None:
            raise NotFound("Idea not found")
        if db.get(User, requester_id) is None:
            raise NotFound("User not found")
        fork, workspace = _copy_idea(db, source, requester_id, overrides or {}, as_fork=True)
        db.execute(
            update(Idea).where(Idea.id == source.id).values(fork_count=Idea.fork_count + 1)
        )
        db.refresh(source)
        source_owner_id = source.owner_id
        source_title = source.title
    logger.info("Idea %s forked from %s by user %s", fork.id, source_idea_id, requester_id)
    notify(
        db,
        source_owner_id,
        NotificationKind.FORK,
        f'Your idea "{source_title}" was forked',
        related_user_id=requester_id,
        related_idea_id=fork.id,
    )
    return fork, workspace


def duplicate_idea(
    db: Session,
    idea_id: uuid.UUID,
    requester_id: int,
    overrides: Mapping[str, Any] | None = None,
) -> tuple[Idea, Workspace]:
    """Copy an idea for its own owner. Not a fork: fork_count is untouched."""
    with transaction(db):
        source = lock_idea(db, idea_id)
        if source is None:
            raise NotFound("Idea not found")
        _require_owner(source, requester_id, "duplicate this idea")
        idea, workspace = _copy_idea(db, source, requester_id, overrides or {}, as_fork=False)
    logger.info("Idea %s duplicated from %s", idea.id, idea_id)
    return idea, workspace


def update_idea(
    db: Session,
    idea_id: uuid.UUID,
    requester_id: int,
    fields: Mapping[str, Any],
) -> Idea:
    """Apply owner edits. Changing visibility also flips Workspace.is_public."""
    unknown = set(fields) - UPDATABLE_IDEA_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    nulled = sorted(n for n, v in fields.items() if v is None and n not in NULLABLE_IDEA_FIELDS)
    if nulled:
        raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}")
    if "tags" in fields and (
        not isinstance(fields["tags"], list) or not all(isinstance(t, str) for t in fields["tags"])
    ):
        raise ValidationError("tags must be a list of strings")
    for name in REQUIRED_IDEA_FIELDS:
        if name in fields:
            _require_text(fields, (name,))

    values = dict(fields)
    if "visibility" in values:
        values["visibility"] = _parse_visibility(values["visibility"])
    if "status" in values:
        values["status"] = _parse_status(values["status"])
        if values["status"] == IdeaStatus.ARCHIVED:
            raise InvalidOperation("Use archive to archive an idea")

    with transaction(db):
        idea = lock_idea(db, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        _require_owner(idea, requester_id, "update this idea")
        if idea.status == IdeaStatus.ARCHIVED and "status" in values:
            raise InvalidOperation("Restore the idea before changing its status")
        for name, value in values.items():
            setattr(idea, name, value.strip() if name in REQUIRED_IDEA_FIELDS else value)
        if "visibility" in values:
            db.execute(
                update(Workspace)
                .where(Workspace.idea_id == idea.id)
                .values(is_public=values["visibility"] == Visibility.PUBLIC)
            )
    return idea


def set_archived(
    db: Session,
    idea_id: uuid.UUID,
    requester_id: int,
    archived: bool = True,
) -> Idea:
    """Archive (or restore) an idea and its workspace together."""
    with transaction(db):
        idea = lock_idea(db, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        _require_owner(idea, requester_id, "archive this idea")
        idea.status = IdeaStatus.ARCHIVED if archived else IdeaStatus.PUBLISHED
        db.execute(
            update(Workspace).where(Workspace.idea_id == idea.id).values(archived=archived)
        )
    logger.info("Idea %s %s", idea_id, "archived" if archived else "restored")
    return idea


def delete_idea(db: Session, idea_id: uuid.UUID, requester_id: int) -> None:
    """Delete an idea with its workspace, collaborators, stars and comments.

    Forks of the deleted idea survive with forked_from_id cleared. Deleting a
    fork gives back one from its source's fork_count.
    """
    with transaction(db):
        idea = lock_idea(db, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        _require_owner(idea, requester_id, "delete this idea")
        if idea.forked_from_id is not None:
            db.execute(
                update(Idea)
                .where(Idea.id == idea.forked_from_id, Idea.fork_count > 0)
                .values(fork_count=Idea.fork_count - 1)
            )
        db.execute(
            update(Idea).where(Idea.forked_from_id == idea_id).values(forked_from_id=None)
        )
        db.execute(delete(Star).where(Star.idea_id == idea_id))
        db.execute(delete(Comment).where(Comment.idea_id == idea_id))
        db.execute(delete(IdeaCollaborator).where(IdeaCollaborator.idea_id == idea_id))
        db.execute(delete(Workspace).where(Workspace.idea_id == idea_id))
        db.execute(delete(Idea).where(Idea.id == idea_id))
        _bump_idea_count(db, idea.owner_id, -1)
    logger.info("Idea %s deleted by user %s", idea_id, requester_id)
