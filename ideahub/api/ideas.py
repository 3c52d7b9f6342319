"""Idea API routes: listing, lifecycle, stars, permissions, collaborators and comments."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ideahub.api.deps import get_principal
from ideahub.api.errors import unwrap
from ideahub.db.session import get_db
from ideahub.models import Visibility
from ideahub.schemas.comment import CommentCreate, CommentRead
from ideahub.schemas.idea import (
    ArchiveRequest,
    CollaboratorAdd,
    CollaboratorList,
    CollaboratorRead,
    CopyRequest,
    IdeaCreate,
    IdeaList,
    IdeaRead,
    IdeaUpdate,
    IdeaWithWorkspace,
    PermissionsRead,
    StarResponse,
    WorkspaceRead,
)
from ideahub.services import access
from ideahub.services.listing import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ideahub.services.permissions import MAX_COLLABORATORS

router = APIRouter()


def _pair(result) -> IdeaWithWorkspace:
    idea, workspace = result
    return IdeaWithWorkspace(
        idea=IdeaRead.model_validate(idea),
        workspace=WorkspaceRead.model_validate(workspace),
    )


@router.post("", response_model=IdeaWithWorkspace, status_code=201)
def api_create_idea(
    data: IdeaCreate,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> IdeaWithWorkspace:
    """Create an idea together with its workspace."""
    return _pair(unwrap(access.create_idea(db, principal, data.model_dump())))


@router.get("", response_model=IdeaList)
def api_list_ideas(
    visibility: Visibility | None = None,
    author_id: int | None = None,
    category: str | None = None,
    tags: str | None = Query(None, description="Comma-separated; any match"),
    search: str | None = None,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> IdeaList:
    """Published ideas the caller can view, newest first."""
    filters = {
        "visibility": visibility,
        "author_id": author_id,
        "category": category,
        "tags": tags,
        "search": search,
        "limit": limit,
        "offset": offset,
    }
    return IdeaList.model_validate(unwrap(access.list_ideas(db, principal, filters)))


@router.get("/{idea_id}", response_model=IdeaRead)
def api_get_idea(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> IdeaRead:
    return IdeaRead.model_validate(unwrap(access.get_idea(db, principal, idea_id)))


@router.patch("/{idea_id}", response_model=IdeaRead)
def api_update_idea(
    idea_id: uuid.UUID,
    data: IdeaUpdate,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> IdeaRead:
    """Owner-only metadata update."""
    fields = data.model_dump(exclude_unset=True)
    return IdeaRead.model_validate(unwrap(access.update_idea(db, principal, idea_id, fields)))


@router.delete("/{idea_id}", status_code=204)
def api_delete_idea(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> None:
    """Delete an idea, its workspace, collaborators and stars."""
    unwrap(access.delete_idea(db, principal, idea_id))


@router.post("/{idea_id}/fork", response_model=IdeaWithWorkspace, status_code=201)
def api_fork_idea(
    idea_id: uuid.UUID,
    data: CopyRequest | None = None,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> IdeaWithWorkspace:
    """Fork a public idea owned by someone else."""
    overrides = data.model_dump(exclude_none=True) if data else {}
    return _pair(unwrap(access.fork_idea(db, principal, idea_id, overrides)))


@router.post("/{idea_id}/duplicate", response_model=IdeaWithWorkspace, status_code=201)
def api_duplicate_idea(
    idea_id: uuid.UUID,
    data: CopyRequest | None = None,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> IdeaWithWorkspace:
    """Copy one of your own ideas."""
    overrides = data.model_dump(exclude_none=True) if data else {}
    return _pair(unwrap(access.duplicate_idea(db, principal, idea_id, overrides)))


@router.post("/{idea_id}/archive", response_model=IdeaRead)
def api_archive_idea(
    idea_id: uuid.UUID,
    data: ArchiveRequest,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> IdeaRead:
    return IdeaRead.model_validate(
        unwrap(access.set_archived(db, principal, idea_id, data.archived))
    )


@router.post("/{idea_id}/star", response_model=StarResponse)
def api_star_idea(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> StarResponse:
    state = unwrap(access.star_idea(db, principal, idea_id, starred=True))
    return StarResponse(is_starred=state.starred, star_count=state.star_count)


@router.delete("/{idea_id}/star", response_model=StarResponse)
def api_unstar_idea(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> StarResponse:
    state = unwrap(access.star_idea(db, principal, idea_id, starred=False))
    return StarResponse(is_starred=state.starred, star_count=state.star_count)


@router.get("/{idea_id}/permissions", response_model=PermissionsRead)
def api_get_permissions(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> PermissionsRead:
    """What the caller may do with this idea and its workspace."""
    return PermissionsRead.model_validate(unwrap(access.get_permissions(db, principal, idea_id)))


@router.get("/{idea_id}/collaborators", response_model=CollaboratorList)
def api_list_collaborators(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> CollaboratorList:
    rows = unwrap(access.list_collaborators(db, principal, idea_id))
    return CollaboratorList(
        items=[CollaboratorRead.model_validate(r) for r in rows],
        max_allowed=MAX_COLLABORATORS,
    )


@router.post("/{idea_id}/collaborators", response_model=CollaboratorRead, status_code=201)
def api_add_collaborator(
    idea_id: uuid.UUID,
    data: CollaboratorAdd,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> CollaboratorRead:
    """Invite a user (owner only, at most three collaborators)."""
    row = unwrap(access.add_collaborator(db, principal, idea_id, data.user_id, data.role))
    return CollaboratorRead.model_validate(row)


@router.delete("/{idea_id}/collaborators/{user_id}", status_code=204)
def api_remove_collaborator(
    idea_id: uuid.UUID,
    user_id: int,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> None:
    unwrap(access.remove_collaborator(db, principal, idea_id, user_id))


@router.get("/{idea_id}/comments", response_model=list[CommentRead])
def api_list_comments(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> list[CommentRead]:
    rows = unwrap(access.list_comments(db, principal, idea_id))
    return [CommentRead.model_validate(r) for r in rows]


@router.post("/{idea_id}/comments", response_model=CommentRead, status_code=201)
def api_add_comment(
    idea_id: uuid.UUID,
    data: CommentCreate,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> CommentRead:
    """Comment on an idea you can view, or reply to a top-level comment."""
    comment = unwrap(access.add_comment(db, principal, idea_id, data.content, data.parent_id))
    return CommentRead.model_validate(comment)
