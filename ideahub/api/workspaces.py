"""Workspace API routes. Workspaces are addressed by their idea's id."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ideahub.api.deps import get_principal
from ideahub.api.errors import unwrap
from ideahub.db.session import get_db
from ideahub.schemas.idea import WorkspaceRead, WorkspaceUpdate
from ideahub.services import access

router = APIRouter()


@router.get("", response_model=list[WorkspaceRead])
def api_list_workspaces(
    user_id: int | None = None,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> list[WorkspaceRead]:
    """Workspaces of user_id, or the caller's own when omitted. Others' private ones are hidden."""
    rows = unwrap(access.list_workspaces(db, principal, user_id))
    return [WorkspaceRead.model_validate(w) for w in rows]


@router.get("/{idea_id}", response_model=WorkspaceRead)
def api_get_workspace(
    idea_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> WorkspaceRead:
    return WorkspaceRead.model_validate(unwrap(access.get_workspace(db, principal, idea_id)))


@router.put("/{idea_id}", response_model=WorkspaceRead)
def api_save_workspace(
    idea_id: uuid.UUID,
    data: WorkspaceUpdate,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> WorkspaceRead:
    """Replace workspace content (owner or editor)."""
    workspace = unwrap(access.update_workspace(db, principal, idea_id, data.content, data.name))
    return WorkspaceRead.model_validate(workspace)
