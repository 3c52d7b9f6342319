"""Comment API routes addressed by comment id. Listing and posting live under /api/ideas."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ideahub.api.deps import get_principal
from ideahub.api.errors import unwrap
from ideahub.db.session import get_db
from ideahub.schemas.comment import CommentRead, CommentUpdate
from ideahub.services import access

router = APIRouter()


@router.patch("/{comment_id}", response_model=CommentRead)
def api_update_comment(
    comment_id: int,
    data: CommentUpdate,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> CommentRead:
    """Edit your own comment."""
    return CommentRead.model_validate(
        unwrap(access.update_comment(db, principal, comment_id, data.content))
    )


@router.delete("/{comment_id}", status_code=204)
def api_delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> None:
    """Delete a comment and its replies (author or idea owner)."""
    unwrap(access.delete_comment(db, principal, comment_id))
