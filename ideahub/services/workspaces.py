"""Workspace content writes.

Workspace content is an opaque document/canvas blob replaced wholesale on
every save; there is no merge. Workspaces are created and deleted only
together with their idea (see ideahub.services.ideas).
"""

from __future__ import annotations

import copy
import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ideahub.db.session import transaction
from ideahub.models import Workspace
from ideahub.services.errors import InvalidOperation, NotFound, ValidationError
from ideahub.services.ideas import lock_idea

logger = logging.getLogger(__name__)


def update_workspace_content(
    db: Session,
    idea_id: uuid.UUID,
    requester_id: int,
    content: Any,
    name: str | None = None,
) -> Workspace:
    """Replace the workspace content of idea_id.

    The caller is responsible for can_edit. Archived workspaces are read-only.
    """
    if not isinstance(content, dict):
        raise ValidationError("Workspace content must be an object")
    if name is not None and not name.strip():
        raise ValidationError("Workspace name cannot be blank")

    with transaction(db):
        # Serialize with other writers on the same idea
        if lock_idea(db, idea_id) is None:
            raise NotFound("Idea not found")
        workspace = db.execute(
            select(Workspace)
            .where(Workspace.idea_id == idea_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if workspace is None:
            raise NotFound("Workspace not found")
        if workspace.archived:
            raise InvalidOperation("Workspace is archived")
        workspace.content = copy.deepcopy(content)
        if name is not None:
            workspace.name = name.strip()
    logger.info("Workspace %s saved by user %s", workspace.id, requester_id)
    return workspace
