"""Comments on ideas.

Replies are one level deep: a reply's parent must be a top-level comment on
the same idea. Authors edit their own comments; the author or the idea owner
may delete one, which removes its replies as well. Who may read or write at
all (can_view / can_comment) is decided in ideahub.services.access.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from ideahub.db.session import transaction
from ideahub.models import Comment, IdeaStatus, NotificationKind
from ideahub.services.errors import InvalidOperation, NotFound, PermissionDenied, ValidationError
from ideahub.services.ideas import lock_idea
from ideahub.services.notifications import notify

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 5000


def _clean_content(content: str | None) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment cannot be empty")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")
    return content


def get_comment(db: Session, comment_id: int) -> Comment | None:
    return db.execute(
        select(Comment)
        .where(Comment.id == comment_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def list_comments(db: Session, idea_id: uuid.UUID) -> list[Comment]:
    """Top-level comments, newest first, each with its replies oldest first."""
    return list(
        db.execute(
            select(Comment)
            .where(Comment.idea_id == idea_id, Comment.parent_id.is_(None))
            .options(selectinload(Comment.replies))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .execution_options(populate_existing=True)
        ).scalars().all()
    )


def add_comment(
    db: Session,
    idea_id: uuid.UUID,
    author_id: int,
    content: str,
    parent_id: int | None = None,
) -> Comment:
    """Post a comment (or a reply to parent_id). Archived ideas take no new comments."""
    content = _clean_content(content)
    with transaction(db):
        idea = lock_idea(db, idea_id)
        if idea is None:
            raise NotFound("Idea not found")
        if idea.status == IdeaStatus.ARCHIVED:
            raise InvalidOperation("Archived ideas cannot be commented on")
        if parent_id is not None:
            parent = db.get(Comment, parent_id)
            if parent is None or parent.idea_id != idea_id:
                raise NotFound("Parent comment not found")
            if parent.parent_id is not None:
                raise ValidationError("Replies cannot be nested")
        comment = Comment(idea_id=idea_id, author_id=author_id, parent_id=parent_id, content=content)
        db.add(comment)
        db.flush()
        owner_id = idea.owner_id
        title = idea.title

    logger.info("Comment %s added to idea %s by user %s", comment.id, idea_id, author_id)
    if owner_id != author_id:
        notify(
            db,
            owner_id,
            NotificationKind.COMMENT,
            f'New comment on your idea "{title}"',
            related_user_id=author_id,
            related_idea_id=idea_id,
        )
    return comment


def update_comment(db: Session, comment_id: int, requester_id: int, content: str) -> Comment:
    content = _clean_content(content)
    with transaction(db):
        comment = get_comment(db, comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        if comment.author_id != requester_id:
            raise PermissionDenied("Only the author can edit this comment", authenticated=True)
        comment.content = content
    return comment


def delete_comment(db: Session, comment_id: int, requester_id: int) -> None:
    """Delete a comment and its replies (author or idea owner)."""
    with transaction(db):
        comment = get_comment(db, comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        idea = lock_idea(db, comment.idea_id)
        if requester_id not in (comment.author_id, idea.owner_id if idea else None):
            raise PermissionDenied(
                "Only the author or the idea owner can delete this comment", authenticated=True
            )
        db.execute(delete(Comment).where(Comment.parent_id == comment_id))
        db.execute(delete(Comment).where(Comment.id == comment_id))
    logger.info("Comment %s deleted by user %s", comment_id, requester_id)
