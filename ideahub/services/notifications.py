"""Notification service: best-effort social notifications.

notify() runs in its own transaction after the triggering lifecycle
transaction has committed. A failure here is logged and swallowed: a missing
notification never undoes a follow, star, fork or invitation.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ideahub.config import get_settings
from ideahub.db.session import transaction
from ideahub.models import Notification, NotificationKind

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    recipient_user_id: int,
    kind: NotificationKind,
    message: str,
    related_user_id: int | None = None,
    related_idea_id: uuid.UUID | None = None,
) -> Notification | None:
    """Create a notification for recipient_user_id. Returns None if disabled or failed."""
    if not get_settings().notifications_enabled:
        return None
    try:
        with transaction(db):
            notification = Notification(
                recipient_user_id=recipient_user_id,
                kind=kind,
                message=message[:500],
                related_user_id=related_user_id,
                related_idea_id=related_idea_id,
            )
            db.add(notification)
        return notification
    except SQLAlchemyError:
        logger.warning(
            "Notification %s to user %s could not be stored",
            kind.value,
            recipient_user_id,
            exc_info=True,
        )
        return None


def list_notifications(
    db: Session,
    user_id: int,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    """Most recent notifications for user_id, newest first."""
    stmt = select(Notification).where(Notification.recipient_user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read == False)  # noqa: E712
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def mark_all_read(db: Session, user_id: int) -> int:
    """Mark every unread notification for user_id as read. Returns rows updated."""
    with transaction(db):
        result = db.execute(
            update(Notification)
            .where(Notification.recipient_user_id == user_id, Notification.is_read == False)  # noqa: E712
            .values(is_read=True)
        )
    return result.rowcount or 0
