"""Comment model: a message on an idea, optionally replying to a top-level comment."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ideahub.db.session import Base

if TYPE_CHECKING:
    from ideahub.models.user import User


class Comment(Base):
    """Comment on an idea. Replies are one level deep; deleting a comment deletes its replies."""

    __tablename__ = "comments"

    __table_args__ = (
        Index("ix_comments_idea_id", "idea_id"),
        Index("ix_comments_parent_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idea_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    author: Mapped[User] = relationship("User", lazy="joined")
    replies: Mapped[list[Comment]] = relationship(
        "Comment",
        order_by="Comment.id",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Comment {self.id} idea={self.idea_id} author={self.author_id}>"
