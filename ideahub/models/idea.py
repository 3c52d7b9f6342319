"""Idea model: the shareable unit, always paired with exactly one Workspace."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ideahub.db.session import Base
from ideahub.models.enums import IdeaStatus, Visibility

if TYPE_CHECKING:
    from ideahub.models.idea_collaborator import IdeaCollaborator
    from ideahub.models.user import User
    from ideahub.models.workspace import Workspace


class Idea(Base):
    """Idea owned by one user. star_count/fork_count mirror the stars table and
    the ideas forked from this one."""

    __tablename__ = "ideas"

    __table_args__ = (
        Index("ix_ideas_owner_id", "owner_id"),
        Index("ix_ideas_forked_from_id", "forked_from_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    license: Mapped[str] = mapped_column(String(64), default="MIT", nullable=False)
    language: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    visibility: Mapped[Visibility] = mapped_column(
        Enum(Visibility, name="idea_visibility", native_enum=False, length=16),
        default=Visibility.PUBLIC,
        nullable=False,
    )
    status: Mapped[IdeaStatus] = mapped_column(
        Enum(IdeaStatus, name="idea_status", native_enum=False, length=16),
        default=IdeaStatus.PUBLISHED,
        nullable=False,
    )
    star_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    fork_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_fork: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    forked_from_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("ideas.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    owner: Mapped[User] = relationship("User", lazy="joined")
    workspace: Mapped[Workspace | None] = relationship(
        "Workspace",
        back_populates="idea",
        uselist=False,
        passive_deletes=True,
    )
    collaborators: Mapped[list[IdeaCollaborator]] = relationship(
        "IdeaCollaborator",
        back_populates="idea",
        order_by="IdeaCollaborator.id",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Idea {self.id} owner={self.owner_id}>"
