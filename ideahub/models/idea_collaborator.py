"""IdeaCollaborator model: a non-owner user invited to an idea."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ideahub.db.session import Base
from ideahub.models.enums import CollaboratorRole

if TYPE_CHECKING:
    from ideahub.models.idea import Idea
    from ideahub.models.user import User


class IdeaCollaborator(Base):
    """Collaborator row. At most three per idea; never one for the idea's owner."""

    __tablename__ = "idea_collaborators"

    __table_args__ = (UniqueConstraint("idea_id", "user_id", name="uq_idea_collaborator"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idea_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("ideas.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[CollaboratorRole] = mapped_column(
        Enum(CollaboratorRole, name="collaborator_role", native_enum=False, length=16),
        default=CollaboratorRole.VIEWER,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    idea: Mapped[Idea] = relationship("Idea", back_populates="collaborators")
    user: Mapped[User] = relationship("User", lazy="joined")

    def __repr__(self) -> str:
        return f"<IdeaCollaborator idea={self.idea_id} user={self.user_id} {self.role.value}>"
