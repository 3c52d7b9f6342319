"""Comment schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ideahub.schemas.user import UserRead
from ideahub.services.comments import MAX_COMMENT_LENGTH


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    parent_id: int | None = Field(None, gt=0)


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)


class ReplyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    idea_id: uuid.UUID
    author_id: int
    parent_id: int | None
    content: str
    author: UserRead
    created_at: datetime
    updated_at: datetime


class CommentRead(ReplyRead):
    """Top-level comment with its replies."""

    replies: list[ReplyRead] = []
