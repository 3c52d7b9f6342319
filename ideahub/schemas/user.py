"""User and notification schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ideahub.models.enums import NotificationKind


class UserRead(BaseModel):
    """Public profile. Never includes email or password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: str | None
    bio: str | None
    avatar_url: str | None
    is_verified: bool
    follower_count: int
    following_count: int
    idea_count: int


class MeRead(UserRead):
    """The authenticated user's own profile."""

    email: str


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(None, max_length=255)
    bio: str | None = Field(None, max_length=2000)
    avatar_url: str | None = Field(None, max_length=500)


class FollowResponse(BaseModel):
    is_following: bool
    follower_count: int


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: NotificationKind
    message: str
    related_user_id: int | None
    related_idea_id: uuid.UUID | None
    is_read: bool
    created_at: datetime


class NotificationList(BaseModel):
    items: list[NotificationRead]
