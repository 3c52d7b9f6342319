"""Idea, workspace and collaborator schemas for request/response validation."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ideahub.models.enums import CollaboratorRole, IdeaStatus, Visibility
from ideahub.services.permissions import Role


class IdeaCreate(BaseModel):
    """Schema for creating an idea (and its workspace)."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    content: str | None = None
    tags: list[str] = Field(default_factory=list)
    license: str = Field("MIT", max_length=64)
    language: str | None = Field(None, max_length=64)
    visibility: Visibility = Visibility.PUBLIC
    status: IdeaStatus = IdeaStatus.PUBLISHED
    workspace_content: dict[str, Any] | None = None


class IdeaUpdate(BaseModel):
    """Schema for owner edits. Only provided fields are applied.

    Null is accepted only for content and language.
    """

    title: str = Field(None, min_length=1, max_length=255)
    description: str = Field(None, min_length=1)
    category: str = Field(None, min_length=1, max_length=100)
    content: str | None = None
    tags: list[str] = Field(None)
    license: str = Field(None, min_length=1, max_length=64)
    language: str | None = Field(None, max_length=64)
    visibility: Visibility = Field(None)
    status: IdeaStatus = Field(None)


class CopyRequest(BaseModel):
    """Optional overrides for fork and duplicate."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)


class ArchiveRequest(BaseModel):
    archived: bool = True


class IdeaRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    content: str | None
    category: str
    tags: list[str]
    license: str
    language: str | None
    owner_id: int
    visibility: Visibility
    status: IdeaStatus
    star_count: int
    fork_count: int
    is_fork: bool
    forked_from_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class WorkspaceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    idea_id: uuid.UUID
    owner_id: int
    name: str
    content: dict[str, Any]
    is_public: bool
    archived: bool
    updated_at: datetime


class WorkspaceUpdate(BaseModel):
    content: dict[str, Any]
    name: str | None = Field(None, min_length=1, max_length=255)


class IdeaWithWorkspace(BaseModel):
    idea: IdeaRead
    workspace: WorkspaceRead


class CollaboratorAdd(BaseModel):
    user_id: int = Field(..., gt=0)
    role: CollaboratorRole = CollaboratorRole.VIEWER


class CollaboratorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    idea_id: uuid.UUID
    user_id: int
    role: CollaboratorRole
    created_at: datetime


class CollaboratorList(BaseModel):
    items: list[CollaboratorRead]
    max_allowed: int


class PermissionsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    can_view: bool
    can_edit: bool
    can_invite: bool
    can_archive: bool
    can_fork: bool
    role: Role


class StarResponse(BaseModel):
    is_starred: bool
    star_count: int


class IdeaList(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    items: list[IdeaRead]
    total: int
    limit: int
    offset: int
