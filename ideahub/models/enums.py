"""Tagged enums shared by the models and the permission resolver."""

from __future__ import annotations

from enum import Enum


class Visibility(str, Enum):
    """Who can see an idea without being invited."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class IdeaStatus(str, Enum):
    """Publication lifecycle of an idea."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class CollaboratorRole(str, Enum):
    """Role stored on an idea_collaborators row. Ownership is never stored here."""

    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class NotificationKind(str, Enum):
    FOLLOW = "FOLLOW"
    STAR = "STAR"
    FORK = "FORK"
    COLLABORATOR_ADDED = "COLLABORATOR_ADDED"
    COMMENT = "COMMENT"
