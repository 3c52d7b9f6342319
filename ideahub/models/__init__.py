"""SQLAlchemy models."""

from ideahub.models.comment import Comment
from ideahub.models.enums import CollaboratorRole, IdeaStatus, NotificationKind, Visibility
from ideahub.models.follow import Follow
from ideahub.models.idea import Idea
from ideahub.models.idea_collaborator import IdeaCollaborator
from ideahub.models.notification import Notification
from ideahub.models.star import Star
from ideahub.models.user import User
from ideahub.models.workspace import EMPTY_WORKSPACE_CONTENT, Workspace

__all__ = [
    "CollaboratorRole",
    "Comment",
    "EMPTY_WORKSPACE_CONTENT",
    "Follow",
    "Idea",
    "IdeaCollaborator",
    "IdeaStatus",
    "Notification",
    "NotificationKind",
    "Star",
    "User",
    "Visibility",
    "Workspace",
]
