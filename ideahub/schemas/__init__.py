"""Pydantic schemas for request/response validation."""

from ideahub.schemas.auth import LoginRequest, SignupRequest, TokenResponse
from ideahub.schemas.comment import CommentCreate, CommentRead, CommentUpdate, ReplyRead
from ideahub.schemas.idea import (
    ArchiveRequest,
    CollaboratorAdd,
    CollaboratorList,
    CollaboratorRead,
    CopyRequest,
    IdeaCreate,
    IdeaList,
    IdeaRead,
    IdeaUpdate,
    IdeaWithWorkspace,
    PermissionsRead,
    StarResponse,
    WorkspaceRead,
    WorkspaceUpdate,
)
from ideahub.schemas.user import (
    FollowResponse,
    MeRead,
    NotificationList,
    NotificationRead,
    ProfileUpdate,
    UserRead,
)

__all__ = [
    # Auth
    "LoginRequest",
    "SignupRequest",
    "TokenResponse",
    # Ideas
    "ArchiveRequest",
    "CopyRequest",
    "IdeaCreate",
    "IdeaList",
    "IdeaRead",
    "IdeaUpdate",
    "IdeaWithWorkspace",
    "PermissionsRead",
    "StarResponse",
    # Workspaces
    "WorkspaceRead",
    "WorkspaceUpdate",
    # Collaborators
    "CollaboratorAdd",
    "CollaboratorList",
    "CollaboratorRead",
    # Comments
    "CommentCreate",
    "CommentRead",
    "CommentUpdate",
    "ReplyRead",
    # Users
    "FollowResponse",
    "MeRead",
    "NotificationList",
    "NotificationRead",
    "ProfileUpdate",
    "UserRead",
]
