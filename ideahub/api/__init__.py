"""API routes."""

from ideahub.api.auth import router as auth_router
from ideahub.api.comments import router as comments_router
from ideahub.api.ideas import router as ideas_router
from ideahub.api.users import notifications_router, router as users_router
from ideahub.api.workspaces import router as workspaces_router

__all__ = [
    "auth_router",
    "comments_router",
    "ideas_router",
    "notifications_router",
    "users_router",
    "workspaces_router",
]
