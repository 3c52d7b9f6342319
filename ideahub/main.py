"""
IdeaHub FastAPI application entry point.

Ideas, their workspaces, collaborators, comments, stars, forks and follows.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ideahub import __version__
from ideahub.config import get_settings
from ideahub.db.session import check_db_connection, engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("IdeaHub starting")
    try:
        try:
            check_db_connection()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise
        yield
    finally:
        logger.info("IdeaHub shutting down")
        engine.dispose()
        logger.info("Database connection pool closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    from ideahub.api import (
        auth_router,
        comments_router,
        ideas_router,
        notifications_router,
        users_router,
        workspaces_router,
    )

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(ideas_router, prefix="/api/ideas", tags=["ideas"])
    app.include_router(comments_router, prefix="/api/comments", tags=["comments"])
    app.include_router(workspaces_router, prefix="/api/workspaces", tags=["workspaces"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(notifications_router, prefix="/api/notifications", tags=["notifications"])

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint. Confirms DB connectivity."""
        from sqlalchemy import text

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "ok",
                "version": __version__,
                "database": "connected",
            }
        except Exception:
            from fastapi.responses import JSONResponse

            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": __version__,
                    "database": "disconnected",
                },
            )

    return app


app = create_app()
