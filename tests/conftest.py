"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.test_constants import TEST_PASSWORD, TEST_SECRET_KEY

# Force a throwaway SQLite file DB when pytest runs; don't inherit from .env.
# A file (not :memory:) so worker threads in concurrency tests share it.
_test_dir = tempfile.mkdtemp(prefix="ideahub-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_test_dir, 'ideahub_test.db')}"
os.environ["NOTIFICATIONS_ENABLED"] = "true"
os.environ.setdefault("SECRET_KEY", TEST_SECRET_KEY)


@pytest.fixture
def db() -> Session:
    """Database session on a freshly created schema. Tables are dropped after each test."""
    import ideahub.models  # noqa: F401  (register tables on Base.metadata)
    from ideahub.db import Base, SessionLocal, engine

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def make_user(db: Session):
    """Factory for committed users: make_user("bob") -> User."""
    from ideahub.services.users import create_user

    def _make(username: str, password: str = TEST_PASSWORD):
        return create_user(db, username, f"{username}@example.com", password)

    return _make


@pytest.fixture
def make_idea(db: Session):
    """Factory for committed ideas: make_idea(owner, visibility="PRIVATE") -> (Idea, Workspace)."""
    from ideahub.services.ideas import create_idea_with_workspace

    def _make(owner, **fields):
        values = {
            "title": "Solar kiosk",
            "description": "Off-grid charging for markets",
            "category": "energy",
        }
        values.update(fields)
        return create_idea_with_workspace(db, owner.id, values)

    return _make


@pytest.fixture
def client_with_db(db: Session) -> TestClient:
    """TestClient with get_db overridden to use the test db session."""
    from ideahub.db.session import get_db
    from ideahub.main import create_app

    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()
