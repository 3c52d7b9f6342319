"""Database package."""

from ideahub.db.session import Base, SessionLocal, engine, get_db, transaction

__all__ = ["Base", "SessionLocal", "engine", "get_db", "transaction"]
