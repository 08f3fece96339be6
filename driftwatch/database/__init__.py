"""Database package initialization."""

from driftwatch.database.base import Base
from driftwatch.database.session import SessionLocal, engine, get_db, get_db_context

__all__ = ["Base", "SessionLocal", "engine", "get_db", "get_db_context"]
