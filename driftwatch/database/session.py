"""Database session management."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from driftwatch.core.config import get_settings
from driftwatch.core.logging_config import get_logger

logger = get_logger(__name__)


def build_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    Pool sizing only applies to server databases; SQLite uses its own pools.
    """
    settings = get_settings()
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.db_echo,
        )
    return create_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        echo=settings.db_echo,
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    """
    Create a session factory.

    Instances stay readable after commit so the async store facade can hand
    them across threads once the session is closed.
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


# Create database engine and session factory
engine = build_engine(get_settings().database_url)
SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Yields:
        Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Yields:
        Database session
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        db.close()
