"""
Pytest Configuration and Fixtures.

Provides shared fixtures for testing the drift watch service.
"""

import os

# Must be set before driftwatch.database builds its module-level engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import copy
import uuid
from datetime import datetime, timezone
from typing import Generator

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import driftwatch.models  # noqa: F401  registers tables on Base.metadata
from driftwatch.core.config import Settings
from driftwatch.database.base import Base
from driftwatch.database.session import build_session_factory
from driftwatch.models.drift_watch import DriftWatch
from driftwatch.services.rate_limiter import RateLimiter
from tests.fakes import (
    BUTTON_PROPERTIES,
    FakeClock,
    FakeSource,
    InMemoryWatchStore,
)

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with default values."""
    return Settings(
        database_url="sqlite://",
        environment="test",
        redis_url="redis://localhost:6379/15",
        app_url="https://app.example.com",
        cron_secret="test-cron-secret",
        scheduler_enabled=False,
        fan_out_width=5,
        run_deadline_seconds=30,
        max_alert_changes=10,
    )


# ============================================================================
# Watch Fixtures
# ============================================================================

@pytest.fixture
def watch_factory():
    """Factory to create detached DriftWatch instances with custom attributes."""
    def _create_watch(
        watch_id: str = None,
        organization_id: str = "org_1",
        figma_file_id: str = "file_abc",
        figma_component_id: str = "1:23",
        snapshot: dict = None,
        status: str = "active",
        is_active: bool = True,
        alert_on_drift: bool = True,
        slack_webhook_url: str = None,
    ) -> DriftWatch:
        now = datetime.now(timezone.utc)
        return DriftWatch(
            watch_id=watch_id or str(uuid.uuid4()),
            organization_id=organization_id,
            figma_file_id=figma_file_id,
            figma_file_name="Design System",
            figma_component_id=figma_component_id,
            figma_component_name="Button/Primary",
            github_repo_id="repo_1",
            github_repo_name="acme/web",
            github_file_path="src/components/Button.tsx",
            github_branch="main",
            snapshot=copy.deepcopy(BUTTON_PROPERTIES) if snapshot is None else snapshot,
            snapshot_version=1,
            status=status,
            is_active=is_active,
            last_error=None,
            last_checked_at=None,
            last_healthy_at=None,
            alert_on_drift=alert_on_drift,
            slack_webhook_url=slack_webhook_url,
            created_at=now,
            updated_at=now,
        )
    return _create_watch


# ============================================================================
# Engine Collaborator Fixtures
# ============================================================================

@pytest.fixture
def fake_redis() -> fakeredis.FakeAsyncRedis:
    """Redis with a private server per test; evaluates Lua scripts."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def unreachable_redis() -> fakeredis.FakeAsyncRedis:
    """Redis whose server refuses every command."""
    server = fakeredis.FakeServer()
    server.connected = False
    return fakeredis.FakeAsyncRedis(server=server, decode_responses=True)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_redis, clock, test_settings) -> RateLimiter:
    """Rate limiter on fakeredis and a settable clock."""
    return RateLimiter(redis_client=fake_redis, settings=test_settings, clock=clock)


@pytest.fixture
def store() -> InMemoryWatchStore:
    return InMemoryWatchStore()


@pytest.fixture
def source() -> FakeSource:
    source = FakeSource()
    source.default = copy.deepcopy(BUTTON_PROPERTIES)
    return source


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across threads through a single connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine) -> sessionmaker:
    return build_session_factory(sqlite_engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()
