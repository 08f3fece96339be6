"""
Async persistence facade used by the reconciliation engine.

Each call opens one short-lived session, runs the matching repository method
in a worker thread and commits before returning. Returned ORM instances are
detached but fully loaded, so callers can read their columns freely. Lazy
relationships (watch.alerts) are not available on them.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from driftwatch.core.constants import Severity, WatchStatus
from driftwatch.database.repositories import (
    AlertRepository,
    IntegrationRepository,
    WatchRepository,
)
from driftwatch.database.session import SessionLocal
from driftwatch.models.drift import PropertyChange
from driftwatch.models.drift_alert import DriftAlert
from driftwatch.models.drift_watch import DriftWatch

T = TypeVar("T")


class WatchStore:
    """Async access to watches, alerts and integration credentials."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def _call(self, fn: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            return fn(db)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def _run(self, fn: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._call, fn)

    async def create_watch(self, watch: DriftWatch) -> DriftWatch:
        return await self._run(lambda db: WatchRepository(db).create(watch))

    async def load_active_watches(self) -> List[DriftWatch]:
        """Get every watch with is_active set."""
        return await self._run(lambda db: WatchRepository(db).list_active())

    async def load_watch(self, watch_id: str) -> Optional[DriftWatch]:
        return await self._run(lambda db: WatchRepository(db).get(watch_id))

    async def update_watch(
        self,
        watch_id: str,
        status: WatchStatus,
        checked_at: datetime,
        healthy_at: Optional[datetime] = None,
        last_error: Optional[str] = None,
    ) -> Optional[DriftWatch]:
        """
        Record a reconciliation outcome on a watch.

        Status, timestamps and last_error are written in one commit; the
        snapshot is left alone.
        """
        return await self._run(
            lambda db: WatchRepository(db).record_check(
                watch_id,
                status=status,
                checked_at=checked_at,
                healthy_at=healthy_at,
                last_error=last_error,
            )
        )

    async def replace_snapshot(
        self, watch_id: str, snapshot: Dict[str, Any], captured_at: datetime
    ) -> Optional[DriftWatch]:
        return await self._run(
            lambda db: WatchRepository(db).replace_snapshot(watch_id, snapshot, captured_at)
        )

    async def create_alert(
        self,
        watch: DriftWatch,
        changes: List[PropertyChange],
        severity: Severity,
    ) -> DriftAlert:
        return await self._run(
            lambda db: AlertRepository(db).create(
                watch_id=watch.watch_id,
                organization_id=watch.organization_id,
                changes=changes,
                severity=severity,
            )
        )

    async def mark_alert_delivery(
        self,
        alert_id: str,
        delivered: bool,
        sent_at: Optional[datetime] = None,
        error: Optional[str] = None,
    ) -> Optional[DriftAlert]:
        return await self._run(
            lambda db: AlertRepository(db).mark_delivery(
                alert_id, delivered=delivered, sent_at=sent_at, error=error
            )
        )

    async def get_access_token(
        self, organization_id: str, integration_type: str
    ) -> Optional[str]:
        """Get an organization's credential for an integration, if connected."""
        return await self._run(
            lambda db: IntegrationRepository(db).get_access_token(
                organization_id, integration_type
            )
        )
