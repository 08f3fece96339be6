"""
In-memory collaborators for engine tests.

InMemoryWatchStore and FakeSource stand in for the database and Figma so
scheduler and reconciler tests can run many watches concurrently. Redis is
served by fakeredis, which evaluates the rate limiter's Lua script.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from driftwatch.core.constants import Severity, WatchStatus
from driftwatch.models.drift import NormalizedProperties, PropertyChange
from driftwatch.models.drift_alert import DriftAlert
from driftwatch.models.drift_watch import DriftWatch

# Properties of a primary button as the normalizer would extract them.
BUTTON_PROPERTIES = {
    "fills": [{"type": "SOLID", "color": "#3366ff", "opacity": 1}],
    "cornerRadius": 4,
    "layout": {
        "mode": "HORIZONTAL",
        "primarySizing": "AUTO",
        "counterSizing": "AUTO",
        "padding": {"left": 16, "right": 16, "top": 8, "bottom": 8},
        "itemSpacing": 8,
    },
    "size": {"width": 120, "height": 40},
}


class FakeClock:
    """Settable unix-time clock."""

    def __init__(self, now: float = 1_700_000_040.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# Store
# ============================================================================

class InMemoryWatchStore:
    """Async store with the WatchStore interface, backed by dicts."""

    def __init__(self):
        self.watches: Dict[str, DriftWatch] = {}
        self.alerts: Dict[str, DriftAlert] = {}
        self.tokens: Dict[Tuple[str, str], str] = {}
        self.updates: List[Dict[str, Any]] = []
        self.deliveries: List[Dict[str, Any]] = []
        self.fail_updates_for: set = set()

    def add(self, watch: DriftWatch, token: Optional[str] = "figma-token") -> DriftWatch:
        self.watches[watch.watch_id] = watch
        if token is not None:
            self.tokens[(watch.organization_id, "figma")] = token
        return watch

    async def load_active_watches(self) -> List[DriftWatch]:
        return [w for w in self.watches.values() if w.is_active]

    async def load_watch(self, watch_id: str) -> Optional[DriftWatch]:
        return self.watches.get(watch_id)

    async def update_watch(
        self,
        watch_id: str,
        status: WatchStatus,
        checked_at: datetime,
        healthy_at: Optional[datetime] = None,
        last_error: Optional[str] = None,
    ) -> Optional[DriftWatch]:
        if watch_id in self.fail_updates_for:
            raise RuntimeError("database is unavailable")
        watch = self.watches.get(watch_id)
        if watch is None:
            return None
        watch.status = status.value
        watch.last_checked_at = checked_at
        watch.last_error = last_error
        if healthy_at is not None:
            watch.last_healthy_at = healthy_at
        self.updates.append({"watch_id": watch_id, "status": status.value})
        return watch

    async def replace_snapshot(
        self, watch_id: str, snapshot: Dict[str, Any], captured_at: datetime
    ) -> Optional[DriftWatch]:
        watch = self.watches.get(watch_id)
        if watch is None:
            return None
        watch.snapshot = snapshot
        watch.status = WatchStatus.HEALTHY.value
        watch.last_checked_at = captured_at
        watch.last_healthy_at = captured_at
        watch.last_error = None
        return watch

    async def create_alert(
        self,
        watch: DriftWatch,
        changes: List[PropertyChange],
        severity: Severity,
    ) -> DriftAlert:
        alert = DriftAlert(
            alert_id=str(uuid.uuid4()),
            watch_id=watch.watch_id,
            organization_id=watch.organization_id,
            changes=[c.to_dict() for c in changes],
            change_count=len(changes),
            severity=severity.value,
            acknowledged=False,
            slack_sent=False,
            detected_at=datetime.now(timezone.utc),
        )
        self.alerts[alert.alert_id] = alert
        return alert

    async def mark_alert_delivery(
        self,
        alert_id: str,
        delivered: bool,
        sent_at: Optional[datetime] = None,
        error: Optional[str] = None,
    ) -> Optional[DriftAlert]:
        alert = self.alerts.get(alert_id)
        if alert is None:
            return None
        alert.slack_sent = delivered
        alert.slack_sent_at = sent_at
        alert.delivery_error = error
        self.deliveries.append({"alert_id": alert_id, "delivered": delivered, "error": error})
        return alert

    async def get_access_token(
        self, organization_id: str, integration_type: str
    ) -> Optional[str]:
        return self.tokens.get((organization_id, integration_type))

    def alerts_for(self, watch_id: str) -> List[DriftAlert]:
        return [a for a in self.alerts.values() if a.watch_id == watch_id]


# ============================================================================
# Design source
# ============================================================================

class FakeSource:
    """
    Design source returning canned properties per component id.

    A registered exception is raised instead; `delay` makes every fetch
    sleep first so concurrency can be observed.
    """

    def __init__(self, delay: float = 0.0):
        self.results: Dict[str, Any] = {}
        self.default: Any = None
        self.calls: List[Tuple[str, str, str]] = []
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    def set(self, component_id: str, result: Any) -> None:
        self.results[component_id] = result

    async def fetch(
        self,
        organization_id: str,
        file_id: str,
        component_id: str,
        access_token: str,
    ) -> NormalizedProperties:
        self.calls.append((organization_id, file_id, component_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.results.get(component_id, self.default)
            if isinstance(result, BaseException):
                raise result
            if isinstance(result, dict):
                return NormalizedProperties.from_dict(result)
            return result
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        pass


class RecordingDispatcher:
    """Alert dispatcher that only records what it was asked to send."""

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    async def dispatch(self, watch: DriftWatch, alert: DriftAlert):
        self.sent.append((watch.watch_id, alert.alert_id))
