"""
Reconciler - one drift check cycle for a single watch.

Flow: load watch -> credential guard -> fetch current properties (rate
limited, deadline bounded) -> diff against the stored snapshot -> persist the
outcome -> notify.

Every status and timestamp write goes through _apply_transition, which is
the only place the reconciliation state machine lives:

    active | healthy | drift_detected | error
        -> healthy          (no changes)
        -> drift_detected   (changes; alert persisted)
        -> error            (fetch, credential or deadline failure)

Rate-limited and inactive watches are not transitioned at all.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional

from driftwatch.core.config import Settings, get_settings
from driftwatch.core.constants import IntegrationType, ReconcileOutcome, WatchStatus
from driftwatch.core.diff_engine import compare, max_severity
from driftwatch.core.exceptions import (
    IntegrationNotConnectedError,
    RateLimitedError,
    SourceError,
    WatchNotFoundError,
)
from driftwatch.integrations.figma_client import FigmaSourceAdapter
from driftwatch.models.drift import NormalizedProperties, PropertyChange
from driftwatch.models.drift_alert import DriftAlert
from driftwatch.models.drift_watch import DriftWatch
from driftwatch.services.alert_dispatcher import AlertDispatcher
from driftwatch.services.rate_limiter import RateLimiter
from driftwatch.services.watch_store import WatchStore
from driftwatch.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

DEADLINE_EXCEEDED = "Drift check exceeded the run deadline"


@dataclass
class ReconcileResult:
    """Outcome of reconciling one watch."""

    watch_id: str
    outcome: ReconcileOutcome
    changes: List[PropertyChange] = field(default_factory=list)
    alert_id: Optional[str] = None
    error: Optional[str] = None


class Reconciler:
    """
    Runs the per-watch reconciliation cycle.

    Source failures are caught here and recorded as status=error; they never
    propagate to the caller. Persistence failures do propagate.
    """

    def __init__(
        self,
        store: WatchStore,
        source: FigmaSourceAdapter,
        dispatcher: Optional[AlertDispatcher] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        """
        Initialize the reconciler.

        Args:
            store: Watch store facade
            source: Design source adapter
            dispatcher: Alert dispatcher (alerts are persisted but not sent if omitted)
            clock: Source of the current UTC time
        """
        self.store = store
        self.source = source
        self.dispatcher = dispatcher
        self.clock = clock

    async def reconcile(self, watch_id: str, deadline: Optional[float] = None) -> ReconcileResult:
        """
        Run one reconciliation cycle for a watch.

        Args:
            watch_id: Watch to check
            deadline: Event-loop time (loop.time()) by which the fetch must finish

        Returns:
            ReconcileResult describing the outcome
        """
        watch = await self.store.load_watch(watch_id)
        if watch is None or not watch.is_active:
            logger.debug(f"Skipping watch {watch_id}: missing or inactive")
            return ReconcileResult(watch_id=watch_id, outcome=ReconcileOutcome.SKIPPED)

        log_context = {"watch_id": watch_id, "organization_id": watch.organization_id}

        access_token = await self.store.get_access_token(
            watch.organization_id, IntegrationType.FIGMA.value
        )
        if not access_token:
            error = IntegrationNotConnectedError(IntegrationType.FIGMA.value)
            logger.warning(f"Watch {watch_id}: {error.message}", extra=log_context)
            return await self._apply_transition(watch, ReconcileOutcome.ERROR, error=error.message)

        try:
            current = await self._fetch(watch, access_token, deadline)
            changes = compare(watch.snapshot, current)
        except RateLimitedError as e:
            logger.info(f"Watch {watch_id} rate limited until {e.reset_at.isoformat()}")
            return ReconcileResult(
                watch_id=watch_id,
                outcome=ReconcileOutcome.RATE_LIMITED,
                error=e.message,
            )
        except SourceError as e:
            logger.warning(
                f"Drift check failed for watch {watch_id}: {e.message}", extra=log_context
            )
            return await self._apply_transition(watch, ReconcileOutcome.ERROR, error=e.message)
        except asyncio.TimeoutError:
            logger.warning(
                f"Drift check for watch {watch_id} exceeded the run deadline",
                extra=log_context,
            )
            return await self._apply_transition(
                watch, ReconcileOutcome.ERROR, error=DEADLINE_EXCEEDED
            )
        except Exception as e:
            logger.error(
                f"Unexpected error checking watch {watch_id}: {e}",
                exc_info=True,
                extra=log_context,
            )
            return await self._apply_transition(watch, ReconcileOutcome.ERROR, error=str(e))

        if not changes:
            logger.info(f"No drift detected for watch {watch_id}")
            return await self._apply_transition(watch, ReconcileOutcome.HEALTHY)

        logger.info(
            f"Drift detected for watch {watch_id}: "
            f"{', '.join(c.property for c in changes)}"
        )
        return await self._apply_transition(watch, ReconcileOutcome.DRIFT_DETECTED, changes=changes)

    async def _fetch(
        self,
        watch: DriftWatch,
        access_token: str,
        deadline: Optional[float],
    ) -> NormalizedProperties:
        fetch = self.source.fetch(
            watch.organization_id,
            watch.figma_file_id,
            watch.figma_component_id,
            access_token,
        )
        if deadline is None:
            return await fetch

        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            fetch.close()
            raise asyncio.TimeoutError()
        return await asyncio.wait_for(fetch, timeout=remaining)

    async def _apply_transition(
        self,
        watch: DriftWatch,
        outcome: ReconcileOutcome,
        changes: Optional[List[PropertyChange]] = None,
        error: Optional[str] = None,
    ) -> ReconcileResult:
        """Persist the outcome of a cycle; the sole writer of watch status."""
        now = self.clock()
        result = ReconcileResult(
            watch_id=watch.watch_id,
            outcome=outcome,
            changes=changes or [],
            error=error,
        )

        if outcome == ReconcileOutcome.HEALTHY:
            await self.store.update_watch(
                watch.watch_id,
                status=WatchStatus.HEALTHY,
                checked_at=now,
                healthy_at=now,
            )

        elif outcome == ReconcileOutcome.DRIFT_DETECTED:
            alert = await self.store.create_alert(watch, changes, max_severity(changes))
            result.alert_id = alert.alert_id
            await self.store.update_watch(
                watch.watch_id,
                status=WatchStatus.DRIFT_DETECTED,
                checked_at=now,
            )
            await self._notify(watch, alert)

        elif outcome == ReconcileOutcome.ERROR:
            await self.store.update_watch(
                watch.watch_id,
                status=WatchStatus.ERROR,
                checked_at=now,
                last_error=error,
            )

        else:
            raise ValueError(f"No transition for outcome {outcome.value}")

        return result

    async def _notify(self, watch: DriftWatch, alert: DriftAlert) -> None:
        if self.dispatcher is None or not watch.alert_on_drift or not watch.slack_webhook_url:
            return
        await self.dispatcher.dispatch(watch, alert)

    async def capture(
        self,
        organization_id: str,
        figma_file_id: str,
        figma_component_id: str,
    ) -> NormalizedProperties:
        """
        Fetch the current properties of a component for use as a baseline.

        Raises:
            IntegrationNotConnectedError: The organization has no Figma token
            SourceError: The fetch failed
        """
        access_token = await self.store.get_access_token(
            organization_id, IntegrationType.FIGMA.value
        )
        if not access_token:
            raise IntegrationNotConnectedError(IntegrationType.FIGMA.value)
        return await self.source.fetch(
            organization_id, figma_file_id, figma_component_id, access_token
        )

    async def rebaseline(self, watch_id: str) -> DriftWatch:
        """
        Accept the component's current state as the watch's new snapshot.

        This is the only path besides registration that writes the snapshot.

        Raises:
            WatchNotFoundError: No such watch
            IntegrationNotConnectedError: The organization has no Figma token
            SourceError: The fetch failed
        """
        watch = await self.store.load_watch(watch_id)
        if watch is None:
            raise WatchNotFoundError(watch_id)

        current = await self.capture(
            watch.organization_id, watch.figma_file_id, watch.figma_component_id
        )
        updated = await self.store.replace_snapshot(watch_id, current.to_dict(), self.clock())
        if updated is None:
            raise WatchNotFoundError(watch_id)
        return updated


@asynccontextmanager
async def open_reconciler(settings: Optional[Settings] = None) -> AsyncIterator[Reconciler]:
    """
    Build a Reconciler wired to Redis, Figma, Slack and the database.

    Network clients are bound to the running event loop and closed on exit.
    """
    settings = settings or get_settings()
    store = WatchStore()
    rate_limiter = RateLimiter(settings=settings)
    source = FigmaSourceAdapter(rate_limiter, settings=settings)
    dispatcher = AlertDispatcher(store, rate_limiter, settings=settings)
    try:
        yield Reconciler(store, source, dispatcher)
    finally:
        await dispatcher.close()
        await source.close()
        await rate_limiter.close()
