"""
Alert dispatcher - best-effort Slack notification for drift alerts.

Delivery is a side channel of reconciliation: the alert is already persisted
when dispatch() runs, and nothing here can undo that or change the watch's
outcome. Failures are logged and recorded on the alert, never retried.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from driftwatch.core.config import Settings, get_settings
from driftwatch.core.constants import IntegrationType
from driftwatch.core.exceptions import NotificationDeliveryError
from driftwatch.models.drift import PropertyChange
from driftwatch.models.drift_alert import DriftAlert
from driftwatch.models.drift_watch import DriftWatch
from driftwatch.services.rate_limiter import RateLimiter
from driftwatch.services.watch_store import WatchStore
from driftwatch.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

HEADER_TEXT = "Design-Code Drift Detected"
BUTTON_TEXT = "View drift"


@dataclass
class DeliveryResult:
    """Outcome of one notification attempt."""

    delivered: bool
    error: Optional[str] = None


def _summarize(changes: List[PropertyChange], limit: int) -> str:
    """One bullet per changed property, at most `limit` of them."""
    lines = [f"• *{c.property}* changed ({c.severity.value})" for c in changes[:limit]]
    hidden = len(changes) - limit
    if hidden > 0:
        lines.append(f"…and {hidden} more")
    return "\n".join(lines)


def build_slack_message(
    watch: DriftWatch,
    alert: DriftAlert,
    app_url: str,
    max_changes: int = 10,
) -> Dict[str, Any]:
    """
    Build a Slack Block Kit payload for a drift alert.

    Args:
        watch: Watch the alert belongs to
        alert: Persisted alert
        app_url: Product base URL for the deep link
        max_changes: Maximum number of properties listed

    Returns:
        JSON-serializable webhook payload
    """
    changes = alert.property_changes
    component = watch.figma_component_name or watch.figma_component_id
    code_location = watch.github_file_path or watch.github_repo_name or "-"

    return {
        "text": f"{HEADER_TEXT}: {component}",
        "blocks": [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": HEADER_TEXT, "emoji": True},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Figma Component:*\n{component}"},
                    {"type": "mrkdwn", "text": f"*GitHub File:*\n{code_location}"},
                    {"type": "mrkdwn", "text": f"*Severity:*\n{alert.severity}"},
                ],
            },
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        f"*Changes Detected ({alert.change_count}):*\n"
                        f"{_summarize(changes, max_changes)}"
                    ),
                },
            },
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": BUTTON_TEXT, "emoji": True},
                        "url": f"{app_url.rstrip('/')}/drift/{watch.watch_id}",
                        "style": "primary",
                    }
                ],
            },
        ],
    }


class AlertDispatcher:
    """Sends drift alerts to a watch's Slack incoming webhook."""

    def __init__(
        self,
        store: WatchStore,
        rate_limiter: RateLimiter,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.rate_limiter = rate_limiter
        self.http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.slack_request_timeout_seconds)
        )

    async def dispatch(self, watch: DriftWatch, alert: DriftAlert) -> DeliveryResult:
        """
        Deliver an alert and record the outcome on it.

        Never raises; the returned result says whether Slack accepted it.
        """
        if not watch.slack_webhook_url:
            return DeliveryResult(delivered=False, error="No Slack webhook configured")

        try:
            await self._send(watch, alert)
            result = DeliveryResult(delivered=True)
            logger.info(f"Slack alert sent for watch {watch.watch_id}")
        except NotificationDeliveryError as e:
            result = DeliveryResult(delivered=False, error=e.message)
            logger.error(
                f"Failed to send Slack alert for watch {watch.watch_id}: {e.message}",
                extra={"watch_id": watch.watch_id, "alert_id": alert.alert_id},
            )
        except Exception as e:
            result = DeliveryResult(delivered=False, error=str(e))
            logger.error(
                f"Unexpected error sending Slack alert for watch {watch.watch_id}: {e}",
                exc_info=True,
            )

        await self._record(alert, result)
        return result

    async def _send(self, watch: DriftWatch, alert: DriftAlert) -> None:
        budget = await self.rate_limiter.check(
            IntegrationType.SLACK.value, watch.organization_id
        )
        if not budget.allowed:
            raise NotificationDeliveryError(
                f"Slack rate limit exceeded until {budget.reset_at.isoformat()}"
            )

        payload = build_slack_message(
            watch,
            alert,
            app_url=self.settings.app_url,
            max_changes=self.settings.max_alert_changes,
        )

        try:
            response = await self.http_client.post(watch.slack_webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(f"Slack request failed: {e}") from e

        if not response.is_success:
            raise NotificationDeliveryError(
                f"Slack API error: {response.status_code}",
                upstream_status=response.status_code,
            )

    async def _record(self, alert: DriftAlert, result: DeliveryResult) -> None:
        try:
            await self.store.mark_alert_delivery(
                alert.alert_id,
                delivered=result.delivered,
                sent_at=now_utc() if result.delivered else None,
                error=result.error,
            )
        except Exception as e:
            logger.error(
                f"Failed to record delivery outcome for alert {alert.alert_id}: {e}",
                exc_info=True,
            )

    async def close(self) -> None:
        await self.http_client.aclose()
