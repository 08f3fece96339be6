"""
Figma source adapter.

FigmaClient wraps the Figma REST API and maps HTTP outcomes onto the source
error taxonomy. FigmaSourceAdapter charges the organization's figma budget on
the rate limiter before every call and narrows the returned node into
NormalizedProperties.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from driftwatch.core.config import Settings, get_settings
from driftwatch.core.constants import IntegrationType
from driftwatch.core.exceptions import (
    RateLimitedError,
    SourceNotFoundError,
    SourceUnauthorizedError,
    UpstreamFailureError,
)
from driftwatch.integrations.normalizer import extract_design_properties
from driftwatch.models.drift import NormalizedProperties
from driftwatch.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _retry_after(response: httpx.Response) -> datetime:
    """Reset time from a Retry-After header, defaulting to one minute."""
    seconds = 60
    header = response.headers.get("Retry-After")
    if header and header.isdigit():
        seconds = int(header)
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)


class FigmaClient:
    """Thin async client for the Figma REST API."""

    def __init__(
        self,
        access_token: str,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.figma.com/v1",
    ):
        self.access_token = access_token
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    async def get_file_nodes(
        self,
        organization_id: str,
        file_id: str,
        node_ids: List[str],
    ) -> Dict[str, Any]:
        """
        Fetch specific nodes from a Figma file.

        Args:
            organization_id: Owner of the credential (for error context)
            file_id: Figma file key
            node_ids: Node ids to fetch

        Returns:
            Mapping of node id to the node entry ({"document": {...}, ...})

        Raises:
            SourceNotFoundError: The file does not exist (404)
            SourceUnauthorizedError: The token was rejected (401/403)
            RateLimitedError: Figma throttled the request (429)
            UpstreamFailureError: Network failure or any other non-2xx status
        """
        url = f"{self.base_url}/files/{file_id}/nodes"

        try:
            response = await self.http_client.get(
                url,
                params={"ids": ",".join(node_ids)},
                headers={"X-Figma-Token": self.access_token},
            )
        except httpx.TimeoutException as e:
            raise UpstreamFailureError(f"Figma request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"Figma request failed: {e}") from e

        status = response.status_code
        if status == 404:
            raise SourceNotFoundError(file_id)
        if status in (401, 403):
            raise SourceUnauthorizedError(f"Figma API error: {status} (token rejected)")
        if status == 429:
            raise RateLimitedError(
                IntegrationType.FIGMA.value, organization_id, _retry_after(response)
            )
        if not response.is_success:
            raise UpstreamFailureError(
                f"Figma API error: {status} {response.reason_phrase}",
                upstream_status=status,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFailureError(f"Figma returned invalid JSON: {e}") from e

        return data.get("nodes") or {}


class FigmaSourceAdapter:
    """
    Fetches the current normalized properties of a watched component.

    Every call is charged against the organization's figma budget first; a
    denied check raises RateLimitedError and no request is sent.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter
        self.http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.figma_request_timeout_seconds)
        )

    async def fetch(
        self,
        organization_id: str,
        file_id: str,
        component_id: str,
        access_token: str,
    ) -> NormalizedProperties:
        """
        Fetch and normalize a Figma component.

        Args:
            organization_id: Tenant whose rate-limit budget is charged
            file_id: Figma file key stored on the watch
            component_id: Figma node id stored on the watch
            access_token: Organization's Figma token

        Returns:
            NormalizedProperties for the component
        """
        budget = await self.rate_limiter.check(
            IntegrationType.FIGMA.value,
            organization_id,
            cost=self.settings.figma_request_cost,
        )
        if not budget.allowed:
            raise RateLimitedError(
                IntegrationType.FIGMA.value, organization_id, budget.reset_at
            )

        client = FigmaClient(
            access_token=access_token,
            http_client=self.http_client,
            base_url=self.settings.figma_api_base,
        )
        nodes = await client.get_file_nodes(organization_id, file_id, [component_id])

        entry = nodes.get(component_id)
        if not entry or not entry.get("document"):
            raise SourceNotFoundError(file_id, component_id)

        properties = extract_design_properties(entry["document"])
        logger.debug(
            f"Fetched {component_id} from {file_id}: "
            f"{sorted(properties.to_dict())}"
        )
        return properties

    async def close(self) -> None:
        await self.http_client.aclose()
