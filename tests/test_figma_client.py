"""
Unit tests for the Figma source adapter and node normalization.

HTTP is served by httpx.MockTransport; the rate limiter runs on fakeredis.
"""

import json

import httpx
import pytest

from driftwatch.core.constants import Severity
from driftwatch.core.diff_engine import compare
from driftwatch.core.exceptions import (
    RateLimitedError,
    SourceNotFoundError,
    SourceUnauthorizedError,
    UpstreamFailureError,
)
from driftwatch.integrations.figma_client import FigmaSourceAdapter
from driftwatch.integrations.normalizer import extract_design_properties, rgba_to_hex
from driftwatch.services.rate_limiter import RateLimiter


def button_node() -> dict:
    """A Figma FRAME node as returned under nodes[id].document."""
    return {
        "id": "1:23",
        "name": "Button/Primary",
        "type": "FRAME",
        "fills": [{"type": "SOLID", "color": {"r": 0.2, "g": 0.4, "b": 1.0, "a": 1}}],
        "strokes": [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0, "a": 1}}],
        "cornerRadius": 4,
        "layoutMode": "HORIZONTAL",
        "primaryAxisSizingMode": "AUTO",
        "counterAxisSizingMode": "FIXED",
        "paddingLeft": 16,
        "paddingRight": 16,
        "paddingTop": 8,
        "itemSpacing": 8,
        "absoluteBoundingBox": {"x": 10, "y": 20, "width": 120, "height": 40},
        "effects": [],
        "children": [],
    }


def nodes_payload(node_id: str = "1:23", document: dict = None) -> dict:
    return {
        "name": "Design System",
        "nodes": {node_id: {"document": document or button_node(), "components": {}}},
    }


class RecordingTransport:
    """Callable for httpx.MockTransport that records requests."""

    def __init__(self, status_code: int = 200, payload=None, headers=None, exc=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else nodes_payload()
        self.headers = headers or {}
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if isinstance(self.payload, (dict, list)):
            return httpx.Response(self.status_code, json=self.payload, headers=self.headers)
        return httpx.Response(self.status_code, content=self.payload, headers=self.headers)


def make_adapter(transport: RecordingTransport, rate_limiter: RateLimiter, settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    return FigmaSourceAdapter(rate_limiter, http_client=client, settings=settings)


class TestNormalizer:
    """Narrowing of raw nodes."""

    def test_rgba_to_hex(self):
        assert rgba_to_hex({"r": 1, "g": 1, "b": 1, "a": 0.5}) == "#ffffff"
        assert rgba_to_hex({"r": 0.2, "g": 0.4, "b": 1.0}) == "#3366ff"
        assert rgba_to_hex({}) == "#000000"

    def test_extracts_tracked_properties(self):
        props = extract_design_properties(button_node()).to_dict()

        assert props["fills"] == [{"type": "SOLID", "color": "#3366ff", "opacity": 1}]
        assert props["cornerRadius"] == 4
        assert props["layout"] == {
            "mode": "HORIZONTAL",
            "primarySizing": "AUTO",
            "counterSizing": "FIXED",
            "padding": {"left": 16, "right": 16, "top": 8, "bottom": 0},
            "itemSpacing": 8,
        }
        assert props["size"] == {"width": 120, "height": 40}

    def test_drops_untracked_fields(self):
        props = extract_design_properties(button_node()).to_dict()
        assert set(props) == {"fills", "cornerRadius", "layout", "size"}

    def test_absent_properties_are_omitted(self):
        props = extract_design_properties({"id": "1:1", "type": "RECTANGLE"})
        assert props.is_empty()
        assert props.to_dict() == {}

    def test_typography_from_text_style(self):
        node = {
            "type": "TEXT",
            "style": {
                "fontFamily": "Inter",
                "fontSize": 14,
                "fontWeight": 600,
                "lineHeightPx": 20,
                "letterSpacing": 0,
                "textAlignHorizontal": "LEFT",
                "italic": False,
            },
        }

        props = extract_design_properties(node)

        assert props.typography == {
            "fontFamily": "Inter",
            "fontSize": 14,
            "fontWeight": 600,
            "lineHeight": 20,
            "letterSpacing": 0,
            "textAlign": "LEFT",
        }

    def test_background_color(self):
        node = {"backgroundColor": {"r": 0, "g": 0, "b": 0, "a": 1}}
        assert extract_design_properties(node).background_color == "#000000"

    def test_fill_opacity_defaults_to_one(self):
        node = {"fills": [{"type": "SOLID", "color": {"r": 1, "g": 0, "b": 0}}]}
        assert extract_design_properties(node).fills[0]["opacity"] == 1

    def test_transparent_fill_keeps_zero_opacity(self):
        node = {"fills": [{"type": "SOLID", "color": {"r": 1, "g": 0, "b": 0}, "opacity": 0}]}
        assert extract_design_properties(node).fills[0]["opacity"] == 0

    def test_fill_turning_transparent_is_drift(self):
        red = {"r": 1, "g": 0, "b": 0}
        before = extract_design_properties({"fills": [{"type": "SOLID", "color": red, "opacity": 1}]})
        after = extract_design_properties({"fills": [{"type": "SOLID", "color": red, "opacity": 0}]})

        changes = compare(before, after)

        assert [c.property for c in changes] == ["fills"]
        assert changes[0].old_value[0]["opacity"] == 1
        assert changes[0].new_value[0]["opacity"] == 0
        assert changes[0].severity is Severity.MEDIUM

    def test_gradient_fill_without_color(self):
        node = {"fills": [{"type": "GRADIENT_LINEAR", "opacity": 0.5}]}
        assert extract_design_properties(node).fills == [
            {"type": "GRADIENT_LINEAR", "color": None, "opacity": 0.5}
        ]


class TestFigmaSourceAdapter:
    """HTTP outcome mapping and rate-limit guarding."""

    @pytest.mark.asyncio
    async def test_fetch_returns_normalized_properties(self, rate_limiter, test_settings):
        transport = RecordingTransport()
        adapter = make_adapter(transport, rate_limiter, test_settings)

        props = await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

        assert props.corner_radius == 4
        assert props.fills[0]["color"] == "#3366ff"

        request = transport.requests[0]
        assert request.url.path == "/v1/files/file_abc/nodes"
        assert request.url.params["ids"] == "1:23"
        assert request.headers["X-Figma-Token"] == "secret-token"

    @pytest.mark.asyncio
    async def test_fetch_charges_figma_budget(self, rate_limiter, fake_redis, test_settings):
        adapter = make_adapter(RecordingTransport(), rate_limiter, test_settings)

        await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

        usage = await rate_limiter.get_usage("figma", "org_1")
        assert usage.remaining == 5999

    @pytest.mark.asyncio
    async def test_denied_budget_skips_request(self, fake_redis, clock, test_settings):
        test_settings.rate_limit_overrides = {"figma": {"max_credits": 1, "window_seconds": 60}}
        limiter = RateLimiter(redis_client=fake_redis, settings=test_settings, clock=clock)
        transport = RecordingTransport()
        adapter = make_adapter(transport, limiter, test_settings)

        await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")
        with pytest.raises(RateLimitedError) as exc_info:
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

        assert len(transport.requests) == 1
        assert exc_info.value.integration == "figma"
        assert exc_info.value.organization_id == "org_1"

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, rate_limiter, test_settings):
        adapter = make_adapter(
            RecordingTransport(status_code=404, payload={"status": 404, "err": "Not found"}),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(SourceNotFoundError):
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

    @pytest.mark.asyncio
    async def test_missing_node_is_not_found(self, rate_limiter, test_settings):
        adapter = make_adapter(
            RecordingTransport(payload={"name": "Design System", "nodes": {"1:23": None}}),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(SourceNotFoundError) as exc_info:
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

        assert exc_info.value.component_id == "1:23"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_rejected_token_is_unauthorized(self, rate_limiter, test_settings, status_code):
        adapter = make_adapter(
            RecordingTransport(status_code=status_code, payload={"err": "Invalid token"}),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(SourceUnauthorizedError):
            await adapter.fetch("org_1", "file_abc", "1:23", "bad-token")

    @pytest.mark.asyncio
    async def test_remote_429_is_rate_limited(self, rate_limiter, test_settings):
        adapter = make_adapter(
            RecordingTransport(status_code=429, payload={"err": "slow down"}, headers={"Retry-After": "30"}),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(RateLimitedError):
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_failure(self, rate_limiter, test_settings):
        adapter = make_adapter(
            RecordingTransport(status_code=503, payload={"err": "unavailable"}),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(UpstreamFailureError) as exc_info:
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

        assert exc_info.value.upstream_status == 503

    @pytest.mark.asyncio
    async def test_transport_error_is_upstream_failure(self, rate_limiter, test_settings):
        adapter = make_adapter(
            RecordingTransport(exc=httpx.ConnectError("connection refused")),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(UpstreamFailureError):
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_failure(self, rate_limiter, test_settings):
        adapter = make_adapter(
            RecordingTransport(exc=httpx.ReadTimeout("timed out")),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(UpstreamFailureError):
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

    @pytest.mark.asyncio
    async def test_invalid_json_is_upstream_failure(self, rate_limiter, test_settings):
        adapter = make_adapter(
            RecordingTransport(payload=b"<html>oops</html>"),
            rate_limiter,
            test_settings,
        )
        with pytest.raises(UpstreamFailureError):
            await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

    @pytest.mark.asyncio
    async def test_payload_round_trips_through_json(self, rate_limiter, test_settings):
        adapter = make_adapter(RecordingTransport(), rate_limiter, test_settings)

        props = await adapter.fetch("org_1", "file_abc", "1:23", "secret-token")

        assert json.loads(json.dumps(props.to_dict())) == props.to_dict()
