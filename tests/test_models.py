"""
Unit tests for value objects and request schemas.
"""

import pytest
from pydantic import ValidationError

from driftwatch.core.constants import Severity
from driftwatch.models.drift import NormalizedProperties, PropertyChange
from driftwatch.models.schemas import WatchCreateRequest, WatchUpdateRequest
from tests.fakes import BUTTON_PROPERTIES


class TestNormalizedProperties:
    """Snapshot mapping conversion."""

    def test_from_dict_to_dict(self):
        props = NormalizedProperties.from_dict(BUTTON_PROPERTIES)

        assert props.corner_radius == 4
        assert props.background_color is None
        assert props.to_dict() == BUTTON_PROPERTIES

    def test_unknown_keys_dropped(self):
        props = NormalizedProperties.from_dict({"cornerRadius": 2, "strokes": []})
        assert props.to_dict() == {"cornerRadius": 2}

    def test_empty(self):
        assert NormalizedProperties.from_dict(None).is_empty()
        assert NormalizedProperties.from_dict({}).is_empty()
        assert not NormalizedProperties(corner_radius=0).is_empty()


class TestPropertyChange:
    """Change records as stored on alerts."""

    def test_string_severity_coerced(self):
        change = PropertyChange("fills", None, [], "medium")
        assert change.severity is Severity.MEDIUM

    def test_dict_conversion(self):
        change = PropertyChange("cornerRadius", 4, 8, Severity.LOW)

        data = change.to_dict()

        assert data == {"property": "cornerRadius", "old_value": 4, "new_value": 8, "severity": "low"}
        assert PropertyChange.from_dict(data) == change

    def test_unknown_severity_rejected(self):
        with pytest.raises(ValueError):
            PropertyChange("fills", None, [], "critical")


class TestWatchSchemas:
    """Request validation."""

    def test_create_defaults(self):
        request = WatchCreateRequest(
            organization_id="org_1", figma_file_id="file_abc", figma_component_id="1:23"
        )

        assert request.github_branch == "main"
        assert request.alert_on_drift is True
        assert request.snapshot is None

    def test_empty_webhook_is_none(self):
        request = WatchCreateRequest(
            organization_id="org_1",
            figma_file_id="file_abc",
            figma_component_id="1:23",
            slack_webhook_url="",
        )
        assert request.slack_webhook_url is None

    def test_create_rejects_http_webhook(self):
        with pytest.raises(ValidationError):
            WatchCreateRequest(
                organization_id="org_1",
                figma_file_id="file_abc",
                figma_component_id="1:23",
                slack_webhook_url="http://example.com/hook",
            )

    def test_create_rejects_blank_ids(self):
        with pytest.raises(ValidationError):
            WatchCreateRequest(organization_id="", figma_file_id="f", figma_component_id="1:1")

    def test_update_excludes_unset(self):
        request = WatchUpdateRequest(is_active=False)
        assert request.model_dump(exclude_unset=True) == {"is_active": False}
