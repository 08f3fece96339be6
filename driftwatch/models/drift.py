"""
Drift detection value objects.

NormalizedProperties: fixed, comparable property record for one design node
PropertyChange: one classified difference produced by the diff engine
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from driftwatch.core.constants import Severity

# Bumped whenever the extracted property set changes shape.
NORMALIZATION_VERSION = 1

# Stored snapshot key -> dataclass attribute
PROPERTY_FIELDS = {
    "fills": "fills",
    "backgroundColor": "background_color",
    "cornerRadius": "corner_radius",
    "layout": "layout",
    "typography": "typography",
    "size": "size",
}


@dataclass
class NormalizedProperties:
    """
    Comparable design properties extracted from a Figma node.

    Attributes left as None were absent on the remote node and are omitted
    from the serialized snapshot.
    """

    fills: Optional[List[Dict[str, Any]]] = None
    background_color: Optional[str] = None
    corner_radius: Optional[float] = None
    layout: Optional[Dict[str, Any]] = None
    typography: Optional[Dict[str, Any]] = None
    size: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the snapshot mapping, omitting absent properties."""
        result = {}
        for key, attr in PROPERTY_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "NormalizedProperties":
        """Build from a stored snapshot; unrecognized keys are dropped."""
        if not data:
            return cls()
        return cls(**{
            attr: data.get(key)
            for key, attr in PROPERTY_FIELDS.items()
        })

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass
class PropertyChange:
    """A single changed property between a baseline and the current state."""

    property: str
    old_value: Any
    new_value: Any
    severity: Severity

    def __post_init__(self):
        """Convert string severities to the enum."""
        if isinstance(self.severity, str):
            self.severity = Severity(self.severity)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage."""
        return {
            "property": self.property,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PropertyChange":
        return cls(
            property=data["property"],
            old_value=data.get("old_value"),
            new_value=data.get("new_value"),
            severity=Severity(data["severity"]),
        )

    def __repr__(self) -> str:
        return (
            f"PropertyChange(property={self.property}, "
            f"severity={self.severity.value})"
        )
