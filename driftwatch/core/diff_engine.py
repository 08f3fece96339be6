"""
Diff engine for design property snapshots.

compare() is a pure function: it never touches the database or the network,
and its output order is fixed by CATEGORY_ORDER rather than by discovery
order, so identical inputs always produce identical output.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from driftwatch.core.constants import Severity
from driftwatch.models.drift import NormalizedProperties, PropertyChange

logger = logging.getLogger(__name__)

# Report order for changed categories.
CATEGORY_ORDER = (
    "fills",
    "backgroundColor",
    "layout",
    "typography",
    "cornerRadius",
    "size",
)

# Severity per category.
SEVERITY_TABLE = {
    "fills": Severity.MEDIUM,
    "backgroundColor": Severity.MEDIUM,
    "layout": Severity.MEDIUM,
    "typography": Severity.MEDIUM,
    "cornerRadius": Severity.LOW,
    "size": Severity.LOW,
}

# Categories whose changes are breaking. Empty until one is designated.
BREAKING_CATEGORIES: frozenset = frozenset()

PropertySource = Union[Mapping[str, Any], NormalizedProperties, None]


def _as_mapping(props: PropertySource) -> Mapping[str, Any]:
    if props is None:
        return {}
    if isinstance(props, NormalizedProperties):
        return props.to_dict()
    return props


def severity_for(category: str) -> Severity:
    """
    Get the severity assigned to a changed category.

    Args:
        category: Property category name

    Returns:
        Severity for the category
    """
    if category in BREAKING_CATEGORIES:
        return Severity.HIGH
    return SEVERITY_TABLE[category]


def compare(old: PropertySource, new: PropertySource) -> List[PropertyChange]:
    """
    Compare two normalized property sets.

    Composite values (fills, layout, typography, size) are compared by deep
    equality, scalars by value. A category that is absent (or None) on both
    sides produces no change; absent on one side reports None for that side.

    Args:
        old: Baseline properties (the watch snapshot)
        new: Current properties from the design source

    Returns:
        Changes ordered by CATEGORY_ORDER, empty when nothing differs
    """
    old_props = _as_mapping(old)
    new_props = _as_mapping(new)

    changes = []
    for category in CATEGORY_ORDER:
        old_value = old_props.get(category)
        new_value = new_props.get(category)

        if old_value is None and new_value is None:
            continue
        if old_value == new_value:
            continue

        changes.append(
            PropertyChange(
                property=category,
                old_value=old_value,
                new_value=new_value,
                severity=severity_for(category),
            )
        )

    logger.debug(f"Compared snapshots: {len(changes)} change(s)")
    return changes


def max_severity(changes: Iterable[PropertyChange]) -> Optional[Severity]:
    """
    Get the highest severity across a list of changes.

    Returns:
        The maximum severity (high > medium > low), or None for no changes
    """
    highest = None
    for change in changes:
        if highest is None or change.severity.rank > highest.rank:
            highest = change.severity
    return highest
