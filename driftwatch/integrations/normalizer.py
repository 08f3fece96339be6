"""
Narrowing of raw Figma nodes into NormalizedProperties.

Figma returns loosely-typed nested JSON. This module is the only place that
knows its shape; anything not listed here is dropped and can never surface
as drift.
"""

from typing import Any, Dict, List, Mapping, Optional

from driftwatch.models.drift import NormalizedProperties


def rgba_to_hex(rgba: Mapping[str, Any]) -> str:
    """
    Convert a Figma RGBA color (0-1 floats) to a #rrggbb hex string.

    Alpha is ignored; paint opacity is tracked separately.
    """
    r = round(float(rgba.get("r", 0)) * 255)
    g = round(float(rgba.get("g", 0)) * 255)
    b = round(float(rgba.get("b", 0)) * 255)
    return f"#{r:02x}{g:02x}{b:02x}"


def _extract_fills(node: Mapping[str, Any]) -> Optional[List[Dict[str, Any]]]:
    fills = node.get("fills")
    if not isinstance(fills, list):
        return None
    return [
        {
            "type": fill.get("type"),
            "color": rgba_to_hex(fill["color"]) if fill.get("color") else None,
            "opacity": 1 if fill.get("opacity") is None else fill["opacity"],
        }
        for fill in fills
        if isinstance(fill, Mapping)
    ]


def _extract_layout(node: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    if not node.get("layoutMode"):
        return None
    return {
        "mode": node.get("layoutMode"),
        "primarySizing": node.get("primaryAxisSizingMode"),
        "counterSizing": node.get("counterAxisSizingMode"),
        "padding": {
            "left": node.get("paddingLeft") or 0,
            "right": node.get("paddingRight") or 0,
            "top": node.get("paddingTop") or 0,
            "bottom": node.get("paddingBottom") or 0,
        },
        "itemSpacing": node.get("itemSpacing") or 0,
    }


def _extract_typography(node: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    style = node.get("style")
    if not isinstance(style, Mapping) or not style:
        return None
    return {
        "fontFamily": style.get("fontFamily"),
        "fontSize": style.get("fontSize"),
        "fontWeight": style.get("fontWeight"),
        "lineHeight": style.get("lineHeightPx"),
        "letterSpacing": style.get("letterSpacing"),
        "textAlign": style.get("textAlignHorizontal"),
    }


def _extract_size(node: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    box = node.get("absoluteBoundingBox")
    if not isinstance(box, Mapping):
        return None
    return {"width": box.get("width"), "height": box.get("height")}


def extract_design_properties(node: Mapping[str, Any]) -> NormalizedProperties:
    """
    Extract the tracked design properties from a Figma document node.

    Args:
        node: The `document` object of a Figma file-nodes response entry

    Returns:
        NormalizedProperties with absent categories left as None
    """
    background = node.get("backgroundColor")

    return NormalizedProperties(
        fills=_extract_fills(node),
        background_color=rgba_to_hex(background) if isinstance(background, Mapping) else None,
        corner_radius=node.get("cornerRadius"),
        layout=_extract_layout(node),
        typography=_extract_typography(node),
        size=_extract_size(node),
    )
