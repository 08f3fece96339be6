"""
Design-source integrations.

This package contains:
- Figma REST client and source adapter
- Normalization of raw Figma nodes into comparable properties
"""

from driftwatch.integrations.figma_client import FigmaClient, FigmaSourceAdapter
from driftwatch.integrations.normalizer import extract_design_properties

__all__ = [
    "FigmaClient",
    "FigmaSourceAdapter",
    "extract_design_properties",
]
