"""
ONIX 3.x export builders.

Usage:
    from onixport.onix.builder import ONIXMessageBuilder

    xml = ONIXMessageBuilder(tenant).add_title(title).to_xml()
"""

from __future__ import annotations

from onixport.onix.builder.accessibility import (
    AccessibilityMetadata,
    build_accessibility_features,
    has_accessibility_metadata,
)
from onixport.onix.builder.message import ONIXMessageBuilder, build_record_reference
from onixport.onix.codelists import get_product_availability_code

__all__ = [
    "AccessibilityMetadata",
    "ONIXMessageBuilder",
    "build_accessibility_features",
    "build_record_reference",
    "get_product_availability_code",
    "has_accessibility_metadata",
]
