"""Accessibility ProductFormFeature elements for ONIX 3.x DescriptiveDetail.

Conformance and accessibility features are written with feature type 09
(List 196 values); hazards with feature type 12 (List 143 values).
"""

from __future__ import annotations

from typing import Any, Protocol

from onixport.onix.codelists import (
    CONFORMANCE_DESCRIPTIONS,
    FEATURE_TYPE_ACCESSIBILITY,
    FEATURE_TYPE_HAZARD,
)
from onixport.onix.xml_utils import close_tag, element, open_tag, optional_element, to_array


class AccessibilityMetadata(Protocol):
    """Anything carrying the four accessibility source fields."""

    epub_accessibility_conformance: str | None
    accessibility_features: Any
    accessibility_hazards: Any
    accessibility_summary: str | None


def has_accessibility_metadata(metadata: AccessibilityMetadata) -> bool:
    """True when any of the four accessibility fields is set."""
    return bool(
        metadata.epub_accessibility_conformance
        or to_array(metadata.accessibility_features)
        or to_array(metadata.accessibility_hazards)
        or metadata.accessibility_summary
    )


def _feature(
    feature_type: str, value: str, indent: int, description: str | None = None
) -> list[str | None]:
    return [
        open_tag("ProductFormFeature", indent),
        element("ProductFormFeatureType", feature_type, indent + 1),
        element("ProductFormFeatureValue", value, indent + 1),
        optional_element("ProductFormFeatureDescription", description, indent + 1),
        close_tag("ProductFormFeature", indent),
    ]


def build_accessibility_features(metadata: AccessibilityMetadata, indent: int = 0) -> str:
    """Render accessibility ProductFormFeature elements.

    Output order is conformance, then features, then hazards. A summary on
    its own produces nothing: it is only written as the conformance
    description.

    Returns:
        XML fragment, or an empty string when there is nothing to write
    """
    lines: list[str | None] = []

    conformance = metadata.epub_accessibility_conformance
    if conformance:
        description = metadata.accessibility_summary or CONFORMANCE_DESCRIPTIONS.get(conformance)
        lines.extend(_feature(FEATURE_TYPE_ACCESSIBILITY, conformance, indent, description))

    for feature in to_array(metadata.accessibility_features):
        if feature:
            lines.extend(_feature(FEATURE_TYPE_ACCESSIBILITY, feature, indent))

    for hazard in to_array(metadata.accessibility_hazards):
        if hazard:
            lines.extend(_feature(FEATURE_TYPE_HAZARD, hazard, indent))

    return "\n".join(line for line in lines if line)
