"""EDItEUR codelist subsets used by onixport.

Only the codes the import/export pipelines understand are listed. Tables
are read-only (MappingProxyType / frozenset) so no caller can mutate them.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Literal

PublicationStatus = Literal["draft", "pending", "published", "out_of_print"]
ContributorBucket = Literal["author", "editor", "translator", "narrator", "other"]

# =============================================================================
# List 5: Product identifier type
# =============================================================================

PRODUCT_ID_TYPE_ISBN13 = "15"
PRODUCT_ID_TYPE_GTIN13 = "03"
PRODUCT_ID_TYPE_ISBN10 = "02"

VALID_PRODUCT_ID_TYPES: frozenset[str] = frozenset({PRODUCT_ID_TYPE_GTIN13, PRODUCT_ID_TYPE_ISBN13})

# =============================================================================
# List 150: Product form (subset)
# =============================================================================

VALID_PRODUCT_FORMS: frozenset[str] = frozenset(
    {"BB", "BC", "BD", "BE", "EA", "EB", "EC", "ED"}
)

# =============================================================================
# List 79 / List 196 / List 143: Product form features
# =============================================================================

FEATURE_TYPE_ACCESSIBILITY = "09"
FEATURE_TYPE_HAZARD = "12"

VALID_FEATURE_TYPES: frozenset[str] = frozenset({FEATURE_TYPE_ACCESSIBILITY, FEATURE_TYPE_HAZARD})

# List 196 values 00-26; 23 and 27+ are not accepted
VALID_ACCESSIBILITY_VALUES: frozenset[str] = frozenset(
    f"{code:02d}" for code in range(27) if code != 23
)

VALID_HAZARD_VALUES: frozenset[str] = frozenset(f"{code:02d}" for code in range(8))

# Hazard value -> values it may not appear together with
HAZARD_CONFLICTS: MappingProxyType[str, frozenset[str]] = MappingProxyType(
    {
        "00": frozenset({"01", "02", "03", "04", "05", "06", "07"}),  # unknown
        "01": frozenset({"02", "03", "04"}),  # no hazards
        "02": frozenset({"01", "05"}),  # flashing
        "03": frozenset({"01", "06"}),  # motion simulation
        "04": frozenset({"01", "07"}),  # sound
    }
)

CONFORMANCE_DESCRIPTIONS: MappingProxyType[str, str] = MappingProxyType(
    {
        "00": "Accessibility summary",
        "01": "LIA Compliance Scheme",
        "02": "EPUB Accessibility 1.0 compliant",
        "03": "EPUB Accessibility 1.0 + WCAG 2.0 Level A",
        "04": "EPUB Accessibility 1.0 + WCAG 2.0 Level AA",
        "05": "EPUB Accessibility 1.0 + WCAG 2.0 Level AAA",
        "06": "EPUB Accessibility 1.1 + WCAG 2.1 Level A",
        "07": "EPUB Accessibility 1.1 + WCAG 2.1 Level AA",
        "08": "EPUB Accessibility 1.1 + WCAG 2.1 Level AAA",
        "09": "EPUB Accessibility 1.1 + WCAG 2.2 Level A",
        "10": "EPUB Accessibility 1.1 + WCAG 2.2 Level AA",
        "11": "EPUB Accessibility 1.1 + WCAG 2.2 Level AAA",
    }
)

# =============================================================================
# Currencies
# =============================================================================

SUPPORTED_CURRENCIES: frozenset[str] = frozenset({"USD", "EUR", "GBP", "CAD", "AUD"})

# =============================================================================
# List 17: Contributor role -> internal bucket
# =============================================================================

_AUTHOR_CODES = [f"A{n:02d}" for n in range(1, 45) if n != 28]
_EDITOR_CODES = [f"B{n:02d}" for n in range(1, 32) if n not in (6, 7, 8)]

CONTRIBUTOR_ROLE_MAP: MappingProxyType[str, ContributorBucket] = MappingProxyType(
    {
        **{code: "author" for code in _AUTHOR_CODES},
        **{code: "editor" for code in _EDITOR_CODES},
        "B06": "translator",
        "B07": "author",  # as told by
        "B08": "translator",  # translated with commentary by
        "D01": "narrator",
        "D02": "narrator",
        "D03": "narrator",
        **{f"E{n:02d}": "narrator" for n in range(1, 9)},
        "E99": "narrator",
        "Z01": "other",
        "Z02": "other",
        "Z98": "other",
        "Z99": "other",
    }
)

DEFAULT_CONTRIBUTOR_ROLE = "A01"

# =============================================================================
# List 64: Publishing status -> publication status
# =============================================================================

PUBLISHING_STATUS_MAP: MappingProxyType[str, PublicationStatus] = MappingProxyType(
    {
        "00": "draft",  # unspecified
        "01": "draft",  # cancelled
        "02": "pending",  # forthcoming
        "03": "pending",  # postponed indefinitely
        "04": "published",  # active
        "05": "draft",  # no longer our product
        "06": "out_of_print",  # out of stock indefinitely
        "07": "out_of_print",  # out of print
        "08": "draft",  # inactive
        "09": "draft",  # unknown
        "10": "draft",  # remaindered
        "11": "draft",  # withdrawn from sale
        "12": "draft",  # recalled
        "13": "pending",  # active, not sold separately
        "14": "pending",  # temporarily withdrawn
        "15": "pending",  # not available
        "16": "draft",  # not available, reason unspecified
        "17": "pending",  # not sold as set
    }
)

# Export direction, used for the PublishingStatus element
EXPORT_PUBLISHING_STATUS: MappingProxyType[str, str] = MappingProxyType(
    {
        "draft": "02",
        "pending": "02",
        "published": "04",
        "out_of_print": "07",
    }
)
DEFAULT_EXPORT_PUBLISHING_STATUS = "04"

# =============================================================================
# List 65: Product availability (export only)
# =============================================================================

PRODUCT_AVAILABILITY_MAP: MappingProxyType[str, str] = MappingProxyType(
    {
        "draft": "10",  # not yet available
        "pending": "10",
        "published": "20",  # available
        "out_of_print": "40",  # not available
    }
)
DEFAULT_PRODUCT_AVAILABILITY = "20"


def map_contributor_role(role: str | None) -> ContributorBucket:
    """Map a List 17 role code to an internal bucket (unknown codes -> author)."""
    if not role:
        return "author"
    return CONTRIBUTOR_ROLE_MAP.get(role.upper(), "author")


def map_publishing_status(code: str | None) -> PublicationStatus:
    """Map a List 64 publishing status to a publication status (default draft)."""
    if not code:
        return "draft"
    return PUBLISHING_STATUS_MAP.get(code, "draft")


def get_product_availability_code(status: str | None) -> str:
    """Map a publication status to a List 65 availability code (default 20)."""
    if not status:
        return DEFAULT_PRODUCT_AVAILABILITY
    return PRODUCT_AVAILABILITY_MAP.get(status, DEFAULT_PRODUCT_AVAILABILITY)


def get_export_publishing_status(status: str | None) -> str:
    """Map a publication status to a List 64 code for export (default 04)."""
    if not status:
        return DEFAULT_EXPORT_PUBLISHING_STATUS
    return EXPORT_PUBLISHING_STATUS.get(status, DEFAULT_EXPORT_PUBLISHING_STATUS)
