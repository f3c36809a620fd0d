"""ONIX version detection.

Detection inspects only the head of the document, which is where the
namespace, release attribute, DOCTYPE and root element live.
"""

from __future__ import annotations

import logging
import re
from typing import Literal

logger = logging.getLogger(__name__)

ONIXVersion = Literal["2.1", "3.0", "3.1"]
DetectedVersion = Literal["2.1", "3.0", "3.1", "unknown"]

SUPPORTED_VERSIONS: tuple[ONIXVersion, ...] = ("2.1", "3.0", "3.1")
EXPORT_VERSIONS: tuple[ONIXVersion, ...] = ("3.0", "3.1")

DETECTION_WINDOW = 2000

_NAMESPACE_TEMPLATE = "http://ns.editeur.org/onix/{version}/reference"

_RELEASE_RE = re.compile(r"""<ONIXMessage\b[^>]*?\brelease\s*=\s*["']([^"']+)["']""", re.I)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE\s+ONIXMessage\b", re.I)
_LOWER_ROOT_RE = re.compile(r"<ONIXmessage[\s>]")
_SHORT_TAG_RE = re.compile(r"<[a-z]\d{3}[\s/>]")
_LOWER_PRODUCT_RE = re.compile(r"<product[\s>]")
_ROOT_RE = re.compile(r"<ONIXMessage[\s>]")
_XMLNS_RE = re.compile(r"<ONIXMessage\b[^>]*\bxmlns\s*=", re.I)
_PRODUCT_COUNT_RE = re.compile(r"<(?:Product|product)[\s>]")


def namespace_for(version: str) -> str:
    """Return the EDItEUR reference namespace URI for a 3.x version."""
    return _NAMESPACE_TEMPLATE.format(version=version)


def is_version_supported(version: str | None) -> bool:
    return version in SUPPORTED_VERSIONS


def detect_onix_version(xml: str) -> DetectedVersion:
    """Detect the ONIX version of a document.

    Checks, in priority order: 3.1 namespace, 3.0 namespace, the root
    ``release`` attribute, ONIX 2.1 indicators (DOCTYPE, lowercase
    ``<ONIXmessage>`` root, short tags, lowercase ``<product>``), and
    finally a namespace-free ``<ONIXMessage>`` root.

    Returns:
        "2.1", "3.0", "3.1" or "unknown". Callers must reject "unknown".
    """
    head = xml[:DETECTION_WINDOW]

    if "onix/3.1" in head:
        return "3.1"
    if "onix/3.0" in head:
        return "3.0"

    release_match = _RELEASE_RE.search(head)
    if release_match:
        release = release_match.group(1).strip()
        if release.startswith("3.1"):
            return "3.1"
        if release.startswith("3.0"):
            return "3.0"
        if release.startswith("3."):
            logger.debug("Unrecognised 3.x release %r, treating as 3.1", release)
            return "3.1"

    if (
        _DOCTYPE_RE.search(head)
        or _LOWER_ROOT_RE.search(head)
        or _SHORT_TAG_RE.search(head)
        or _LOWER_PRODUCT_RE.search(head)
    ):
        return "2.1"

    if _ROOT_RE.search(head) and not _XMLNS_RE.search(head):
        return "2.1"

    return "unknown"


def estimate_product_count(xml: str) -> int:
    """Count ``<Product>``/``<product>`` opening tags without parsing."""
    return len(_PRODUCT_COUNT_RE.findall(xml))
