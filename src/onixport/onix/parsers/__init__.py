"""
Version-specific ONIX parsers.

Usage:
    from onixport.onix.parsers import get_parser

    parser = get_parser("3.1")
    message = parser.parse(xml)
"""

from __future__ import annotations

from onixport.exceptions import UnsupportedVersionError
from onixport.onix.parsers.base import (
    ONIX30_PROFILE,
    ONIX31_PROFILE,
    BaseONIXParser,
    ONIXParser,
    VersionProfile,
)
from onixport.onix.parsers.onix3 import Onix3Parser
from onixport.onix.parsers.onix21 import Onix21Parser
from onixport.onix.schemas import ParsedMessage
from onixport.onix.version import SUPPORTED_VERSIONS


def get_parser(version: str) -> ONIXParser:
    """Return a parser for the given ONIX version.

    Raises:
        UnsupportedVersionError: For "unknown" or any unsupported version.
    """
    if version == "3.1":
        return Onix3Parser(ONIX31_PROFILE)
    if version == "3.0":
        return Onix3Parser(ONIX30_PROFILE)
    if version == "2.1":
        return Onix21Parser()
    raise UnsupportedVersionError(
        f"Unsupported ONIX version: {version!r} (supported: {', '.join(SUPPORTED_VERSIONS)})",
        version=version,
    )


def parse_onix(xml: str, version: str) -> ParsedMessage:
    """Parse a document with the parser for ``version``."""
    return get_parser(version).parse(xml)


__all__ = [
    "ONIX30_PROFILE",
    "ONIX31_PROFILE",
    "BaseONIXParser",
    "ONIXParser",
    "Onix21Parser",
    "Onix3Parser",
    "VersionProfile",
    "get_parser",
    "parse_onix",
]
