"""Decode uploaded ONIX bytes into text.

Detection order: BOM (UTF-8, UTF-16LE, UTF-16BE), the ``encoding``
declared in the XML prolog, then a strict UTF-8 -> Windows-1252 ->
ISO-8859-1 cascade. ISO-8859-1 accepts every byte, so decoding itself
never fails; the post-decode checks catch binary or mis-decoded content.
"""

from __future__ import annotations

import codecs
import logging
import re
from types import MappingProxyType

from onixport.exceptions import EncodingError

logger = logging.getLogger(__name__)

DECLARATION_WINDOW = 200

_DECLARED_ENCODING_RE = re.compile(rb"""encoding\s*=\s*["']([A-Za-z0-9._:-]+)["']""")

# Declared name (lowercased) -> Python codec
ENCODING_ALIASES: MappingProxyType[str, str] = MappingProxyType(
    {
        "utf-8": "utf-8",
        "utf8": "utf-8",
        "ascii": "utf-8",
        "us-ascii": "utf-8",
        "utf-16": "utf-16",
        "utf-16le": "utf-16-le",
        "utf-16be": "utf-16-be",
        "iso-8859-1": "iso-8859-1",
        "iso8859-1": "iso-8859-1",
        "iso_8859-1": "iso-8859-1",
        "latin1": "iso-8859-1",
        "latin-1": "iso-8859-1",
        "l1": "iso-8859-1",
        "windows-1252": "cp1252",
        "windows1252": "cp1252",
        "cp1252": "cp1252",
        "cp-1252": "cp1252",
        "win-1252": "cp1252",
    }
)

_STRICT_CASCADE = ("utf-8", "cp1252")
_LAST_RESORT = "iso-8859-1"

_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)


def normalize_encoding_name(name: str) -> str | None:
    """Map a declared encoding name to a Python codec, or None if unknown."""
    return ENCODING_ALIASES.get(name.strip().lower())


def _declared_encoding(data: bytes) -> str | None:
    match = _DECLARED_ENCODING_RE.search(data[:DECLARATION_WINDOW])
    if not match:
        return None
    declared = match.group(1).decode("ascii", errors="ignore")
    codec = normalize_encoding_name(declared)
    if codec is None:
        logger.warning("Unrecognised declared encoding %r, using fallback detection", declared)
    return codec


def _decode_with_cascade(data: bytes) -> tuple[str, str]:
    for codec in _STRICT_CASCADE:
        try:
            return data.decode(codec), codec
        except UnicodeDecodeError:
            logger.debug("Content is not valid %s, trying next encoding", codec)
    return data.decode(_LAST_RESORT), _LAST_RESORT


def _validate_decoded(text: str, codec: str) -> None:
    if "\x00" in text:
        raise EncodingError(
            "File contains NUL characters and appears to be binary, not XML",
            encoding=codec,
        )
    if "<" not in text or ">" not in text:
        raise EncodingError("File does not contain any XML markup", encoding=codec)
    if "\ufffd" in text:
        raise EncodingError(
            "File contains Unicode replacement characters from an earlier mis-decode",
            encoding=codec,
        )


def detect_and_convert_encoding(data: bytes) -> str:
    """Decode raw ONIX bytes into text.

    Args:
        data: Uploaded file content.

    Returns:
        Decoded XML text without a byte-order mark.

    Raises:
        EncodingError: If the decoded text is binary, contains no markup or
            contains replacement characters.
    """
    for bom, codec in _BOMS:
        if data.startswith(bom):
            try:
                text = data[len(bom) :].decode(codec)
            except UnicodeDecodeError as e:
                raise EncodingError(
                    f"File starts with a {codec} byte-order mark but is not valid {codec}",
                    encoding=codec,
                ) from e
            _validate_decoded(text, codec)
            return text

    codec = _declared_encoding(data)
    if codec is not None:
        try:
            text = data.decode(codec)
        except UnicodeDecodeError:
            logger.warning("Content does not match declared encoding %s, falling back", codec)
        else:
            _validate_decoded(text, codec)
            return text

    text, codec = _decode_with_cascade(data)
    if codec != "utf-8":
        logger.info("Decoded ONIX content using fallback encoding %s", codec)
    _validate_decoded(text, codec)
    return text
