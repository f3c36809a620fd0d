"""Low-level XML helpers shared by the ONIX builder, parsers and validators.

The builder assembles documents from text fragments so that every value
passes through escape_xml(); ElementTree is used for reading only.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from datetime import UTC, date, datetime
from html.entities import name2codepoint
from typing import Any
from xml.sax.saxutils import escape

from onixport.exceptions import MalformedElementError

INDENT = "  "

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}
_DIGITS_ONLY = re.compile(r"\D")

# Named entities declared by the EDItEUR ONIX DTDs (the HTML 4 set)
_DTD_ENTITIES = {name: chr(codepoint) for name, codepoint in name2codepoint.items()}


# =============================================================================
# Writing
# =============================================================================


def escape_xml(value: Any) -> str:
    """Escape the five XML metacharacters (& < > " ') in a text value."""
    return escape(str(value), _XML_ENTITIES)


def element(tag: str, value: Any, indent: int = 0) -> str:
    """Render ``<tag>value</tag>`` with the value escaped."""
    return f"{INDENT * indent}<{tag}>{escape_xml(value)}</{tag}>"


def optional_element(tag: str, value: Any, indent: int = 0) -> str | None:
    """Render an element only when the value is present.

    Returns None for None or whitespace-only values so callers never emit
    empty elements.
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return element(tag, value, indent)


def open_tag(tag: str, indent: int = 0, attrs: dict[str, str] | None = None) -> str:
    """Render an opening tag with escaped attribute values."""
    rendered = "".join(f' {name}="{escape_xml(val)}"' for name, val in (attrs or {}).items())
    return f"{INDENT * indent}<{tag}{rendered}>"


def close_tag(tag: str, indent: int = 0) -> str:
    return f"{INDENT * indent}</{tag}>"


def join_lines(lines: Iterable[str | None]) -> str:
    """Join rendered lines, dropping omitted optional elements."""
    return "\n".join(line for line in lines if line)


def format_publishing_date(value: date | datetime) -> str:
    """Format a date as ONIX ``YYYYMMDD``."""
    return value.strftime("%Y%m%d")


def format_sent_datetime(value: datetime) -> str:
    """Format a timestamp as ONIX ``YYYYMMDDTHHMMSSZ`` in UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime("%Y%m%dT%H%M%SZ")


# =============================================================================
# Value normalisation
# =============================================================================


def to_array(value: Any) -> list[Any]:
    """Normalise a "one or many" value into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_onix_date(value: str | None) -> date | None:
    """Parse an ONIX date string (``YYYYMMDD``, ``YYYYMM`` or ``YYYY``).

    Non-digit characters are stripped first, so ``2025-01-15`` is accepted.
    Inputs with fewer than four digits give None.

    Raises:
        ValueError: If the digits describe an impossible calendar date.
    """
    if not value:
        return None
    digits = _DIGITS_ONLY.sub("", value)
    if len(digits) >= 8:
        return date(int(digits[0:4]), int(digits[4:6]), int(digits[6:8]))
    if len(digits) >= 6:
        return date(int(digits[0:4]), int(digits[4:6]), 1)
    if len(digits) >= 4:
        return date(int(digits[0:4]), 1, 1)
    return None


# =============================================================================
# Reading
# =============================================================================


def local_name(tag: Any) -> str:
    """Strip a ``{namespace}`` prefix from an ElementTree tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def strip_namespaces(root: ET.Element) -> ET.Element:
    """Rewrite every tag in the tree to its local name, in place."""
    for el in root.iter():
        if isinstance(el.tag, str):
            el.tag = local_name(el.tag)
    return root


def parse_document(xml: str) -> ET.Element:
    """Parse XML text into a namespace-free element tree.

    Documents that reference an external DTD may use its named character
    entities (&eacute;, &mdash; ...); these resolve to their characters.

    Raises:
        xml.etree.ElementTree.ParseError: If the text is not well-formed.
    """
    parser = ET.XMLParser()
    parser.entity.update(_DTD_ENTITIES)
    return strip_namespaces(ET.fromstring(xml, parser=parser))


def find_child(parent: ET.Element | None, *tags: str) -> ET.Element | None:
    """Return the first direct child matching any of the given tags."""
    if parent is None:
        return None
    for tag in tags:
        found = parent.find(tag)
        if found is not None:
            return found
    return None


def find_children(parent: ET.Element | None, *tags: str) -> list[ET.Element]:
    """Return all direct children matching any of the given tags, in document order."""
    if parent is None:
        return []
    wanted = set(tags)
    return [child for child in parent if child.tag in wanted]


def element_text(el: ET.Element | None, path: str | None = None) -> str | None:
    """Return stripped text of a leaf element.

    Raises:
        MalformedElementError: If the element has child elements where a
            plain text value was expected.
    """
    if el is None:
        return None
    if len(el):
        raise MalformedElementError(
            f"Expected a text value in <{el.tag}>, found nested elements",
            tag=el.tag,
            path=path,
        )
    text = (el.text or "").strip()
    return text or None


def child_text(parent: ET.Element | None, *tags: str) -> str | None:
    """Return the text of the first matching leaf child that has a value."""
    if parent is None:
        return None
    for tag in tags:
        for child in parent.findall(tag):
            text = element_text(child, path=f"{parent.tag}/{tag}")
            if text is not None:
                return text
    return None
