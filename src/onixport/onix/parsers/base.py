"""
ONIXParser protocol and the shared message-walking logic.

All parsers share one contract: a document that cannot be read at all
yields a single message-level issue and no products; a product that fails
to parse yields an issue carrying its index and parsing continues with the
next product.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from onixport.onix.schemas import ImportIssue, ParsedHeader, ParsedMessage, ParsedProduct
from onixport.onix.version import ONIXVersion, namespace_for
from onixport.onix.xml_utils import child_text, find_child, find_children, parse_document

logger = logging.getLogger(__name__)


@runtime_checkable
class ONIXParser(Protocol):
    """Protocol for version-specific ONIX parsers.

    Attributes:
        version: The ONIX version this parser reads ("2.1", "3.0", "3.1")

    Example implementation:
        class MyParser:
            version = "3.1"

            def parse(self, xml: str) -> ParsedMessage:
                ...
    """

    version: ONIXVersion

    def parse(self, xml: str) -> ParsedMessage:
        """Parse ONIX XML text into a version-independent message."""
        ...


@dataclass(frozen=True)
class VersionProfile:
    """Version-specific constants for the 3.x family."""

    version: ONIXVersion
    release: str

    @property
    def namespace(self) -> str:
        return namespace_for(self.version)


ONIX30_PROFILE = VersionProfile(version="3.0", release="3.0")
ONIX31_PROFILE = VersionProfile(version="3.1", release="3.1")


class BaseONIXParser:
    """Walks the message root and delegates header/product reading.

    Subclasses set ``version``, ``root_tags``, ``product_tags`` and implement
    ``_prepare``, ``_parse_header`` and ``_parse_product``.
    """

    version: ONIXVersion
    root_tags: tuple[str, ...] = ("ONIXMessage",)
    product_tags: tuple[str, ...] = ("Product",)

    def _prepare(self, xml: str) -> str:
        return xml

    def _parse_header(self, header: ET.Element | None) -> ParsedHeader:
        raise NotImplementedError

    def _parse_product(self, product: ET.Element, index: int) -> ParsedProduct:
        raise NotImplementedError

    def _message_error(self, message: str, code: str) -> ParsedMessage:
        logger.warning("ONIX %s message rejected: %s", self.version, message)
        issue = ImportIssue(field="message", message=message, code=code)
        return ParsedMessage(version=self.version, parsing_errors=(issue,))

    def parse(self, xml: str) -> ParsedMessage:
        """Parse ONIX XML into a ParsedMessage.

        Args:
            xml: Decoded ONIX document

        Returns:
            Parsed message with products and any parsing errors
        """
        try:
            root = parse_document(self._prepare(xml))
        except ET.ParseError as e:
            return self._message_error(f"Malformed XML: {e}", "XML_MALFORMED")

        if root.tag not in self.root_tags:
            return self._message_error(
                f"Missing ONIXMessage root element (found <{root.tag}>)", "MISSING_ROOT"
            )

        header = self._parse_header(find_child(root, "Header", "header"))

        products: list[ParsedProduct] = []
        errors: list[ImportIssue] = []
        for index, product_el in enumerate(find_children(root, *self.product_tags)):
            try:
                products.append(self._parse_product(product_el, index))
            except Exception as e:
                reference = _best_effort_reference(product_el)
                logger.warning(
                    "Failed to parse product %d (%s): %s", index, reference or "no reference", e
                )
                errors.append(
                    ImportIssue(
                        product_index=index,
                        record_reference=reference,
                        field=getattr(e, "tag", None) or "product",
                        message=f"Failed to parse product: {e}",
                        code="PRODUCT_PARSE_ERROR",
                    )
                )

        logger.debug(
            "Parsed ONIX %s message: %d products, %d errors", self.version, len(products), len(errors)
        )
        return ParsedMessage(
            version=self.version,
            header=header,
            products=tuple(products),
            parsing_errors=tuple(errors),
        )


def _best_effort_reference(product: ET.Element) -> str | None:
    found = product.find("RecordReference")
    if found is None or len(found):
        return None
    return (found.text or "").strip() or None


def select_preferred(
    elements: list[ET.Element], type_tag: str, preferred: str = "01"
) -> ET.Element | None:
    """Pick the element whose ``type_tag`` is the preferred code or absent.

    Falls back to the first element when none qualifies.
    """
    for el in elements:
        code = child_text(el, type_tag)
        if code is None or code == preferred:
            return el
    return elements[0] if elements else None


def join_title(prefix: str | None, text: str | None) -> str | None:
    """Combine a title prefix ("The") with the text that follows it."""
    if prefix and text:
        return f"{prefix} {text}"
    return text or prefix
