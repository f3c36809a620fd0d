"""ONIX 2.1 parser.

ONIX 2.1 allows the same data in several places: identifiers as direct
``ISBN``/``EAN13`` elements or ``ProductIdentifier`` composites, titles as
direct elements or ``Title`` composites. This parser accepts all of them.
Short-tag documents are expanded to reference names before parsing.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from onixport.onix.codelists import (
    DEFAULT_CONTRIBUTOR_ROLE,
    PRODUCT_ID_TYPE_GTIN13,
    PRODUCT_ID_TYPE_ISBN10,
    PRODUCT_ID_TYPE_ISBN13,
)
from onixport.onix.isbn import convert_isbn10_to_13, normalize_isbn
from onixport.onix.parsers.base import BaseONIXParser, join_title
from onixport.onix.schemas import (
    ParsedContributor,
    ParsedHeader,
    ParsedPrice,
    ParsedProduct,
    ParsedSubject,
)
from onixport.onix.short_tags import expand_short_tags, has_short_tags
from onixport.onix.xml_utils import child_text, find_children, parse_onix_date

logger = logging.getLogger(__name__)

# Literal IDTypeName values some senders use instead of the numeric code
_ISBN13_TYPE_NAMES = frozenset({PRODUCT_ID_TYPE_ISBN13, "ISBN-13", "ISBN13"})
_GTIN13_TYPE_NAMES = frozenset({PRODUCT_ID_TYPE_GTIN13, "GTIN-13", "EAN-13", "EAN13"})
_ISBN10_TYPE_NAMES = frozenset({PRODUCT_ID_TYPE_ISBN10, "ISBN-10", "ISBN10"})

_BASIC_SCHEME = "10"
_BIC_SCHEME = "12"


class Onix21Parser(BaseONIXParser):
    """Parser for ONIX 2.1 messages in reference or short-tag form."""

    version = "2.1"
    root_tags = ("ONIXMessage", "ONIXmessage", "onixmessage")
    product_tags = ("Product", "product")

    def __repr__(self) -> str:
        return "Onix21Parser()"

    def _prepare(self, xml: str) -> str:
        if has_short_tags(xml):
            logger.debug("Expanding ONIX 2.1 short tags")
            return expand_short_tags(xml)
        return xml

    def _parse_header(self, header: ET.Element | None) -> ParsedHeader:
        return ParsedHeader(
            sender_name=child_text(header, "FromCompany", "FromPerson"),
            sender_email=child_text(header, "FromEmail"),
            sent_date_time=child_text(header, "SentDate"),
        )

    def _parse_product(self, product: ET.Element, index: int) -> ParsedProduct:
        isbn13, gtin13 = self._parse_identifiers(product)
        title, subtitle = self._parse_title(product)

        return ParsedProduct(
            record_reference=child_text(product, "RecordReference"),
            isbn13=isbn13,
            gtin13=gtin13,
            title=title,
            subtitle=subtitle,
            contributors=tuple(self._parse_contributors(product)),
            product_form=child_text(product, "ProductForm"),
            publishing_status=child_text(product, "PublishingStatus"),
            publication_date=parse_onix_date(child_text(product, "PublicationDate")),
            prices=tuple(self._parse_prices(product)),
            subjects=tuple(self._parse_subjects(product)),
            raw_index=index,
        )

    def _parse_identifiers(self, product: ET.Element) -> tuple[str | None, str | None]:
        isbn13: str | None = None
        gtin13: str | None = None
        isbn10: str | None = None

        direct_isbn = normalize_isbn(child_text(product, "ISBN"))
        if direct_isbn and len(direct_isbn) == 13:
            isbn13 = direct_isbn
        elif direct_isbn and len(direct_isbn) == 10:
            isbn10 = direct_isbn

        ean = normalize_isbn(child_text(product, "EAN13"))
        if ean:
            gtin13 = ean
            if isbn13 is None and ean.startswith("978"):
                isbn13 = ean

        for identifier in find_children(product, "ProductIdentifier"):
            id_type = child_text(identifier, "ProductIDType", "IDTypeName")
            value = normalize_isbn(child_text(identifier, "IDValue"))
            if not value:
                continue
            if id_type in _ISBN13_TYPE_NAMES:
                isbn13 = isbn13 or value
            elif id_type in _GTIN13_TYPE_NAMES:
                gtin13 = gtin13 or value
                if isbn13 is None and value.startswith("978"):
                    isbn13 = value
            elif id_type in _ISBN10_TYPE_NAMES:
                isbn10 = isbn10 or value

        if isbn13 is None and isbn10:
            isbn13 = convert_isbn10_to_13(isbn10)
            if isbn13:
                logger.debug("Converted ISBN-10 %s to ISBN-13 %s", isbn10, isbn13)
        return isbn13, gtin13

    def _parse_title(self, product: ET.Element) -> tuple[str | None, str | None]:
        title = child_text(product, "DistinctiveTitle", "TitleText") or join_title(
            child_text(product, "TitlePrefix"), child_text(product, "TitleWithoutPrefix")
        )
        subtitle = child_text(product, "Subtitle")

        for composite in find_children(product, "Title"):
            title_type = child_text(composite, "TitleType")
            if title_type not in (None, "01"):
                continue
            text = child_text(composite, "TitleText") or join_title(
                child_text(composite, "TitlePrefix"), child_text(composite, "TitleWithoutPrefix")
            )
            if text:
                title = text
            subtitle = child_text(composite, "Subtitle") or subtitle
            break

        return title, subtitle

    def _parse_contributors(self, product: ET.Element) -> list[ParsedContributor]:
        contributors = []
        for position, contributor in enumerate(find_children(product, "Contributor")):
            sequence = child_text(contributor, "SequenceNumber")
            inverted = child_text(contributor, "PersonNameInverted")
            before_key = child_text(contributor, "NamesBeforeKey")
            key_names = child_text(contributor, "KeyNames")

            person_name = child_text(contributor, "PersonName")
            if person_name and not (inverted or key_names):
                before_key, key_names, inverted = _split_person_name(person_name)

            contributors.append(
                ParsedContributor(
                    sequence_number=int(sequence) if sequence else position + 1,
                    role=child_text(contributor, "ContributorRole") or DEFAULT_CONTRIBUTOR_ROLE,
                    person_name_inverted=inverted,
                    names_before_key=before_key,
                    key_names=key_names,
                    corporate_name=child_text(contributor, "CorporateName"),
                )
            )
        return contributors

    def _parse_prices(self, product: ET.Element) -> list[ParsedPrice]:
        prices = []
        for detail in find_children(product, "SupplyDetail"):
            for price in find_children(detail, "Price"):
                prices.append(
                    ParsedPrice(
                        price_type=child_text(price, "PriceTypeCode"),
                        amount=child_text(price, "PriceAmount"),
                        currency=child_text(price, "CurrencyCode"),
                    )
                )
        return prices

    def _parse_subjects(self, product: ET.Element) -> list[ParsedSubject]:
        subjects = []
        basic = child_text(product, "BASICMainSubject")
        if basic:
            subjects.append(ParsedSubject(scheme_identifier=_BASIC_SCHEME, code=basic))
        bic = child_text(product, "BICMainSubject")
        if bic:
            subjects.append(ParsedSubject(scheme_identifier=_BIC_SCHEME, code=bic))
        for subject in find_children(product, "Subject", "MainSubject"):
            subjects.append(
                ParsedSubject(
                    scheme_identifier=child_text(
                        subject, "SubjectSchemeIdentifier", "MainSubjectSchemeIdentifier"
                    ),
                    code=child_text(subject, "SubjectCode"),
                    heading_text=child_text(subject, "SubjectHeadingText"),
                )
            )
        return subjects


def _split_person_name(person_name: str) -> tuple[str | None, str, str]:
    """Split "Jane Q Smith" into ("Jane Q", "Smith", "Smith, Jane Q")."""
    tokens = person_name.split()
    key_names = tokens[-1]
    before_key = " ".join(tokens[:-1]) or None
    inverted = f"{key_names}, {before_key}" if before_key else key_names
    return before_key, key_names, inverted


