"""ONIX 3.0 / 3.1 parser.

Both releases share the same block structure for every field read here,
so one parser serves both, configured by a VersionProfile.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import date

from onixport.onix.codelists import (
    DEFAULT_CONTRIBUTOR_ROLE,
    PRODUCT_ID_TYPE_GTIN13,
    PRODUCT_ID_TYPE_ISBN13,
)
from onixport.onix.parsers.base import (
    ONIX31_PROFILE,
    BaseONIXParser,
    VersionProfile,
    join_title,
    select_preferred,
)
from onixport.onix.schemas import (
    ParsedContributor,
    ParsedHeader,
    ParsedPrice,
    ParsedProduct,
    ParsedSubject,
)
from onixport.onix.xml_utils import child_text, find_child, find_children, parse_onix_date

logger = logging.getLogger(__name__)


class Onix3Parser(BaseONIXParser):
    """Parser for ONIX 3.x reference-tag messages."""

    def __init__(self, profile: VersionProfile = ONIX31_PROFILE) -> None:
        self.profile = profile
        self.version = profile.version

    def __repr__(self) -> str:
        return f"Onix3Parser(version={self.version!r})"

    def _parse_header(self, header: ET.Element | None) -> ParsedHeader:
        sender = find_child(header, "Sender")
        return ParsedHeader(
            sender_name=child_text(sender, "SenderName"),
            sender_email=child_text(sender, "EmailAddress"),
            sent_date_time=child_text(header, "SentDateTime"),
        )

    def _parse_product(self, product: ET.Element, index: int) -> ParsedProduct:
        isbn13, gtin13 = self._parse_identifiers(product)
        descriptive = find_child(product, "DescriptiveDetail")
        title, subtitle = self._parse_title(descriptive)
        publishing = find_child(product, "PublishingDetail")

        logger.debug("ONIX %s product %d: ISBN %s", self.version, index, isbn13 or "-")
        return ParsedProduct(
            record_reference=child_text(product, "RecordReference"),
            isbn13=isbn13,
            gtin13=gtin13,
            title=title,
            subtitle=subtitle,
            contributors=tuple(self._parse_contributors(descriptive)),
            product_form=child_text(descriptive, "ProductForm"),
            publishing_status=child_text(publishing, "PublishingStatus"),
            publication_date=self._parse_publishing_date(publishing),
            prices=tuple(self._parse_prices(product)),
            subjects=tuple(self._parse_subjects(descriptive)),
            raw_index=index,
        )

    def _parse_identifiers(self, product: ET.Element) -> tuple[str | None, str | None]:
        isbn13: str | None = None
        gtin13: str | None = None
        for identifier in find_children(product, "ProductIdentifier"):
            id_type = child_text(identifier, "ProductIDType")
            value = child_text(identifier, "IDValue")
            if id_type == PRODUCT_ID_TYPE_ISBN13 and isbn13 is None:
                isbn13 = value
            elif id_type == PRODUCT_ID_TYPE_GTIN13 and gtin13 is None:
                gtin13 = value
        return isbn13, gtin13

    def _parse_title(self, descriptive: ET.Element | None) -> tuple[str | None, str | None]:
        title_detail = select_preferred(find_children(descriptive, "TitleDetail"), "TitleType")
        title_element = select_preferred(
            find_children(title_detail, "TitleElement"), "TitleElementLevel"
        )
        if title_element is None:
            return None, None
        text = child_text(title_element, "TitleText") or child_text(
            title_element, "TitleWithoutPrefix"
        )
        title = join_title(child_text(title_element, "TitlePrefix"), text)
        return title, child_text(title_element, "Subtitle")

    def _parse_contributors(self, descriptive: ET.Element | None) -> list[ParsedContributor]:
        contributors = []
        for position, contributor in enumerate(find_children(descriptive, "Contributor")):
            sequence = child_text(contributor, "SequenceNumber")
            contributors.append(
                ParsedContributor(
                    sequence_number=int(sequence) if sequence else position + 1,
                    role=child_text(contributor, "ContributorRole") or DEFAULT_CONTRIBUTOR_ROLE,
                    person_name_inverted=child_text(contributor, "PersonNameInverted"),
                    names_before_key=child_text(contributor, "NamesBeforeKey"),
                    key_names=child_text(contributor, "KeyNames"),
                    corporate_name=child_text(contributor, "CorporateName"),
                )
            )
        return contributors

    def _parse_publishing_date(self, publishing: ET.Element | None) -> date | None:
        dated = select_preferred(find_children(publishing, "PublishingDate"), "PublishingDateRole")
        return parse_onix_date(child_text(dated, "Date"))

    def _parse_prices(self, product: ET.Element) -> list[ParsedPrice]:
        prices = []
        for supply in find_children(product, "ProductSupply"):
            for detail in find_children(supply, "SupplyDetail"):
                for price in find_children(detail, "Price"):
                    prices.append(
                        ParsedPrice(
                            price_type=child_text(price, "PriceType"),
                            amount=child_text(price, "PriceAmount"),
                            currency=child_text(price, "CurrencyCode"),
                        )
                    )
        return prices

    def _parse_subjects(self, descriptive: ET.Element | None) -> list[ParsedSubject]:
        return [
            ParsedSubject(
                scheme_identifier=child_text(subject, "SubjectSchemeIdentifier"),
                code=child_text(subject, "SubjectCode"),
                heading_text=child_text(subject, "SubjectHeadingText"),
            )
            for subject in find_children(descriptive, "Subject")
        ]
