"""
ONIX 3.x message builder.

Builds a complete ONIXMessage document from catalogue titles. The document
is assembled from text fragments: every interpolated value goes through
escape_xml(), and optional values through optional_element() so that no
empty element is ever written.

Usage:
    builder = ONIXMessageBuilder(tenant, version="3.1")
    xml = builder.add_title(title).add_title(other).to_xml()
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from onixport.catalog import TitleAuthor, TitleWithAuthors, Tenant
from onixport.exceptions import UnsupportedVersionError
from onixport.onix.builder.accessibility import (
    build_accessibility_features,
    has_accessibility_metadata,
)
from onixport.onix.codelists import (
    DEFAULT_CONTRIBUTOR_ROLE,
    PRODUCT_ID_TYPE_GTIN13,
    PRODUCT_ID_TYPE_ISBN13,
    get_export_publishing_status,
    get_product_availability_code,
)
from onixport.onix.version import EXPORT_VERSIONS, namespace_for
from onixport.onix.xml_utils import (
    close_tag,
    element,
    format_publishing_date,
    format_sent_datetime,
    join_lines,
    open_tag,
    optional_element,
)

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
DEFAULT_LANGUAGE = "eng"
DEFAULT_CURRENCY = "USD"
DEFAULT_COUNTRY = "US"


def build_record_reference(subdomain: str, title_id: str) -> str:
    return f"{subdomain}-{title_id}"


def _author_names(author: TitleAuthor) -> tuple[str, str]:
    """Stripped (first, last) names of an author's contact."""
    return (author.contact.first_name or "").strip(), (author.contact.last_name or "").strip()


class ONIXMessageBuilder:
    """Accumulates products and serializes them as one ONIX 3.x message.

    Attributes:
        tenant: Sender and publisher identity
        version: "3.0" or "3.1"
        sent_at: Timestamp written to SentDateTime (defaults to now, UTC)
        country: Sales territory for every product
        currency: Tenant currency, else the supplied default
    """

    def __init__(
        self,
        tenant: Tenant,
        version: str = "3.1",
        sent_at: datetime | None = None,
        country: str = DEFAULT_COUNTRY,
        default_currency: str = DEFAULT_CURRENCY,
    ) -> None:
        if version not in EXPORT_VERSIONS:
            raise UnsupportedVersionError(
                f"Cannot build ONIX {version} messages (supported: {', '.join(EXPORT_VERSIONS)})",
                version=version,
            )
        self.tenant = tenant
        self.version = version
        self.sent_at = sent_at or datetime.now(UTC)
        self.country = country
        self.currency = tenant.default_currency or default_currency
        self._products: list[str] = []

    @property
    def product_count(self) -> int:
        return len(self._products)

    def add_title(self, title: TitleWithAuthors) -> ONIXMessageBuilder:
        """Append one Product block for the title. Returns self for chaining."""
        self._products.append(self._build_product(title))
        logger.debug("Added title %s to ONIX %s message", title.id, self.version)
        return self

    def to_xml(self) -> str:
        """Serialize header and accumulated products into a complete document."""
        root = open_tag(
            "ONIXMessage",
            attrs={"xmlns": namespace_for(self.version), "release": self.version},
        )
        parts = [XML_DECLARATION, root, self._build_header(), *self._products]
        parts.append(close_tag("ONIXMessage"))
        return "\n".join(parts) + "\n"

    # -------------------------------------------------------------------------
    # Header
    # -------------------------------------------------------------------------

    def _build_header(self) -> str:
        return join_lines(
            [
                open_tag("Header", 1),
                open_tag("Sender", 2),
                element("SenderName", self.tenant.name, 3),
                optional_element("EmailAddress", self.tenant.email, 3),
                close_tag("Sender", 2),
                element("SentDateTime", format_sent_datetime(self.sent_at), 2),
                element("DefaultLanguageOfText", DEFAULT_LANGUAGE, 2),
                element("DefaultCurrencyCode", self.currency, 2),
                close_tag("Header", 1),
            ]
        )

    # -------------------------------------------------------------------------
    # Product
    # -------------------------------------------------------------------------

    def _build_product(self, title: TitleWithAuthors) -> str:
        return join_lines(
            [
                open_tag("Product", 1),
                element(
                    "RecordReference", build_record_reference(self.tenant.subdomain, title.id), 2
                ),
                element("NotificationType", "03", 2),
                self._build_identifiers(title),
                self._build_descriptive_detail(title),
                self._build_publishing_detail(title),
                self._build_product_supply(title),
                close_tag("Product", 1),
            ]
        )

    def _build_identifiers(self, title: TitleWithAuthors) -> str | None:
        if not title.isbn:
            return None
        lines: list[str | None] = []
        for id_type in (PRODUCT_ID_TYPE_ISBN13, PRODUCT_ID_TYPE_GTIN13):
            lines.extend(
                [
                    open_tag("ProductIdentifier", 2),
                    element("ProductIDType", id_type, 3),
                    element("IDValue", title.isbn, 3),
                    close_tag("ProductIdentifier", 2),
                ]
            )
        return join_lines(lines)

    def _build_descriptive_detail(self, title: TitleWithAuthors) -> str:
        # Unnamed authors are left out and do not consume a sequence number
        named = [author for author in title.authors if any(_author_names(author))]
        contributors = [
            self._build_contributor(author, sequence)
            for sequence, author in enumerate(named, start=1)
        ]
        accessibility = (
            build_accessibility_features(title, 3) if has_accessibility_metadata(title) else None
        )
        return join_lines(
            [
                open_tag("DescriptiveDetail", 2),
                element("ProductComposition", "00", 3),
                element("ProductForm", "BC", 3),
                accessibility,
                open_tag("TitleDetail", 3),
                element("TitleType", "01", 4),
                open_tag("TitleElement", 4),
                element("TitleElementLevel", "01", 5),
                element("TitleText", title.title, 5),
                optional_element("Subtitle", title.subtitle, 5),
                close_tag("TitleElement", 4),
                close_tag("TitleDetail", 3),
                *contributors,
                close_tag("DescriptiveDetail", 2),
            ]
        )

    def _build_contributor(self, author: TitleAuthor, sequence: int) -> str:
        first, last = _author_names(author)
        inverted = f"{last}, {first}" if first and last else (last or first)
        return join_lines(
            [
                open_tag("Contributor", 3),
                element("SequenceNumber", sequence, 4),
                element("ContributorRole", DEFAULT_CONTRIBUTOR_ROLE, 4),
                element("PersonNameInverted", inverted, 4),
                optional_element("NamesBeforeKey", first, 4),
                optional_element("KeyNames", last, 4),
                close_tag("Contributor", 3),
            ]
        )

    def _build_publishing_detail(self, title: TitleWithAuthors) -> str:
        published_on = title.publication_date or title.created_at or self.sent_at
        return join_lines(
            [
                open_tag("PublishingDetail", 2),
                open_tag("Publisher", 3),
                element("PublishingRole", "01", 4),
                element("PublisherName", self.tenant.name, 4),
                close_tag("Publisher", 3),
                element(
                    "PublishingStatus", get_export_publishing_status(title.publication_status), 3
                ),
                open_tag("PublishingDate", 3),
                element("PublishingDateRole", "01", 4),
                element("Date", format_publishing_date(published_on), 4),
                close_tag("PublishingDate", 3),
                close_tag("PublishingDetail", 2),
            ]
        )

    def _build_product_supply(self, title: TitleWithAuthors) -> str:
        amount = title.list_price if title.list_price is not None else 0
        return join_lines(
            [
                open_tag("ProductSupply", 2),
                open_tag("Market", 3),
                open_tag("Territory", 4),
                element("CountriesIncluded", self.country, 5),
                close_tag("Territory", 4),
                close_tag("Market", 3),
                open_tag("SupplyDetail", 3),
                open_tag("Supplier", 4),
                element("SupplierRole", "01", 5),
                element("SupplierName", self.tenant.name, 5),
                close_tag("Supplier", 4),
                element(
                    "ProductAvailability",
                    get_product_availability_code(title.publication_status),
                    4,
                ),
                open_tag("Price", 4),
                element("PriceType", "01", 5),
                element("PriceAmount", f"{amount:.2f}", 5),
                element("CurrencyCode", self.currency, 5),
                close_tag("Price", 4),
                close_tag("SupplyDetail", 3),
                close_tag("ProductSupply", 2),
            ]
        )
