"""Tests for the version-specific ONIX parsers."""

from __future__ import annotations

from datetime import date

import pytest

from onixport.exceptions import UnsupportedVersionError
from onixport.onix.parsers import (
    ONIXParser,
    Onix3Parser,
    Onix21Parser,
    get_parser,
    parse_onix,
)
from tests.conftest import (
    ISBN_A,
    ISBN_B,
    ONIX21_REFERENCE,
    ONIX21_SHORT,
    onix3_message,
    onix3_product,
)


class TestGetParser:
    """Tests for parser selection."""

    @pytest.mark.parametrize("version", ["2.1", "3.0", "3.1"])
    def test_supported_versions(self, version: str) -> None:
        """Each supported version gets a parser reporting that version."""
        parser = get_parser(version)
        assert isinstance(parser, ONIXParser)
        assert parser.version == version

    def test_3x_share_parser_class(self) -> None:
        """3.0 and 3.1 use the same parser class."""
        assert isinstance(get_parser("3.0"), Onix3Parser)
        assert isinstance(get_parser("3.1"), Onix3Parser)
        assert isinstance(get_parser("2.1"), Onix21Parser)

    @pytest.mark.parametrize("version", ["unknown", "2.0", ""])
    def test_unsupported_version_raises(self, version: str) -> None:
        """Unknown versions are rejected."""
        with pytest.raises(UnsupportedVersionError, match="Unsupported ONIX version"):
            get_parser(version)


class TestOnix3Parser:
    """Tests for ONIX 3.x parsing."""

    def test_full_product(self) -> None:
        """All supported fields are extracted from a 3.1 product."""
        xml = onix3_message(
            onix3_product(
                subtitle="A Subtitle",
                contributors=[("Jane", "Smith"), ("John", "Doe")],
            )
        )
        message = parse_onix(xml, "3.1")

        assert message.version == "3.1"
        assert message.parsing_errors == ()
        assert message.header.sender_name == "Acme Press"
        assert message.header.sender_email == "onix@acme.test"
        assert message.header.sent_date_time == "20240601T120000Z"

        product = message.products[0]
        assert product.record_reference == "ref-1"
        assert product.isbn13 == ISBN_A
        assert product.title == "The Test Book"
        assert product.subtitle == "A Subtitle"
        assert product.product_form == "BC"
        assert product.publishing_status == "04"
        assert product.publication_date == date(2024, 1, 15)
        assert product.prices[0].amount == "19.99"
        assert product.prices[0].currency == "USD"
        assert product.raw_index == 0
        assert [c.key_names for c in product.contributors] == ["Smith", "Doe"]
        assert product.contributors[0].display_name == "Jane Smith"

    def test_title_prefix_joined(self) -> None:
        """TitlePrefix and TitleWithoutPrefix are combined."""
        title = (
            "<TitleDetail><TitleType>01</TitleType><TitleElement>"
            "<TitleElementLevel>01</TitleElementLevel><TitlePrefix>The</TitlePrefix>"
            "<TitleWithoutPrefix>Hobbit</TitleWithoutPrefix></TitleElement></TitleDetail>"
        )
        xml = onix3_message(onix3_product(title=None, extra_descriptive=title))
        assert parse_onix(xml, "3.1").products[0].title == "The Hobbit"

    def test_distinctive_title_preferred(self) -> None:
        """TitleType 01 wins over other title types regardless of order."""
        titles = (
            "<TitleDetail><TitleType>05</TitleType><TitleElement>"
            "<TitleElementLevel>01</TitleElementLevel><TitleText>Abbrev</TitleText>"
            "</TitleElement></TitleDetail>"
            "<TitleDetail><TitleType>01</TitleType><TitleElement>"
            "<TitleElementLevel>01</TitleElementLevel><TitleText>Full Title</TitleText>"
            "</TitleElement></TitleDetail>"
        )
        xml = onix3_message(onix3_product(title=None, extra_descriptive=titles))
        assert parse_onix(xml, "3.1").products[0].title == "Full Title"

    def test_missing_identifier_and_title(self) -> None:
        """Missing values parse as None rather than failing."""
        xml = onix3_message(onix3_product(isbn=None, title=None, price=None))
        product = parse_onix(xml, "3.1").products[0]
        assert product.isbn13 is None
        assert product.title is None
        assert product.prices == ()

    def test_product_error_does_not_stop_others(self) -> None:
        """A broken product is reported with its index; the rest still parse."""
        xml = onix3_message(
            onix3_product(record_reference="ok-1"),
            onix3_product(record_reference="bad", isbn=ISBN_B, title="<b>Bold</b>"),
            onix3_product(record_reference="ok-2"),
        )
        message = parse_onix(xml, "3.1")

        assert [p.record_reference for p in message.products] == ["ok-1", "ok-2"]
        assert [p.raw_index for p in message.products] == [0, 2]
        assert len(message.parsing_errors) == 1
        issue = message.parsing_errors[0]
        assert issue.product_index == 1
        assert issue.record_reference == "bad"
        assert issue.field == "TitleText"
        assert issue.code == "PRODUCT_PARSE_ERROR"
        assert message.message_error is None

    def test_impossible_date_is_product_error(self) -> None:
        """An impossible publishing date fails only that product."""
        xml = onix3_message(onix3_product(publishing_date="20241345"))
        message = parse_onix(xml, "3.1")
        assert message.products == ()
        assert message.parsing_errors[0].product_index == 0

    def test_malformed_xml(self) -> None:
        """Malformed XML yields one message-level issue and no products."""
        message = parse_onix("<ONIXMessage><Product>", "3.1")
        assert message.products == ()
        assert message.message_error is not None
        assert message.message_error.code == "XML_MALFORMED"

    def test_wrong_root(self) -> None:
        """A non-ONIX root element is a message-level issue."""
        message = parse_onix("<Catalog><Product/></Catalog>", "3.0")
        assert message.message_error is not None
        assert message.message_error.code == "MISSING_ROOT"


class TestOnix21Parser:
    """Tests for ONIX 2.1 parsing."""

    def test_reference_tags(self) -> None:
        """Reference-tag 2.1 documents are parsed."""
        message = parse_onix(ONIX21_REFERENCE, "2.1")
        assert message.version == "2.1"
        assert message.header.sender_name == "Legacy Books"
        assert message.header.sent_date_time == "20240601"

        product = message.products[0]
        assert product.isbn13 == ISBN_A
        assert product.title == "Legacy Title"
        assert product.subtitle == "A Subtitle"
        assert product.product_form == "BB"
        assert product.publication_date == date(2023, 3, 1)
        assert product.prices[0].price_type == "01"
        assert product.prices[0].amount == "12.50"
        assert product.prices[0].currency == "GBP"

    def test_person_name_split(self) -> None:
        """PersonName is split on the last space into key and before-key names."""
        contributor = parse_onix(ONIX21_REFERENCE, "2.1").products[0].contributors[0]
        assert contributor.names_before_key == "Jane Q"
        assert contributor.key_names == "Smith"
        assert contributor.person_name_inverted == "Smith, Jane Q"

    def test_dtd_entities_in_text(self) -> None:
        """Named entities from the 2.1 DTD are decoded instead of failing the file."""
        xml = ONIX21_REFERENCE.replace("Legacy Title", "Hi &eacute;l&egrave;ve &amp; co")
        message = parse_onix(xml, "2.1")
        assert message.parsing_errors == ()
        assert message.products[0].title == "Hi élève & co"

    def test_short_tags_with_isbn10(self) -> None:
        """Short-tag documents are expanded and ISBN-10 converted."""
        message = parse_onix(ONIX21_SHORT, "2.1")
        assert message.header.sender_name == "Short Tag Press"
        product = message.products[0]
        assert product.record_reference == "short-1"
        assert product.isbn13 == ISBN_A
        assert product.title == "Short Tag Title"
        assert product.contributors[0].person_name_inverted == "Smith, John"

    def test_direct_ean13(self) -> None:
        """A 978-prefixed EAN13 element doubles as the ISBN-13."""
        xml = (
            "<ONIXMessage><Product><RecordReference>r</RecordReference>"
            f"<EAN13>{ISBN_B}</EAN13><DistinctiveTitle>Direct</DistinctiveTitle>"
            "<BICMainSubject>FA</BICMainSubject></Product></ONIXMessage>"
        )
        product = parse_onix(xml, "2.1").products[0]
        assert product.isbn13 == ISBN_B
        assert product.gtin13 == ISBN_B
        assert product.title == "Direct"
        assert product.subjects[0].scheme_identifier == "12"
        assert product.subjects[0].code == "FA"

    def test_contributor_sequence_defaults_to_position(self) -> None:
        """Contributors without SequenceNumber are numbered in document order."""
        xml = (
            "<ONIXMessage><Product><RecordReference>r</RecordReference>"
            "<Contributor><KeyNames>First</KeyNames></Contributor>"
            "<Contributor><KeyNames>Second</KeyNames></Contributor>"
            "</Product></ONIXMessage>"
        )
        contributors = parse_onix(xml, "2.1").products[0].contributors
        assert [c.sequence_number for c in contributors] == [1, 2]
        assert contributors[0].role == "A01"
