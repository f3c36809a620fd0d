"""Tests for the import preview pipeline."""

from __future__ import annotations

import asyncio
import os
from datetime import date
from typing import Any
from unittest import mock

import pytest

from onixport.exceptions import (
    EncodingError,
    FileConstraintError,
    MessageParseError,
    ProductLimitError,
    UnknownVersionError,
)
from onixport.importer import ImportPreview, build_import_preview
from tests.conftest import (
    ISBN_A,
    ISBN_B,
    ISBN_C,
    ONIX21_REFERENCE,
    FakeTitleRepository,
    InMemoryCatalog,
    onix3_message,
    onix3_product,
)

TENANT = "tenant-1"


def preview(
    xml: str | bytes,
    filename: str = "feed.xml",
    catalog: InMemoryCatalog | None = None,
    **kwargs: Any,
) -> ImportPreview:
    data = xml.encode("utf-8") if isinstance(xml, str) else xml
    lookup = FakeTitleRepository(catalog) if catalog is not None else None
    return asyncio.run(
        build_import_preview(data, filename, TENANT, title_lookup=lookup, **kwargs)
    )


class TestPreviewContent:
    """Tests for preview rows and summaries."""

    def test_single_valid_product(self) -> None:
        """A clean 3.1 file gives one importable row."""
        xml = onix3_message(
            onix3_product(subtitle="Sub", contributors=[("Jane", "Smith"), ("John", "Doe")])
        )
        result = preview(xml)

        assert result.version == "3.1"
        assert result.filename == "feed.xml"
        assert result.header.sender_name == "Acme Press"
        assert result.total_products == 1
        assert result.valid_products == 1
        assert result.errors == []
        assert result.conflicts == []
        assert result.unmapped_fields_summary == ["Price", "ProductForm"]

        row = result.products[0]
        assert row.index == 0
        assert row.isbn == ISBN_A
        assert row.title == "The Test Book"
        assert row.subtitle == "Sub"
        assert row.publication_status == "published"
        assert row.publication_date == date(2024, 1, 15)
        assert [c.name for c in row.contributors] == ["Jane Smith", "John Doe"]
        assert row.price == "19.99 USD"
        assert row.is_importable

    def test_invalid_products_stay_in_preview(self) -> None:
        """Products with errors are listed but not counted as valid."""
        xml = onix3_message(
            onix3_product(record_reference="good"),
            onix3_product(record_reference="no-isbn", isbn=None),
            onix3_product(record_reference="bad-check", isbn="9780131103628"),
        )
        result = preview(xml)

        assert result.total_products == 3
        assert result.valid_products == 1
        assert [row.is_importable for row in result.products] == [True, False, False]
        assert [(e.product_index, e.code) for e in result.errors] == [
            (1, "MISSING_ISBN"),
            (2, "INVALID_ISBN"),
        ]
        assert result.errors[0].record_reference == "no-isbn"

    def test_duplicate_isbns_in_file(self) -> None:
        """Both products sharing an ISBN are non-importable."""
        xml = onix3_message(
            onix3_product(record_reference="a"),
            onix3_product(record_reference="b", isbn=ISBN_B),
            onix3_product(record_reference="c"),
        )
        result = preview(xml)
        assert result.valid_products == 1
        assert [e.code for e in result.errors] == ["DUPLICATE_ISBN", "DUPLICATE_ISBN"]
        assert [e.product_index for e in result.errors] == [0, 2]

    def test_product_parse_errors_reported(self) -> None:
        """A product that cannot be parsed shows up as an error only."""
        xml = onix3_message(
            onix3_product(record_reference="ok"),
            onix3_product(record_reference="broken", isbn=ISBN_B, title="<i>x</i>"),
        )
        result = preview(xml)
        assert result.total_products == 1
        assert result.errors[0].code == "PRODUCT_PARSE_ERROR"
        assert result.errors[0].product_index == 1
        assert result.get_product(1) is None

    def test_onix21_file(self) -> None:
        """2.1 files flow through the same pipeline."""
        result = preview(ONIX21_REFERENCE, filename="legacy.onix")
        assert result.version == "2.1"
        assert result.header.sender_name == "Legacy Books"
        assert result.products[0].contributors[0].name == "Jane Q Smith"
        assert result.valid_products == 1

    def test_latin1_upload(self) -> None:
        """Declared Latin-1 uploads are decoded before parsing."""
        xml = onix3_message(onix3_product(title="Café Stories")).replace("UTF-8", "ISO-8859-1")
        result = preview(xml.encode("iso-8859-1"))
        assert result.products[0].title == "Café Stories"


class TestConflicts:
    """Tests for conflict detection during preview."""

    def test_existing_isbn_flagged(self, catalog: InMemoryCatalog) -> None:
        """A product whose ISBN exists for the tenant is marked as a conflict."""
        existing_id = catalog.add_title(TENANT, ISBN_A, "Existing Book")
        xml = onix3_message(
            onix3_product(record_reference="a"),
            onix3_product(record_reference="b", isbn=ISBN_B),
        )
        result = preview(xml, catalog=catalog)

        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.isbn == ISBN_A
        assert conflict.existing_title_id == existing_id
        assert conflict.existing_title_name == "Existing Book"
        assert conflict.import_product_index == 0

        row = result.products[0]
        assert row.has_conflict
        assert row.conflict_title_id == existing_id
        assert row.conflict_title_name == "Existing Book"
        assert row.is_importable
        assert not result.products[1].has_conflict

    def test_single_lookup_for_batch(self, catalog: InMemoryCatalog) -> None:
        """All ISBNs are checked in one repository call."""
        xml = onix3_message(
            onix3_product(record_reference="a"),
            onix3_product(record_reference="b", isbn=ISBN_B),
            onix3_product(record_reference="c", isbn=ISBN_C),
        )
        preview(xml, catalog=catalog)
        assert catalog.lookup_calls == 1

    def test_other_tenants_ignored(self, catalog: InMemoryCatalog) -> None:
        """Titles belonging to another tenant are not conflicts."""
        catalog.add_title("someone-else", ISBN_A, "Their Book")
        result = preview(onix3_message(onix3_product()), catalog=catalog)
        assert result.conflicts == []


class TestRejections:
    """Whole-file rejections raise ImportRejectedError subclasses."""

    def test_wrong_extension(self) -> None:
        """Only .xml and .onix uploads are accepted."""
        with pytest.raises(FileConstraintError, match="extension"):
            preview(onix3_message(onix3_product()), filename="feed.txt")

    def test_empty_file(self) -> None:
        """Empty uploads are rejected."""
        with pytest.raises(FileConstraintError, match="empty"):
            preview(b"")

    def test_file_too_large(self) -> None:
        """The byte limit is enforced before decoding."""
        with pytest.raises(FileConstraintError, match="exceeds"):
            preview(onix3_message(onix3_product()), max_file_size=100)

    def test_binary_content(self) -> None:
        """Binary content fails decoding and carries the filename."""
        with pytest.raises(EncodingError) as exc_info:
            preview(b"\x00\x01<\x02>\x03", filename="upload.xml")
        assert exc_info.value.filename == "upload.xml"

    def test_unknown_version(self) -> None:
        """Non-ONIX XML is rejected with the supported versions listed."""
        with pytest.raises(UnknownVersionError, match="Unable to detect ONIX version"):
            preview("<catalog><book/></catalog>")

    def test_malformed_xml(self) -> None:
        """Malformed ONIX is rejected as a whole."""
        with pytest.raises(MessageParseError) as exc_info:
            preview('<ONIXMessage release="3.1"><Product><RecordReference>x</Product>')
        assert exc_info.value.details["code"] == "XML_MALFORMED"

    def test_no_products(self) -> None:
        """A message without products is rejected."""
        with pytest.raises(ProductLimitError, match="no products"):
            preview(onix3_message())

    def test_too_many_products(self) -> None:
        """The product limit is enforced."""
        xml = onix3_message(onix3_product(), onix3_product(isbn=ISBN_B))
        with pytest.raises(ProductLimitError, match="Too many products"):
            preview(xml, max_products=1)

    def test_limit_from_environment(self) -> None:
        """ONIX_MAX_PRODUCTS applies when no explicit limit is passed."""
        xml = onix3_message(onix3_product(), onix3_product(isbn=ISBN_B))
        with (
            mock.patch.dict(os.environ, {"ONIX_MAX_PRODUCTS": "1"}, clear=True),
            pytest.raises(ProductLimitError) as exc_info,
        ):
            preview(xml)
        assert exc_info.value.limit == 1
