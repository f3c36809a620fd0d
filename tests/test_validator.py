"""Tests for structural and business-rule ONIX validation."""

from __future__ import annotations

import pytest

from onixport.onix.builder import ONIXMessageBuilder
from onixport.onix.validator import (
    validate_business_rules,
    validate_onix_message,
    validate_structure,
)
from tests.conftest import ISBN_B, make_tenant, make_title, onix3_message, onix3_product


def features(*pairs: tuple[str, str]) -> str:
    return "".join(
        "<ProductFormFeature>"
        f"<ProductFormFeatureType>{feature_type}</ProductFormFeatureType>"
        f"<ProductFormFeatureValue>{value}</ProductFormFeatureValue>"
        "</ProductFormFeature>"
        for feature_type, value in pairs
    )


def hazards(*values: str) -> str:
    return features(*(("12", value) for value in values))


def error_codes(xml: str) -> list[str]:
    return [issue.code for issue in validate_onix_message(xml).errors]


class TestValidMessages:
    """Messages that should pass."""

    def test_builder_output_is_valid(self) -> None:
        """Everything the builder produces passes both layers."""
        title = make_title(
            subtitle="Sub",
            epub_accessibility_conformance="04",
            accessibility_features=["10"],
            accessibility_hazards=["01"],
        )
        xml = ONIXMessageBuilder(make_tenant()).add_title(title).to_xml()
        result = validate_onix_message(xml)
        assert result.valid, result.errors
        assert result.errors == ()

    def test_handwritten_message_is_valid(self) -> None:
        """Hand-built messages from other senders are accepted too."""
        assert validate_onix_message(onix3_message(onix3_product())).valid

    def test_non_conflicting_hazards(self) -> None:
        """Flashing and motion simulation hazards may appear together."""
        xml = onix3_message(onix3_product(extra_descriptive=hazards("02", "03")))
        assert validate_onix_message(xml).valid


class TestBusinessRules:
    """Tests for codelist and consistency checks."""

    def test_each_error_reported_once(self) -> None:
        """Three products with one distinct problem each give exactly three errors."""
        xml = onix3_message(
            onix3_product(record_reference="a", isbn="9780306406158"),
            onix3_product(record_reference="b", isbn=ISBN_B, product_form="XX"),
            onix3_product(record_reference="c", price=("10.00", "JPY")),
        )
        result = validate_onix_message(xml)

        assert not result.valid
        assert [(e.code, e.path) for e in result.errors] == [
            ("INVALID_ISBN", "Product[0]/ProductIdentifier[0]/IDValue"),
            ("INVALID_CODELIST", "Product[1]/DescriptiveDetail/ProductForm"),
            ("INVALID_CURRENCY", "Product[2]/ProductSupply/SupplyDetail[0]/Price[0]/CurrencyCode"),
        ]
        assert all(e.type == "business" for e in result.errors)
        assert result.errors[1].codelist_ref == "List 150"
        assert result.errors[2].actual == "JPY"

    def test_hazard_conflict_reported_once(self) -> None:
        """Unknown (00) with flashing (02) is exactly one conflict."""
        xml = onix3_message(onix3_product(extra_descriptive=hazards("00", "02")))
        result = validate_onix_message(xml)
        assert [e.code for e in result.errors] == ["HAZARD_CONFLICT"]
        issue = result.errors[0]
        assert issue.actual == "00, 02"
        assert issue.codelist_ref == "List 143"
        assert issue.path == "Product[0]/DescriptiveDetail/ProductFormFeature"

    def test_only_first_conflict_reported(self) -> None:
        """Several conflicting pairs still yield a single issue."""
        xml = onix3_message(onix3_product(extra_descriptive=hazards("01", "02", "03", "04")))
        assert error_codes(xml) == ["HAZARD_CONFLICT"]

    @pytest.mark.parametrize(
        ("pair", "codelist"),
        [
            (("99", "01"), "List 79"),
            (("09", "23"), "List 196"),
            (("09", "27"), "List 196"),
            (("12", "08"), "List 196"),
        ],
    )
    def test_invalid_feature_codes(self, pair: tuple[str, str], codelist: str) -> None:
        """Unknown feature types and values are codelist errors."""
        xml = onix3_message(onix3_product(extra_descriptive=features(pair)))
        result = validate_onix_message(xml)
        assert [e.code for e in result.errors] == ["INVALID_CODELIST"]
        assert result.errors[0].codelist_ref == codelist

    def test_invalid_id_type(self) -> None:
        """ProductIDType must be in List 5."""
        product = onix3_product().replace(
            "<ProductIDType>15</ProductIDType>", "<ProductIDType>02</ProductIDType>"
        )
        result = validate_onix_message(onix3_message(product))
        assert result.errors[0].code == "INVALID_CODELIST"
        assert result.errors[0].codelist_ref == "List 5"

    def test_missing_title(self) -> None:
        """TitleText is required."""
        result = validate_onix_message(onix3_message(onix3_product(title=None)))
        assert [(e.code, e.path) for e in result.errors] == [
            ("MISSING_TITLE", "Product[0]/DescriptiveDetail/TitleDetail/TitleElement/TitleText")
        ]

    @pytest.mark.parametrize("amount", ["-1.00", "abc", "", "NaN", "Infinity"])
    def test_invalid_price(self, amount: str) -> None:
        """Prices must be finite and non-negative."""
        xml = onix3_message(onix3_product(price=(amount, "USD")))
        assert error_codes(xml) == ["INVALID_PRICE"]

    @pytest.mark.parametrize("amount", ["0", "0.00", "1234.5"])
    def test_valid_price(self, amount: str) -> None:
        """Zero and plain decimals are accepted."""
        assert validate_onix_message(onix3_message(onix3_product(price=(amount, "GBP")))).valid

    def test_missing_descriptive_detail_block(self) -> None:
        """The business layer reports a missing Block 1 by itself."""
        xml = (
            "<ONIXMessage><Product><RecordReference>r</RecordReference>"
            "<ProductIdentifier><ProductIDType>15</ProductIDType>"
            "<IDValue>9780306406157</IDValue></ProductIdentifier></Product></ONIXMessage>"
        )
        result = validate_business_rules(xml)
        assert [e.code for e in result.errors] == ["MISSING_BLOCK"]


class TestStructure:
    """Tests for the structural layer and layer gating."""

    def test_malformed(self) -> None:
        """Malformed XML gives a single structural error."""
        result = validate_onix_message("<ONIXMessage><Header>")
        assert [(e.code, e.type, e.path) for e in result.errors] == [
            ("XML_MALFORMED", "structural", "/")
        ]

    def test_wrong_root(self) -> None:
        """The root element must be ONIXMessage."""
        assert error_codes("<Catalog/>") == ["MISSING_ROOT"]

    def test_missing_header(self) -> None:
        """A message without Header is rejected."""
        xml = f'<ONIXMessage release="3.1">{onix3_product()}</ONIXMessage>'
        assert error_codes(xml) == ["MISSING_HEADER"]

    def test_incomplete_header(self) -> None:
        """SenderName and SentDateTime are both required."""
        xml = f"<ONIXMessage><Header><Sender/></Header>{onix3_product()}</ONIXMessage>"
        assert error_codes(xml) == ["MISSING_SENDER_NAME", "MISSING_SENT_DATE"]

    def test_no_products(self) -> None:
        """At least one product is required."""
        assert error_codes(onix3_message()) == ["NO_PRODUCTS"]

    def test_product_requirements(self) -> None:
        """Each product needs a reference, an identifier and Block 1."""
        xml = onix3_message("<Product/>", onix3_product())
        result = validate_structure(xml)
        assert [(e.code, e.path) for e in result.errors] == [
            ("MISSING_RECORDREFERENCE", "ONIXMessage/Product[0]/RecordReference"),
            ("MISSING_PRODUCTIDENTIFIER", "ONIXMessage/Product[0]/ProductIdentifier"),
            ("MISSING_DESCRIPTIVEDETAIL", "ONIXMessage/Product[0]/DescriptiveDetail"),
        ]

    def test_structure_gates_business_rules(self) -> None:
        """Business errors are not reported while the structure is broken."""
        xml = f'<ONIXMessage>{onix3_product(isbn="9780306406158")}</ONIXMessage>'
        result = validate_onix_message(xml)
        assert [e.code for e in result.errors] == ["MISSING_HEADER"]
        assert all(e.type == "structural" for e in result.errors)
