"""Business-rule layer: codelist membership and value consistency.

Works on arbitrary ONIX 3.x XML, not only documents produced by the
builder. Every product is checked and every violation reported.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from decimal import Decimal, InvalidOperation

from onixport.onix.codelists import (
    FEATURE_TYPE_ACCESSIBILITY,
    FEATURE_TYPE_HAZARD,
    HAZARD_CONFLICTS,
    PRODUCT_ID_TYPE_ISBN13,
    SUPPORTED_CURRENCIES,
    VALID_ACCESSIBILITY_VALUES,
    VALID_FEATURE_TYPES,
    VALID_HAZARD_VALUES,
    VALID_PRODUCT_FORMS,
    VALID_PRODUCT_ID_TYPES,
)
from onixport.onix.isbn import validate_isbn13
from onixport.onix.schemas import ValidationIssue, ValidationResult
from onixport.onix.validator.structure import ROOT_TAG, leaf_text
from onixport.onix.xml_utils import parse_document

logger = logging.getLogger(__name__)


def _issue(
    code: str,
    message: str,
    path: str,
    *,
    expected: str | None = None,
    actual: str | None = None,
    codelist_ref: str | None = None,
) -> ValidationIssue:
    return ValidationIssue(
        type="business",
        code=code,
        message=message,
        path=path,
        expected=expected,
        actual=actual,
        codelist_ref=codelist_ref,
    )


def _sorted_codes(codes: frozenset[str]) -> str:
    return ", ".join(sorted(codes))


# =============================================================================
# Product blocks
# =============================================================================


def _check_identifiers(product: ET.Element, base: str) -> list[ValidationIssue]:
    identifiers = product.findall("ProductIdentifier")
    if not identifiers:
        return [
            _issue(
                "MISSING_IDENTIFIER",
                "At least one ProductIdentifier is required",
                f"{base}/ProductIdentifier",
            )
        ]

    errors: list[ValidationIssue] = []
    for i, identifier in enumerate(identifiers):
        id_type = leaf_text(identifier, "ProductIDType")
        id_value = leaf_text(identifier, "IDValue")
        if id_type and id_type not in VALID_PRODUCT_ID_TYPES:
            errors.append(
                _issue(
                    "INVALID_CODELIST",
                    "Invalid ProductIDType value",
                    f"{base}/ProductIdentifier[{i}]/ProductIDType",
                    expected=_sorted_codes(VALID_PRODUCT_ID_TYPES),
                    actual=id_type,
                    codelist_ref="List 5",
                )
            )
        if id_type == PRODUCT_ID_TYPE_ISBN13 and id_value and not validate_isbn13(id_value):
            errors.append(
                _issue(
                    "INVALID_ISBN",
                    "Invalid ISBN-13 checksum",
                    f"{base}/ProductIdentifier[{i}]/IDValue",
                    actual=id_value,
                )
            )
    return errors


def _check_features(detail: ET.Element, base: str) -> list[ValidationIssue]:
    errors: list[ValidationIssue] = []
    hazards: list[str] = []

    for i, feature in enumerate(detail.findall("ProductFormFeature")):
        path = f"{base}/ProductFormFeature[{i}]"
        feature_type = leaf_text(feature, "ProductFormFeatureType")
        value = leaf_text(feature, "ProductFormFeatureValue")

        if feature_type not in VALID_FEATURE_TYPES:
            errors.append(
                _issue(
                    "INVALID_CODELIST",
                    "Invalid ProductFormFeatureType value",
                    f"{path}/ProductFormFeatureType",
                    expected=_sorted_codes(VALID_FEATURE_TYPES),
                    actual=feature_type,
                    codelist_ref="List 79",
                )
            )
            continue

        allowed = (
            VALID_ACCESSIBILITY_VALUES
            if feature_type == FEATURE_TYPE_ACCESSIBILITY
            else VALID_HAZARD_VALUES
        )
        if value not in allowed:
            errors.append(
                _issue(
                    "INVALID_CODELIST",
                    f"Invalid ProductFormFeatureValue for feature type {feature_type}",
                    f"{path}/ProductFormFeatureValue",
                    expected="See List 196",
                    actual=value,
                    codelist_ref="List 196",
                )
            )
            continue

        if feature_type == FEATURE_TYPE_HAZARD and value is not None:
            hazards.append(value)

    conflict = _first_hazard_conflict(hazards)
    if conflict is not None:
        first, second = conflict
        errors.append(
            _issue(
                "HAZARD_CONFLICT",
                f"Hazard {first} cannot be combined with hazard {second}",
                f"{base}/ProductFormFeature",
                actual=f"{first}, {second}",
                codelist_ref="List 143",
            )
        )
    return errors


def _first_hazard_conflict(hazards: list[str]) -> tuple[str, str] | None:
    present = set(hazards)
    for hazard in hazards:
        for other in sorted(HAZARD_CONFLICTS.get(hazard, frozenset()) & present):
            return hazard, other
    return None


def _check_descriptive_detail(product: ET.Element, base: str) -> list[ValidationIssue]:
    detail = product.find("DescriptiveDetail")
    if detail is None:
        return [
            _issue(
                "MISSING_BLOCK",
                "DescriptiveDetail (Block 1) is required",
                f"{base}/DescriptiveDetail",
            )
        ]

    path = f"{base}/DescriptiveDetail"
    errors: list[ValidationIssue] = []

    product_form = leaf_text(detail, "ProductForm")
    if product_form and product_form not in VALID_PRODUCT_FORMS:
        errors.append(
            _issue(
                "INVALID_CODELIST",
                "Invalid ProductForm value",
                f"{path}/ProductForm",
                expected="See List 150",
                actual=product_form,
                codelist_ref="List 150",
            )
        )

    errors.extend(_check_features(detail, path))

    if not leaf_text(detail, "TitleDetail/TitleElement/TitleText"):
        errors.append(
            _issue(
                "MISSING_TITLE",
                "TitleText is required",
                f"{path}/TitleDetail/TitleElement/TitleText",
            )
        )
    return errors


def _check_prices(product: ET.Element, base: str) -> list[ValidationIssue]:
    errors: list[ValidationIssue] = []
    supply = product.find("ProductSupply")
    if supply is None:
        return errors

    for s, supply_detail in enumerate(supply.findall("SupplyDetail")):
        for p, price in enumerate(supply_detail.findall("Price")):
            path = f"{base}/ProductSupply/SupplyDetail[{s}]/Price[{p}]"

            currency = leaf_text(price, "CurrencyCode")
            if currency and currency not in SUPPORTED_CURRENCIES:
                errors.append(
                    _issue(
                        "INVALID_CURRENCY",
                        "Invalid or unsupported currency code",
                        f"{path}/CurrencyCode",
                        expected=_sorted_codes(SUPPORTED_CURRENCIES),
                        actual=currency,
                    )
                )

            amount_el = price.find("PriceAmount")
            if amount_el is not None:
                amount = (amount_el.text or "").strip()
                if not _is_non_negative_number(amount):
                    errors.append(
                        _issue(
                            "INVALID_PRICE",
                            "PriceAmount must be a non-negative number",
                            f"{path}/PriceAmount",
                            actual=amount,
                        )
                    )
    return errors


def _is_non_negative_number(value: str) -> bool:
    try:
        number = Decimal(value)
    except InvalidOperation:
        return False
    return number.is_finite() and number >= 0


# =============================================================================
# Entry point
# =============================================================================


def validate_business_rules(xml: str) -> ValidationResult:
    """Check codelist values and consistency rules on every product."""
    try:
        root = parse_document(xml)
    except ET.ParseError as exc:
        return ValidationResult.from_errors(
            [_issue("XML_MALFORMED", f"XML is not well-formed: {exc}", "/")]
        )
    if root.tag != ROOT_TAG:
        return ValidationResult.from_errors(
            [_issue("MISSING_ROOT", f"Root element must be <{ROOT_TAG}>", "/")]
        )

    errors: list[ValidationIssue] = []
    products = root.findall("Product")
    for index, product in enumerate(products):
        base = f"Product[{index}]"
        if not leaf_text(product, "RecordReference"):
            errors.append(
                _issue("MISSING_RECORD_REF", "RecordReference is required", f"{base}/RecordReference")
            )
        errors.extend(_check_identifiers(product, base))
        errors.extend(_check_descriptive_detail(product, base))
        errors.extend(_check_prices(product, base))

    logger.debug("Business rules: %d products, %d errors", len(products), len(errors))
    return ValidationResult.from_errors(errors)
