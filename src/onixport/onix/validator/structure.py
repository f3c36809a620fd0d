"""Structural layer: required ONIX elements present and document well-formed.

This is not XSD validation. It only checks the elements every downstream
consumer relies on.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from onixport.onix.schemas import ValidationIssue, ValidationResult
from onixport.onix.xml_utils import parse_document

ROOT_TAG = "ONIXMessage"


def _issue(code: str, message: str, path: str) -> ValidationIssue:
    return ValidationIssue(type="structural", code=code, message=message, path=path)


def leaf_text(parent: ET.Element | None, path: str) -> str | None:
    """Stripped text at ``path`` below ``parent``, ignoring any nested markup."""
    if parent is None:
        return None
    found = parent.find(path)
    if found is None:
        return None
    text = (found.text or "").strip()
    return text or None


def _check_header(root: ET.Element) -> list[ValidationIssue]:
    header = root.find("Header")
    if header is None:
        return [_issue("MISSING_HEADER", "Header is required", f"{ROOT_TAG}/Header")]

    errors: list[ValidationIssue] = []
    if not leaf_text(header, "Sender/SenderName"):
        errors.append(
            _issue(
                "MISSING_SENDER_NAME",
                "Header/Sender/SenderName is required",
                f"{ROOT_TAG}/Header/Sender/SenderName",
            )
        )
    if not leaf_text(header, "SentDateTime"):
        errors.append(
            _issue(
                "MISSING_SENT_DATE",
                "Header/SentDateTime is required",
                f"{ROOT_TAG}/Header/SentDateTime",
            )
        )
    return errors


def _check_product(product: ET.Element, index: int) -> list[ValidationIssue]:
    base = f"{ROOT_TAG}/Product[{index}]"
    errors: list[ValidationIssue] = []
    if not leaf_text(product, "RecordReference"):
        errors.append(
            _issue(
                "MISSING_RECORDREFERENCE",
                "Product RecordReference is required",
                f"{base}/RecordReference",
            )
        )
    if product.find("ProductIdentifier") is None:
        errors.append(
            _issue(
                "MISSING_PRODUCTIDENTIFIER",
                "Product requires at least one ProductIdentifier",
                f"{base}/ProductIdentifier",
            )
        )
    if product.find("DescriptiveDetail") is None:
        errors.append(
            _issue(
                "MISSING_DESCRIPTIVEDETAIL",
                "Product DescriptiveDetail is required",
                f"{base}/DescriptiveDetail",
            )
        )
    return errors


def validate_structure(xml: str) -> ValidationResult:
    """Check well-formedness and required-element presence.

    All structural problems in the document are reported together.
    """
    try:
        root = parse_document(xml)
    except ET.ParseError as exc:
        return ValidationResult.from_errors(
            [_issue("XML_MALFORMED", f"XML is not well-formed: {exc}", "/")]
        )

    if root.tag != ROOT_TAG:
        return ValidationResult.from_errors(
            [_issue("MISSING_ROOT", f"Root element must be <{ROOT_TAG}>, found <{root.tag}>", "/")]
        )

    errors = _check_header(root)
    products = root.findall("Product")
    if not products:
        errors.append(
            _issue("NO_PRODUCTS", "Message must contain at least one Product", f"{ROOT_TAG}/Product")
        )
    for index, product in enumerate(products):
        errors.extend(_check_product(product, index))

    return ValidationResult.from_errors(errors)
