"""
Import preview pipeline.

Turns uploaded bytes into an ImportPreview without writing anything:

    bytes -> file limits -> decode -> product-count estimate -> version
          -> parse -> product count -> map -> validate -> duplicate ISBNs
          -> conflicts -> preview rows

Whole-file problems raise ImportRejectedError subclasses. Problems with
individual products are reported on the preview instead.
"""

from __future__ import annotations

import logging

from onixport.env_settings import get_env_settings
from onixport.exceptions import EncodingError, MessageParseError, UnknownVersionError
from onixport.importer.conflicts import check_conflicts
from onixport.importer.ports import TitleLookup
from onixport.importer.schemas import ImportConflict, ImportPreview
from onixport.onix.encoding import detect_and_convert_encoding
from onixport.onix.import_validation import (
    check_duplicate_isbns,
    collect_errors,
    validate_file_constraints,
    validate_import_batch,
    validate_import_product,
    validate_product_count,
)
from onixport.onix.mapper import collect_unmapped_fields, map_to_title, to_preview_product
from onixport.onix.parsers import parse_onix
from onixport.onix.schemas import MappedTitle, PreviewProduct
from onixport.onix.version import SUPPORTED_VERSIONS, detect_onix_version, estimate_product_count

logger = logging.getLogger(__name__)


def _decode(data: bytes, filename: str) -> str:
    try:
        return detect_and_convert_encoding(data)
    except EncodingError as exc:
        raise EncodingError(exc.message, encoding=exc.encoding, filename=filename) from exc


def _preview_rows(
    mapped_titles: list[MappedTitle], conflicts: list[ImportConflict]
) -> list[PreviewProduct]:
    by_index = {conflict.import_product_index: conflict for conflict in conflicts}
    rows = []
    for mapped in mapped_titles:
        row = to_preview_product(mapped)
        conflict = by_index.get(mapped.raw_index)
        if conflict is not None:
            row = row.model_copy(
                update={
                    "has_conflict": True,
                    "conflict_title_id": conflict.existing_title_id,
                    "conflict_title_name": conflict.existing_title_name,
                }
            )
        rows.append(row)
    return rows


async def build_import_preview(
    data: bytes,
    filename: str,
    tenant_id: str,
    *,
    title_lookup: TitleLookup | None = None,
    max_file_size: int | None = None,
    max_products: int | None = None,
) -> ImportPreview:
    """Parse, map and validate an uploaded ONIX file for review.

    Args:
        data: Raw uploaded bytes
        filename: Upload filename (extension is checked)
        tenant_id: Tenant the titles would be imported into
        title_lookup: Existing-title lookup; conflicts are skipped when None
        max_file_size: Byte limit (defaults to ONIX_MAX_FILE_SIZE_BYTES)
        max_products: Product limit (defaults to ONIX_MAX_PRODUCTS)

    Returns:
        ImportPreview with one row per parsed product

    Raises:
        FileConstraintError: Bad extension, empty or oversized file.
        EncodingError: Content could not be decoded as text XML.
        ProductLimitError: No products, or more than the limit.
        UnknownVersionError: ONIX version could not be detected.
        MessageParseError: Document is malformed or has no ONIX root.
    """
    limits = get_env_settings().onix
    if max_file_size is None:
        max_file_size = limits.max_file_size_bytes
    if max_products is None:
        max_products = limits.max_products

    # Cheapest checks first: nothing is decoded until size and extension pass
    validate_file_constraints(filename, len(data), max_file_size)
    xml = _decode(data, filename)

    estimated = estimate_product_count(xml)
    if estimated > max_products:
        validate_product_count(estimated, max_products, filename)

    version = detect_onix_version(xml)
    if version == "unknown":
        raise UnknownVersionError(
            "Unable to detect ONIX version. "
            f"Supported versions: {', '.join(SUPPORTED_VERSIONS)}",
            filename=filename,
        )
    logger.info("Detected ONIX %s in %s (~%d products)", version, filename, estimated)

    message = parse_onix(xml, version)
    message_error = message.message_error
    if message_error is not None:
        raise MessageParseError(
            message_error.message,
            filename=filename,
            details={"code": message_error.code},
        )
    validate_product_count(len(message.products), max_products, filename)

    mapped_titles = [
        map_to_title(product, tenant_id).with_errors(*validate_import_product(product))
        for product in message.products
    ]
    mapped_titles = check_duplicate_isbns(mapped_titles)

    conflicts: list[ImportConflict] = []
    if title_lookup is not None:
        conflicts = await check_conflicts(title_lookup, tenant_id, mapped_titles)

    valid, invalid, _ = validate_import_batch(mapped_titles)
    logger.info(
        "Preview of %s: %d products, %d valid, %d invalid, %d conflicts",
        filename,
        len(mapped_titles),
        valid,
        invalid,
        len(conflicts),
    )

    return ImportPreview(
        version=version,
        filename=filename,
        header=message.header,
        total_products=len(mapped_titles),
        valid_products=valid,
        products=_preview_rows(mapped_titles, conflicts),
        errors=collect_errors(message.parsing_errors, mapped_titles),
        conflicts=conflicts,
        unmapped_fields_summary=collect_unmapped_fields(mapped_titles),
    )
