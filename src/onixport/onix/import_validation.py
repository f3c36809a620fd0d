"""Validation applied to products staged for import.

Field checks produce FieldValidationError entries that make a product
non-importable. File and product-count limits reject the whole upload and
are raised as ImportRejectedError subclasses.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Iterable, Sequence
from pathlib import PurePath

from onixport.env_settings import DEFAULT_MAX_FILE_SIZE_BYTES, DEFAULT_MAX_PRODUCTS
from onixport.exceptions import FileConstraintError, ProductLimitError
from onixport.onix.isbn import validate_isbn13
from onixport.onix.mapper import ISBN_REQUIRED, TITLE_REQUIRED
from onixport.onix.schemas import (
    FieldValidationError,
    ImportIssue,
    MappedTitle,
    ParsedProduct,
)

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({".xml", ".onix"})
MAX_TITLE_LENGTH = 500
MIN_PUBLICATION_YEAR = 1450
MAX_PUBLICATION_YEAR = 2100

_ROLE_CODE_RE = re.compile(r"^[A-Z]\d{2}$")


def _truncate(value: str) -> str:
    return f"{value[:50]}..."


# =============================================================================
# Per-product checks
# =============================================================================


def validate_import_product(product: ParsedProduct) -> list[FieldValidationError]:
    """Check a parsed product against the import rules.

    Args:
        product: Parsed product

    Returns:
        All field errors found (empty when importable)
    """
    errors: list[FieldValidationError] = []

    if not product.isbn13:
        errors.append(ISBN_REQUIRED)
    elif not validate_isbn13(product.isbn13):
        errors.append(
            FieldValidationError(
                field="isbn",
                message="Invalid ISBN-13 checksum",
                value=product.isbn13,
                code="INVALID_ISBN",
            )
        )

    title = product.title or ""
    if not title.strip():
        errors.append(TITLE_REQUIRED)
    elif len(title) > MAX_TITLE_LENGTH:
        errors.append(
            FieldValidationError(
                field="title",
                message=f"Title exceeds maximum length ({MAX_TITLE_LENGTH} characters)",
                value=_truncate(title),
                code="TITLE_TOO_LONG",
            )
        )

    if product.subtitle and len(product.subtitle) > MAX_TITLE_LENGTH:
        errors.append(
            FieldValidationError(
                field="subtitle",
                message=f"Subtitle exceeds maximum length ({MAX_TITLE_LENGTH} characters)",
                value=_truncate(product.subtitle),
                code="SUBTITLE_TOO_LONG",
            )
        )

    if product.publication_date is not None:
        year = product.publication_date.year
        if not MIN_PUBLICATION_YEAR <= year <= MAX_PUBLICATION_YEAR:
            errors.append(
                FieldValidationError(
                    field="publication_date",
                    message=(
                        "Publication date year is out of valid range "
                        f"({MIN_PUBLICATION_YEAR}-{MAX_PUBLICATION_YEAR})"
                    ),
                    value=product.publication_date.isoformat(),
                    code="INVALID_PUBLICATION_DATE",
                )
            )

    for i, contributor in enumerate(product.contributors):
        if not contributor.display_name:
            errors.append(
                FieldValidationError(
                    field=f"contributors[{i}]",
                    message=f"Contributor {i + 1} has no identifiable name",
                    code="MISSING_CONTRIBUTOR_NAME",
                )
            )
        if contributor.role and not _ROLE_CODE_RE.match(contributor.role):
            errors.append(
                FieldValidationError(
                    field=f"contributors[{i}].role",
                    message=f"Invalid contributor role code: {contributor.role}",
                    value=contributor.role,
                    code="INVALID_CONTRIBUTOR_ROLE",
                )
            )

    return errors


def check_duplicate_isbns(mapped_titles: Sequence[MappedTitle]) -> list[MappedTitle]:
    """Flag every product that shares its ISBN with another product in the batch.

    Each flagged product gets a DUPLICATE_ISBN error naming the indexes
    of the other products, so both sides of a duplicate are
    non-importable.

    Returns:
        The batch with duplicate errors attached, in the original order
    """
    positions: dict[str, list[int]] = defaultdict(list)
    for position, mapped in enumerate(mapped_titles):
        if mapped.title.isbn:
            positions[mapped.title.isbn].append(position)

    result = list(mapped_titles)
    for isbn, group in positions.items():
        if len(group) < 2:
            continue
        logger.info("ISBN %s appears %d times in the import file", isbn, len(group))
        for position in group:
            others = [mapped_titles[p].raw_index for p in group if p != position]
            result[position] = result[position].with_errors(
                FieldValidationError(
                    field="isbn",
                    message=(
                        f"Duplicate ISBN {isbn} also used by product index "
                        f"{', '.join(str(o) for o in others)} in this file"
                    ),
                    value=isbn,
                    code="DUPLICATE_ISBN",
                )
            )
    return result


# =============================================================================
# Batch summaries
# =============================================================================


def _issues_for(mapped: MappedTitle) -> list[ImportIssue]:
    return [
        ImportIssue(
            product_index=mapped.raw_index,
            record_reference=mapped.record_reference,
            field=error.field,
            message=error.message,
            code=error.code,
        )
        for error in mapped.validation_errors
    ]


def validate_import_batch(
    mapped_titles: Iterable[MappedTitle],
) -> tuple[int, int, list[ImportIssue]]:
    """Count valid/invalid products and flatten their errors.

    Returns:
        (valid count, invalid count, issues)
    """
    valid = invalid = 0
    issues: list[ImportIssue] = []
    for mapped in mapped_titles:
        if mapped.is_valid:
            valid += 1
        else:
            invalid += 1
            issues.extend(_issues_for(mapped))
    return valid, invalid, issues


def collect_errors(
    parsing_errors: Iterable[ImportIssue], mapped_titles: Iterable[MappedTitle]
) -> list[ImportIssue]:
    """Combine parser issues and mapped-title validation errors into one list."""
    issues = list(parsing_errors)
    for mapped in mapped_titles:
        issues.extend(_issues_for(mapped))
    return issues


# =============================================================================
# Upload limits
# =============================================================================


def validate_file_constraints(
    filename: str, size: int, max_size: int = DEFAULT_MAX_FILE_SIZE_BYTES
) -> None:
    """Reject files with the wrong extension, no content or too many bytes.

    Raises:
        FileConstraintError: If any constraint is violated.
    """
    extension = PurePath(filename).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise FileConstraintError(
            "File must have .xml or .onix extension", filename=filename, size=size
        )
    if size == 0:
        raise FileConstraintError("File is empty", filename=filename, size=size)
    if size > max_size:
        raise FileConstraintError(
            f"File size ({size / 1024 / 1024:.1f}MB) exceeds "
            f"{max_size / 1024 / 1024:.0f}MB limit",
            filename=filename,
            size=size,
            limit=max_size,
        )


def validate_product_count(
    count: int, max_products: int = DEFAULT_MAX_PRODUCTS, filename: str | None = None
) -> None:
    """Reject files with no products or more than ``max_products``.

    Raises:
        ProductLimitError: If the count is outside 1..max_products.
    """
    if count == 0:
        raise ProductLimitError(
            "ONIX file contains no products to import",
            count=count,
            limit=max_products,
            filename=filename,
        )
    if count > max_products:
        raise ProductLimitError(
            f"Too many products ({count}). Maximum is {max_products} per import.",
            count=count,
            limit=max_products,
            filename=filename,
        )
