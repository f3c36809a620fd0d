"""Map parsed ONIX products onto the title catalogue.

Mapping never fails: missing required fields become validation errors on
the MappedTitle, and parsed data the catalogue cannot store is reported
as UnmappedField entries so the importing user can see what is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from onixport.onix.codelists import map_contributor_role, map_publishing_status
from onixport.onix.schemas import (
    FieldValidationError,
    MappedContributor,
    MappedTitle,
    MappedTitleFields,
    ParsedContributor,
    ParsedProduct,
    PreviewContributor,
    PreviewProduct,
    UnmappedField,
)

logger = logging.getLogger(__name__)

ISBN_REQUIRED = FieldValidationError(
    field="isbn", message="ISBN-13 is required for import", code="MISSING_ISBN"
)
TITLE_REQUIRED = FieldValidationError(
    field="title", message="Title is required", code="MISSING_TITLE"
)

# =============================================================================
# Mapping
# =============================================================================


def split_contributor_name(contributor: ParsedContributor) -> tuple[str, str]:
    """Resolve (first name, last name) for a parsed contributor.

    Precedence: NamesBeforeKey + KeyNames, then "Last, First" inverted
    form, then a corporate name stored as the last name.
    """
    if contributor.names_before_key and contributor.key_names:
        return contributor.names_before_key, contributor.key_names
    if contributor.person_name_inverted:
        parts = [part.strip() for part in contributor.person_name_inverted.split(",")]
        if len(parts) >= 2:
            return " ".join(p for p in parts[1:] if p), parts[0]
        return "", contributor.person_name_inverted.strip()
    if contributor.key_names:
        return "", contributor.key_names
    if contributor.corporate_name:
        return "", contributor.corporate_name
    return "", ""


def map_contributors(product: ParsedProduct) -> tuple[MappedContributor, ...]:
    mapped = []
    for contributor in sorted(product.contributors, key=lambda c: c.sequence_number):
        first_name, last_name = split_contributor_name(contributor)
        mapped.append(
            MappedContributor(
                first_name=first_name,
                last_name=last_name,
                role=map_contributor_role(contributor.role),
                onix_role=contributor.role,
                sequence_number=contributor.sequence_number,
            )
        )
    return tuple(mapped)


def collect_product_unmapped_fields(product: ParsedProduct) -> tuple[UnmappedField, ...]:
    """List parsed values that have no destination column."""
    unmapped: list[UnmappedField] = []
    if product.product_form:
        unmapped.append(
            UnmappedField(
                name="ProductForm",
                value=product.product_form,
                reason="No format field in titles schema",
            )
        )
    if product.prices:
        first = product.prices[0]
        if first.amount and first.currency:
            unmapped.append(
                UnmappedField(
                    name="Price",
                    value=f"{first.amount} {first.currency}",
                    reason="No price field in titles schema",
                )
            )
    if product.subjects:
        first_subject = product.subjects[0]
        value = (
            first_subject.code
            or first_subject.heading_text
            or f"Scheme {first_subject.scheme_identifier}"
        )
        unmapped.append(
            UnmappedField(name="Subject", value=value, reason="No subject field in titles schema")
        )
    return tuple(unmapped)


def map_to_title(product: ParsedProduct, tenant_id: str) -> MappedTitle:
    """Map a parsed product to catalogue shape.

    Args:
        product: Product from any version-specific parser
        tenant_id: Tenant the title will belong to

    Returns:
        MappedTitle with required-field errors attached (never raises)
    """
    errors: list[FieldValidationError] = []
    if not product.isbn13:
        errors.append(ISBN_REQUIRED)
    title = (product.title or "").strip()
    if not title:
        errors.append(TITLE_REQUIRED)

    mapped = MappedTitle(
        title=MappedTitleFields(
            tenant_id=tenant_id,
            title=title,
            subtitle=product.subtitle,
            isbn=product.isbn13,
            publication_status=map_publishing_status(product.publishing_status),
            publication_date=product.publication_date,
        ),
        contributors=map_contributors(product),
        unmapped_fields=collect_product_unmapped_fields(product),
        validation_errors=tuple(errors),
        raw_index=product.raw_index,
        record_reference=product.record_reference,
    )
    logger.debug(
        "Mapped product %d (%s): %d contributors, %d errors",
        product.raw_index,
        product.record_reference,
        len(mapped.contributors),
        len(errors),
    )
    return mapped


def to_preview_product(mapped: MappedTitle, record_reference: str | None = None) -> PreviewProduct:
    """Convert a mapped title into a preview row (conflict fields unset)."""
    contributors = [
        PreviewContributor(name=contributor.name or "Unknown", role=contributor.role)
        for contributor in mapped.contributors
    ]
    display = {field.name: field.value for field in mapped.unmapped_fields}

    return PreviewProduct(
        index=mapped.raw_index,
        record_reference=record_reference or mapped.record_reference or "",
        isbn=mapped.title.isbn,
        title=mapped.title.title,
        subtitle=mapped.title.subtitle,
        contributors=contributors,
        publication_status=mapped.title.publication_status,
        publication_date=mapped.title.publication_date,
        product_form=display.get("ProductForm"),
        price=display.get("Price"),
        subject=display.get("Subject"),
        validation_errors=list(mapped.validation_errors),
        unmapped_fields=list(mapped.unmapped_fields),
    )


def collect_unmapped_fields(mapped_titles: Iterable[MappedTitle]) -> list[str]:
    """Sorted unique names of unmapped fields across a batch."""
    return sorted({field.name for mapped in mapped_titles for field in mapped.unmapped_fields})
