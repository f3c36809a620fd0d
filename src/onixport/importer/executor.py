"""
Import executor: applies conflict resolutions and writes titles.

Selected products are processed in ascending index order inside one unit
of work. Per-product decisions are, in order of precedence:

    validation errors       -> error (never imported)
    no conflict             -> create with the product's ISBN
    conflict, unresolved    -> skip
    conflict + "skip"       -> skip
    conflict + "update"     -> overwrite title fields on the existing title
    conflict + "create-new" -> create with the caller's replacement ISBN

Conflicts are re-checked against the repository in one lookup at the
start of the run. A replacement ISBN must be new to the tenant, absent
from the uploaded file and not already taken earlier in the run.

A persistence failure aborts the batch with ImportExecutionError and the
unit of work discards everything written so far.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from onixport.catalog import ExistingTitle, TitleCreate, TitleUpdate
from onixport.exceptions import ImportExecutionError
from onixport.importer.contacts import check_ownership_overrides, link_contributors
from onixport.importer.ports import UnitOfWork
from onixport.importer.schemas import (
    ConflictResolution,
    ImportPreview,
    ImportResult,
    OwnershipOverride,
)
from onixport.onix.isbn import normalize_isbn, validate_isbn13
from onixport.onix.schemas import ImportIssue, PreviewProduct

logger = logging.getLogger(__name__)


def _coerce_resolutions(
    resolutions: Mapping[str, ConflictResolution | str | dict],
) -> dict[str, ConflictResolution]:
    return {
        isbn: value
        if isinstance(value, ConflictResolution)
        else ConflictResolution.model_validate(value)
        for isbn, value in resolutions.items()
    }


def _issue(product: PreviewProduct | None, index: int, message: str, code: str) -> ImportIssue:
    return ImportIssue(
        product_index=index,
        record_reference=product.record_reference if product else None,
        message=message,
        code=code,
    )


def _publication_status(product: PreviewProduct) -> str:
    return product.publication_status or "draft"


async def _create_title(
    uow: UnitOfWork,
    product: PreviewProduct,
    isbn: str,
    *,
    tenant_id: str,
    user_id: str | None,
    overrides: Sequence[OwnershipOverride] | None,
    result: ImportResult,
) -> None:
    title_id = await uow.titles.create(
        TitleCreate(
            tenant_id=tenant_id,
            title=product.title,
            subtitle=product.subtitle,
            isbn=isbn,
            publication_status=_publication_status(product),
            publication_date=product.publication_date,
            created_by=user_id,
        )
    )
    await link_contributors(
        uow,
        title_id,
        [contributor.name for contributor in product.contributors],
        tenant_id,
        user_id=user_id,
        overrides=overrides,
        created_contact_ids=result.created_contact_ids,
    )
    result.created_title_ids.append(title_id)
    result.imported += 1


async def _update_title(
    uow: UnitOfWork, title_id: str, product: PreviewProduct, result: ImportResult
) -> None:
    # Contributor links on the existing title are left as curated
    await uow.titles.update(
        title_id,
        TitleUpdate(
            title=product.title,
            subtitle=product.subtitle,
            publication_status=_publication_status(product),
            publication_date=product.publication_date,
        ),
    )
    result.updated += 1


async def _find_existing(
    uow: UnitOfWork,
    tenant_id: str,
    products: Iterable[PreviewProduct],
    resolutions: Mapping[str, ConflictResolution],
) -> dict[str, ExistingTitle]:
    """Look up every ISBN the run may write, in one repository call.

    Covers the products' own ISBNs and all replacement ISBNs, so conflicts
    are caught even when the preview was built without a title lookup.
    """
    isbns = {product.isbn for product in products if product.isbn}
    for resolution in resolutions.values():
        new_isbn = normalize_isbn(resolution.new_isbn)
        if new_isbn:
            isbns.add(new_isbn)
    if not isbns:
        return {}
    found = await uow.titles.find_by_isbns(tenant_id, sorted(isbns))
    return {title.isbn: title for title in found}


def _replacement_isbn_problem(
    new_isbn: str | None,
    *,
    existing: Mapping[str, ExistingTitle],
    batch_isbns: set[str],
    claimed: set[str],
) -> tuple[str, str] | None:
    if not new_isbn:
        return "create-new requires a replacement ISBN", "MISSING_REPLACEMENT_ISBN"
    if not validate_isbn13(new_isbn):
        return f"Replacement ISBN {new_isbn} is not a valid ISBN-13", "INVALID_REPLACEMENT_ISBN"
    if new_isbn in existing:
        return f"Replacement ISBN {new_isbn} already exists", "REPLACEMENT_ISBN_CONFLICT"
    if new_isbn in batch_isbns:
        return (
            f"Replacement ISBN {new_isbn} is used by another product in this file",
            "REPLACEMENT_ISBN_CONFLICT",
        )
    if new_isbn in claimed:
        return (
            f"Replacement ISBN {new_isbn} was already used earlier in this import",
            "REPLACEMENT_ISBN_CONFLICT",
        )
    return None


async def import_onix_titles(
    preview: ImportPreview,
    selected_products: Iterable[int],
    conflict_resolutions: Mapping[str, ConflictResolution | str | dict] | None = None,
    *,
    unit_of_work: UnitOfWork,
    tenant_id: str,
    user_id: str | None = None,
    ownership_overrides: Mapping[int, Sequence[OwnershipOverride]] | None = None,
) -> ImportResult:
    """Import the selected preview products.

    Existing titles are looked up again inside the unit of work, so a
    preview built without a title lookup still cannot create a second
    title with an ISBN the tenant already has. Such products are treated
    as conflicts.

    Args:
        preview: Preview produced by build_import_preview()
        selected_products: Source product indexes to import
        conflict_resolutions: ISBN -> resolution (object, dict or bare action)
        unit_of_work: Transaction scope providing the repositories
        tenant_id: Tenant receiving the titles
        user_id: Acting user, recorded as creator
        ownership_overrides: Product index -> per-contributor ownership

    Returns:
        ImportResult with counts, created ids and per-product issues

    Raises:
        ImportExecutionError: If a repository call fails; nothing is kept.
    """
    resolutions = _coerce_resolutions(conflict_resolutions or {})
    overrides_by_index = ownership_overrides or {}
    indexes = sorted(set(selected_products))
    batch_isbns = {product.isbn for product in preview.products if product.isbn}
    claimed: set[str] = set()
    result = ImportResult()

    def reject(product: PreviewProduct | None, index: int, message: str, code: str) -> None:
        result.errors += 1
        result.issues.append(_issue(product, index, message, code))

    async with unit_of_work as uow:
        selected = [p for p in (preview.get_product(i) for i in indexes) if p is not None]
        try:
            existing = await _find_existing(uow, tenant_id, selected, resolutions)
        except Exception as exc:
            logger.error("Import failed while checking existing titles: %s", exc)
            raise ImportExecutionError(
                f"Import failed while checking existing titles: {exc}. No changes were saved."
            ) from exc

        for index in indexes:
            product = preview.get_product(index)
            if product is None:
                message = f"Product index {index} is not in the preview"
                reject(None, index, message, "UNKNOWN_PRODUCT")
                continue
            if not product.is_importable:
                reject(product, index, "Product has validation errors", "VALIDATION_FAILED")
                continue

            overrides = overrides_by_index.get(index)
            if overrides:
                problem = check_ownership_overrides(overrides, len(product.contributors))
                if problem:
                    reject(product, index, problem, "INVALID_OWNERSHIP")
                    continue

            assert product.isbn is not None
            conflict_id = product.conflict_title_id
            if conflict_id is None and product.isbn in existing:
                conflict_id = existing[product.isbn].id
                logger.info(
                    "Product %d: ISBN %s already exists (title %s)",
                    index,
                    product.isbn,
                    conflict_id,
                )

            resolution = resolutions.get(product.isbn)
            action = resolution.action if resolution else "skip"

            try:
                if conflict_id is None:
                    await _create_title(
                        uow,
                        product,
                        product.isbn,
                        tenant_id=tenant_id,
                        user_id=user_id,
                        overrides=overrides,
                        result=result,
                    )
                    claimed.add(product.isbn)
                elif action == "skip":
                    logger.debug("Skipping product %d (ISBN %s exists)", index, product.isbn)
                    result.skipped += 1
                elif action == "update":
                    await _update_title(uow, conflict_id, product, result)
                else:
                    new_isbn = normalize_isbn(resolution.new_isbn) if resolution else None
                    problem = _replacement_isbn_problem(
                        new_isbn, existing=existing, batch_isbns=batch_isbns, claimed=claimed
                    )
                    if problem:
                        logger.warning("Product %d: %s", index, problem[0])
                        reject(product, index, *problem)
                        continue
                    assert new_isbn is not None
                    await _create_title(
                        uow,
                        product,
                        new_isbn,
                        tenant_id=tenant_id,
                        user_id=user_id,
                        overrides=overrides,
                        result=result,
                    )
                    claimed.add(new_isbn)
            except Exception as exc:
                logger.error("Import failed at product %d: %s", index, exc)
                raise ImportExecutionError(
                    f"Import failed at product {index}: {exc}. No changes were saved.",
                    product_index=index,
                ) from exc

    logger.info(
        "ONIX import finished: %d imported, %d updated, %d skipped, %d errors",
        result.imported,
        result.updated,
        result.skipped,
        result.errors,
    )
    return result
