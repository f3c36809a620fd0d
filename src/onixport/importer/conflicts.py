"""ISBN conflict detection against the tenant's existing titles."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from onixport.importer.ports import TitleLookup
from onixport.importer.schemas import ImportConflict
from onixport.onix.schemas import MappedTitle

logger = logging.getLogger(__name__)


async def check_conflicts(
    lookup: TitleLookup, tenant_id: str, mapped_titles: Sequence[MappedTitle]
) -> list[ImportConflict]:
    """Find mapped titles whose ISBN already exists for the tenant.

    All ISBNs are looked up in a single call; products are then matched
    against the returned titles by ISBN.
    """
    isbns = {mapped.title.isbn for mapped in mapped_titles if mapped.title.isbn}
    if not isbns:
        return []

    existing = {title.isbn: title for title in await lookup.find_by_isbns(tenant_id, isbns)}

    conflicts: list[ImportConflict] = []
    for mapped in mapped_titles:
        isbn = mapped.title.isbn
        if isbn and isbn in existing:
            conflicts.append(
                ImportConflict(
                    isbn=isbn,
                    existing_title_id=existing[isbn].id,
                    existing_title_name=existing[isbn].title,
                    import_product_index=mapped.raw_index,
                )
            )

    if conflicts:
        logger.info("%d of %d ISBNs already exist for tenant", len(conflicts), len(isbns))
    return conflicts
