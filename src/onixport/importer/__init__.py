"""
ONIX import reconciliation: preview, conflict detection and execution.

Usage:
    preview = await build_import_preview(data, "feed.xml", tenant_id, title_lookup=repo)
    result = await import_onix_titles(
        preview, [0, 1], {"9780306406157": "update"}, unit_of_work=uow, tenant_id=tenant_id
    )
"""

from __future__ import annotations

from onixport.importer.conflicts import check_conflicts
from onixport.importer.contacts import (
    calculate_equal_split,
    find_or_create_contact,
    link_contributors,
    parse_name,
)
from onixport.importer.executor import import_onix_titles
from onixport.importer.ports import ContactRepository, TitleLookup, TitleRepository, UnitOfWork
from onixport.importer.preview import build_import_preview
from onixport.importer.schemas import (
    ConflictResolution,
    ImportConflict,
    ImportPreview,
    ImportResult,
    OwnershipOverride,
    OwnershipShare,
)

__all__ = [
    "ConflictResolution",
    "ContactRepository",
    "ImportConflict",
    "ImportPreview",
    "ImportResult",
    "OwnershipOverride",
    "OwnershipShare",
    "TitleLookup",
    "TitleRepository",
    "UnitOfWork",
    "build_import_preview",
    "calculate_equal_split",
    "check_conflicts",
    "find_or_create_contact",
    "import_onix_titles",
    "link_contributors",
    "parse_name",
]
