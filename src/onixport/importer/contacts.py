"""
Contributor identity resolution and ownership allocation.

Every helper takes the open unit of work (or one of its repositories) as
an argument; nothing here holds connection state of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import ROUND_DOWN, Decimal

from onixport.importer.ports import ContactRepository, UnitOfWork
from onixport.importer.schemas import OwnershipOverride, OwnershipShare

logger = logging.getLogger(__name__)

AUTHOR_ROLE = "author"
FULL_OWNERSHIP = Decimal("100.00")
_CENT = Decimal("0.01")


def parse_name(full_name: str) -> tuple[str, str]:
    """Split a display name into (first, last).

    The last whitespace-separated token is the last name; everything before
    it is the first name. A blank name becomes ``("", "Unknown")``.
    """
    parts = full_name.split()
    if not parts:
        return "", "Unknown"
    if len(parts) == 1:
        return "", parts[0]
    return " ".join(parts[:-1]), parts[-1]


async def ensure_author_role(
    contacts: ContactRepository, contact_id: str, *, assigned_by: str | None = None
) -> None:
    """Add the author role to a contact unless it already has it."""
    if not await contacts.has_role(contact_id, AUTHOR_ROLE):
        await contacts.add_role(contact_id, AUTHOR_ROLE, assigned_by=assigned_by)


async def find_or_create_contact(
    contacts: ContactRepository,
    tenant_id: str,
    name: str,
    *,
    user_id: str | None = None,
    created_contact_ids: list[str] | None = None,
) -> str:
    """Return the id of the active contact with this name, creating it if needed.

    Matching is an exact (first, last) comparison within the tenant. Both
    found and created contacts end up carrying the author role.
    """
    first_name, last_name = parse_name(name)

    existing = await contacts.find_active_by_name(tenant_id, first_name, last_name)
    if existing is not None:
        await ensure_author_role(contacts, existing, assigned_by=user_id)
        return existing

    contact_id = await contacts.create(tenant_id, first_name, last_name, created_by=user_id)
    await contacts.add_role(contact_id, AUTHOR_ROLE, assigned_by=user_id)
    if created_contact_ids is not None:
        created_contact_ids.append(contact_id)
    logger.debug("Created contact %s for %r", contact_id, name)
    return contact_id


def calculate_equal_split(contact_ids: Sequence[str]) -> list[OwnershipShare]:
    """Divide 100% evenly, rounding down to cents.

    The rounding remainder goes to the last contributor so shares always
    total exactly 100.00. The first contributor is primary.

    Example:
        3 contributors -> 33.33, 33.33, 33.34
    """
    count = len(contact_ids)
    if count == 0:
        return []

    base = (FULL_OWNERSHIP / count).quantize(_CENT, rounding=ROUND_DOWN)
    remainder = FULL_OWNERSHIP - base * count

    shares = []
    for position, contact_id in enumerate(contact_ids):
        percentage = base + remainder if position == count - 1 else base
        shares.append(
            OwnershipShare(
                contact_id=contact_id,
                ownership_percentage=percentage.quantize(_CENT),
                is_primary=position == 0,
            )
        )
    return shares


def check_ownership_overrides(
    overrides: Sequence[OwnershipOverride], contributor_count: int
) -> str | None:
    """Describe why a set of overrides cannot be applied, or None if it can."""
    if len(overrides) != contributor_count:
        return (
            f"Ownership overrides cover {len(overrides)} contributors, "
            f"product has {contributor_count}"
        )
    total = sum((o.ownership_percentage for o in overrides), Decimal("0"))
    if total.quantize(_CENT) != FULL_OWNERSHIP:
        return f"Ownership percentages must total 100.00 (got {total.quantize(_CENT)})"
    return None


async def link_contributors(
    uow: UnitOfWork,
    title_id: str,
    names: Sequence[str],
    tenant_id: str,
    *,
    user_id: str | None = None,
    overrides: Sequence[OwnershipOverride] | None = None,
    created_contact_ids: list[str] | None = None,
) -> list[OwnershipShare]:
    """Find or create a contact per contributor and link them to the title.

    Raises:
        ValueError: If overrides are given but do not match the contributors
            or do not total 100.00.
    """
    if overrides:
        problem = check_ownership_overrides(overrides, len(names))
        if problem:
            raise ValueError(problem)

    contact_ids = [
        await find_or_create_contact(
            uow.contacts,
            tenant_id,
            name,
            user_id=user_id,
            created_contact_ids=created_contact_ids,
        )
        for name in names
    ]

    if overrides:
        shares = [
            OwnershipShare(
                contact_id=contact_id,
                ownership_percentage=override.ownership_percentage.quantize(_CENT),
                is_primary=override.is_primary,
            )
            for contact_id, override in zip(contact_ids, overrides, strict=True)
        ]
    else:
        shares = calculate_equal_split(contact_ids)

    for share in shares:
        await uow.titles.add_contributor(
            title_id,
            share.contact_id,
            ownership_percentage=share.ownership_percentage,
            is_primary=share.is_primary,
            created_by=user_id,
        )
    return shares
