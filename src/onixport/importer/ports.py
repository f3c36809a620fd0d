"""
Persistence ports used by the importer.

The importer never talks to a database directly. Callers supply objects
implementing these protocols; everything written during one import goes
through a single UnitOfWork so a failure discards the whole batch.

Example implementation:
    class SqlUnitOfWork:
        async def __aenter__(self) -> SqlUnitOfWork:
            self.session = await self._session_factory()
            self.titles = SqlTitleRepository(self.session)
            self.contacts = SqlContactRepository(self.session)
            return self

        async def __aexit__(self, exc_type, exc, tb) -> None:
            if exc_type is None:
                await self.session.commit()
            else:
                await self.session.rollback()
            await self.session.close()
"""

from __future__ import annotations

from collections.abc import Collection
from decimal import Decimal
from types import TracebackType
from typing import Protocol, runtime_checkable

from onixport.catalog import ExistingTitle, TitleCreate, TitleUpdate


@runtime_checkable
class TitleLookup(Protocol):
    """Read access to existing titles, used for conflict detection."""

    async def find_by_isbns(self, tenant_id: str, isbns: Collection[str]) -> list[ExistingTitle]:
        """Return the tenant's titles whose ISBN is in ``isbns`` (one query)."""
        ...


@runtime_checkable
class TitleRepository(TitleLookup, Protocol):
    async def create(self, data: TitleCreate) -> str:
        """Insert a title and return its id."""
        ...

    async def update(self, title_id: str, data: TitleUpdate) -> None: ...

    async def add_contributor(
        self,
        title_id: str,
        contact_id: str,
        *,
        ownership_percentage: Decimal,
        is_primary: bool,
        created_by: str | None = None,
    ) -> None: ...


@runtime_checkable
class ContactRepository(Protocol):
    async def find_active_by_name(
        self, tenant_id: str, first_name: str, last_name: str
    ) -> str | None:
        """Id of an active contact with exactly this name, if any."""
        ...

    async def create(
        self,
        tenant_id: str,
        first_name: str,
        last_name: str,
        *,
        created_by: str | None = None,
    ) -> str: ...

    async def has_role(self, contact_id: str, role: str) -> bool: ...

    async def add_role(self, contact_id: str, role: str, *, assigned_by: str | None = None) -> None: ...


@runtime_checkable
class UnitOfWork(Protocol):
    """Transaction scope: commits on clean exit, rolls back on exception."""

    titles: TitleRepository
    contacts: ContactRepository

    async def __aenter__(self) -> UnitOfWork: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None: ...
