"""Shared pytest fixtures and helpers for onixport tests."""

from __future__ import annotations

import copy
import itertools
from collections.abc import Collection, Iterator
from decimal import Decimal
from types import TracebackType
from typing import Any

import pytest

from onixport.catalog import (
    ContactName,
    ExistingTitle,
    Tenant,
    TitleAuthor,
    TitleCreate,
    TitleUpdate,
    TitleWithAuthors,
)
from onixport.env_settings import clear_env_settings_cache

ISBN_A = "9780306406157"
ISBN_B = "9780131103627"
ISBN_C = "9781861972712"
ISBN_D = "9780262033848"

ONIX31_NS = "http://ns.editeur.org/onix/3.1/reference"
ONIX30_NS = "http://ns.editeur.org/onix/3.0/reference"


@pytest.fixture(autouse=True)
def fresh_env_settings() -> Iterator[None]:
    """Settings are cached per process; reset them around every test."""
    clear_env_settings_cache()
    yield
    clear_env_settings_cache()


# =============================================================================
# ONIX document helpers
# =============================================================================


def onix3_product(
    record_reference: str = "ref-1",
    isbn: str | None = ISBN_A,
    title: str | None = "The Test Book",
    subtitle: str | None = None,
    contributors: list[tuple[str, str]] | None = None,
    product_form: str = "BC",
    publishing_status: str | None = "04",
    publishing_date: str | None = "20240115",
    price: tuple[str, str] | None = ("19.99", "USD"),
    extra_descriptive: str = "",
) -> str:
    """Render one ONIX 3.x <Product> element.

    ``contributors`` holds (NamesBeforeKey, KeyNames) pairs.
    """
    parts = [f"<Product><RecordReference>{record_reference}</RecordReference>"]
    parts.append("<NotificationType>03</NotificationType>")
    if isbn is not None:
        parts.append(
            "<ProductIdentifier><ProductIDType>15</ProductIDType>"
            f"<IDValue>{isbn}</IDValue></ProductIdentifier>"
        )
    parts.append("<DescriptiveDetail><ProductComposition>00</ProductComposition>")
    parts.append(f"<ProductForm>{product_form}</ProductForm>")
    parts.append(extra_descriptive)
    if title is not None:
        parts.append(
            "<TitleDetail><TitleType>01</TitleType><TitleElement>"
            f"<TitleElementLevel>01</TitleElementLevel><TitleText>{title}</TitleText>"
        )
        if subtitle:
            parts.append(f"<Subtitle>{subtitle}</Subtitle>")
        parts.append("</TitleElement></TitleDetail>")
    for sequence, (first, last) in enumerate(contributors or [], start=1):
        parts.append(
            f"<Contributor><SequenceNumber>{sequence}</SequenceNumber>"
            "<ContributorRole>A01</ContributorRole>"
            f"<NamesBeforeKey>{first}</NamesBeforeKey><KeyNames>{last}</KeyNames>"
            "</Contributor>"
        )
    parts.append("</DescriptiveDetail>")
    parts.append("<PublishingDetail>")
    if publishing_status:
        parts.append(f"<PublishingStatus>{publishing_status}</PublishingStatus>")
    if publishing_date:
        parts.append(
            "<PublishingDate><PublishingDateRole>01</PublishingDateRole>"
            f"<Date>{publishing_date}</Date></PublishingDate>"
        )
    parts.append("</PublishingDetail>")
    if price is not None:
        amount, currency = price
        parts.append(
            "<ProductSupply><SupplyDetail><ProductAvailability>20</ProductAvailability>"
            f"<Price><PriceType>01</PriceType><PriceAmount>{amount}</PriceAmount>"
            f"<CurrencyCode>{currency}</CurrencyCode></Price></SupplyDetail></ProductSupply>"
        )
    parts.append("</Product>")
    return "".join(parts)


def onix3_message(*products: str, namespace: str = ONIX31_NS, release: str = "3.1") -> str:
    """Wrap products in an ONIX 3.x message with a complete header."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<ONIXMessage xmlns="{namespace}" release="{release}">'
        "<Header><Sender><SenderName>Acme Press</SenderName>"
        "<EmailAddress>onix@acme.test</EmailAddress></Sender>"
        "<SentDateTime>20240601T120000Z</SentDateTime></Header>"
        + "".join(products)
        + "</ONIXMessage>"
    )


ONIX21_REFERENCE = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE ONIXMessage SYSTEM "http://www.editeur.org/onix/2.1/reference/onix-international.dtd">
<ONIXMessage>
  <Header>
    <FromCompany>Legacy Books</FromCompany>
    <SentDate>20240601</SentDate>
  </Header>
  <Product>
    <RecordReference>legacy-1</RecordReference>
    <ProductIdentifier>
      <ProductIDType>15</ProductIDType>
      <IDValue>9780306406157</IDValue>
    </ProductIdentifier>
    <ProductForm>BB</ProductForm>
    <Title>
      <TitleType>01</TitleType>
      <TitleText>Legacy Title</TitleText>
      <Subtitle>A Subtitle</Subtitle>
    </Title>
    <Contributor>
      <SequenceNumber>1</SequenceNumber>
      <ContributorRole>A01</ContributorRole>
      <PersonName>Jane Q Smith</PersonName>
    </Contributor>
    <PublishingStatus>04</PublishingStatus>
    <PublicationDate>20230301</PublicationDate>
    <SupplyDetail>
      <Price>
        <PriceTypeCode>01</PriceTypeCode>
        <PriceAmount>12.50</PriceAmount>
        <CurrencyCode>GBP</CurrencyCode>
      </Price>
    </SupplyDetail>
  </Product>
</ONIXMessage>
"""

ONIX21_SHORT = """<?xml version="1.0" encoding="UTF-8"?>
<ONIXmessage>
  <header><m174>Short Tag Press</m174></header>
  <product>
    <a001>short-1</a001>
    <b004>0306406152</b004>
    <b012>BC</b012>
    <title><b202>01</b202><b203>Short Tag Title</b203></title>
    <contributor><b034>1</b034><b035>A01</b035><b037>Smith, John</b037></contributor>
  </product>
</ONIXmessage>
"""


# =============================================================================
# Catalogue factories
# =============================================================================


def make_tenant(**overrides: Any) -> Tenant:
    data: dict[str, Any] = {
        "id": "tenant-1",
        "name": "Acme Press",
        "subdomain": "acme",
        "email": "onix@acme.test",
    }
    data.update(overrides)
    return Tenant(**data)


def make_author(first: str | None, last: str | None, primary: bool = False) -> TitleAuthor:
    return TitleAuthor(
        contact=ContactName(first_name=first, last_name=last),
        ownership_percentage=Decimal("100.00") if primary else None,
        is_primary=primary,
    )


def make_title(**overrides: Any) -> TitleWithAuthors:
    """Build a catalogue title with one author and an ISBN."""
    data: dict[str, Any] = {
        "id": "t1",
        "title": "The Test Book",
        "isbn": ISBN_A,
        "publication_status": "published",
        "list_price": Decimal("19.99"),
        "authors": [make_author("Jane", "Smith", primary=True)],
    }
    data.update(overrides)
    return TitleWithAuthors(**data)


# =============================================================================
# In-memory persistence
# =============================================================================


class InMemoryCatalog:
    """Dict-backed storage shared by the fake repositories.

    ``fail_on_isbn`` makes title creation raise for that ISBN, simulating a
    database failure mid-batch.
    """

    def __init__(self) -> None:
        self.titles: dict[str, dict[str, Any]] = {}
        self.contacts: dict[str, dict[str, Any]] = {}
        self.roles: set[tuple[str, str]] = set()
        self.links: list[dict[str, Any]] = []
        self.fail_on_isbn: str | None = None
        self.lookup_calls = 0
        self._ids = itertools.count(1)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def add_title(self, tenant_id: str, isbn: str, title: str) -> str:
        title_id = self.next_id("existing")
        self.titles[title_id] = {"id": title_id, "tenant_id": tenant_id, "isbn": isbn, "title": title}
        return title_id

    def add_contact(self, tenant_id: str, first: str, last: str, status: str = "active") -> str:
        contact_id = self.next_id("contact")
        self.contacts[contact_id] = {
            "id": contact_id,
            "tenant_id": tenant_id,
            "first_name": first,
            "last_name": last,
            "status": status,
        }
        return contact_id

    def snapshot(self) -> tuple[Any, ...]:
        return copy.deepcopy((self.titles, self.contacts, self.roles, self.links))

    def restore(self, state: tuple[Any, ...]) -> None:
        self.titles, self.contacts, self.roles, self.links = state

    def title_by_isbn(self, isbn: str) -> dict[str, Any] | None:
        for title in self.titles.values():
            if title["isbn"] == isbn:
                return title
        return None


class FakeTitleRepository:
    def __init__(self, catalog: InMemoryCatalog) -> None:
        self.catalog = catalog

    async def find_by_isbns(self, tenant_id: str, isbns: Collection[str]) -> list[ExistingTitle]:
        self.catalog.lookup_calls += 1
        wanted = set(isbns)
        return [
            ExistingTitle(id=t["id"], isbn=t["isbn"], title=t["title"])
            for t in self.catalog.titles.values()
            if t["tenant_id"] == tenant_id and t["isbn"] in wanted
        ]

    async def create(self, data: TitleCreate) -> str:
        if data.isbn == self.catalog.fail_on_isbn:
            raise RuntimeError("database unavailable")
        title_id = self.catalog.next_id("title")
        self.catalog.titles[title_id] = {"id": title_id, **data.model_dump()}
        return title_id

    async def update(self, title_id: str, data: TitleUpdate) -> None:
        self.catalog.titles[title_id].update(data.model_dump())

    async def add_contributor(
        self,
        title_id: str,
        contact_id: str,
        *,
        ownership_percentage: Decimal,
        is_primary: bool,
        created_by: str | None = None,
    ) -> None:
        self.catalog.links.append(
            {
                "title_id": title_id,
                "contact_id": contact_id,
                "ownership_percentage": ownership_percentage,
                "is_primary": is_primary,
            }
        )


class FakeContactRepository:
    def __init__(self, catalog: InMemoryCatalog) -> None:
        self.catalog = catalog

    async def find_active_by_name(
        self, tenant_id: str, first_name: str, last_name: str
    ) -> str | None:
        for contact in self.catalog.contacts.values():
            if (
                contact["tenant_id"] == tenant_id
                and contact["first_name"] == first_name
                and contact["last_name"] == last_name
                and contact["status"] == "active"
            ):
                return contact["id"]
        return None

    async def create(
        self,
        tenant_id: str,
        first_name: str,
        last_name: str,
        *,
        created_by: str | None = None,
    ) -> str:
        return self.catalog.add_contact(tenant_id, first_name, last_name)

    async def has_role(self, contact_id: str, role: str) -> bool:
        return (contact_id, role) in self.catalog.roles

    async def add_role(self, contact_id: str, role: str, *, assigned_by: str | None = None) -> None:
        self.catalog.roles.add((contact_id, role))


class InMemoryUnitOfWork:
    """Snapshots the catalogue on entry and restores it if the block raises."""

    def __init__(self, catalog: InMemoryCatalog) -> None:
        self.catalog = catalog
        self.titles = FakeTitleRepository(catalog)
        self.contacts = FakeContactRepository(catalog)
        self.committed = False
        self.rolled_back = False
        self._snapshot: tuple[Any, ...] | None = None

    async def __aenter__(self) -> InMemoryUnitOfWork:
        self._snapshot = self.catalog.snapshot()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.committed = True
        else:
            assert self._snapshot is not None
            self.catalog.restore(self._snapshot)
            self.rolled_back = True


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture
def uow(catalog: InMemoryCatalog) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(catalog)


@pytest.fixture
def tenant() -> Tenant:
    return make_tenant()
