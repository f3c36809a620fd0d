"""Pydantic schemas for the title catalogue side of ONIX interchange.

Read models arrive from the catalogue (or a JSON dump of it) using
camelCase keys; write models are what the import executor hands to the
persistence ports.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from onixport.onix.codelists import PublicationStatus


class Tenant(BaseModel):
    """Publisher identity used as ONIX sender and product publisher."""

    id: str
    name: str
    subdomain: str
    default_currency: str | None = Field(default=None, alias="defaultCurrency")
    email: str | None = None

    model_config = {"extra": "ignore", "populate_by_name": True}


class ContactName(BaseModel):
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")

    model_config = {"extra": "ignore", "populate_by_name": True}


class TitleAuthor(BaseModel):
    contact: ContactName
    ownership_percentage: Decimal | None = Field(default=None, alias="ownershipPercentage")
    is_primary: bool = Field(default=False, alias="isPrimary")

    model_config = {"extra": "ignore", "populate_by_name": True}


class TitleWithAuthors(BaseModel):
    """Catalogue title with its linked contributors, as read for export."""

    id: str
    title: str
    subtitle: str | None = None
    isbn: str | None = None
    publication_status: str | None = Field(default=None, alias="publicationStatus")
    publication_date: date | None = Field(default=None, alias="publicationDate")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    list_price: Decimal | None = Field(default=None, alias="listPrice")
    authors: list[TitleAuthor] = Field(default_factory=list)

    # Accessibility
    epub_accessibility_conformance: str | None = Field(
        default=None, alias="epubAccessibilityConformance"
    )
    accessibility_features: list[str] = Field(default_factory=list, alias="accessibilityFeatures")
    accessibility_hazards: list[str] = Field(default_factory=list, alias="accessibilityHazards")
    accessibility_summary: str | None = Field(default=None, alias="accessibilitySummary")

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("accessibility_features", "accessibility_hazards", mode="before")
    @classmethod
    def coerce_code_list(cls, v: object) -> object:
        """Accept a single code or null where a list is expected."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class ExistingTitle(BaseModel):
    """Minimal projection of a persisted title used for conflict detection."""

    id: str
    isbn: str
    title: str

    model_config = {"extra": "ignore"}


class TitleCreate(BaseModel):
    tenant_id: str
    title: str
    subtitle: str | None = None
    isbn: str
    publication_status: PublicationStatus = "draft"
    publication_date: date | None = None
    created_by: str | None = None


class TitleUpdate(BaseModel):
    """Fields an "update" conflict resolution may overwrite.

    Contributor links on the existing title are never touched.
    """

    title: str
    subtitle: str | None = None
    publication_status: PublicationStatus = "draft"
    publication_date: date | None = None
