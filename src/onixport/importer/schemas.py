"""Pydantic models exchanged between the import preview, the caller and the executor."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from onixport.onix.schemas import ImportIssue, ParsedHeader, PreviewProduct
from onixport.onix.version import ONIXVersion

ResolutionAction = Literal["skip", "update", "create-new"]
ImportStatus = Literal["success", "partial", "failed"]


class ImportConflict(BaseModel):
    """An incoming product whose ISBN already exists for the tenant."""

    model_config = {"frozen": True}

    isbn: str
    existing_title_id: str
    existing_title_name: str
    import_product_index: int


class ConflictResolution(BaseModel):
    """Caller's decision for one conflicting ISBN.

    Accepts a bare action string (``"skip"``) as shorthand for
    ``{"action": "skip"}``.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    action: ResolutionAction
    new_isbn: str | None = Field(default=None, alias="newIsbn")

    @model_validator(mode="before")
    @classmethod
    def coerce_action_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"action": data}
        return data


class OwnershipOverride(BaseModel):
    """Explicit ownership share for one contributor, in contributor order."""

    model_config = {"frozen": True, "populate_by_name": True}

    ownership_percentage: Decimal = Field(ge=0, le=100, alias="ownershipPercentage")
    is_primary: bool = Field(default=False, alias="isPrimary")


class OwnershipShare(BaseModel):
    model_config = {"frozen": True}

    contact_id: str
    ownership_percentage: Decimal
    is_primary: bool


class ImportPreview(BaseModel):
    """Everything a caller needs to review an upload before importing it."""

    version: ONIXVersion
    filename: str | None = None
    header: ParsedHeader = Field(default_factory=ParsedHeader)
    total_products: int
    valid_products: int
    products: list[PreviewProduct] = Field(default_factory=list)
    errors: list[ImportIssue] = Field(default_factory=list)
    conflicts: list[ImportConflict] = Field(default_factory=list)
    unmapped_fields_summary: list[str] = Field(default_factory=list)

    def get_product(self, index: int) -> PreviewProduct | None:
        """Look up a preview row by its source product index."""
        for product in self.products:
            if product.index == index:
                return product
        return None


class ImportResult(BaseModel):
    """Counts and created identifiers from one import execution."""

    imported: int = 0
    skipped: int = 0
    updated: int = 0
    errors: int = 0
    created_title_ids: list[str] = Field(default_factory=list)
    created_contact_ids: list[str] = Field(default_factory=list)
    issues: list[ImportIssue] = Field(default_factory=list)

    @property
    def status(self) -> ImportStatus:
        if self.errors == 0:
            return "success"
        return "partial" if self.imported > 0 else "failed"
