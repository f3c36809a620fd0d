"""Pydantic models for parsed, mapped and validated ONIX data.

Parsed models mirror what the version-specific parsers extract; mapped
models carry product data in the shape of the title catalogue. All of
them are immutable once built: later pipeline stages attach errors by
copying.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from onixport.onix.codelists import ContributorBucket, PublicationStatus
from onixport.onix.version import ONIXVersion

Severity = Literal["error", "warning"]

# =============================================================================
# Parsed message
# =============================================================================


class ParsedHeader(BaseModel):
    """Sender information from the message header."""

    model_config = {"frozen": True}

    sender_name: str | None = None
    sender_email: str | None = None
    sent_date_time: str | None = None


class ParsedContributor(BaseModel):
    """One contributor as found in the product record."""

    model_config = {"frozen": True}

    sequence_number: int = Field(ge=1)
    role: str = "A01"
    person_name_inverted: str | None = None
    names_before_key: str | None = None
    key_names: str | None = None
    corporate_name: str | None = None

    @property
    def display_name(self) -> str | None:
        """Name for display, preferring the structured parts."""
        if self.names_before_key and self.key_names:
            return f"{self.names_before_key} {self.key_names}"
        if self.key_names:
            return self.key_names
        if self.person_name_inverted:
            return self.person_name_inverted
        return self.corporate_name


class ParsedPrice(BaseModel):
    model_config = {"frozen": True}

    price_type: str | None = None
    amount: str | None = None
    currency: str | None = None


class ParsedSubject(BaseModel):
    model_config = {"frozen": True}

    scheme_identifier: str | None = None
    code: str | None = None
    heading_text: str | None = None


class ParsedProduct(BaseModel):
    """A product extracted from an ONIX message, independent of version."""

    model_config = {"frozen": True}

    record_reference: str | None = None
    isbn13: str | None = None
    gtin13: str | None = None
    title: str | None = None
    subtitle: str | None = None
    contributors: tuple[ParsedContributor, ...] = ()
    product_form: str | None = None
    publishing_status: str | None = None
    publication_date: date | None = None
    prices: tuple[ParsedPrice, ...] = ()
    subjects: tuple[ParsedSubject, ...] = ()
    raw_index: int = Field(ge=0)


class ImportIssue(BaseModel):
    """A problem found while parsing, mapping or importing.

    ``product_index`` is None for message-level problems that prevent any
    product from being read.
    """

    model_config = {"frozen": True}

    product_index: int | None = None
    record_reference: str | None = None
    field: str | None = None
    message: str
    severity: Severity = "error"
    code: str | None = None


class ParsedMessage(BaseModel):
    model_config = {"frozen": True}

    version: ONIXVersion
    header: ParsedHeader = Field(default_factory=ParsedHeader)
    products: tuple[ParsedProduct, ...] = ()
    parsing_errors: tuple[ImportIssue, ...] = ()

    @property
    def message_error(self) -> ImportIssue | None:
        """First message-level error, if the document could not be read at all."""
        for issue in self.parsing_errors:
            if issue.product_index is None:
                return issue
        return None


# =============================================================================
# Mapped titles
# =============================================================================


class MappedTitleFields(BaseModel):
    """Title columns populated from an ONIX product."""

    model_config = {"frozen": True}

    tenant_id: str
    title: str = ""
    subtitle: str | None = None
    isbn: str | None = None
    publication_status: PublicationStatus = "draft"
    publication_date: date | None = None


class MappedContributor(BaseModel):
    model_config = {"frozen": True}

    first_name: str = ""
    last_name: str = ""
    role: ContributorBucket = "author"
    onix_role: str = "A01"
    sequence_number: int = 1

    @property
    def name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class UnmappedField(BaseModel):
    """ONIX data that has no column in the title catalogue."""

    model_config = {"frozen": True}

    name: str
    value: str
    reason: str


class FieldValidationError(BaseModel):
    model_config = {"frozen": True}

    field: str
    message: str
    value: str | None = None
    code: str | None = None


class MappedTitle(BaseModel):
    """A parsed product converted into catalogue shape."""

    model_config = {"frozen": True}

    title: MappedTitleFields
    contributors: tuple[MappedContributor, ...] = ()
    unmapped_fields: tuple[UnmappedField, ...] = ()
    validation_errors: tuple[FieldValidationError, ...] = ()
    raw_index: int
    record_reference: str | None = None

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def with_errors(self, *errors: FieldValidationError) -> MappedTitle:
        """Return a copy with additional validation errors appended.

        Errors equal to one already recorded are not added twice.
        """
        merged = list(self.validation_errors)
        for error in errors:
            if error not in merged:
                merged.append(error)
        if len(merged) == len(self.validation_errors):
            return self
        return self.model_copy(update={"validation_errors": tuple(merged)})


# =============================================================================
# Message validation
# =============================================================================


class ValidationIssue(BaseModel):
    """One structural or business-rule violation in a generated message."""

    model_config = {"frozen": True}

    type: Literal["structural", "business"]
    code: str
    message: str
    path: str
    expected: str | None = None
    actual: str | None = None
    codelist_ref: str | None = None


class ValidationResult(BaseModel):
    model_config = {"frozen": True}

    valid: bool
    errors: tuple[ValidationIssue, ...] = ()

    @classmethod
    def from_errors(cls, errors: list[ValidationIssue]) -> ValidationResult:
        return cls(valid=not errors, errors=tuple(errors))


# =============================================================================
# Preview rows
# =============================================================================


class PreviewContributor(BaseModel):
    name: str
    role: str


class PreviewProduct(BaseModel):
    """One row of an import preview, ready for review and resolution."""

    index: int
    record_reference: str = ""
    isbn: str | None = None
    title: str = ""
    subtitle: str | None = None
    contributors: list[PreviewContributor] = Field(default_factory=list)
    publication_status: str | None = None
    publication_date: date | None = None
    product_form: str | None = None
    price: str | None = None
    subject: str | None = None
    validation_errors: list[FieldValidationError] = Field(default_factory=list)
    unmapped_fields: list[UnmappedField] = Field(default_factory=list)
    has_conflict: bool = False
    conflict_title_id: str | None = None
    conflict_title_name: str | None = None

    @property
    def is_importable(self) -> bool:
        return not self.validation_errors

