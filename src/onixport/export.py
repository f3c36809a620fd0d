"""
ONIX export service.

Builds a version-specific ONIX message for a set of catalogue titles,
validates it, and returns both. Callers must not persist or send the XML
unless ``ExportResult.valid`` is true (``ensure_valid()`` enforces this).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from onixport.catalog import Tenant, TitleWithAuthors
from onixport.env_settings import get_env_settings
from onixport.exceptions import ExportError
from onixport.onix.builder import ONIXMessageBuilder
from onixport.onix.schemas import ValidationResult
from onixport.onix.validator import validate_onix_message

logger = logging.getLogger(__name__)


def build_export_filename(version: str, subdomain: str, now: datetime) -> str:
    """Filename for an export, e.g. ``onix-31-acme-1734091200000.xml``."""
    version_token = version.replace(".", "")
    millis = int(now.timestamp() * 1000)
    return f"onix-{version_token}-{subdomain}-{millis}.xml"


class ExportResult(BaseModel):
    """Generated XML plus its validation outcome."""

    xml: str
    filename: str
    version: str
    product_count: int
    validation: ValidationResult
    skipped_title_ids: list[str] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.validation.valid

    def ensure_valid(self) -> str:
        """Return the XML, or raise if validation failed.

        Raises:
            ExportError: With one "code: message (path)" entry per issue.
        """
        if not self.valid:
            raise ExportError(
                f"ONIX export failed validation with {len(self.validation.errors)} errors",
                errors=[f"{e.code}: {e.message} ({e.path})" for e in self.validation.errors],
            )
        return self.xml


def export_titles(
    titles: Iterable[TitleWithAuthors],
    tenant: Tenant,
    *,
    version: str | None = None,
    now: datetime | None = None,
) -> ExportResult:
    """Build and validate an ONIX message for the given titles.

    Titles without an ISBN cannot be identified in ONIX and are skipped;
    their ids are reported on the result.

    Args:
        titles: Catalogue titles with contributors
        tenant: Sender/publisher identity
        version: "3.0" or "3.1" (defaults to ONIX_DEFAULT_VERSION)
        now: Export timestamp (defaults to current UTC time)

    Raises:
        ExportError: If no title has an ISBN.
        UnsupportedVersionError: If the version cannot be exported.
    """
    settings = get_env_settings().onix
    version = version or settings.default_version
    now = now or datetime.now(UTC)

    builder = ONIXMessageBuilder(
        tenant,
        version=version,
        sent_at=now,
        country=settings.default_country,
        default_currency=settings.default_currency,
    )
    skipped: list[str] = []
    for title in titles:
        if not title.isbn:
            logger.warning("Skipping title %s (%s): no ISBN", title.id, title.title)
            skipped.append(title.id)
            continue
        builder.add_title(title)

    if builder.product_count == 0:
        raise ExportError(
            "No exportable titles: every title is missing an ISBN",
            errors=[f"Title {title_id} has no ISBN" for title_id in skipped],
        )

    xml = builder.to_xml()
    validation = validate_onix_message(xml)
    logger.info(
        "Exported %d titles as ONIX %s (valid=%s, %d skipped)",
        builder.product_count,
        version,
        validation.valid,
        len(skipped),
    )

    return ExportResult(
        xml=xml,
        filename=build_export_filename(version, tenant.subdomain, now),
        version=version,
        product_count=builder.product_count,
        validation=validation,
        skipped_title_ids=skipped,
    )
