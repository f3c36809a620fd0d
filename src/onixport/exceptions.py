"""
onixport exception hierarchy.

Provides typed exceptions for the ONIX import and export pipelines.

Exception Hierarchy:
    OnixportError (base)
    ├── ConfigurationError - Invalid environment settings
    ├── ImportRejectedError - Whole uploaded file rejected
    │   ├── FileConstraintError - Extension, empty file, size cap
    │   ├── ProductLimitError - Zero products or too many products
    │   ├── EncodingError - Undecodable or binary content
    │   ├── UnknownVersionError - ONIX version could not be detected
    │   └── MessageParseError - Malformed XML or missing root element
    ├── UnsupportedVersionError - No parser/builder for a version
    ├── MalformedElementError - Unexpected element shape inside a product
    ├── ExportError - Nothing exportable or invalid export used
    └── ImportExecutionError - Persistence failure while importing a batch

Per-product problems are never raised; they are reported as ImportIssue
entries on the preview or result. Only the classes above escape the
pipelines.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class OnixportError(Exception):
    """Base exception for all onixport errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """
        Initialize onixport exception.

        Args:
            message: Human-readable error message
            details: Optional structured error details for logging/debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(OnixportError):
    """Environment or settings error."""

    def __init__(
        self,
        message: str,
        *,
        config_file: Path | str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if config_file:
            details["config_file"] = str(config_file)
        if field:
            details["field"] = field
        super().__init__(message, details=details)
        self.config_file = config_file
        self.field = field


# =============================================================================
# Import Rejection Errors (fatal to a whole file)
# =============================================================================


class ImportRejectedError(OnixportError):
    """An uploaded ONIX file was rejected before any product was staged."""

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if filename:
            details["filename"] = filename
        super().__init__(message, details=details)
        self.filename = filename


class FileConstraintError(ImportRejectedError):
    """File extension, emptiness or size constraint violated."""

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        size: int | None = None,
        limit: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if size is not None:
            details["size"] = size
        if limit is not None:
            details["limit"] = limit
        super().__init__(message, filename=filename, details=details)
        self.size = size
        self.limit = limit


class ProductLimitError(ImportRejectedError):
    """File contains no products or more products than allowed."""

    def __init__(
        self,
        message: str,
        *,
        count: int,
        limit: int,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["count"] = count
        details["limit"] = limit
        super().__init__(message, filename=filename, details=details)
        self.count = count
        self.limit = limit


class EncodingError(ImportRejectedError):
    """File content could not be decoded into usable XML text."""

    def __init__(
        self,
        message: str,
        *,
        encoding: str | None = None,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if encoding:
            details["encoding"] = encoding
        super().__init__(message, filename=filename, details=details)
        self.encoding = encoding


class UnknownVersionError(ImportRejectedError):
    """ONIX version could not be determined from the document."""

    pass


class MessageParseError(ImportRejectedError):
    """The document is not well-formed XML or lacks a recognised root element."""

    pass


# =============================================================================
# Version / Element Errors
# =============================================================================


class UnsupportedVersionError(OnixportError):
    """No parser or builder exists for the requested ONIX version."""

    def __init__(
        self,
        message: str,
        *,
        version: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if version:
            details["version"] = version
        super().__init__(message, details=details)
        self.version = version


class MalformedElementError(OnixportError):
    """An element has an unexpected shape (e.g. composite where text was expected)."""

    def __init__(
        self,
        message: str,
        *,
        tag: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if tag:
            details["tag"] = tag
        if path:
            details["path"] = path
        super().__init__(message, details=details)
        self.tag = tag
        self.path = path


# =============================================================================
# Export / Execution Errors
# =============================================================================


class ExportError(OnixportError):
    """ONIX export could not be produced or must not be used."""

    def __init__(
        self,
        message: str,
        *,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if errors:
            details["errors"] = errors
        super().__init__(message, details=details)
        self.errors = errors or []


class ImportExecutionError(OnixportError):
    """A persistence failure aborted the import batch."""

    def __init__(
        self,
        message: str,
        *,
        product_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if product_index is not None:
            details["product_index"] = product_index
        super().__init__(message, details=details)
        self.product_index = product_index
