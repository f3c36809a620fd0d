"""onixport - ONIX 2.1/3.0/3.1 metadata import and export for title catalogues."""

from onixport.exceptions import (
    ConfigurationError,
    EncodingError,
    ExportError,
    FileConstraintError,
    ImportExecutionError,
    ImportRejectedError,
    MalformedElementError,
    MessageParseError,
    OnixportError,
    ProductLimitError,
    UnknownVersionError,
    UnsupportedVersionError,
)

__version__ = "0.4.0"

__all__ = [
    "__version__",
    # Base exception
    "OnixportError",
    # Configuration
    "ConfigurationError",
    # Import rejection
    "ImportRejectedError",
    "FileConstraintError",
    "ProductLimitError",
    "EncodingError",
    "UnknownVersionError",
    "MessageParseError",
    # Codec
    "UnsupportedVersionError",
    "MalformedElementError",
    # Pipelines
    "ExportError",
    "ImportExecutionError",
]
