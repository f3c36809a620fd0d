"""ISBN-13 checksum and ISBN-10 conversion helpers."""

from __future__ import annotations

import re

_ISBN13_RE = re.compile(r"^\d{13}$")
_SEPARATORS = re.compile(r"[\s-]")


def normalize_isbn(value: str | None) -> str | None:
    """Strip hyphens and whitespace; None for empty input."""
    if value is None:
        return None
    cleaned = _SEPARATORS.sub("", value)
    return cleaned or None


def compute_isbn13_check_digit(first12: str) -> str:
    """Compute the ISBN-13 check digit for the first 12 digits.

    Digits are weighted 1,3,1,3,... and the check digit is
    ``(10 - sum % 10) % 10``.
    """
    if len(first12) != 12 or not first12.isdigit():
        raise ValueError(f"Expected 12 digits, got: {first12!r}")
    total = sum(int(d) * (3 if i % 2 else 1) for i, d in enumerate(first12))
    return str((10 - total % 10) % 10)


def validate_isbn13(isbn: str | None) -> bool:
    """Return True when the value is exactly 13 digits with a valid check digit."""
    if not isbn or not _ISBN13_RE.match(isbn):
        return False
    return compute_isbn13_check_digit(isbn[:12]) == isbn[12]


def convert_isbn10_to_13(isbn10: str | None) -> str | None:
    """Convert an ISBN-10 to ISBN-13 using the 978 prefix.

    The ISBN-10 check digit is discarded and a new ISBN-13 check digit is
    computed. Returns None when the cleaned value is not 10 characters or
    its first nine characters are not digits.
    """
    cleaned = normalize_isbn(isbn10)
    if cleaned is None or len(cleaned) != 10 or not cleaned[:9].isdigit():
        return None
    first12 = "978" + cleaned[:9]
    return first12 + compute_isbn13_check_digit(first12)
