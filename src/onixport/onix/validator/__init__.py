"""Two-layer ONIX message validation.

Structural validation runs first; business rules only run on documents
that pass it, so a broken document reports structural errors alone.
"""

from __future__ import annotations

import logging

from onixport.onix.schemas import ValidationResult
from onixport.onix.validator.business_rules import validate_business_rules
from onixport.onix.validator.structure import validate_structure

logger = logging.getLogger(__name__)

__all__ = ["validate_business_rules", "validate_onix_message", "validate_structure"]


def validate_onix_message(xml: str) -> ValidationResult:
    """Run structural validation, then business rules if structure is sound."""
    structural = validate_structure(xml)
    if not structural.valid:
        logger.info("ONIX structure invalid (%d errors)", len(structural.errors))
        return structural

    result = validate_business_rules(xml)
    if not result.valid:
        logger.info("ONIX business rules failed (%d errors)", len(result.errors))
    return result
