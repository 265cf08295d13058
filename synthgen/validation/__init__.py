"""Validation package - per-record checks and business-logic policies."""

from synthgen.validation.policies import PolicyRegistry, COMPARISON_POLICIES
from synthgen.validation.validator import (
    FieldValidationError,
    RecordValidation,
    RecordValidator,
    merge_constraints,
    validate_record,
)

__all__ = [
    "PolicyRegistry",
    "COMPARISON_POLICIES",
    "FieldValidationError",
    "RecordValidation",
    "RecordValidator",
    "merge_constraints",
    "validate_record",
]
