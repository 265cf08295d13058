"""Per-record validation against a template's validation rules."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, Field

from synthgen.core.exceptions import ValidationFailure
from synthgen.templates.schemas import (
    DataConstraints,
    GenerationRule,
    Severity,
    ValidationRule,
    ValidationRuleType,
)
from .policies import PolicyRegistry

CONSTRAINT_BLOCKS = ("temporal_constraints", "business_constraints", "quality_constraints")


class FieldValidationError(BaseModel):
    """One failed validation rule on one record."""

    field: str
    rule_type: str
    error_message: str
    affected_records: int = 1
    severity: Severity = Severity.MEDIUM
    record_index: int | None = None


class RecordValidation(BaseModel):
    """Validation outcome for a single record."""

    record_index: int | None = None
    errors: list[FieldValidationError] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise ValidationFailure if any rule failed."""
        if self.errors:
            raise ValidationFailure(self.record_index, self.errors)


def merge_constraints(
    base: DataConstraints,
    overrides: Mapping[str, Any] | DataConstraints | None = None,
) -> DataConstraints:
    """Apply caller overrides on top of a template's constraints.

    Each of the three constraint blocks is merged shallowly: keys given in
    the override replace the template's keys, everything else is kept.
    """
    if not overrides:
        return base
    if isinstance(overrides, DataConstraints):
        overrides = overrides.model_dump(exclude_unset=True)

    unknown = set(overrides) - set(CONSTRAINT_BLOCKS)
    if unknown:
        raise ValueError(f"Unknown constraint blocks: {', '.join(sorted(unknown))}")

    merged: dict[str, Any] = {}
    for block in CONSTRAINT_BLOCKS:
        current = getattr(base, block).model_dump()
        update = overrides.get(block)
        if update:
            if isinstance(update, BaseModel):
                update = update.model_dump(exclude_unset=True)
            current = {**current, **update}
        merged[block] = current

    return DataConstraints.model_validate(merged)


class RecordValidator:
    """Checks generated records against their rules' validation rules."""

    def __init__(self, policies: PolicyRegistry | None = None):
        self.policies = policies or PolicyRegistry()

    def validate(
        self,
        record: Mapping[str, Any],
        rules: Iterable[GenerationRule],
        record_index: int | None = None,
    ) -> RecordValidation:
        """Run every validation rule of every generation rule."""
        errors: list[FieldValidationError] = []
        for rule in rules:
            for check in rule.validation_rules:
                if not self.check(rule.field_name, check, record):
                    errors.append(
                        FieldValidationError(
                            field=rule.field_name,
                            rule_type=check.rule_type.value,
                            error_message=check.error_message
                            or _default_message(rule.field_name, check),
                            severity=check.severity,
                            record_index=record_index,
                        )
                    )
        return RecordValidation(record_index=record_index, errors=errors)

    def check(self, field: str, rule: ValidationRule, record: Mapping[str, Any]) -> bool:
        """Return True when ``record[field]`` satisfies the rule."""
        if rule.rule_type == ValidationRuleType.RANGE:
            if record.get(field) is None:
                return False
            try:
                value = float(record[field])
            except (TypeError, ValueError):
                return False
            low, high = rule.range_bounds()
            return low <= value <= high

        if rule.rule_type == ValidationRuleType.PATTERN:
            if record.get(field) is None:
                return False
            return re.search(rule.rule_expression, str(record[field])) is not None

        if rule.rule_type == ValidationRuleType.BUSINESS_LOGIC:
            return self.policies.evaluate(rule.rule_expression, field, record) is not False

        # Correlation is a batch property; scored by the quality assessor
        return True


def _default_message(field: str, rule: ValidationRule) -> str:
    return f"{field} failed {rule.rule_type.value} check '{rule.rule_expression}'"


def validate_record(
    record: Mapping[str, Any],
    rules: Iterable[GenerationRule],
    record_index: int | None = None,
    policies: PolicyRegistry | None = None,
) -> RecordValidation:
    """Convenience function to validate one record."""
    return RecordValidator(policies).validate(record, rules, record_index)
