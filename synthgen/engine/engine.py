"""Rule engine: builds one record from a compiled template plan."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np
from pydantic import BaseModel, Field

from synthgen.core.config import Settings, get_settings
from synthgen.core.exceptions import FieldGenerationError
from synthgen.formula import evaluate_formula
from synthgen.lookup import LookupRegistry
from synthgen.sampling import (
    sample_exponential,
    sample_normal,
    sample_poisson,
    sample_uniform,
    uniform_choice,
    weighted_choice,
)
from synthgen.templates.schemas import (
    DataConstraints,
    DistributionKind,
    GenerationMethod,
    PatternKind,
)
from .models import ModelBackend, PlaceholderModel
from .patterns import business_hours_timestamp, category_multiplier, seasonal_trend

if TYPE_CHECKING:
    from synthgen.templates.compiler import CompiledRule, TemplatePlan

logger = logging.getLogger(__name__)


class GenerationFailure(BaseModel):
    """A field that could not be generated and what was used instead."""

    field: str
    rule_id: str
    error_type: str
    message: str
    record_index: int | None = None
    fallback_used: bool = False
    """True when the rule's ``min`` was written; False when the field was omitted."""


class RecordOutcome(BaseModel):
    """A generated record plus the field failures met while building it."""

    record: dict[str, Any] = Field(default_factory=dict)
    failures: list[GenerationFailure] = Field(default_factory=list)

    @property
    def failed_fields(self) -> set[str]:
        return {f.field for f in self.failures}


class RuleEngine:
    """Evaluates a template's rules, in plan order, into a record.

    Every random draw comes from the ``rng`` passed in, so a record is a
    pure function of (plan, constraints, lookup tables, rng seed).
    """

    def __init__(
        self,
        lookups: LookupRegistry | None = None,
        model: ModelBackend | None = None,
        settings: Settings | None = None,
    ):
        self.lookups = lookups or LookupRegistry.with_builtins()
        self.model = model or PlaceholderModel()
        self.settings = settings or get_settings()

    def generate_record(
        self,
        plan: TemplatePlan,
        constraints: DataConstraints,
        rng: np.random.Generator,
        record_index: int | None = None,
    ) -> RecordOutcome:
        """Generate one record.

        Field failures never abort the record: the field falls back to the
        rule's ``min`` when one is declared and is omitted otherwise.
        """
        outcome = RecordOutcome()

        for compiled in plan.rules:
            rule = compiled.rule
            try:
                outcome.record[rule.field_name] = self.generate_field(
                    compiled, outcome.record, constraints, rng
                )
            except Exception as e:
                fallback = rule.parameters.min
                if fallback is not None:
                    outcome.record[rule.field_name] = fallback
                logger.warning(
                    "Failed to generate %s for %s (record %s): %s",
                    rule.field_name,
                    plan.template_id,
                    record_index,
                    e,
                )
                outcome.failures.append(
                    GenerationFailure(
                        field=rule.field_name,
                        rule_id=rule.effective_rule_id,
                        error_type=type(e).__name__,
                        message=str(e),
                        record_index=record_index,
                        fallback_used=fallback is not None,
                    )
                )

        return outcome

    def generate_field(
        self,
        compiled: CompiledRule,
        record: dict[str, Any],
        constraints: DataConstraints,
        rng: np.random.Generator,
    ) -> Any:
        """Generate a single field value.

        Raises:
            FieldGenerationError: If the rule cannot produce a value.
        """
        rule = compiled.rule
        method = rule.generation_method

        if method == GenerationMethod.STATISTICAL:
            return self._statistical(compiled, rng)
        if method == GenerationMethod.RANDOM_DISTRIBUTION:
            params = rule.parameters
            return sample_uniform(rng, params.min, params.max)
        if method == GenerationMethod.LOOKUP_TABLE:
            return self._lookup(compiled, rng)
        if method == GenerationMethod.FORMULA:
            return self._formula(compiled, record, rng)
        if method == GenerationMethod.PATTERN_BASED:
            return self._pattern(compiled, record, constraints, rng)
        if method == GenerationMethod.ML_MODEL:
            return self.model.predict(rule, record, rng)

        raise FieldGenerationError(f"Unsupported generation method: {method}")

    def _statistical(self, compiled: CompiledRule, rng: np.random.Generator) -> float | int:
        params = compiled.rule.parameters
        distribution = params.distribution or DistributionKind.CUSTOM

        if distribution == DistributionKind.NORMAL:
            return sample_normal(
                rng,
                params.mean,
                params.std_dev,
                params.min,
                params.max,
                max_attempts=self.settings.max_rejection_attempts,
            )
        if distribution == DistributionKind.EXPONENTIAL:
            return sample_exponential(rng, params.mean, params.min, params.max)
        if distribution == DistributionKind.POISSON:
            return sample_poisson(
                rng,
                params.mean,
                params.min,
                params.max,
                max_iterations=self.settings.max_poisson_iterations,
            )
        # uniform and custom
        return sample_uniform(rng, params.min, params.max)

    def _lookup(self, compiled: CompiledRule, rng: np.random.Generator) -> Any:
        params = compiled.rule.parameters
        table = self.lookups.get(params.lookup_source)
        if params.weights:
            return weighted_choice(rng, params.weights)
        return uniform_choice(rng, table)

    def _formula(
        self,
        compiled: CompiledRule,
        record: dict[str, Any],
        rng: np.random.Generator,
    ) -> Any:
        return evaluate_formula(compiled.formula, record, rng)

    def _pattern(
        self,
        compiled: CompiledRule,
        record: dict[str, Any],
        constraints: DataConstraints,
        rng: np.random.Generator,
    ) -> Any:
        params = compiled.rule.parameters
        temporal = constraints.temporal_constraints

        if params.pattern == PatternKind.BUSINESS_HOURS_WEIGHTED:
            return business_hours_timestamp(rng, temporal)
        if params.pattern == PatternKind.SEASONAL_TREND:
            return seasonal_trend(rng, temporal, record, params.dependencies)
        if params.pattern == PatternKind.CONTENT_TYPE_DEPENDENT:
            return category_multiplier(record, params.dependencies, params.multipliers)

        raise FieldGenerationError(f"Unknown pattern: {params.pattern}")
