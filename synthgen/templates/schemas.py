"""
Synthetic data template schemas.

Pydantic models describing how to synthesize one kind of record:
- Generation rules (one per output field)
- Data constraints (temporal window, business and quality constraints)
- Quality parameters (targets the generated batch is scored against)
- Metadata configuration (what provenance the result carries)
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DataType(str, Enum):
    """Kinds of records a template can produce."""

    CONTENT = "content"
    SOCIAL_MEDIA = "social_media"
    CAMPAIGN = "campaign"
    ANALYTICS = "analytics"
    CUSTOMER = "customer"
    FINANCIAL = "financial"


class GenerationMethod(str, Enum):
    """How a rule computes its field."""

    STATISTICAL = "statistical"
    PATTERN_BASED = "pattern_based"
    ML_MODEL = "ml_model"
    LOOKUP_TABLE = "lookup_table"
    FORMULA = "formula"
    RANDOM_DISTRIBUTION = "random_distribution"


class DistributionKind(str, Enum):
    """Distributions available to statistical rules."""

    NORMAL = "normal"
    UNIFORM = "uniform"
    EXPONENTIAL = "exponential"
    POISSON = "poisson"
    CUSTOM = "custom"


class PatternKind(str, Enum):
    """Named generators for pattern-based rules."""

    BUSINESS_HOURS_WEIGHTED = "business_hours_weighted"
    SEASONAL_TREND = "seasonal_trend"
    CONTENT_TYPE_DEPENDENT = "content_type_dependent"


class ValidationRuleType(str, Enum):
    """Kinds of per-field validation."""

    RANGE = "range"
    PATTERN = "pattern"
    CORRELATION = "correlation"
    BUSINESS_LOGIC = "business_logic"


class Severity(str, Enum):
    """Validation error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Frequency(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    CYCLICAL = "cyclical"


# =============================================================================
# Generation Rules
# =============================================================================


class ValidationRule(BaseModel):
    """A check applied to a generated field.

    Range expressions are ``"min,max"``; pattern expressions are regular
    expressions searched in the stringified value; correlation and
    business-logic expressions name a policy.
    """

    model_config = ConfigDict(frozen=True)

    rule_type: ValidationRuleType
    rule_expression: str
    error_message: str = ""
    severity: Severity = Severity.MEDIUM

    @model_validator(mode="after")
    def _check_expression(self) -> ValidationRule:
        if self.rule_type == ValidationRuleType.RANGE:
            self.range_bounds()
        elif self.rule_type == ValidationRuleType.PATTERN:
            try:
                re.compile(self.rule_expression)
            except re.error as e:
                raise ValueError(f"Invalid pattern '{self.rule_expression}': {e}") from e
        return self

    def range_bounds(self) -> tuple[float, float]:
        """Parse a ``"min,max"`` range expression."""
        parts = [p.strip() for p in self.rule_expression.split(",")]
        if len(parts) != 2:
            raise ValueError(
                f"Range expression must be 'min,max', got '{self.rule_expression}'"
            )
        low, high = float(parts[0]), float(parts[1])
        if low > high:
            raise ValueError(f"Range minimum {low} is greater than maximum {high}")
        return low, high


class RuleParameters(BaseModel):
    """Method-specific parameters of a generation rule."""

    model_config = ConfigDict(frozen=True)

    distribution: DistributionKind | None = None
    mean: float | None = None
    std_dev: float | None = Field(None, ge=0)
    min: float | None = None
    max: float | None = None
    pattern: PatternKind | None = None
    lookup_source: str | None = None
    weights: dict[str, float] | None = None
    formula: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    multipliers: dict[str, float] | None = None
    """Category -> multiplier map for the content_type_dependent pattern."""


class GenerationRule(BaseModel):
    """The recipe for computing one field of a record."""

    model_config = ConfigDict(frozen=True)

    rule_id: str | None = None
    field_name: str = Field(..., min_length=1)
    generation_method: GenerationMethod
    parameters: RuleParameters = Field(default_factory=RuleParameters)
    validation_rules: list[ValidationRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_parameters(self) -> GenerationRule:
        params = self.parameters
        method = self.generation_method

        if params.min is not None and params.max is not None and params.min > params.max:
            raise ValueError(
                f"{self.field_name}: min {params.min} is greater than max {params.max}"
            )

        if method == GenerationMethod.STATISTICAL:
            dist = params.distribution or DistributionKind.CUSTOM
            if dist == DistributionKind.NORMAL:
                if params.mean is None or params.std_dev is None:
                    raise ValueError(f"{self.field_name}: normal distribution needs mean and std_dev")
            elif dist == DistributionKind.EXPONENTIAL:
                if params.mean is None or params.mean <= 0:
                    raise ValueError(f"{self.field_name}: exponential distribution needs a positive mean")
            elif dist == DistributionKind.POISSON:
                if params.mean is None or params.mean < 0:
                    raise ValueError(f"{self.field_name}: poisson distribution needs a non-negative mean")
            elif params.min is None or params.max is None:
                raise ValueError(f"{self.field_name}: {dist.value} distribution needs min and max")

        elif method == GenerationMethod.RANDOM_DISTRIBUTION:
            if params.min is None or params.max is None:
                raise ValueError(f"{self.field_name}: random_distribution needs min and max")

        elif method == GenerationMethod.LOOKUP_TABLE:
            if not params.lookup_source:
                raise ValueError(f"{self.field_name}: lookup_table needs lookup_source")

        elif method == GenerationMethod.FORMULA:
            if not params.formula:
                raise ValueError(f"{self.field_name}: formula rule needs a formula")

        elif method == GenerationMethod.PATTERN_BASED:
            if params.pattern is None:
                raise ValueError(f"{self.field_name}: pattern_based rule needs a pattern")

        return self

    @property
    def effective_rule_id(self) -> str:
        return self.rule_id or self.field_name


# =============================================================================
# Constraints
# =============================================================================


class TemporalConstraints(BaseModel):
    """The time window generated timestamps fall into."""

    model_config = ConfigDict(frozen=True)

    start_date: date = date(2023, 1, 1)
    end_date: date = Field(default_factory=date.today)
    frequency: Frequency = Frequency.DAILY
    seasonality: bool = False
    trend_direction: TrendDirection | None = None

    @model_validator(mode="after")
    def _check_window(self) -> TemporalConstraints:
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        return self


class RealisticRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float


class BusinessConstraints(BaseModel):
    """Business plausibility constraints."""

    model_config = ConfigDict(frozen=True)

    realistic_ranges: dict[str, RealisticRange] = Field(default_factory=dict)
    correlation_requirements: dict[str, list[str]] = Field(default_factory=dict)
    """Field -> fields it must correlate with."""

    mandatory_relationships: dict[str, str] = Field(default_factory=dict)
    """Field -> named policy, e.g. ``"must_be_less_than_impressions"``."""


class QualityConstraints(BaseModel):
    model_config = ConfigDict(frozen=True)

    completeness_target: float = Field(0.95, ge=0, le=1)
    consistency_requirements: list[str] = Field(default_factory=list)
    outlier_percentage: float = Field(0.05, ge=0, le=1)


class DataConstraints(BaseModel):
    """All constraints applied to a template's records."""

    model_config = ConfigDict(frozen=True)

    temporal_constraints: TemporalConstraints = Field(default_factory=TemporalConstraints)
    business_constraints: BusinessConstraints = Field(default_factory=BusinessConstraints)
    quality_constraints: QualityConstraints = Field(default_factory=QualityConstraints)


class QualityParameters(BaseModel):
    """Targets a generated batch is scored against."""

    model_config = ConfigDict(frozen=True)

    realism_score_target: float = Field(0.85, ge=0, le=1)
    diversity_index_target: float = Field(0.75, ge=0, le=1)
    correlation_preservation: float = Field(0.9, ge=0, le=1)
    noise_level: float = Field(0.1, ge=0, le=1)
    privacy_preservation: bool = True


class MetadataConfig(BaseModel):
    """Controls which provenance and markers a result carries."""

    model_config = ConfigDict(frozen=True)

    include_provenance: bool = True
    confidence_scoring: bool = True
    synthetic_markers: bool = True
    lineage_tracking: bool = True
    quality_metrics: bool = True


# =============================================================================
# Template
# =============================================================================


class SyntheticDataTemplate(BaseModel):
    """A reusable description of how to synthesize one kind of record."""

    model_config = ConfigDict(frozen=True)

    template_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=r"^[a-zA-Z0-9_-]+$",
        description="Unique template identifier",
    )
    template_name: str = ""
    data_type: DataType
    target_engines: list[str] = Field(default_factory=list)
    generation_rules: list[GenerationRule] = Field(..., min_length=1)
    constraints: DataConstraints = Field(default_factory=DataConstraints)
    quality_parameters: QualityParameters = Field(default_factory=QualityParameters)
    metadata_config: MetadataConfig = Field(default_factory=MetadataConfig)

    @model_validator(mode="after")
    def _check_unique_fields(self) -> SyntheticDataTemplate:
        seen: set[str] = set()
        for rule in self.generation_rules:
            if rule.field_name.startswith("_"):
                raise ValueError(
                    f"Field names starting with '_' are reserved for markers: {rule.field_name}"
                )
            if rule.field_name in seen:
                raise ValueError(f"Duplicate field_name in template: {rule.field_name}")
            seen.add(rule.field_name)
        return self

    @property
    def field_names(self) -> list[str]:
        return [rule.field_name for rule in self.generation_rules]

    def get_rule(self, field_name: str) -> GenerationRule | None:
        for rule in self.generation_rules:
            if rule.field_name == field_name:
                return rule
        return None
