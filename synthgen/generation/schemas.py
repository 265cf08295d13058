"""
Generation schemas.

Request options, the immutable GenerationResult and its metadata blocks,
and the generation history summary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from synthgen.engine.engine import GenerationFailure
from synthgen.quality.schemas import SyntheticQualityMetrics
from synthgen.validation.validator import FieldValidationError


# =============================================================================
# Request Models
# =============================================================================


class GenerationOptions(BaseModel):
    """Per-call generation options."""

    seed: int | None = Field(None, ge=0, description="Seed for reproducible output")
    custom_constraints: dict[str, Any] | None = Field(
        None,
        description="Partial constraint blocks merged over the template's constraints",
    )
    quality_overrides: dict[str, Any] | None = Field(
        None,
        description="Quality parameters replacing the template's values",
    )
    max_workers: int | None = Field(None, ge=1, le=64)
    deadline_seconds: float | None = Field(None, gt=0)


class GenerateRequest(GenerationOptions):
    """Request body for the generate endpoint."""

    record_count: int = Field(100, ge=0, le=100_000)


# =============================================================================
# Result Models
# =============================================================================


class ValidationResults(BaseModel):
    """Per-batch validation outcome."""

    model_config = ConfigDict(frozen=True)

    attempted_records: int = 0
    passed_validations: int = 0
    failed_validations: int = 0
    """Number of rejected records."""

    validation_errors: list[FieldValidationError] = Field(default_factory=list)
    generation_errors: list[GenerationFailure] = Field(default_factory=list)
    overall_validity: float = 1.0


class DataProvenance(BaseModel):
    model_config = ConfigDict(frozen=True)

    generation_method: str = "template_based_synthetic"
    source_templates: list[str] = Field(default_factory=list)
    generation_timestamp: str
    generator_version: str


class QualityIndicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    confidence_scores: dict[str, float] = Field(default_factory=dict)
    """Field -> share of attempted records whose value needed no fallback."""

    uncertainty_measures: dict[str, float] = Field(default_factory=dict)
    """Field -> coefficient of variation (numeric) or normalised entropy (categorical)."""

    synthetic_markers: dict[str, Any] = Field(default_factory=dict)


class DataLineage(BaseModel):
    model_config = ConfigDict(frozen=True)

    parent_datasets: list[str] = Field(default_factory=list)
    transformation_applied: list[str] = Field(default_factory=list)
    generation_parameters: dict[str, Any] = Field(default_factory=dict)


class SyntheticDataMetadata(BaseModel):
    """Provenance, quality indicators and lineage of a batch."""

    model_config = ConfigDict(frozen=True)

    data_provenance: DataProvenance | None = None
    quality_indicators: QualityIndicators | None = None
    lineage: DataLineage | None = None


class GenerationResult(BaseModel):
    """The output of one generate call."""

    model_config = ConfigDict(frozen=True)

    generation_id: str
    template_used: str
    generated_records: int
    generation_timestamp: str
    quality_metrics: SyntheticQualityMetrics | None = None
    data: list[dict[str, Any]] = Field(default_factory=list)
    metadata: SyntheticDataMetadata = Field(default_factory=SyntheticDataMetadata)
    validation_results: ValidationResults = Field(default_factory=ValidationResults)
    deadline_exceeded: bool = False
    seed: int | None = None


# =============================================================================
# History
# =============================================================================


class GenerationHistoryEntry(BaseModel):
    generation_id: str
    template_used: str
    generated_records: int
    generation_timestamp: str
    realism_score: float | None = None


class GenerationSummary(BaseModel):
    """Summary of recent generate calls."""

    total_generations: int = 0
    total_records_generated: int = 0
    average_realism_score: float = 0.0
    templates_used: list[str] = Field(default_factory=list)
    recent_generations: list[GenerationHistoryEntry] = Field(default_factory=list)
