"""
Generation orchestrator.

Drives a generate call end to end: resolves the template, derives one
random stream per record from the seed, builds and validates records
(optionally on a thread pool), scores the accepted batch and packages the
result with its metadata. Keeps a short history of results.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import Counter, deque
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

import numpy as np
from pydantic import BaseModel, Field

from synthgen.core.config import Settings, get_settings
from synthgen.core.exceptions import ValidationFailure
from synthgen.engine import GenerationFailure, ModelBackend, RuleEngine
from synthgen.lookup import LookupRegistry
from synthgen.quality import QualityAssessor, normalized_entropy
from synthgen.quality.assessor import is_numeric
from synthgen.templates import (
    DataConstraints,
    QualityParameters,
    SyntheticDataTemplate,
    TemplateCompiler,
    TemplatePlan,
    TemplateRegistry,
)
from synthgen.templates.schemas import Severity
from synthgen.validation import (
    FieldValidationError,
    PolicyRegistry,
    RecordValidator,
    merge_constraints,
)
from .schemas import (
    DataLineage,
    DataProvenance,
    GenerationHistoryEntry,
    GenerationOptions,
    GenerationResult,
    GenerationSummary,
    QualityIndicators,
    SyntheticDataMetadata,
    ValidationResults,
)

logger = logging.getLogger(__name__)

TRANSFORMATIONS = [
    "dependency_ordering",
    "rule_based_generation",
    "record_validation",
]


class RecordAttempt(BaseModel):
    """Outcome of one attempted record."""

    index: int
    record: dict[str, Any] = Field(default_factory=dict)
    accepted: bool = False
    validation_errors: list[FieldValidationError] = Field(default_factory=list)
    failures: list[GenerationFailure] = Field(default_factory=list)


class GenerationOrchestrator:
    """Generates synthetic record batches from registered templates."""

    def __init__(
        self,
        templates: TemplateRegistry | None = None,
        lookups: LookupRegistry | None = None,
        settings: Settings | None = None,
        model: ModelBackend | None = None,
        policies: PolicyRegistry | None = None,
    ):
        self.settings = settings or get_settings()
        self.templates = templates or TemplateRegistry(
            TemplateCompiler(strict_dependencies=self.settings.strict_dependencies)
        )
        self.lookups = lookups or LookupRegistry.with_builtins()
        self.policies = policies or PolicyRegistry()
        self.engine = RuleEngine(self.lookups, model=model, settings=self.settings)
        self.validator = RecordValidator(self.policies)
        self.assessor = QualityAssessor(self.policies)
        self._history: deque[GenerationResult] = deque(maxlen=self.settings.history_size)
        self._totals = Counter()
        self._history_lock = threading.Lock()

    @classmethod
    def with_builtins(cls, **kwargs: Any) -> GenerationOrchestrator:
        """Orchestrator with the built-in lookup tables and templates."""
        settings = kwargs.pop("settings", None) or get_settings()
        templates = kwargs.pop("templates", None) or TemplateRegistry.with_builtins(
            TemplateCompiler(strict_dependencies=settings.strict_dependencies)
        )
        return cls(templates=templates, settings=settings, **kwargs)

    def register_template(self, template: SyntheticDataTemplate | dict) -> TemplatePlan:
        """Validate, compile and register a template."""
        return self.templates.register(template)

    def register_lookup_table(self, name: str, values: list) -> None:
        self.lookups.register(name, values)

    # =========================================================================
    # Generation
    # =========================================================================

    def generate(
        self,
        template_id: str,
        record_count: int,
        options: GenerationOptions | dict | None = None,
    ) -> GenerationResult:
        """Generate a batch of records.

        Args:
            template_id: Registered template id.
            record_count: Number of records to attempt.
            options: Seed, constraint and quality overrides, worker count
                and deadline.

        Returns:
            GenerationResult with the accepted records, quality metrics,
            metadata and validation results.

        Raises:
            TemplateNotFound: If the template is not registered.
            ValueError: If record_count is negative.
        """
        if isinstance(options, dict):
            options = GenerationOptions.model_validate(options)
        options = options or GenerationOptions()

        template = self.templates.get(template_id)
        plan = self.templates.get_plan(template_id)
        if record_count < 0:
            raise ValueError(f"record_count must be non-negative, got {record_count}")

        seed = options.seed if options.seed is not None else int(np.random.SeedSequence().entropy)
        streams = np.random.SeedSequence(seed).spawn(record_count)
        constraints = merge_constraints(template.constraints, options.custom_constraints)
        quality_params = template.quality_parameters
        if options.quality_overrides:
            quality_params = QualityParameters.model_validate(
                {**quality_params.model_dump(), **options.quality_overrides}
            )

        deadline = (
            time.monotonic() + options.deadline_seconds
            if options.deadline_seconds
            else None
        )
        max_workers = options.max_workers or self.settings.default_max_workers

        def attempt(index: int) -> RecordAttempt | None:
            if deadline is not None and time.monotonic() > deadline:
                return None
            rng = np.random.default_rng(streams[index])
            return self._attempt_record(template, plan, constraints, rng, index)

        if max_workers > 1 and record_count > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                attempts = list(pool.map(attempt, range(record_count)))
        else:
            attempts = []
            for index in range(record_count):
                made = attempt(index)
                if made is None:
                    break
                attempts.append(made)

        completed = [a for a in attempts if a is not None]
        deadline_exceeded = len(completed) < record_count
        if deadline_exceeded:
            logger.warning(
                "Deadline reached for %s: attempted %d of %d records",
                template_id,
                len(completed),
                record_count,
            )

        result = self._build_result(
            template, plan, constraints, quality_params, completed, seed, deadline_exceeded
        )
        self._record_history(result)
        logger.info(
            "Generated %d/%d records for %s (validity %.2f)",
            result.generated_records,
            len(completed),
            template_id,
            result.validation_results.overall_validity,
        )
        return result

    def _attempt_record(
        self,
        template: SyntheticDataTemplate,
        plan: TemplatePlan,
        constraints: DataConstraints,
        rng: np.random.Generator,
        index: int,
    ) -> RecordAttempt:
        """Build and validate one record.

        Field errors are absorbed by the engine. A failed validation rule, or
        an error raised while validating (e.g. by a custom policy), rejects
        the record.
        """
        outcome = self.engine.generate_record(plan, constraints, rng, record_index=index)
        try:
            self.validator.validate(
                outcome.record, template.generation_rules, record_index=index
            ).raise_for_errors()
        except ValidationFailure as failure:
            return RecordAttempt(
                index=index,
                record=outcome.record,
                validation_errors=failure.errors,
                failures=outcome.failures,
            )
        except Exception as e:
            logger.warning("Record %d of %s failed: %s", index, template.template_id, e)
            return RecordAttempt(
                index=index,
                validation_errors=[
                    FieldValidationError(
                        field="record_validation",
                        rule_type="validation_error",
                        error_message=f"{type(e).__name__}: {e}",
                        severity=Severity.HIGH,
                        record_index=index,
                    )
                ],
                failures=outcome.failures,
            )

        record = outcome.record
        config = template.metadata_config
        if config.synthetic_markers:
            record["_synthetic"] = True
            record["_template_id"] = template.template_id
            record["_record_index"] = index
        if config.confidence_scoring:
            rule_count = len(plan.rules)
            record["_confidence_score"] = round(
                1.0 - len(outcome.failed_fields) / rule_count, 4
            )

        return RecordAttempt(
            index=index,
            record=record,
            accepted=True,
            failures=outcome.failures,
        )

    # =========================================================================
    # Result assembly
    # =========================================================================

    def _build_result(
        self,
        template: SyntheticDataTemplate,
        plan: TemplatePlan,
        constraints: DataConstraints,
        quality_params: QualityParameters,
        attempts: list[RecordAttempt],
        seed: int,
        deadline_exceeded: bool,
    ) -> GenerationResult:
        timestamp = datetime.now(timezone.utc).isoformat()
        accepted = [a.record for a in attempts if a.accepted]
        rejected = len(attempts) - len(accepted)
        config = template.metadata_config

        validation_results = ValidationResults(
            attempted_records=len(attempts),
            passed_validations=len(accepted),
            failed_validations=rejected,
            validation_errors=[e for a in attempts for e in a.validation_errors],
            generation_errors=[f for a in attempts for f in a.failures],
            overall_validity=round(len(accepted) / len(attempts), 4) if attempts else 1.0,
        )

        quality_metrics = None
        if config.quality_metrics:
            quality_metrics = self.assessor.score(accepted, template, quality_params, constraints)

        metadata = SyntheticDataMetadata(
            data_provenance=DataProvenance(
                source_templates=[template.template_id],
                generation_timestamp=timestamp,
                generator_version=self.settings.generator_version,
            )
            if config.include_provenance
            else None,
            quality_indicators=self._quality_indicators(template, attempts, accepted),
            lineage=DataLineage(
                parent_datasets=[],
                transformation_applied=TRANSFORMATIONS
                + (["quality_scoring"] if config.quality_metrics else []),
                generation_parameters={
                    "seed": seed,
                    "record_count": len(attempts),
                    "rule_order": plan.field_order,
                    "cyclic_fields": list(plan.cyclic_fields),
                    "constraints": constraints.model_dump(mode="json"),
                    "quality_parameters": quality_params.model_dump(mode="json"),
                },
            )
            if config.lineage_tracking
            else None,
        )

        return GenerationResult(
            generation_id=f"gen_{uuid.uuid4().hex[:12]}",
            template_used=template.template_id,
            generated_records=len(accepted),
            generation_timestamp=timestamp,
            quality_metrics=quality_metrics,
            data=accepted,
            metadata=metadata,
            validation_results=validation_results,
            deadline_exceeded=deadline_exceeded,
            seed=seed,
        )

    def _quality_indicators(
        self,
        template: SyntheticDataTemplate,
        attempts: list[RecordAttempt],
        accepted: list[dict[str, Any]],
    ) -> QualityIndicators:
        failed = Counter(f.field for a in attempts for f in a.failures)
        confidence: dict[str, float] = {}
        uncertainty: dict[str, float] = {}

        for field in template.field_names:
            if attempts:
                confidence[field] = round(1.0 - failed[field] / len(attempts), 4)

            values = [r[field] for r in accepted if r.get(field) is not None]
            if not values:
                continue
            if all(is_numeric(v) for v in values):
                arr = np.asarray(values, dtype=float)
                arr = arr[np.isfinite(arr)]
                if not len(arr):
                    continue
                mean = float(arr.mean())
                std = float(arr.std())
                uncertainty[field] = round(std / abs(mean), 4) if mean else round(std, 4)
            else:
                uncertainty[field] = round(normalized_entropy([str(v) for v in values]), 4)

        return QualityIndicators(
            confidence_scores=confidence,
            uncertainty_measures=uncertainty,
            synthetic_markers={
                "is_synthetic": True,
                "template_id": template.template_id,
                "marked_records": template.metadata_config.synthetic_markers,
            },
        )

    # =========================================================================
    # History
    # =========================================================================

    def _record_history(self, result: GenerationResult) -> None:
        with self._history_lock:
            self._history.append(result)
            self._totals["generations"] += 1
            self._totals["records"] += result.generated_records

    def get_generation_summary(self) -> GenerationSummary:
        """Summarise the retained generation history."""
        with self._history_lock:
            history = list(self._history)
            totals = dict(self._totals)
        realism = [
            r.quality_metrics.realism_score for r in history if r.quality_metrics is not None
        ]
        return GenerationSummary(
            total_generations=totals.get("generations", 0),
            total_records_generated=totals.get("records", 0),
            average_realism_score=round(float(np.mean(realism)), 4) if realism else 0.0,
            templates_used=sorted({r.template_used for r in history}),
            recent_generations=[
                GenerationHistoryEntry(
                    generation_id=r.generation_id,
                    template_used=r.template_used,
                    generated_records=r.generated_records,
                    generation_timestamp=r.generation_timestamp,
                    realism_score=r.quality_metrics.realism_score
                    if r.quality_metrics
                    else None,
                )
                for r in reversed(history)
            ],
        )
