"""
Batch quality scoring.

Every score is computed from the accepted records:
- realism: share of bounded values inside their realistic range
- diversity: normalised entropy (categorical) or distinct ratio (numeric)
- correlation preservation: |Pearson r| or correlation ratio eta per
  required pair
- business-logic compliance: share of decided mandatory-relationship checks
  that hold
- statistical similarity: sample mean against the declared distribution's
  bounded expectation, scaled by its spread
- privacy: 1.0 when privacy preservation is requested
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Mapping, Sequence

import numpy as np

from synthgen.sampling import expected_moments
from synthgen.templates.schemas import (
    DataConstraints,
    DistributionKind,
    GenerationMethod,
    QualityParameters,
    SyntheticDataTemplate,
)
from synthgen.validation.policies import PolicyRegistry
from .schemas import SyntheticQualityMetrics

Record = Mapping[str, Any]


def is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool)


def normalized_entropy(values: Sequence[Any]) -> float:
    """Shannon entropy of the value frequencies divided by log(distinct)."""
    counts = np.asarray(list(Counter(values).values()), dtype=float)
    if len(counts) < 2:
        return 0.0
    p = counts / counts.sum()
    return float(-(p * np.log(p)).sum() / math.log(len(counts)))


def pearson_abs(x: Sequence[float], y: Sequence[float]) -> float:
    """|Pearson r| over the finite pairs; 0.0 when either side is constant or too short."""
    a = np.asarray(x, dtype=float)
    b = np.asarray(y, dtype=float)
    finite = np.isfinite(a) & np.isfinite(b)
    a, b = a[finite], b[finite]
    if len(a) < 2:
        return 0.0
    if a.std() == 0 or b.std() == 0:
        return 0.0
    r = float(abs(np.corrcoef(a, b)[0, 1]))
    return 0.0 if math.isnan(r) else r


def correlation_ratio(categories: Sequence[Any], values: Sequence[float]) -> float:
    """Correlation ratio eta of a numeric variable over categories.

    Non-finite values are dropped together with their categories.
    """
    y = np.asarray(values, dtype=float)
    finite = np.isfinite(y)
    categories = [c for c, keep in zip(categories, finite) if keep]
    y = y[finite]
    if len(y) < 2:
        return 0.0
    total = ((y - y.mean()) ** 2).sum()
    if total == 0:
        return 0.0

    groups: dict[Any, list[float]] = {}
    for category, value in zip(categories, y):
        groups.setdefault(category, []).append(value)
    between = sum(len(g) * (np.mean(g) - y.mean()) ** 2 for g in groups.values())
    return float(math.sqrt(between / total))


class QualityAssessor:
    """Scores an accepted batch against its template."""

    def __init__(self, policies: PolicyRegistry | None = None):
        self.policies = policies or PolicyRegistry()

    def score(
        self,
        records: Sequence[Record],
        template: SyntheticDataTemplate,
        quality_params: QualityParameters | None = None,
        constraints: DataConstraints | None = None,
    ) -> SyntheticQualityMetrics:
        """Compute quality metrics for the accepted records.

        Args:
            records: Accepted records.
            template: Template the records were generated from.
            quality_params: Effective quality parameters (template's by default).
            constraints: Effective constraints (template's by default).

        Returns:
            SyntheticQualityMetrics; all scores are 0.0 for an empty batch.
        """
        quality_params = quality_params or template.quality_parameters
        constraints = constraints or template.constraints

        if not records:
            return SyntheticQualityMetrics(
                targets_met=self._targets_met(SyntheticQualityMetrics(), quality_params)
            )

        metrics = SyntheticQualityMetrics(
            realism_score=self.realism(records, template, constraints),
            diversity_index=self.diversity(records, template),
            correlation_preservation_score=self.correlation(records, constraints),
            business_logic_compliance=self.business_logic(records, constraints),
            statistical_similarity=self.statistical_similarity(records, template),
            privacy_preservation_score=1.0 if quality_params.privacy_preservation else 0.0,
            sample_size=len(records),
        )
        return metrics.model_copy(
            update={"targets_met": self._targets_met(metrics, quality_params)}
        )

    def realism(
        self,
        records: Sequence[Record],
        template: SyntheticDataTemplate,
        constraints: DataConstraints,
    ) -> float:
        """Share of bounded numeric values inside their realistic range.

        Business ``realistic_ranges`` take precedence over rule bounds.
        """
        bounds: dict[str, tuple[float, float]] = {}
        for rule in template.generation_rules:
            params = rule.parameters
            if params.min is not None and params.max is not None:
                bounds[rule.field_name] = (params.min, params.max)
        for field, realistic in constraints.business_constraints.realistic_ranges.items():
            bounds[field] = (realistic.min, realistic.max)

        inside = checked = 0
        for field, (low, high) in bounds.items():
            values = _numeric_values(records, field, finite_only=False)
            if not values:
                continue
            arr = np.asarray(values, dtype=float)
            inside += int(((arr >= low) & (arr <= high)).sum())
            checked += len(arr)

        return _round(inside / checked) if checked else 1.0

    def diversity(self, records: Sequence[Record], template: SyntheticDataTemplate) -> float:
        scores = []
        for field in template.field_names:
            values = [r[field] for r in records if r.get(field) is not None]
            if not values:
                continue
            if all(is_numeric(v) for v in values):
                scores.append(len(set(values)) / len(values))
            else:
                scores.append(normalized_entropy([str(v) for v in values]))
        return _round(float(np.mean(scores))) if scores else 0.0

    def correlation(self, records: Sequence[Record], constraints: DataConstraints) -> float:
        """Mean association strength over the required field pairs."""
        scores = []
        requirements = constraints.business_constraints.correlation_requirements
        for field, others in requirements.items():
            for other in others:
                strength = self._pair_strength(records, field, other)
                if strength is not None:
                    scores.append(strength)
        return _round(float(np.mean(scores))) if scores else 1.0

    def _pair_strength(self, records: Sequence[Record], a: str, b: str) -> float | None:
        pairs = [
            (r[a], r[b])
            for r in records
            if r.get(a) is not None and r.get(b) is not None
        ]
        if len(pairs) < 2:
            return None

        left = [p[0] for p in pairs]
        right = [p[1] for p in pairs]
        left_numeric = all(is_numeric(v) for v in left)
        right_numeric = all(is_numeric(v) for v in right)

        if left_numeric and right_numeric:
            return pearson_abs(left, right)
        if left_numeric:
            return correlation_ratio(right, left)
        if right_numeric:
            return correlation_ratio(left, right)
        # categorical pairs have no score here
        return None

    def business_logic(self, records: Sequence[Record], constraints: DataConstraints) -> float:
        relationships = constraints.business_constraints.mandatory_relationships
        passed = decided = 0
        for record in records:
            for field, policy in relationships.items():
                result = self.policies.evaluate(policy, field, record)
                if result is None:
                    continue
                decided += 1
                passed += int(result)
        return _round(passed / decided) if decided else 1.0

    def statistical_similarity(
        self,
        records: Sequence[Record],
        template: SyntheticDataTemplate,
    ) -> float:
        """Closeness of sample means to the declared distributions' expectations."""
        scores = []
        for rule in template.generation_rules:
            params = rule.parameters
            if rule.generation_method == GenerationMethod.STATISTICAL:
                distribution = (params.distribution or DistributionKind.CUSTOM).value
            elif rule.generation_method == GenerationMethod.RANDOM_DISTRIBUTION:
                distribution = DistributionKind.UNIFORM.value
            else:
                continue

            moments = expected_moments(
                distribution, params.mean, params.std_dev, params.min, params.max
            )
            values = _numeric_values(records, rule.field_name)
            if moments is None or not values:
                continue

            expected, spread = moments
            deviation = abs(float(np.mean(values)) - expected)
            if spread > 0:
                scores.append(max(0.0, 1.0 - deviation / spread))
            else:
                scores.append(1.0 if deviation == 0 else 0.0)

        return _round(float(np.mean(scores))) if scores else 1.0

    def _targets_met(
        self,
        metrics: SyntheticQualityMetrics,
        quality_params: QualityParameters,
    ) -> dict[str, bool]:
        return {
            "realism": metrics.realism_score >= quality_params.realism_score_target,
            "diversity": metrics.diversity_index >= quality_params.diversity_index_target,
            "correlation": metrics.correlation_preservation_score
            >= quality_params.correlation_preservation,
            "privacy": metrics.privacy_preservation_score
            >= (1.0 if quality_params.privacy_preservation else 0.0),
        }


def _numeric_values(
    records: Sequence[Record],
    field: str,
    finite_only: bool = True,
) -> list[float]:
    values = [float(r[field]) for r in records if is_numeric(r.get(field))]
    if finite_only:
        values = [v for v in values if math.isfinite(v)]
    return values


def _round(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return round(min(max(value, 0.0), 1.0), 4)
