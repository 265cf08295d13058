"""Quality package - batch scoring of generated records."""

from synthgen.quality.schemas import SyntheticQualityMetrics
from synthgen.quality.assessor import (
    QualityAssessor,
    normalized_entropy,
    pearson_abs,
    correlation_ratio,
)

__all__ = [
    "SyntheticQualityMetrics",
    "QualityAssessor",
    "normalized_entropy",
    "pearson_abs",
    "correlation_ratio",
]
