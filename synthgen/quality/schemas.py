"""Quality metric schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyntheticQualityMetrics(BaseModel):
    """Quality scores of an accepted batch, each in [0, 1]."""

    realism_score: float = Field(0.0, ge=0, le=1)
    diversity_index: float = Field(0.0, ge=0, le=1)
    correlation_preservation_score: float = Field(0.0, ge=0, le=1)
    business_logic_compliance: float = Field(0.0, ge=0, le=1)
    statistical_similarity: float = Field(0.0, ge=0, le=1)
    privacy_preservation_score: float = Field(0.0, ge=0, le=1)
    targets_met: dict[str, bool] = Field(default_factory=dict)
    sample_size: int = 0
