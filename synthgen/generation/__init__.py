"""
Generation domain - batch orchestration and its HTTP glue.

Provides:
- GenerationOrchestrator: generate batches from registered templates
- Result, metadata and summary schemas
- FastAPI router mounted under /synthetic
"""

from .schemas import (
    GenerationOptions,
    GenerateRequest,
    ValidationResults,
    DataProvenance,
    QualityIndicators,
    DataLineage,
    SyntheticDataMetadata,
    GenerationResult,
    GenerationHistoryEntry,
    GenerationSummary,
)
from .service import GenerationOrchestrator, RecordAttempt
from .router import router

__all__ = [
    # Schemas
    "GenerationOptions",
    "GenerateRequest",
    "ValidationResults",
    "DataProvenance",
    "QualityIndicators",
    "DataLineage",
    "SyntheticDataMetadata",
    "GenerationResult",
    "GenerationHistoryEntry",
    "GenerationSummary",
    # Service
    "GenerationOrchestrator",
    "RecordAttempt",
    # Router
    "router",
]
