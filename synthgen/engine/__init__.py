"""
Rule engine package.

Dependency ordering, pattern generators, model backends and the per-record
rule engine.
"""

# ordering first: the template compiler imports it
from synthgen.engine.ordering import RuleOrdering, order_rules
from synthgen.engine.patterns import (
    business_hours_timestamp,
    seasonal_multiplier,
    seasonal_trend,
    category_multiplier,
    DEFAULT_CATEGORY_MULTIPLIERS,
)
from synthgen.engine.models import ModelBackend, PlaceholderModel
from synthgen.engine.engine import RuleEngine, RecordOutcome, GenerationFailure

__all__ = [
    # Ordering
    "RuleOrdering",
    "order_rules",
    # Patterns
    "business_hours_timestamp",
    "seasonal_multiplier",
    "seasonal_trend",
    "category_multiplier",
    "DEFAULT_CATEGORY_MULTIPLIERS",
    # Models
    "ModelBackend",
    "PlaceholderModel",
    # Engine
    "RuleEngine",
    "RecordOutcome",
    "GenerationFailure",
]
