"""Core package - configuration, logging, and the error taxonomy."""

from .config import Settings, get_settings
from .exceptions import (
    SyntheticDataError,
    TemplateNotFound,
    FieldGenerationError,
    DistributionInfeasible,
    LookupTableNotFound,
    FormulaEvaluationError,
    FormulaSyntaxError,
    CyclicDependencyError,
    ValidationFailure,
)
from .logging import configure_logging

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "configure_logging",
    # Errors
    "SyntheticDataError",
    "TemplateNotFound",
    "FieldGenerationError",
    "DistributionInfeasible",
    "LookupTableNotFound",
    "FormulaEvaluationError",
    "FormulaSyntaxError",
    "CyclicDependencyError",
    "ValidationFailure",
]
