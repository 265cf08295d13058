"""Error taxonomy for synthetic record generation.

Only ``TemplateNotFound`` is allowed to escape a generation call. Field-level
errors are caught by the rule engine and turned into fallbacks.
``ValidationFailure`` rejects one record; the orchestrator catches it and
reports the errors in the result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from synthgen.validation.validator import FieldValidationError


class SyntheticDataError(Exception):
    """Base class for generator errors."""

    pass


class TemplateNotFound(SyntheticDataError, KeyError):
    """Raised when a template id does not resolve in the registry."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(template_id)

    def __str__(self) -> str:
        return f"Template not found: {self.template_id}"


class FieldGenerationError(SyntheticDataError):
    """A single field could not be generated."""

    pass


class DistributionInfeasible(FieldGenerationError):
    """Raised when bounds exclude the distribution's mass after bounded retries."""

    pass


class LookupTableNotFound(FieldGenerationError, KeyError):
    """Raised when a named lookup table is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Lookup table not found: {self.name}"


class FormulaEvaluationError(FieldGenerationError):
    """Raised when a compiled formula fails at evaluation time."""

    pass


class FormulaSyntaxError(SyntheticDataError, ValueError):
    """Raised when a formula cannot be compiled into the closed expression AST."""

    pass


class CyclicDependencyError(SyntheticDataError, ValueError):
    """Raised at registration in strict mode when rule dependencies form a cycle."""

    def __init__(self, template_id: str, fields: list[str]):
        self.template_id = template_id
        self.fields = fields
        super().__init__(
            f"Cyclic rule dependencies in template {template_id}: {', '.join(fields)}"
        )


class ValidationFailure(SyntheticDataError):
    """A generated record broke one or more of its validation rules."""

    def __init__(self, record_index: int | None, errors: list[FieldValidationError]):
        self.record_index = record_index
        self.errors = errors
        super().__init__(
            f"Record {record_index} failed {len(errors)} validation rule(s)"
        )
