"""Template-driven synthetic record generator."""

from synthgen.core import get_settings, TemplateNotFound
from synthgen.templates import SyntheticDataTemplate, TemplateRegistry
from synthgen.generation import GenerationOrchestrator, GenerationOptions, GenerationResult

__all__ = [
    "get_settings",
    "TemplateNotFound",
    "SyntheticDataTemplate",
    "TemplateRegistry",
    "GenerationOrchestrator",
    "GenerationOptions",
    "GenerationResult",
]
