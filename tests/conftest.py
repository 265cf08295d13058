"""Pytest fixtures for test suite."""

from typing import Any, Callable

import numpy as np
import pytest

from synthgen.core.config import Settings
from synthgen.generation import GenerationOrchestrator
from synthgen.lookup import LookupRegistry
from synthgen.templates import SyntheticDataTemplate, TemplateRegistry


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment cache."""
    return Settings()


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random stream."""
    return np.random.default_rng(1234)


@pytest.fixture
def lookups() -> LookupRegistry:
    """Lookup registry with the built-in tables."""
    return LookupRegistry.with_builtins()


@pytest.fixture
def template_registry() -> TemplateRegistry:
    """Template registry with the built-in templates loaded."""
    return TemplateRegistry.with_builtins()


@pytest.fixture
def orchestrator(settings: Settings) -> GenerationOrchestrator:
    """Orchestrator with built-in lookups and templates."""
    return GenerationOrchestrator.with_builtins(settings=settings)


# =============================================================================
# Template Builders
# =============================================================================


@pytest.fixture
def make_template() -> Callable[..., SyntheticDataTemplate]:
    """Factory for small ad-hoc templates.

    Usage:
        make_template([{"field_name": "x", ...}], template_id="t1")
    """

    def _make(rules: list[dict[str, Any]], **overrides: Any) -> SyntheticDataTemplate:
        data: dict[str, Any] = {
            "template_id": "test_template",
            "template_name": "Test Template",
            "data_type": "analytics",
            "generation_rules": rules,
            "constraints": {
                "temporal_constraints": {
                    "start_date": "2024-01-01",
                    "end_date": "2024-12-31",
                },
            },
        }
        data.update(overrides)
        return SyntheticDataTemplate.model_validate(data)

    return _make


@pytest.fixture
def uniform_rule() -> Callable[..., dict[str, Any]]:
    """Factory for random_distribution rule dictionaries."""

    def _rule(field_name: str, low: float = 0, high: float = 1, **params: Any) -> dict[str, Any]:
        return {
            "field_name": field_name,
            "generation_method": "random_distribution",
            "parameters": {"min": low, "max": high, **params},
        }

    return _rule
