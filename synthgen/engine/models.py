"""Model backends for ``ml_model`` rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

import numpy as np

from synthgen.templates.schemas import GenerationRule


class ModelBackend(ABC):
    """Produces a value for an ``ml_model`` rule.

    Implementations must draw randomness only from ``rng`` so that seeded
    generation stays reproducible.
    """

    @abstractmethod
    def predict(
        self,
        rule: GenerationRule,
        record: Mapping[str, Any],
        rng: np.random.Generator,
    ) -> Any:
        """Return the field value for the partially built record."""


class PlaceholderModel(ModelBackend):
    """Uniform draw in [min, max] (default [0, 100]) until a real model is plugged in."""

    default_min = 0.0
    default_max = 100.0

    def predict(
        self,
        rule: GenerationRule,
        record: Mapping[str, Any],
        rng: np.random.Generator,
    ) -> float:
        params = rule.parameters
        low = params.min if params.min is not None else self.default_min
        high = params.max if params.max is not None else self.default_max
        return rng.random() * (high - low) + low
