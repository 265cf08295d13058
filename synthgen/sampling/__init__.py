"""Sampling library - distributions and weighted choice."""

from .distributions import (
    sample_uniform,
    sample_normal,
    sample_exponential,
    sample_poisson,
    weighted_choice,
    uniform_choice,
    truncated_normal_moments,
    clipped_exponential_mean,
    clipped_poisson_mean,
    expected_moments,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_POISSON_ITERATIONS,
)

__all__ = [
    # Samplers
    "sample_uniform",
    "sample_normal",
    "sample_exponential",
    "sample_poisson",
    "weighted_choice",
    "uniform_choice",
    # Moments
    "truncated_normal_moments",
    "clipped_exponential_mean",
    "clipped_poisson_mean",
    "expected_moments",
    # Limits
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_POISSON_ITERATIONS",
]
