"""
Statistical sampling functions.

Every sampler takes the caller's ``numpy.random.Generator`` and only ever
draws uniforms from it, so a record's values are fully determined by the
seed of its private stream.

Distributions:
- normal: Box-Muller transform with bounded rejection against [min, max]
- uniform: linear map of a single uniform draw
- exponential: inverse CDF, clipped to bounds
- poisson: multiplicative (Knuth) algorithm, clipped to bounds
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from synthgen.core.exceptions import DistributionInfeasible

DEFAULT_MAX_ATTEMPTS = 1000
DEFAULT_MAX_POISSON_ITERATIONS = 10_000


def _clip(value: float, min_value: float | None, max_value: float | None) -> float:
    if min_value is not None and value < min_value:
        return min_value
    if max_value is not None and value > max_value:
        return max_value
    return value


def _check_bounds(min_value: float | None, max_value: float | None) -> None:
    if min_value is not None and max_value is not None and min_value > max_value:
        raise DistributionInfeasible(
            f"Empty interval: min {min_value} is greater than max {max_value}"
        )


def sample_uniform(rng: np.random.Generator, min_value: float, max_value: float) -> float:
    """Draw uniformly from [min_value, max_value)."""
    _check_bounds(min_value, max_value)
    return rng.random() * (max_value - min_value) + min_value


def sample_normal(
    rng: np.random.Generator,
    mean: float,
    std_dev: float,
    min_value: float | None = None,
    max_value: float | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> float:
    """Draw from a normal distribution restricted to [min_value, max_value].

    Uses the Box-Muller transform and rejects draws outside the bounds.

    Args:
        rng: Random stream to draw from.
        mean: Distribution mean.
        std_dev: Distribution standard deviation (>= 0).
        min_value: Optional lower bound (inclusive).
        max_value: Optional upper bound (inclusive).
        max_attempts: Rejection loop limit.

    Returns:
        A value inside the bounds.

    Raises:
        DistributionInfeasible: If no draw lands inside the bounds within
            ``max_attempts`` tries.
    """
    _check_bounds(min_value, max_value)
    if std_dev < 0:
        raise DistributionInfeasible(f"Negative standard deviation: {std_dev}")

    for _ in range(max_attempts):
        # 1 - u keeps the log argument in (0, 1]
        u1 = 1.0 - rng.random()
        u2 = rng.random()
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        value = mean + std_dev * z0

        if min_value is not None and value < min_value:
            continue
        if max_value is not None and value > max_value:
            continue
        return value

    raise DistributionInfeasible(
        f"No normal(mean={mean}, std_dev={std_dev}) draw fell inside "
        f"[{min_value}, {max_value}] after {max_attempts} attempts"
    )


def sample_exponential(
    rng: np.random.Generator,
    mean: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Draw from an exponential distribution via inverse CDF, clipped to bounds.

    The lower bound defaults to 0 and the upper bound to infinity.
    """
    if mean <= 0:
        raise DistributionInfeasible(f"Exponential mean must be positive, got {mean}")
    _check_bounds(min_value, max_value)

    rate = 1.0 / mean
    value = -math.log(1.0 - rng.random()) / rate
    lower = min_value if min_value is not None else 0.0
    return _clip(value, lower, max_value)


def sample_poisson(
    rng: np.random.Generator,
    mean: float,
    min_value: float | None = None,
    max_value: float | None = None,
    max_iterations: int = DEFAULT_MAX_POISSON_ITERATIONS,
) -> int:
    """Draw a Poisson count with the multiplicative algorithm, clipped to bounds.

    Multiplies uniform draws until the product drops below ``e^-mean`` and
    counts the iterations.

    Raises:
        DistributionInfeasible: If the mean is negative or the iteration
            limit is reached.
    """
    if mean < 0:
        raise DistributionInfeasible(f"Poisson mean must be non-negative, got {mean}")
    _check_bounds(min_value, max_value)

    limit = math.exp(-mean)
    k = 0
    p = 1.0
    while True:
        k += 1
        if k > max_iterations:
            raise DistributionInfeasible(
                f"Poisson(mean={mean}) did not terminate within {max_iterations} iterations"
            )
        p *= rng.random()
        if p <= limit:
            break

    count = k - 1
    if min_value is not None and count < min_value:
        return math.ceil(min_value)
    if max_value is not None and count > max_value:
        return math.floor(max_value)
    return count


def weighted_choice(rng: np.random.Generator, weights: dict[str, float]) -> str:
    """Pick a key with probability proportional to its weight.

    Weights are normalised, accumulated, and searched with a single uniform
    draw.

    Raises:
        ValueError: If the map is empty, has a negative weight, or sums to 0.
    """
    if not weights:
        raise ValueError("Weight map must not be empty")

    options = list(weights.keys())
    values = np.asarray([float(weights[o]) for o in options])
    if (values < 0).any():
        raise ValueError("Weights must be non-negative")
    total = values.sum()
    if total <= 0:
        raise ValueError("Weights must sum to a positive value")

    cumulative = np.cumsum(values / total)
    index = int(np.searchsorted(cumulative, rng.random(), side="right"))
    return options[min(index, len(options) - 1)]


def uniform_choice(rng: np.random.Generator, values: Sequence):
    """Pick one element uniformly at random."""
    if not values:
        raise ValueError("Cannot choose from an empty sequence")
    return values[int(rng.random() * len(values))]


# =============================================================================
# Expected moments (used by the quality assessor)
# =============================================================================


def _phi(x: float) -> float:
    if math.isinf(x):
        return 0.0
    return math.exp(-0.5 * x * x) / math.sqrt(2.0 * math.pi)


def _big_phi(x: float) -> float:
    return 0.5 * (1.0 + math.erf(x / math.sqrt(2.0)))


def truncated_normal_moments(
    mean: float,
    std_dev: float,
    min_value: float | None,
    max_value: float | None,
) -> tuple[float, float] | None:
    """Mean and standard deviation of a normal truncated to [min, max].

    Returns None when the interval holds no probability mass.
    """
    if std_dev <= 0:
        return (mean, 0.0)

    alpha = -math.inf if min_value is None else (min_value - mean) / std_dev
    beta = math.inf if max_value is None else (max_value - mean) / std_dev
    mass = _big_phi(beta) - _big_phi(alpha)
    if mass <= 0:
        return None

    a_term = 0.0 if math.isinf(alpha) else alpha * _phi(alpha)
    b_term = 0.0 if math.isinf(beta) else beta * _phi(beta)
    shift = (_phi(alpha) - _phi(beta)) / mass

    expected = mean + std_dev * shift
    variance = std_dev ** 2 * (1.0 + (a_term - b_term) / mass - shift ** 2)
    return expected, math.sqrt(max(variance, 0.0))


def clipped_exponential_mean(
    mean: float,
    min_value: float | None,
    max_value: float | None,
) -> float:
    """Expected value of an exponential draw clipped to [min, max]."""
    rate = 1.0 / mean
    lower = min_value if min_value is not None else 0.0
    tail_low = math.exp(-rate * lower)
    tail_high = 0.0 if max_value is None else math.exp(-rate * max_value)
    return lower + (tail_low - tail_high) / rate


def clipped_poisson_mean(
    mean: float,
    min_value: float | None,
    max_value: float | None,
) -> float:
    """Expected value of a Poisson count clipped to [min, max]."""
    pmf = math.exp(-mean)
    if pmf == 0.0:
        # e^-mean underflows; the clipped mean is indistinguishable from the mean
        return _clip(mean, min_value, max_value)

    upper_k = int(mean + 12 * math.sqrt(mean) + 12)
    expected = 0.0
    for k in range(upper_k + 1):
        if k > 0:
            pmf *= mean / k
        expected += _clip(k, min_value, max_value) * pmf
    return expected


def expected_moments(
    distribution: str,
    mean: float | None = None,
    std_dev: float | None = None,
    min_value: float | None = None,
    max_value: float | None = None,
) -> tuple[float, float] | None:
    """Expected (mean, spread) of a declared distribution after bounding.

    Spread is the standard deviation used to scale sample deviations. Returns
    None when the parameters do not describe a usable distribution.
    """
    if distribution == "normal":
        if mean is None or std_dev is None:
            return None
        return truncated_normal_moments(mean, std_dev, min_value, max_value)

    if distribution in ("uniform", "custom"):
        if min_value is None or max_value is None:
            return None
        return (min_value + max_value) / 2.0, (max_value - min_value) / math.sqrt(12.0)

    if distribution == "exponential":
        if mean is None or mean <= 0:
            return None
        return clipped_exponential_mean(mean, min_value, max_value), mean

    if distribution == "poisson":
        if mean is None or mean < 0:
            return None
        return clipped_poisson_mean(mean, min_value, max_value), math.sqrt(mean) or 1.0

    return None
