"""
Named pattern generators for pattern-based rules.

- business_hours_weighted: ISO timestamp in the temporal window, biased
  towards 09:00-17:59 UTC
- seasonal_trend: yearly sine multiplier around 1.0
- content_type_dependent: multiplier keyed off a categorical field
"""

from __future__ import annotations

import math
from datetime import datetime, time, timedelta, timezone
from typing import Any, Mapping

import numpy as np

from synthgen.templates.schemas import TemporalConstraints

BUSINESS_HOURS_PROBABILITY = 0.7
BUSINESS_HOURS_START = 9
BUSINESS_HOURS_SPAN = 9

SEASONAL_AMPLITUDE = 0.3

DEFAULT_CATEGORY_FIELD = "content_type"
DEFAULT_CATEGORY_MULTIPLIERS: dict[str, float] = {
    "video": 1.5,
    "image": 1.0,
    "carousel": 1.3,
    "story": 0.8,
}


def _window(temporal: TemporalConstraints) -> tuple[datetime, datetime]:
    start = datetime.combine(temporal.start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(temporal.end_date, time.min, tzinfo=timezone.utc)
    return start, end


def random_datetime(rng: np.random.Generator, temporal: TemporalConstraints) -> datetime:
    """Uniform instant in [start_date, end_date) (UTC midnights)."""
    start, end = _window(temporal)
    span = (end - start).total_seconds()
    return start + timedelta(seconds=rng.random() * span)


def format_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp produced by this module; None if not one."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def business_hours_timestamp(rng: np.random.Generator, temporal: TemporalConstraints) -> str:
    """Timestamp in the window; 70% of the time the hour is moved into 09-17."""
    moment = random_datetime(rng, temporal)
    if rng.random() < BUSINESS_HOURS_PROBABILITY:
        hour = BUSINESS_HOURS_START + int(rng.random() * BUSINESS_HOURS_SPAN)
        moment = moment.replace(hour=hour)
    return format_timestamp(moment)


def seasonal_multiplier(day_of_year: int) -> float:
    return math.sin(2.0 * math.pi * day_of_year / 365.0) * SEASONAL_AMPLITUDE + 1.0


def seasonal_trend(
    rng: np.random.Generator,
    temporal: TemporalConstraints,
    record: Mapping[str, Any],
    dependencies: list[str],
) -> float:
    """Seasonal multiplier for the record's date.

    The date comes from the first dependency holding a timestamp; failing
    that, a date is drawn from the temporal window.
    """
    moment = None
    for name in dependencies:
        moment = parse_timestamp(record.get(name))
        if moment is not None:
            break
    if moment is None:
        moment = random_datetime(rng, temporal)
    return seasonal_multiplier(moment.timetuple().tm_yday)


def category_multiplier(
    record: Mapping[str, Any],
    dependencies: list[str],
    multipliers: Mapping[str, float] | None = None,
) -> float:
    """Multiplier for the category in the keyed field; 1.0 when unknown."""
    key_field = dependencies[0] if dependencies else DEFAULT_CATEGORY_FIELD
    table = multipliers or DEFAULT_CATEGORY_MULTIPLIERS
    return float(table.get(str(record.get(key_field)), 1.0))
