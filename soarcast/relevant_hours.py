"""Pick the model hours of the day that represent daytime conditions at a longitude.

Model output is in UTC, so "around noon" means a different set of UTC hours
depending on where the point is. The earth is split into as many longitude
zones as there are model time steps in a day; each zone gets the noon hour of
its center, and the hours closest to that noon are kept.
"""
from __future__ import annotations

import datetime as dt
import math
from functools import lru_cache
from typing import Callable, FrozenSet

from soarcast.config import HOURS_PER_DAY, ForecastConfig


def _wrap_longitude(longitude: float) -> float:
    """Bring any longitude into [-180, 180)."""
    return ((longitude + 180.0) % 360.0) - 180.0


def noon_hour(longitude: float, time_resolution_hours: int) -> int:
    """
    UTC model hour that is closest to local solar noon at `longitude`.

    Noon is 12 around the prime meridian, 0 on the antimeridian, 6 at 90°E and
    18 at 90°W (for a 3-hour resolution).
    """
    forecasts_per_day = HOURS_PER_DAY // time_resolution_hours
    zone_width_degrees = 360 // forecasts_per_day
    # 0..360, with the prime meridian at 180
    normalized_longitude = 180.0 - _wrap_longitude(longitude)
    shifted = (normalized_longitude + zone_width_degrees / 2.0) % 360
    zone = math.floor(shifted + 0.5) // zone_width_degrees
    return (zone * time_resolution_hours) % HOURS_PER_DAY


def _distance_to_noon(hour: int, noon: int) -> int:
    delta = abs(hour - noon)
    return min(delta, HOURS_PER_DAY - delta)


@lru_cache(maxsize=256)
def hours_around_noon(noon: int, time_resolution_hours: int, relevant_periods_per_day: int) -> FrozenSet[int]:
    """
    Return the `relevant_periods_per_day` model hours closest to `noon`.

    Hours are picked one at a time by circular distance to noon; on a tie the
    lowest hour wins, so the result is deterministic. Keyed on the noon hour,
    the cache holds at most one entry per longitude zone.
    """
    remaining = set(range(0, HOURS_PER_DAY, time_resolution_hours))
    selected: set[int] = set()
    for _ in range(min(relevant_periods_per_day, len(remaining))):
        closest = min(remaining, key=lambda h: (_distance_to_noon(h, noon), h))
        remaining.remove(closest)
        selected.add(closest)
    return frozenset(selected)


def relevant_hours(longitude: float, time_resolution_hours: int, relevant_periods_per_day: int) -> FrozenSet[int]:
    """Return the `relevant_periods_per_day` model hours closest to local noon at `longitude`."""
    noon = noon_hour(longitude, time_resolution_hours)
    return hours_around_noon(noon, time_resolution_hours, relevant_periods_per_day)


def is_relevant(longitude: float, config: ForecastConfig) -> Callable[[dt.datetime], bool]:
    """Build a predicate telling whether a sample time is one of the relevant hours."""
    hours = relevant_hours(longitude, config.time_resolution_hours, config.relevant_periods_per_day)

    def _is_relevant(time: dt.datetime) -> bool:
        return time.hour in hours

    return _is_relevant
