"""Turn the decoded samples of one location into per-day forecasts."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from itertools import groupby
from typing import List, Optional, Sequence, Tuple

from soarcast.config import ForecastConfig
from soarcast.indices import sample_convective_clouds, thunderstorm_risk
from soarcast.relevant_hours import is_relevant
from soarcast.samples import GeoPoint, HourForecast, HourlySample, PeriodRain
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_service")

# morning, noon, afternoon
THUNDERSTORM_PERIODS = 3


@dataclass(frozen=True)
class DayForecast:
    """Relevant hours of one calendar day and the thunderstorm risk of the day."""
    date: dt.date
    hour_forecasts: Tuple[HourForecast, ...]
    thunderstorm_risk: int  # 0 to 4, for the entire day


@dataclass(frozen=True)
class LocationForecasts:
    """All the forecast days of one location."""
    elevation: float  # m
    day_forecasts: Tuple[DayForecast, ...]
    pressure_levels: Tuple[int, ...]  # hPa, ascending, as carried by every sample


def rain_per_period(samples: Sequence[HourlySample]) -> List[HourForecast]:
    """
    Pair each sample with the rain that fell since the previous sample.

    The model accumulates rain from its initialization time, so the first
    sample's totals already are the rain of its period. Later periods are the
    difference with the previous sample; a decrease in the totals gives a
    negative value, which is kept as is.
    """
    out: List[HourForecast] = []
    previous: Optional[HourlySample] = None
    for sample in samples:
        if previous is None:
            rain = PeriodRain(
                total=sample.accumulated_rain,
                convective=sample.accumulated_convective_rain,
            )
        else:
            rain = PeriodRain(
                total=sample.accumulated_rain - previous.accumulated_rain,
                convective=sample.accumulated_convective_rain - previous.accumulated_convective_rain,
            )
        out.append(HourForecast(sample=sample, rain=rain))
        previous = sample
    return out


def _day_thunderstorm_risk(date: dt.date, hour_forecasts: Sequence[HourForecast]) -> int:
    if len(hour_forecasts) == THUNDERSTORM_PERIODS:
        return thunderstorm_risk(*hour_forecasts)
    logger.debug(
        "Not enough representative hours for thunderstorm risk; using 0",
        extra={"date": date.isoformat(), "hours": len(hour_forecasts)},
    )
    return 0


def build_location_forecasts(
    point: GeoPoint,
    samples: Sequence[HourlySample],
    config: ForecastConfig,
    *,
    elevation: float | None = None,
) -> LocationForecasts:
    """
    Build the per-day forecasts of one location.

    `samples` must be chronological and cover successive model time steps
    from the first one after initialization. Only the hours around local noon
    are kept; days are ordered by date and hours by time. The ground elevation
    is taken from the first sample unless given. Every sample is expected to
    carry exactly `config.pressure_levels_hpa` (checked by
    `LocationSamplesIn.check_pressure_levels_match`).
    """
    if elevation is None:
        elevation = samples[0].elevation if samples else 0.0

    keep = is_relevant(point.longitude, config)
    relevant = [
        HourForecast(
            sample=hour.sample,
            rain=hour.rain,
            convective_clouds=sample_convective_clouds(hour.sample),
        )
        for hour in rain_per_period(samples)
        if keep(hour.time)
    ]

    def day_of(hour: HourForecast) -> dt.date:
        return hour.time.date()

    days: List[DayForecast] = []
    for date, hours in groupby(sorted(relevant, key=lambda h: (day_of(h), h.time)), key=day_of):
        hour_forecasts = tuple(hours)
        if not hour_forecasts:
            continue
        days.append(
            DayForecast(
                date=date,
                hour_forecasts=hour_forecasts,
                thunderstorm_risk=_day_thunderstorm_risk(date, hour_forecasts),
            )
        )

    logger.debug(
        "Built location forecasts",
        extra={"latitude": point.latitude, "longitude": point.longitude, "days": len(days)},
    )
    return LocationForecasts(
        elevation=elevation,
        day_forecasts=tuple(days),
        pressure_levels=config.pressure_levels_hpa,
    )
