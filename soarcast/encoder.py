"""Serialize LocationForecasts into the compact JSON read by the map client."""
from __future__ import annotations

import math
from typing import Sequence

from soarcast.domain import (
    AirPayload,
    BoundaryLayerPayload,
    CloudCoverPayload,
    DayPayload,
    HourPayload,
    LocationForecastsPayload,
    RainPayload,
)
from soarcast.forecast_service import DayForecast, LocationForecasts
from soarcast.samples import AirData, HourForecast, Wind

METERS_PER_SECOND_TO_KMH = 3.6
PASCALS_PER_HECTOPASCAL = 100


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    magnitude = abs(value)
    whole = math.floor(magnitude)
    # exact for floats, unlike floor(magnitude + 0.5)
    if magnitude - whole >= 0.5:
        whole += 1
    return int(math.copysign(whole, value))


def _kmh(speed: float) -> int:
    return round_half_away(speed * METERS_PER_SECOND_TO_KMH)


def _air_payload(height: float, temperature: float, relative_humidity: float, wind: Wind) -> AirPayload:
    return AirPayload(
        height=round_half_away(height),
        temperature=float(temperature),
        relative_humidity=float(relative_humidity),
        u=_kmh(wind.u),
        v=_kmh(wind.v),
    )


def _level_payload(variables: AirData) -> AirPayload:
    return _air_payload(
        variables.geopotential_height,
        variables.temperature,
        variables.relative_humidity,
        variables.wind,
    )


def encode_hour(hour: HourForecast, pressure_levels: Sequence[int]) -> HourPayload:
    """Encode one relevant hour; `pressure_levels` (hPa, ascending) are emitted in that order."""
    sample = hour.sample
    cloud_cover = sample.cloud_cover
    return HourPayload(
        time=sample.time.isoformat(),
        boundary_layer=BoundaryLayerPayload(
            height=round_half_away(sample.boundary_layer_height),
            u=_kmh(sample.boundary_layer_wind.u),
            v=_kmh(sample.boundary_layer_wind.v),
        ),
        cloud_cover=CloudCoverPayload(
            entire=float(cloud_cover.entire),
            low=float(cloud_cover.low),
            middle=float(cloud_cover.middle),
            high=float(cloud_cover.high),
            conv=float(cloud_cover.conv),
            boundary=float(cloud_cover.boundary),
        ),
        pressure_levels={
            str(pressure): _level_payload(sample.at_pressure[pressure])
            for pressure in pressure_levels
        },
        surface=_air_payload(
            sample.elevation,
            sample.surface_temperature,
            sample.surface_relative_humidity,
            sample.surface_wind,
        ),
        isotherm_zero=round_half_away(sample.isotherm_zero),
        rain=RainPayload(
            total=round_half_away(hour.rain.total),
            convective=round_half_away(hour.rain.convective),
        ),
        mslet=round_half_away(sample.mslet) // PASCALS_PER_HECTOPASCAL,
    )


def encode_day(day: DayForecast, pressure_levels: Sequence[int]) -> DayPayload:
    return DayPayload(
        thunderstorm_risk=day.thunderstorm_risk,
        hours=[encode_hour(hour, pressure_levels) for hour in day.hour_forecasts],
    )


def encode_location_forecasts(forecasts: LocationForecasts) -> LocationForecastsPayload:
    """Build the wire payload of one location."""
    return LocationForecastsPayload(
        elevation=round_half_away(forecasts.elevation),
        days=[encode_day(day, forecasts.pressure_levels) for day in forecasts.day_forecasts],
    )


def location_forecasts_json(forecasts: LocationForecasts) -> str:
    """Compact JSON document of one location, with stable key order."""
    return encode_location_forecasts(forecasts).model_dump_json(by_alias=True)
