"""Derived meteorological indices computed from decoded model samples.

Pure functions only: dew point and spread per pressure level, the daily
thunderstorm risk and the convective cloud layer. Nothing here logs or keeps
state, so the functions can run in any worker.
"""
from __future__ import annotations

import math
from typing import Dict, Optional, Sequence, Tuple

from soarcast.samples import ConvectiveClouds, HourForecast, HourlySample

# Levels at or above 700 hPa (roughly 3000 m) are averaged for the spread factor.
ALOFT_MAX_PRESSURE_HPA = 700
# Hennig formula: cumulus base rises 122.6 m per °C of surface spread.
HENNIG_METERS_PER_DEGREE = 122.6
# Above this spread (°C), air is considered too dry for cumulus.
CLOUD_SPREAD_THRESHOLD = 3.0

# Floor of the vapor pressure (hPa); completely dry air gets a dew point near -113 °C.
MIN_VAPOR_PRESSURE_HPA = 1e-6

# Upper bounds of each risk level, level 4 is anything above the last one.
RISK_THRESHOLDS: Tuple[float, ...] = (-3.0, 3.0, 8.0, 18.0)


def _relative_humidity_fraction(relative_humidity: float) -> float:
    """Accept both 0..1 fractions and 0..100 percentages."""
    if relative_humidity > 1:
        return relative_humidity / 100
    return relative_humidity


def dew_point(temperature: float, relative_humidity: float) -> float:
    """
    Dew point (°C) from air temperature (°C) and relative humidity.

    Magnus-type formula; the result never exceeds the air temperature. A
    humidity of 0 is a fully dry level with a very large spread.
    """
    exponent = 7.5 * temperature / (237.7 + temperature)
    vapor_press_sat = 6.11 * math.pow(10, exponent)  # hPa
    vapor_press = max(_relative_humidity_fraction(relative_humidity) * vapor_press_sat, MIN_VAPOR_PRESSURE_HPA)
    log_vapor_press = math.log(vapor_press)
    td = (-430.22 + 237.7 * log_vapor_press) / (19.08 - log_vapor_press)
    return min(td, temperature)


def spread_and_dew_points(sample: HourlySample) -> Dict[int, Tuple[float, float]]:
    """Map each pressure level (ascending) to its (spread, dew point)."""
    out: Dict[int, Tuple[float, float]] = {}
    for pressure, variables in sample.at_pressure.items():
        td = dew_point(variables.temperature, variables.relative_humidity)
        out[pressure] = (variables.temperature - td, td)
    return out


def spread_alti(sample: HourlySample) -> float:
    """Average spread over the levels at or above 700 hPa."""
    spreads = [
        spread
        for pressure, (spread, _) in spread_and_dew_points(sample).items()
        if pressure <= ALOFT_MAX_PRESSURE_HPA
    ]
    return sum(spreads) / len(spreads)


def _factor_cape(noon: HourForecast, afternoon: HourForecast) -> float:
    base_cape = (noon.sample.cape + afternoon.sample.cape) / 100
    if base_cape >= 2:
        return base_cape
    # weak instability is penalized more than linearly
    return base_cape - 4 * (2 - base_cape)


def _factor_sensible_heat(morning: HourForecast) -> float:
    raw_value = min(morning.sample.sensible_heat_net_flux / 10, 10)
    if raw_value >= 3:
        return raw_value
    return raw_value - 3 * (3 - raw_value)


def _factor_convection(morning: HourForecast, noon: HourForecast, afternoon: HourForecast) -> float:
    cloud_cover = (
        morning.sample.cloud_cover.conv
        + noon.sample.cloud_cover.conv
        + afternoon.sample.cloud_cover.conv
    ) / 10
    # FIXME Summing the convective rain of each period looks wrong, kept until the formula is reviewed
    convective_rain = morning.rain.convective + noon.rain.convective + afternoon.rain.convective
    return (cloud_cover + convective_rain) / 2


def thunderstorm_factor(morning: HourForecast, noon: HourForecast, afternoon: HourForecast) -> float:
    """
    Empirical instability score of a day ("factor G").

    Calibrated heuristic combining CAPE, the mid-level spread, the morning
    sensible heat flux and the convective activity of the three representative
    periods of the day.
    """
    factor_cape = _factor_cape(noon, afternoon)
    factor_spread = (spread_alti(morning.sample) + spread_alti(noon.sample) + spread_alti(afternoon.sample)) / 3
    factor_sensible_heat = _factor_sensible_heat(morning)
    factor_convection = _factor_convection(morning, noon, afternoon)
    return factor_cape + factor_convection + factor_sensible_heat - factor_spread


def risk_level(factor_g: float) -> int:
    """Bucket a thunderstorm factor into a 0 (none) to 4 (high) risk."""
    for level, upper_bound in enumerate(RISK_THRESHOLDS):
        if factor_g < upper_bound:
            return level
    return len(RISK_THRESHOLDS)


def thunderstorm_risk(morning: HourForecast, noon: HourForecast, afternoon: HourForecast) -> int:
    """Thunderstorm risk (0 to 4) of a whole day from its three representative periods."""
    return risk_level(thunderstorm_factor(morning, noon, afternoon))


def convective_clouds(
    surface_temperature: float,
    surface_dew_point: float,
    ground_level: float,
    boundary_layer_depth: float,
    air_data: Sequence[Tuple[float, float, float]],
) -> Optional[ConvectiveClouds]:
    """
    Estimate the cumulus layer, or None when no cumulus is expected.

    `air_data` holds (altitude m AMSL, temperature °C, dew point °C) tuples
    sorted by altitude. The base comes from the Hennig formula; the top is the
    highest level, going up from the boundary layer top, where the air stays
    nearly saturated.
    """
    bottom = HENNIG_METERS_PER_DEGREE * (surface_temperature - surface_dew_point) + ground_level
    boundary_layer_top = ground_level + boundary_layer_depth

    last_moist_level = None
    for altitude, temperature, td in air_data:
        if altitude <= boundary_layer_top:
            continue
        if temperature - td >= CLOUD_SPREAD_THRESHOLD:
            break
        last_moist_level = (altitude, temperature - td)

    if last_moist_level is None:
        top = boundary_layer_top
    else:
        altitude, spread = last_moist_level
        top = max(altitude - HENNIG_METERS_PER_DEGREE * spread, boundary_layer_top)

    if bottom < boundary_layer_top:
        return ConvectiveClouds(bottom=bottom, top=top)
    return None


def sample_convective_clouds(sample: HourlySample) -> Optional[ConvectiveClouds]:
    """Cumulus layer for one decoded sample, using its levels above the ground."""
    surface_dew_point = dew_point(sample.surface_temperature, sample.surface_relative_humidity)
    air_data = sorted(
        (variables.geopotential_height, variables.temperature,
         dew_point(variables.temperature, variables.relative_humidity))
        for variables in sample.at_pressure.values()
        if variables.geopotential_height > sample.elevation
    )
    return convective_clouds(
        sample.surface_temperature,
        surface_dew_point,
        sample.elevation,
        sample.boundary_layer_height,
        air_data,
    )
