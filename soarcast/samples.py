"""Immutable records for the per-location forecast pipeline.

`HourlySample` is what the model decoder hands us for one (point, time).
`HourForecast` is what the pipeline keeps after the rain transform: the sample
is untouched and the rain that fell during the period lives in its own field,
so cumulative and per-period values can never be confused.
"""
from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple


@dataclass(frozen=True)
class GeoPoint:
    """A model grid point, longitude in [-180, 180)."""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Invalid latitude: {self.latitude}")
        if not -180 <= self.longitude < 180:
            raise ValueError(f"Invalid longitude: {self.longitude}")


@dataclass(frozen=True)
class Wind:
    """Horizontal wind components, m/s."""
    u: float
    v: float


@dataclass(frozen=True)
class CloudCover:
    """Cloud cover breakdown, each value a percentage in [0, 100]."""
    entire: float
    low: float
    middle: float
    high: float
    conv: float
    boundary: float


@dataclass(frozen=True)
class AirData:
    """Variables measured at one pressure level."""
    geopotential_height: float  # m AMSL
    temperature: float  # °C
    relative_humidity: float  # % (or fraction <= 1)
    wind: Wind


class PressureColumn(Mapping):
    """
    Read-only mapping from pressure level (hPa) to AirData.

    Iteration is always in ascending pressure order (from the top of the
    column down to the ground), whatever order the levels were given in.
    """

    def __init__(self, levels: Mapping[int, AirData]):
        self._levels: Tuple[Tuple[int, AirData], ...] = tuple(
            sorted(((int(p), data) for p, data in levels.items()), key=lambda item: item[0])
        )

    def __getitem__(self, pressure: int) -> AirData:
        for p, data in self._levels:
            if p == pressure:
                return data
        raise KeyError(pressure)

    def __iter__(self) -> Iterator[int]:
        return (p for p, _ in self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __eq__(self, other) -> bool:
        if isinstance(other, PressureColumn):
            return self._levels == other._levels
        return super().__eq__(other)

    def __hash__(self) -> int:
        return hash(self._levels)

    def __repr__(self) -> str:
        return f"PressureColumn({dict(self._levels)!r})"

    @property
    def pressures(self) -> Tuple[int, ...]:
        """Pressure levels, ascending."""
        return tuple(p for p, _ in self._levels)


@dataclass(frozen=True)
class HourlySample:
    """One decoded model time step for one grid point."""
    time: dt.datetime  # timezone-aware
    elevation: float  # m, ground level
    boundary_layer_height: float  # m above ground
    boundary_layer_wind: Wind
    cloud_cover: CloudCover
    isotherm_zero: float  # m
    surface_temperature: float  # °C
    surface_relative_humidity: float  # %
    surface_wind: Wind
    mslet: float  # Pa
    cape: float  # J/kg
    sensible_heat_net_flux: float  # W/m²
    accumulated_rain: float  # mm since model initialization
    accumulated_convective_rain: float  # mm since model initialization
    at_pressure: PressureColumn


@dataclass(frozen=True)
class PeriodRain:
    """Rain fallen since the previous time step, mm. Can be negative on bad input."""
    total: float
    convective: float


@dataclass(frozen=True)
class ConvectiveClouds:
    """Cumulus layer, altitudes in m AMSL."""
    bottom: float
    top: float


@dataclass(frozen=True)
class HourForecast:
    """A sample together with the rain of its period and its derived cumulus layer."""
    sample: HourlySample
    rain: PeriodRain
    convective_clouds: Optional[ConvectiveClouds] = None

    @property
    def time(self) -> dt.datetime:
        return self.sample.time
