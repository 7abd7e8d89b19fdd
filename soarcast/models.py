"""Pydantic schemas for decoded model samples handed over by the decoder.

These validate what crosses the input boundary (JSON files for the batch
driver, request bodies for the API) and convert it into the immutable records
of `soarcast.samples`.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from soarcast.samples import AirData, CloudCover, GeoPoint, HourlySample, PressureColumn, Wind


class _InputModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class WindIn(_InputModel):
    """Wind components, m/s."""
    u: float
    v: float

    def to_wind(self) -> Wind:
        return Wind(u=self.u, v=self.v)


class CloudCoverIn(_InputModel):
    """Cloud cover breakdown, percent."""
    entire: float = Field(ge=0, le=100)
    low: float = Field(ge=0, le=100)
    middle: float = Field(ge=0, le=100)
    high: float = Field(ge=0, le=100)
    conv: float = Field(ge=0, le=100)
    boundary: float = Field(ge=0, le=100)

    def to_cloud_cover(self) -> CloudCover:
        return CloudCover(**self.model_dump())


class AirDataIn(_InputModel):
    """Variables at one pressure level."""
    geopotential_height: float
    temperature: float
    relative_humidity: float = Field(ge=0)
    wind: WindIn

    def to_air_data(self) -> AirData:
        return AirData(
            geopotential_height=self.geopotential_height,
            temperature=self.temperature,
            relative_humidity=self.relative_humidity,
            wind=self.wind.to_wind(),
        )


class HourlySampleIn(_InputModel):
    """One decoded time step; rain totals are cumulative since model initialization."""
    time: datetime
    elevation: float
    boundary_layer_height: float
    boundary_layer_wind: WindIn
    cloud_cover: CloudCoverIn
    isotherm_zero: float
    surface_temperature: float
    surface_relative_humidity: float = Field(ge=0)
    surface_wind: WindIn
    mslet: float
    cape: float
    sensible_heat_net_flux: float
    accumulated_rain: float
    accumulated_convective_rain: float
    at_pressure: Dict[int, AirDataIn] = Field(min_length=1)

    @field_validator("time", mode="after")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Day grouping and hour selection need an explicit offset."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("time must be timezone-aware")
        return v

    def to_sample(self) -> HourlySample:
        return HourlySample(
            time=self.time,
            elevation=self.elevation,
            boundary_layer_height=self.boundary_layer_height,
            boundary_layer_wind=self.boundary_layer_wind.to_wind(),
            cloud_cover=self.cloud_cover.to_cloud_cover(),
            isotherm_zero=self.isotherm_zero,
            surface_temperature=self.surface_temperature,
            surface_relative_humidity=self.surface_relative_humidity,
            surface_wind=self.surface_wind.to_wind(),
            mslet=self.mslet,
            cape=self.cape,
            sensible_heat_net_flux=self.sensible_heat_net_flux,
            accumulated_rain=self.accumulated_rain,
            accumulated_convective_rain=self.accumulated_convective_rain,
            at_pressure=PressureColumn(
                {pressure: variables.to_air_data() for pressure, variables in self.at_pressure.items()}
            ),
        )


class LocationSamplesIn(_InputModel):
    """All the samples of one grid point, in chronological order."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, lt=180)
    elevation: float | None = None
    samples: List[HourlySampleIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_pressure_levels(self) -> "LocationSamplesIn":
        """Every sample of a run must carry the same pressure levels."""
        if not self.samples:
            return self
        expected = set(self.samples[0].at_pressure)
        for index, sample in enumerate(self.samples[1:], start=1):
            if set(sample.at_pressure) != expected:
                raise ValueError(
                    f"sample {index} has pressure levels {sorted(sample.at_pressure)}, "
                    f"expected {sorted(expected)}"
                )
        return self

    def check_pressure_levels_match(self, pressure_levels: Sequence[int]) -> None:
        """Raise ValueError unless the samples carry exactly the configured `pressure_levels`."""
        if not self.samples:
            return
        expected = sorted(set(pressure_levels))
        actual = sorted(self.samples[0].at_pressure)
        if actual != expected:
            raise ValueError(f"samples have pressure levels {actual}, configured levels are {expected}")

    def to_point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)

    def to_samples(self) -> List[HourlySample]:
        return [sample.to_sample() for sample in self.samples]
