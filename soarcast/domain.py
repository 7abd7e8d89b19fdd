"""Strict schemas for the compact JSON sent to the map client.

Keys on the wire are the 1-3 character codes the client reads; the Python
attribute names spell them out. Field declaration order is the key order of
the serialized output. No computation lives here.
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling, populated by attribute name or code."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class BoundaryLayerPayload(_StrictBaseModel):
    """Boundary layer depth (m) and wind (km/h)."""
    height: int = Field(alias="h")
    u: int = Field(alias="u")
    v: int = Field(alias="v")


class CloudCoverPayload(_StrictBaseModel):
    """Cloud cover breakdown in percent."""
    entire: float = Field(alias="e")
    low: float = Field(alias="l")
    middle: float = Field(alias="m")
    high: float = Field(alias="h")
    conv: float = Field(alias="c")
    boundary: float = Field(alias="b")


class AirPayload(_StrictBaseModel):
    """Variables at one pressure level, or at the surface."""
    height: int = Field(alias="h")
    temperature: float = Field(alias="t")
    relative_humidity: float = Field(alias="rh")
    u: int = Field(alias="u")
    v: int = Field(alias="v")


class RainPayload(_StrictBaseModel):
    """Rain of the period, mm."""
    total: int = Field(alias="t")
    convective: int = Field(alias="c")


class HourPayload(_StrictBaseModel):
    """One relevant model hour."""
    time: str = Field(alias="t")
    boundary_layer: BoundaryLayerPayload = Field(alias="bl")
    cloud_cover: CloudCoverPayload = Field(alias="c")
    pressure_levels: Dict[str, AirPayload] = Field(alias="p")
    surface: AirPayload = Field(alias="s")
    isotherm_zero: int = Field(alias="iso")
    rain: RainPayload = Field(alias="r")
    mslet: int = Field(alias="mslet")  # hPa


class DayPayload(_StrictBaseModel):
    """Relevant hours of a day with the day's thunderstorm risk."""
    thunderstorm_risk: int = Field(alias="th", ge=0, le=4)
    hours: List[HourPayload] = Field(alias="h", default_factory=list)


class LocationForecastsPayload(_StrictBaseModel):
    """Everything the client needs for one location."""
    elevation: int = Field(alias="h")
    days: List[DayPayload] = Field(alias="d", default_factory=list)
