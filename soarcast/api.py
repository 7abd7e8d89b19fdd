"""HTTP API building location forecasts from decoded samples."""

import hmac
from typing import List

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel

from .config import settings
from .domain import LocationForecastsPayload
from .encoder import encode_location_forecasts
from .forecast_service import build_location_forecasts
from .models import LocationSamplesIn
from .relevant_hours import noon_hour, relevant_hours
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """
    Validate the X-API-Key header against the configured api_key setting.
    """
    # No key configured: allow requests (dev/default mode).
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


class RelevantHoursResponse(BaseModel):
    """Model hours kept for a longitude."""
    longitude: float
    noon_hour: int
    hours: List[int]


@router.post("/forecast", response_model=LocationForecastsPayload, response_model_by_alias=True)
def location_forecast(location: LocationSamplesIn):
    """Build and encode the per-day forecasts of one location."""
    config = settings.forecast_config()
    try:
        location.check_pressure_levels_match(config.pressure_levels_hpa)
    except ValueError as exc:
        logger.debug("Rejected location with unexpected pressure levels")
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    samples = location.to_samples()
    logger.info(
        "Building location forecast",
        extra={"latitude": location.latitude, "longitude": location.longitude, "samples": len(samples)},
    )
    forecasts = build_location_forecasts(location.to_point(), samples, config, elevation=location.elevation)
    return encode_location_forecasts(forecasts)


@router.get("/relevant-hours", response_model=RelevantHoursResponse)
def get_relevant_hours(longitude: float = Query(ge=-180, lt=180)):
    """Return the model hours kept around local noon for a longitude."""
    config = settings.forecast_config()
    hours = relevant_hours(longitude, config.time_resolution_hours, config.relevant_periods_per_day)
    return RelevantHoursResponse(
        longitude=longitude,
        noon_hour=noon_hour(longitude, config.time_resolution_hours),
        hours=sorted(hours),
    )
