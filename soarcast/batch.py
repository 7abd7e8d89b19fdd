"""
Batch driver: build and write the forecasts of many locations.

Usage:
    soarcast-batch samples.json --output-dir ./forecasts --workers 4

The input file is a JSON list of locations, each with its decoded samples
(see `soarcast.models.LocationSamplesIn`). One JSON file is written per
location.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from pathlib import Path
from typing import List, Optional, Sequence

import click
from pydantic import TypeAdapter

from soarcast.config import ForecastConfig, settings
from soarcast.encoder import location_forecasts_json
from soarcast.forecast_service import LocationForecasts, build_location_forecasts
from soarcast.models import LocationSamplesIn
from soarcast.samples import GeoPoint
from utils.logging_utils import configure_worker, get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="batch")

BATCH_JOB_NAME = "soarcast_batch"

_LOCATIONS_ADAPTER = TypeAdapter(List[LocationSamplesIn])


def _build_one(location: LocationSamplesIn, config: ForecastConfig) -> LocationForecasts:
    return build_location_forecasts(
        location.to_point(),
        location.to_samples(),
        config,
        elevation=location.elevation,
    )


def build_forecasts(
    locations: Sequence[LocationSamplesIn],
    config: ForecastConfig,
    *,
    max_workers: int = 1,
) -> List[LocationForecasts]:
    """
    Build the forecasts of every location, in input order.

    Locations are independent, so with `max_workers > 1` they are spread over
    a process pool.
    """
    build = partial(_build_one, config=config)
    if max_workers <= 1 or len(locations) <= 1:
        return [build(location) for location in locations]

    with ProcessPoolExecutor(
        max_workers=max_workers,
        initializer=configure_worker,
        initargs=(logging.getLogger().getEffectiveLevel(), BATCH_JOB_NAME),
    ) as executor:
        return list(executor.map(build, locations, chunksize=max(1, len(locations) // (max_workers * 4))))


def load_locations(path: Path) -> List[LocationSamplesIn]:
    """Read and validate a JSON list of locations."""
    return _LOCATIONS_ADAPTER.validate_json(path.read_bytes())


def forecast_file_name(point: GeoPoint) -> str:
    """File name of a location's forecast, e.g. "46.50_7.25.json"."""
    return f"{point.latitude:.2f}_{point.longitude:.2f}.json"


def write_forecasts(
    locations: Sequence[LocationSamplesIn],
    forecasts: Sequence[LocationForecasts],
    output_dir: Path,
) -> List[Path]:
    """Write one JSON document per location and return the written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for location, forecast in zip(locations, forecasts):
        path = output_dir / forecast_file_name(location.to_point())
        path.write_text(location_forecasts_json(forecast), encoding="utf-8")
        written.append(path)
    return written


@click.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output-dir", "-o", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Output directory (default: SOARCAST_OUTPUT_DIR)")
@click.option("--workers", type=int, default=None,
              help="Worker processes (default: SOARCAST_BATCH_WORKERS)")
def main(input_file: Path, output_dir: Optional[Path], workers: Optional[int]):
    """Build the per-day forecasts of every location in INPUT_FILE."""
    setup_logging(level=settings.log_level, job_name=BATCH_JOB_NAME)
    output_dir = output_dir or Path(settings.output_dir)
    workers = workers if workers is not None else settings.batch_workers

    started = time.monotonic()
    locations = load_locations(input_file)
    logger.info("Loaded locations", extra={"input_file": str(input_file), "locations": len(locations)})

    config = settings.forecast_config()
    for location in locations:
        try:
            location.check_pressure_levels_match(config.pressure_levels_hpa)
        except ValueError as exc:
            raise click.ClickException(f"{forecast_file_name(location.to_point())}: {exc}") from exc

    forecasts = build_forecasts(locations, config, max_workers=workers)
    written = write_forecasts(locations, forecasts, output_dir)

    logger.info(
        f"Wrote {len(written)} location forecasts to {output_dir} in {time.monotonic() - started:.1f}s"
    )


if __name__ == "__main__":
    main()
