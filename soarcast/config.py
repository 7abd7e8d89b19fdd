"""Forecast engine configuration pulled from environment variables via pydantic."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class ForecastConfig:
    """Constants of one model run, threaded explicitly into the selector and builder."""
    time_resolution_hours: int = 3
    relevant_periods_per_day: int = 3
    pressure_levels_hpa: Tuple[int, ...] = tuple(range(300, 1001, 50))

    def __post_init__(self):
        if self.time_resolution_hours <= 0 or HOURS_PER_DAY % self.time_resolution_hours != 0:
            raise ValueError(
                f"time_resolution_hours must divide {HOURS_PER_DAY}, got {self.time_resolution_hours}"
            )
        if not 1 <= self.relevant_periods_per_day <= self.forecasts_per_day:
            raise ValueError(
                f"relevant_periods_per_day must be between 1 and {self.forecasts_per_day}, "
                f"got {self.relevant_periods_per_day}"
            )
        levels = tuple(self.pressure_levels_hpa)
        if not levels:
            raise ValueError("pressure_levels_hpa must not be empty")
        if list(levels) != sorted(set(levels)):
            raise ValueError("pressure_levels_hpa must be strictly ascending")
        object.__setattr__(self, "pressure_levels_hpa", levels)

    @property
    def forecasts_per_day(self) -> int:
        """Number of model time steps in one day."""
        return HOURS_PER_DAY // self.time_resolution_hours


class Settings(BaseSettings):
    """Environment-driven configuration for soarcast."""
    model_config = SettingsConfigDict(env_prefix="SOARCAST_", extra="ignore")

    forecast_time_resolution_hours: int = 3
    relevant_periods_per_day: int = 3
    pressure_levels_hpa: list[int] = Field(default_factory=lambda: list(range(300, 1001, 50)))
    api_key: str | None = None
    batch_workers: int = 1
    output_dir: str = "./forecasts"
    log_level: str = "INFO"

    @field_validator("pressure_levels_hpa", mode="after")
    @classmethod
    def sort_levels(cls, v: list[int]) -> list[int]:
        """Keep levels in ascending pressure order whatever the env order."""
        return sorted(set(v))

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_forecast_config(self) -> "Settings":
        """Fail at startup rather than on the first location."""
        self.forecast_config()
        return self

    def forecast_config(self) -> ForecastConfig:
        """Freeze the run constants into a ForecastConfig."""
        return ForecastConfig(
            time_resolution_hours=self.forecast_time_resolution_hours,
            relevant_periods_per_day=self.relevant_periods_per_day,
            pressure_levels_hpa=tuple(self.pressure_levels_hpa),
        )


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
