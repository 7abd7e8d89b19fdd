import os
import unittest

from pydantic import ValidationError

from soarcast.config import ForecastConfig, Settings


class TestSettings(unittest.TestCase):
    def _with_env(self, **values):
        """Set SOARCAST_* variables for the duration of one test."""
        previous = {}
        for name, value in values.items():
            key = f"SOARCAST_{name}"
            previous[key] = os.environ.get(key)
            os.environ[key] = value

        def restore():
            for key, old in previous.items():
                if old is None:
                    os.environ.pop(key, None)
                else:
                    os.environ[key] = old

        self.addCleanup(restore)

    def test_settings_defaults(self):
        previous = os.environ.pop("SOARCAST_FORECAST_TIME_RESOLUTION_HOURS", None)
        try:
            s = Settings()
            self.assertEqual(s.forecast_time_resolution_hours, 3)
            self.assertEqual(s.relevant_periods_per_day, 3)
            self.assertEqual(s.pressure_levels_hpa[0], 300)
            self.assertEqual(s.pressure_levels_hpa[-1], 1000)
        finally:
            if previous is not None:
                os.environ["SOARCAST_FORECAST_TIME_RESOLUTION_HOURS"] = previous

    def test_settings_env_override(self):
        self._with_env(FORECAST_TIME_RESOLUTION_HOURS="1", LOG_LEVEL="debug")
        s = Settings()
        self.assertEqual(s.forecast_time_resolution_hours, 1)
        self.assertEqual(s.log_level, "DEBUG")
        self.assertEqual(s.forecast_config().forecasts_per_day, 24)

    def test_pressure_levels_from_env_are_sorted(self):
        self._with_env(PRESSURE_LEVELS_HPA="[850, 500, 700, 850]")
        s = Settings()
        self.assertEqual(s.pressure_levels_hpa, [500, 700, 850])
        self.assertEqual(s.forecast_config().pressure_levels_hpa, (500, 700, 850))

    def test_invalid_resolution_fails_at_load(self):
        self._with_env(FORECAST_TIME_RESOLUTION_HOURS="5")
        with self.assertRaises(ValidationError):
            Settings()


class TestForecastConfig(unittest.TestCase):
    def test_defaults(self):
        config = ForecastConfig()
        self.assertEqual(config.forecasts_per_day, 8)
        self.assertEqual(config.pressure_levels_hpa, tuple(range(300, 1001, 50)))

    def test_resolution_must_divide_a_day(self):
        for resolution in (0, -3, 5, 7):
            with self.subTest(resolution=resolution):
                with self.assertRaises(ValueError):
                    ForecastConfig(time_resolution_hours=resolution)

    def test_periods_must_fit_in_a_day(self):
        with self.assertRaises(ValueError):
            ForecastConfig(relevant_periods_per_day=0)
        with self.assertRaises(ValueError):
            ForecastConfig(time_resolution_hours=6, relevant_periods_per_day=5)

    def test_levels_must_be_ascending(self):
        with self.assertRaises(ValueError):
            ForecastConfig(pressure_levels_hpa=(850, 700))
        with self.assertRaises(ValueError):
            ForecastConfig(pressure_levels_hpa=())

    def test_levels_are_frozen_into_a_tuple(self):
        config = ForecastConfig(pressure_levels_hpa=[500, 850])
        self.assertEqual(config.pressure_levels_hpa, (500, 850))


if __name__ == "__main__":
    unittest.main()
