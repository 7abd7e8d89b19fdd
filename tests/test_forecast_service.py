import datetime as dt
import logging
import unittest

from soarcast.config import ForecastConfig
from soarcast.forecast_service import build_location_forecasts
from soarcast.indices import sample_convective_clouds, thunderstorm_risk
from soarcast.samples import CloudCover, GeoPoint, PressureColumn

from tests.factories import at, make_air, make_column, make_sample


def _three_hourly(start: dt.datetime, end: dt.datetime, **overrides):
    samples = []
    time = start
    while time <= end:
        samples.append(make_sample(time, **overrides))
        time += dt.timedelta(hours=3)
    return samples


class TestBuildLocationForecasts(unittest.TestCase):
    def setUp(self):
        self.config = ForecastConfig()
        self.point = GeoPoint(latitude=46.5, longitude=0.0)

    def test_groups_relevant_hours_by_day(self):
        samples = _three_hourly(at(1, 3), at(3, 0))
        forecasts = build_location_forecasts(self.point, samples, self.config)

        self.assertEqual([day.date for day in forecasts.day_forecasts], [dt.date(2024, 6, 1), dt.date(2024, 6, 2)])
        for day in forecasts.day_forecasts:
            self.assertEqual([hour.time.hour for hour in day.hour_forecasts], [9, 12, 15])
            self.assertTrue(all(hour.time.date() == day.date for hour in day.hour_forecasts))

    def test_configured_levels_are_recorded(self):
        config = ForecastConfig(pressure_levels_hpa=(500, 700, 850))
        forecasts = build_location_forecasts(self.point, _three_hourly(at(1, 9), at(1, 15)), config)
        self.assertEqual(forecasts.pressure_levels, (500, 700, 850))

    def test_rain_is_computed_before_filtering(self):
        totals = {3: 1.0, 6: 2.0, 9: 4.0, 12: 4.5, 15: 7.5}
        samples = [make_sample(at(1, h), accumulated_rain=r) for h, r in totals.items()]
        forecasts = build_location_forecasts(self.point, samples, self.config)

        (day,) = forecasts.day_forecasts
        self.assertEqual([hour.rain.total for hour in day.hour_forecasts], [2.0, 0.5, 3.0])

    def test_risk_of_a_complete_day(self):
        stormy = {
            "cloud_cover": CloudCover(entire=100.0, low=0.0, middle=0.0, high=0.0, conv=100.0, boundary=0.0),
            "cape": 600.0,
            "at_pressure": make_column(aloft_humidity=110.0),
        }
        samples = _three_hourly(at(1, 9), at(1, 15), **stormy)
        forecasts = build_location_forecasts(self.point, samples, self.config)

        (day,) = forecasts.day_forecasts
        self.assertEqual(day.thunderstorm_risk, thunderstorm_risk(*day.hour_forecasts))
        self.assertEqual(day.thunderstorm_risk, 4)

    def test_incomplete_day_has_no_risk(self):
        stormy = {
            "cloud_cover": CloudCover(entire=100.0, low=0.0, middle=0.0, high=0.0, conv=100.0, boundary=0.0),
            "cape": 600.0,
            "at_pressure": make_column(aloft_humidity=110.0),
        }
        samples = _three_hourly(at(1, 9), at(1, 12), **stormy)
        with self.assertLogs("soarcast.forecast_service", level=logging.DEBUG) as captured:
            forecasts = build_location_forecasts(self.point, samples, self.config)

        (day,) = forecasts.day_forecasts
        self.assertEqual(len(day.hour_forecasts), 2)
        self.assertEqual(day.thunderstorm_risk, 0)
        self.assertTrue(any("thunderstorm risk" in message for message in captured.output))

    def test_hours_follow_the_sample_offset(self):
        plus_two = dt.timezone(dt.timedelta(hours=2))
        samples = [make_sample(dt.datetime(2024, 6, 1, h, tzinfo=plus_two)) for h in range(0, 24, 3)]
        forecasts = build_location_forecasts(self.point, samples, self.config)

        (day,) = forecasts.day_forecasts
        self.assertEqual([hour.time.hour for hour in day.hour_forecasts], [9, 12, 15])

    def test_antimeridian_days_split_at_midnight(self):
        point = GeoPoint(latitude=-17.5, longitude=-180.0)
        samples = _three_hourly(at(1, 0), at(2, 3))
        forecasts = build_location_forecasts(point, samples, self.config)

        hours = [[hour.time.hour for hour in day.hour_forecasts] for day in forecasts.day_forecasts]
        self.assertEqual(hours, [[0, 3, 21], [0, 3]])

    def test_convective_clouds_are_attached(self):
        samples = _three_hourly(at(1, 9), at(1, 15), surface_relative_humidity=90.0)
        forecasts = build_location_forecasts(self.point, samples, self.config)

        for hour in forecasts.day_forecasts[0].hour_forecasts:
            self.assertIsNotNone(hour.convective_clouds)
            self.assertEqual(hour.convective_clouds, sample_convective_clouds(hour.sample))

    def test_completely_dry_level_does_not_break_the_day(self):
        column = PressureColumn({
            300: make_air(9200.0, -45.0, 0.0),
            700: make_air(3000.0, 0.0, 50.0),
            850: make_air(1500.0, 10.0, 60.0),
        })
        samples = _three_hourly(at(1, 9), at(1, 15), at_pressure=column, surface_relative_humidity=0.0)
        forecasts = build_location_forecasts(self.point, samples, self.config)

        (day,) = forecasts.day_forecasts
        self.assertEqual(len(day.hour_forecasts), 3)
        self.assertIn(day.thunderstorm_risk, range(5))
        self.assertTrue(all(hour.convective_clouds is None for hour in day.hour_forecasts))

    def test_dry_surface_has_no_convective_clouds(self):
        samples = _three_hourly(at(1, 9), at(1, 15))
        forecasts = build_location_forecasts(self.point, samples, self.config)

        self.assertTrue(all(hour.convective_clouds is None for hour in forecasts.day_forecasts[0].hour_forecasts))


class TestElevation(unittest.TestCase):
    def setUp(self):
        self.point = GeoPoint(latitude=46.5, longitude=0.0)

    def test_elevation_of_first_sample(self):
        samples = [make_sample(at(1, 9), elevation=812.0), make_sample(at(1, 12), elevation=815.0)]
        forecasts = build_location_forecasts(self.point, samples, ForecastConfig())
        self.assertEqual(forecasts.elevation, 812.0)

    def test_explicit_elevation_wins(self):
        samples = [make_sample(at(1, 9), elevation=812.0)]
        forecasts = build_location_forecasts(self.point, samples, ForecastConfig(), elevation=1200.0)
        self.assertEqual(forecasts.elevation, 1200.0)

    def test_no_samples(self):
        forecasts = build_location_forecasts(self.point, [], ForecastConfig())
        self.assertEqual(forecasts.elevation, 0.0)
        self.assertEqual(forecasts.day_forecasts, ())


if __name__ == "__main__":
    unittest.main()
