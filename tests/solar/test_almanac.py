"""
Tests for the almanac derivation that builds a solar context
"""

import pytest
import sys
import os
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytz

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "src"))

from models.almanac import AlmanacResponse
from models.solar import Place, SunPosition
from utils.errors import ParseFailure
from utils.solar.almanac import build_solar_context, parse_local_datetime

NEW_YORK = pytz.timezone("America/New_York")
# 10:00 local time in New York
NOW = datetime(2025, 6, 21, 14, 0, tzinfo=pytz.utc)
HOURLY_UV = [0, 0, 0, 0, 0, 0, 0.2, 1, 2, 3, 4.5, 5.5, 7, 7.4, 7, 6, 4, 3, 1.5, 0.5, 0, 0, 0, 0]


def make_almanac(
    uv_max=7.4,
    sunrise="2025-06-21T05:25:00",
    sunset="2025-06-21T20:31:00",
    timezone="America/New_York",
    **daily_extra,
) -> AlmanacResponse:
    daily = {
        "time": ["2025-06-21"],
        "sunrise": [sunrise],
        "sunset": [sunset],
        "uv_index_max": [uv_max],
    }
    daily.update(daily_extra)
    return AlmanacResponse.model_validate(
        {
            "timezone": timezone,
            "daily": daily,
            "hourly": {
                "time": [f"2025-06-21T{hour:02d}:00" for hour in range(24)],
                "weathercode": list(range(24)),
                "cloudcover": [hour * 2 for hour in range(24)],
                "uv_index": HOURLY_UV,
            },
        }
    )


@pytest.fixture
def place():
    return Place(name="Philadelphia", latitude=39.9526, longitude=-75.1652)


class TestParseLocalDatetime:
    """Test cases for provider wall-time parsing"""

    def test_minutes_format(self):
        parsed = parse_local_datetime("2025-06-21T05:25", "America/New_York")
        assert parsed == datetime(2025, 6, 21, 9, 25, tzinfo=pytz.utc)

    def test_seconds_format(self):
        parsed = parse_local_datetime("2025-06-21T05:25:00", "America/New_York")
        assert parsed == datetime(2025, 6, 21, 9, 25, tzinfo=pytz.utc)

    def test_uses_given_timezone(self):
        parsed = parse_local_datetime("2025-01-15T12:00", "Asia/Tokyo")
        assert parsed == datetime(2025, 1, 15, 3, 0, tzinfo=pytz.utc)

    @pytest.mark.parametrize("text", [None, "", "sunrise", "2025-13-40T99:99"])
    def test_unparseable_returns_none(self, text):
        assert parse_local_datetime(text, "America/New_York") is None

    def test_unknown_timezone_returns_none(self):
        assert parse_local_datetime("2025-06-21T05:25", "Nowhere/Land") is None


class TestBuildSolarContext:
    """Test cases for build_solar_context"""

    def test_solar_noon_is_midpoint(self, place):
        context = build_solar_context(place, make_almanac(), NOW)

        local_noon = context.solar_noon.astimezone(NEW_YORK)
        assert (local_noon.hour, local_noon.minute) == (12, 58)
        assert local_noon.date() == datetime(2025, 6, 21).date()

    def test_sunrise_and_sunset_use_response_timezone(self, place):
        context = build_solar_context(place, make_almanac(), NOW)

        assert context.sunrise == datetime(2025, 6, 21, 9, 25, tzinfo=pytz.utc)
        assert context.sunset == datetime(2025, 6, 22, 0, 31, tzinfo=pytz.utc)
        assert context.timezone == "America/New_York"
        assert context.place.timezone == "America/New_York"
        assert context.current_date == datetime(2025, 6, 21).date()

    @pytest.mark.parametrize(
        "uv_max,index,category",
        [
            (7.4, 7, "High"),
            (2.4, 2, "Low"),
            (2.5, 3, "Moderate"),
            (8.0, 8, "Very High"),
            (10.6, 11, "Extreme"),
            (None, 0, "Low"),
        ],
    )
    def test_uv_category(self, place, uv_max, index, category):
        context = build_solar_context(place, make_almanac(uv_max=uv_max), NOW)

        assert context.uv_index == index
        assert context.uv_index_category == category

    def test_current_hour_conditions(self, place):
        context = build_solar_context(place, make_almanac(), NOW)

        # 10:00 local
        assert context.weather_code == 10
        assert context.cloud_cover == 20

    def test_hourly_uv_is_future_only_and_chronological(self, place):
        context = build_solar_context(place, make_almanac(), NOW, horizon_hours=12)

        times = [sample.time for sample in context.hourly_uv]
        assert times == sorted(times)
        assert all(NOW <= t <= NOW + timedelta(hours=12) for t in times)
        # 10:00 through 22:00 local
        assert len(times) == 13
        assert context.hourly_uv[0].uv_index == 4.5
        assert context.hourly_uv[1].rounded_index == 6
        assert context.hourly_uv[1].category == "High"

    def test_hourly_uv_respects_horizon(self, place):
        context = build_solar_context(place, make_almanac(), NOW, horizon_hours=3)
        assert len(context.hourly_uv) == 4

    def test_sun_position_uses_response_timezone(self, place):
        calculator = MagicMock()
        calculator.calculate.return_value = SunPosition(altitude=42.0, azimuth=101.0)

        context = build_solar_context(place, make_almanac(), NOW, calculator=calculator)

        calculator.calculate.assert_called_once_with(
            NOW, 39.9526, -75.1652, "America/New_York"
        )
        assert context.current_altitude == 42.0
        assert context.current_azimuth == 101.0

    def test_invalid_sun_position_falls_back_to_zero(self, place):
        calculator = MagicMock()
        calculator.calculate.return_value = None

        context = build_solar_context(place, make_almanac(), NOW, calculator=calculator)

        assert context.current_altitude == 0.0
        assert context.current_azimuth == 0.0

    def test_optional_twilight_and_moon_fields(self, place):
        almanac = make_almanac(
            civil_twilight_begin=["2025-06-21T04:52"],
            civil_twilight_end=["2025-06-21T21:04"],
            moonrise=["2025-06-21T01:40"],
            moonset=["2025-06-21T16:55"],
            moon_phase=[0.18],
        )
        context = build_solar_context(place, almanac, NOW)

        assert context.civil_twilight_begin == datetime(
            2025, 6, 21, 8, 52, tzinfo=pytz.utc
        )
        assert context.civil_twilight_end == datetime(2025, 6, 22, 1, 4, tzinfo=pytz.utc)
        assert context.moonrise == datetime(2025, 6, 21, 5, 40, tzinfo=pytz.utc)
        assert context.moon_illumination == 0.18
        assert context.nautical_twilight_begin is None

    def test_missing_daily_data_raises(self, place):
        almanac = AlmanacResponse.model_validate(
            {"timezone": "America/New_York", "daily": {}}
        )

        with pytest.raises(ParseFailure, match="missing essential daily data for Philadelphia"):
            build_solar_context(place, almanac, NOW)

    def test_unparseable_sunrise_raises(self, place):
        almanac = make_almanac(sunrise="not a time")

        with pytest.raises(
            ParseFailure,
            match="Could not parse date/time strings for Philadelphia using timezone America/New_York",
        ):
            build_solar_context(place, almanac, NOW)

    def test_unknown_response_timezone_raises(self, place):
        with pytest.raises(ParseFailure):
            build_solar_context(place, make_almanac(timezone="Nowhere/Land"), NOW)

    def test_missing_hourly_series(self, place):
        almanac = AlmanacResponse.model_validate(
            {
                "timezone": "America/New_York",
                "daily": {
                    "time": ["2025-06-21"],
                    "sunrise": ["2025-06-21T05:25"],
                    "sunset": ["2025-06-21T20:31"],
                    "uv_index_max": [7.4],
                },
            }
        )
        context = build_solar_context(place, almanac, NOW)

        assert context.hourly_uv == ()
        assert context.weather_code is None
        assert context.cloud_cover is None
