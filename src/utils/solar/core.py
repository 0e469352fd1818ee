"""
Core solar position calculation (altitude/azimuth) from a low-precision ephemeris
"""

import logging
import math
from datetime import datetime
from typing import Optional

import pytz

from models.solar import SunPosition
from .constants import SolarConstants

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


class SolarPositionCalculator:
    """Pure sun-position calculator; stateless and safe to call concurrently"""

    @staticmethod
    def _normalize_angle(angle_rad: float) -> float:
        """Normalize an angle in radians into [0, 2*pi)"""
        result = math.fmod(angle_rad, TWO_PI)
        if result < 0:
            result += TWO_PI
        return result

    @staticmethod
    def _utc_hours(moment: datetime) -> float:
        """Fractional hour of day in UTC, including sub-second precision"""
        utc = moment.astimezone(pytz.utc)
        return (
            utc.hour
            + utc.minute / 60.0
            + utc.second / 3600.0
            + utc.microsecond / 3_600_000_000.0
        )

    @staticmethod
    def julian_day(moment: datetime, tz) -> float:
        """
        Julian Day for an instant.

        The calendar date (year/month/day) is taken in the observer's timezone
        while the day fraction is taken in UTC.
        """
        local = moment.astimezone(tz)
        year, month, day = local.year, local.month, local.day
        day_fraction = SolarPositionCalculator._utc_hours(moment) / 24.0

        if month <= 2:
            year -= 1
            month += 12

        a = math.floor(year / 100.0)
        b = 2 - a + math.floor(a / 4.0)

        return (
            math.floor(365.25 * (year + 4716.0))
            + math.floor(30.6001 * (month + 1.0))
            + day
            + b
            - 1524.5
            + day_fraction
        )

    @staticmethod
    def _refraction_degrees(altitude_deg: float) -> float:
        """Atmospheric refraction correction for an unrefracted altitude"""
        h = altitude_deg
        if h > 85.0:
            return 0.0
        tan_h = math.tan(math.radians(h))
        if h > 5.0:
            return (58.1 / tan_h - 0.07 / tan_h**3 + 0.000086 / tan_h**5) / 3600.0
        if h > -0.575:
            return (1735.0 + h * (-518.2 + h * (103.4 + h * (-12.79 + h * 0.711)))) / 3600.0
        return -20.774 / tan_h / 3600.0

    @staticmethod
    def calculate(
        moment: datetime, latitude: float, longitude: float, timezone_identifier: str
    ) -> Optional[SunPosition]:
        """Calculate the sun position for an instant and observer.

        Args:
            moment: Instant to evaluate; naive values are treated as UTC
            latitude: Observer latitude in degrees
            longitude: Observer longitude in degrees (east positive)
            timezone_identifier: IANA timezone of the observer

        Returns:
            SunPosition in degrees, or None when the timezone cannot be resolved
        """
        try:
            tz = pytz.timezone(timezone_identifier)
        except (pytz.UnknownTimeZoneError, AttributeError, TypeError):
            logger.warning(f"Invalid timezone identifier: {timezone_identifier!r}")
            return None

        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)

        normalize = SolarPositionCalculator._normalize_angle

        jd = SolarPositionCalculator.julian_day(moment, tz)
        t = (jd - SolarConstants.J2000) / SolarConstants.DAYS_PER_CENTURY

        mean_longitude = normalize(
            math.radians(280.46646 + t * (36000.76983 + t * 0.0003032))
        )
        mean_anomaly = normalize(
            math.radians(357.52911 + t * (35999.05029 - t * 0.0001537))
        )

        # Equation of center, in degrees
        center = (
            math.sin(mean_anomaly) * (1.914602 - t * (0.004817 + 0.000014 * t))
            + math.sin(2 * mean_anomaly) * (0.019993 - t * 0.000101)
            + math.sin(3 * mean_anomaly) * 0.000289
        )
        true_longitude = mean_longitude + math.radians(center)

        obliquity = math.radians(
            23.0
            + 26.0 / 60.0
            + 21.448 / 3600.0
            - t
            * (
                46.8150 / 3600.0
                + t * (0.00059 / 3600.0 - t * (0.001813 / 3600.0))
            )
        )

        right_ascension = normalize(
            math.atan2(
                math.cos(obliquity) * math.sin(true_longitude),
                math.cos(true_longitude),
            )
        )
        declination = math.asin(math.sin(obliquity) * math.sin(true_longitude))

        gmst_hours = (
            6.697374558
            + 0.06570982441908 * (jd - SolarConstants.J2000)
            + 1.00273790935 * SolarPositionCalculator._utc_hours(moment)
        )
        lmst_hours = math.fmod(gmst_hours + longitude / 15.0, 24.0)
        hour_angle = math.radians(lmst_hours * 15.0) - right_ascension

        lat = math.radians(latitude)
        altitude = math.asin(
            math.sin(lat) * math.sin(declination)
            + math.cos(lat) * math.cos(declination) * math.cos(hour_angle)
        )

        # South-referenced azimuth rotated to north-referenced clockwise
        azimuth = math.atan2(
            math.sin(hour_angle),
            math.cos(hour_angle) * math.sin(lat) - math.tan(declination) * math.cos(lat),
        )
        azimuth = normalize(azimuth + math.pi)

        altitude_deg = math.degrees(altitude)
        altitude_deg += SolarPositionCalculator._refraction_degrees(altitude_deg)
        altitude_deg = max(-90.0, min(90.0, altitude_deg))

        azimuth_deg = math.degrees(azimuth)
        if azimuth_deg >= 360.0:
            azimuth_deg = 0.0

        return SunPosition(altitude=altitude_deg, azimuth=azimuth_deg)
