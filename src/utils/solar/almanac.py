"""
Derivation of a solar context from a remote almanac payload
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

import pytz

from models.almanac import AlmanacResponse, HourlyAlmanac
from models.solar import HourlyUV, Place, SolarContext, round_half_up, uv_category
from utils.errors import ParseFailure
from .constants import SolarConstants
from .core import SolarPositionCalculator

logger = logging.getLogger(__name__)


def parse_local_datetime(text: Optional[str], timezone_identifier: str) -> Optional[datetime]:
    """Parse a provider wall-clock time in the given timezone into an aware UTC datetime"""
    if not text:
        return None

    try:
        tz = pytz.timezone(timezone_identifier)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Could not resolve timezone {timezone_identifier!r}")
        return None

    try:
        naive = datetime.strptime(text, SolarConstants.LOCAL_TIME_FORMAT)
    except ValueError:
        try:
            naive = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Could not parse date-time string: {text}")
            return None
        if naive.tzinfo is not None:
            return naive.astimezone(pytz.utc)

    return tz.localize(naive).astimezone(pytz.utc)


def _first(series: Optional[Sequence]):
    if not series:
        return None
    return series[0]


def _at(series: Optional[Sequence], index: int):
    if series is None or index >= len(series):
        return None
    return series[index]


def _current_hour_conditions(
    hourly: Optional[HourlyAlmanac], timezone_identifier: str, local_now: datetime
) -> Tuple[Optional[int], Optional[int]]:
    """Weather code and cloud cover of the hourly entry matching the current local hour"""
    if hourly is None or hourly.weathercode is None or hourly.cloudcover is None:
        return None, None

    tz = local_now.tzinfo
    for index, time_str in enumerate(hourly.time):
        instant = parse_local_datetime(time_str, timezone_identifier)
        if instant is None:
            continue
        local = instant.astimezone(tz)
        if local.date() == local_now.date() and local.hour == local_now.hour:
            return _at(hourly.weathercode, index), _at(hourly.cloudcover, index)

    return None, None


def _future_uv_series(
    hourly: Optional[HourlyAlmanac],
    timezone_identifier: str,
    now: datetime,
    horizon_hours: int,
) -> Tuple[HourlyUV, ...]:
    """Hourly UV samples between now and the horizon, chronological"""
    if hourly is None or hourly.uv_index is None:
        return ()

    horizon = now + timedelta(hours=horizon_hours)
    samples: List[HourlyUV] = []
    for index, time_str in enumerate(hourly.time):
        value = _at(hourly.uv_index, index)
        if value is None:
            continue
        instant = parse_local_datetime(time_str, timezone_identifier)
        if instant is None:
            continue
        if now <= instant <= horizon:
            samples.append(HourlyUV(time=instant, uv_index=value))

    return tuple(sorted(samples, key=lambda sample: sample.time))


def build_solar_context(
    place: Place,
    almanac: AlmanacResponse,
    now: datetime,
    calculator=SolarPositionCalculator,
    horizon_hours: int = 12,
) -> SolarContext:
    """Turn an almanac payload into a new solar context for the place.

    All wall-clock strings are interpreted in the timezone reported by the
    response, never the host timezone.

    Raises:
        ParseFailure: daily data is missing or its strings cannot be parsed
    """
    tz_id = almanac.timezone
    daily = almanac.daily

    if not daily.time or not daily.sunrise or not daily.sunset:
        raise ParseFailure(f"API response missing essential daily data for {place.name}.")

    try:
        current_date = datetime.strptime(daily.time[0], SolarConstants.DATE_FORMAT).date()
    except ValueError:
        current_date = None
    sunrise = parse_local_datetime(daily.sunrise[0], tz_id)
    sunset = parse_local_datetime(daily.sunset[0], tz_id)

    if current_date is None or sunrise is None or sunset is None:
        raise ParseFailure(
            f"Could not parse date/time strings for {place.name} using timezone {tz_id}."
        )

    uv_max = _first(daily.uv_index_max)
    uv_index = round_half_up(uv_max or 0.0)
    solar_noon = sunrise + (sunset - sunrise) / 2

    local_now = now.astimezone(pytz.timezone(tz_id))
    weather_code, cloud_cover = _current_hour_conditions(almanac.hourly, tz_id, local_now)
    hourly_uv = _future_uv_series(almanac.hourly, tz_id, now, horizon_hours)

    position = calculator.calculate(now, place.latitude, place.longitude, tz_id)

    def parse_first(series):
        return parse_local_datetime(_first(series), tz_id)

    return SolarContext(
        place=Place(
            name=place.name,
            latitude=place.latitude,
            longitude=place.longitude,
            timezone=tz_id,
        ),
        current_date=current_date,
        sunrise=sunrise,
        sunset=sunset,
        solar_noon=solar_noon,
        timezone=tz_id,
        civil_twilight_begin=parse_first(daily.civil_twilight_begin),
        civil_twilight_end=parse_first(daily.civil_twilight_end),
        nautical_twilight_begin=parse_first(daily.nautical_twilight_begin),
        nautical_twilight_end=parse_first(daily.nautical_twilight_end),
        astronomical_twilight_begin=parse_first(daily.astronomical_twilight_begin),
        astronomical_twilight_end=parse_first(daily.astronomical_twilight_end),
        moonrise=parse_first(daily.moonrise),
        moonset=parse_first(daily.moonset),
        moon_illumination=_first(daily.moon_phase),
        hourly_uv=hourly_uv,
        uv_index=uv_index,
        uv_index_category=uv_category(uv_index),
        current_altitude=position.altitude if position else 0.0,
        current_azimuth=position.azimuth if position else 0.0,
        weather_code=weather_code,
        cloud_cover=cloud_cover,
    )
