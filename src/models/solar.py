"""
Pydantic models for places, solar context snapshots and engine state
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Tuple

import pytz
from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_CITY = "Loading..."
DENIED_CITY = "Location Access Denied"

# Fixed instant used for every placeholder event time
PLACEHOLDER_INSTANT = datetime(2000, 1, 1, 12, 0, tzinfo=pytz.utc)

COMPASS_POINTS = [
    "N",
    "NNE",
    "NE",
    "ENE",
    "E",
    "ESE",
    "SE",
    "SSE",
    "S",
    "SSW",
    "SW",
    "WSW",
    "W",
    "WNW",
    "NW",
    "NNW",
]


class ResolutionMode(str, Enum):
    """Where the active place comes from"""

    USE_DEVICE_LOCATION = "use_device_location"
    USE_MANUAL_PLACE = "use_manual_place"


class AuthorizationState(str, Enum):
    """Mirror of the platform's location-permission states"""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"


class SkyCondition(str, Enum):
    NIGHT = "night"
    SUNRISE = "sunrise"
    DAYLIGHT = "daylight"
    SUNSET = "sunset"


class LoadingStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class LoadingState(BaseModel):
    """Tagged loading state; message is only set for the error variant"""

    model_config = ConfigDict(frozen=True)

    status: LoadingStatus = Field(..., description="Current loading status")
    message: Optional[str] = Field(
        default=None, description="Human-readable error message"
    )

    @classmethod
    def idle(cls) -> "LoadingState":
        return cls(status=LoadingStatus.IDLE)

    @classmethod
    def loading(cls) -> "LoadingState":
        return cls(status=LoadingStatus.LOADING)

    @classmethod
    def success(cls) -> "LoadingState":
        return cls(status=LoadingStatus.SUCCESS)

    @classmethod
    def error(cls, message: str) -> "LoadingState":
        return cls(status=LoadingStatus.ERROR, message=message)

    @property
    def is_loading(self) -> bool:
        return self.status == LoadingStatus.LOADING

    @property
    def is_terminal(self) -> bool:
        return self.status in (LoadingStatus.SUCCESS, LoadingStatus.ERROR)


class Place(BaseModel):
    """A named location; identity is by name and rounded coordinates"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the place")
    latitude: Optional[float] = Field(default=None, description="Latitude in degrees")
    longitude: Optional[float] = Field(
        default=None, description="Longitude in degrees (east positive)"
    )
    timezone: Optional[str] = Field(
        default=None, description="IANA timezone identifier"
    )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def identity(self) -> Tuple[str, Optional[float], Optional[float]]:
        lat = round(self.latitude, 4) if self.latitude is not None else None
        lon = round(self.longitude, 4) if self.longitude is not None else None
        return self.name, lat, lon

    def __eq__(self, other) -> bool:
        if not isinstance(other, Place):
            return NotImplemented
        return self.identity() == other.identity()

    def __hash__(self) -> int:
        return hash(self.identity())


class Placemark(BaseModel):
    """Reverse-geocoded description of a device fix"""

    model_config = ConfigDict(frozen=True)

    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None


class LocationFix(BaseModel):
    """A single position reported by the device"""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(pytz.utc))


class SunPosition(BaseModel):
    """Sun altitude (refraction corrected) and azimuth clockwise from north, in degrees"""

    model_config = ConfigDict(frozen=True)

    altitude: float
    azimuth: float


def uv_category(index: int) -> str:
    """Map a rounded UV index onto its category label"""
    if index >= 11:
        return "Extreme"
    elif index >= 8:
        return "Very High"
    elif index >= 6:
        return "High"
    elif index >= 3:
        return "Moderate"
    return "Low"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves away from zero"""
    if value < 0:
        return -round_half_up(-value)
    return int(value + 0.5)


class HourlyUV(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: datetime
    uv_index: float

    @property
    def rounded_index(self) -> int:
        return round_half_up(self.uv_index)

    @property
    def category(self) -> str:
        return uv_category(self.rounded_index)


SKY_GREETINGS = {
    SkyCondition.SUNRISE: "Sunrise is approaching.",
    SkyCondition.DAYLIGHT: "Enjoy the daylight.",
    SkyCondition.SUNSET: "Sunset is nearing.",
    SkyCondition.NIGHT: "Good night!",
}


def format_time_difference(
    start: datetime, end: datetime, is_duration: bool = False
) -> str:
    """
    Format the whole minutes from ``start`` to ``end``.

    Upcoming events read ``2h 5m``, ``3h`` or ``Now``; durations read
    ``1h 12m ago`` or ``0m ago``. A negative span gives ``N/A``.
    """
    minutes = int((end - start).total_seconds() / 60)
    if minutes < 0:
        return "N/A"
    if minutes == 0 and not is_duration:
        return "Now"

    hours, minutes = divmod(minutes, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes or not hours:
        parts.append(f"{minutes}m")
    if is_duration:
        parts.append("ago")
    return " ".join(parts)


class SolarContext(BaseModel):
    """
    The single current snapshot of solar, astronomical and environmental data.

    Instances are frozen; the engine replaces the whole snapshot on every commit
    and uses ``model_copy(update=...)`` to build enriched copies.
    """

    model_config = ConfigDict(frozen=True)

    place: Place
    current_date: date
    sunrise: datetime
    sunset: datetime
    solar_noon: datetime
    timezone: Optional[str] = None

    civil_twilight_begin: Optional[datetime] = None
    civil_twilight_end: Optional[datetime] = None
    nautical_twilight_begin: Optional[datetime] = None
    nautical_twilight_end: Optional[datetime] = None
    astronomical_twilight_begin: Optional[datetime] = None
    astronomical_twilight_end: Optional[datetime] = None

    moonrise: Optional[datetime] = None
    moonset: Optional[datetime] = None
    moon_illumination: Optional[float] = None

    hourly_uv: Tuple[HourlyUV, ...] = ()
    uv_index: int = 0
    uv_index_category: str = "Low"

    current_altitude: float = 0.0
    current_azimuth: float = 0.0

    us_aqi: Optional[int] = None
    pm2_5: Optional[float] = None

    weather_code: Optional[int] = None
    cloud_cover: Optional[int] = None

    is_placeholder: bool = False

    @classmethod
    def placeholder(
        cls, city: str = PLACEHOLDER_CITY, today: Optional[date] = None
    ) -> "SolarContext":
        return cls(
            place=Place(name=city),
            current_date=today or datetime.now(pytz.utc).date(),
            sunrise=PLACEHOLDER_INSTANT,
            sunset=PLACEHOLDER_INSTANT,
            solar_noon=PLACEHOLDER_INSTANT,
            current_azimuth=90.0,
            moon_illumination=0.5,
            is_placeholder=True,
        )

    @property
    def city(self) -> str:
        return self.place.name

    @property
    def us_aqi_category(self) -> str:
        aqi = self.us_aqi
        if aqi is None:
            return "N/A"
        if aqi <= 50:
            return "Good"
        if aqi <= 100:
            return "Moderate"
        if aqi <= 150:
            return "Unhealthy for Sensitive Groups"
        if aqi <= 200:
            return "Unhealthy"
        if aqi <= 300:
            return "Very Unhealthy"
        return "Hazardous"

    @property
    def moon_phase_name(self) -> str:
        illumination = self.moon_illumination
        if illumination is None:
            return "N/A"
        phases = [
            (0.03, "New Moon"),
            (0.23, "Waxing Crescent"),
            (0.27, "First Quarter"),
            (0.48, "Waxing Gibbous"),
            (0.52, "Full Moon"),
            (0.73, "Waning Gibbous"),
            (0.77, "Last Quarter"),
            (0.97, "Waning Crescent"),
        ]
        for upper, name in phases:
            if illumination < upper:
                return name
        if illumination <= 1.0:
            # End of the cycle
            return "New Moon"
        return "N/A"

    @property
    def heading(self) -> str:
        index = int(self.current_azimuth / 22.5 + 0.5) % 16
        return COMPASS_POINTS[index]

    @property
    def daylight_duration(self) -> str:
        if not self.sunrise < self.sunset:
            return "N/A"
        minutes = int((self.sunset - self.sunrise).total_seconds() // 60)
        return f"{minutes // 60}h {minutes % 60}m"

    def sky_condition(self, now: datetime) -> SkyCondition:
        """Classify the sky using a 30 minute window around sunrise and sunset"""
        offset = timedelta(minutes=30)
        if not self.sunrise < self.sunset:
            # Polar day/night or placeholder times: guess from the local hour
            hour = self.local_time(now).hour
            return SkyCondition.DAYLIGHT if 6 <= hour < 18 else SkyCondition.NIGHT
        if now < self.sunrise - offset or now > self.sunset + offset:
            return SkyCondition.NIGHT
        if now < self.sunrise + offset:
            return SkyCondition.SUNRISE
        if now >= self.sunset - offset:
            return SkyCondition.SUNSET
        return SkyCondition.DAYLIGHT

    def sun_progress(self, now: datetime) -> float:
        if self.is_placeholder:
            return 0.5
        total = (self.sunset - self.sunrise).total_seconds()
        if total <= 0:
            return 1.0 if now > self.sunset else 0.0
        elapsed = (now - self.sunrise).total_seconds()
        return max(0.0, min(1.0, elapsed / total))

    def golden_hours(self) -> Dict[str, Tuple[Optional[datetime], Optional[datetime]]]:
        hour = timedelta(hours=1)
        return {
            "morning_blue_hour": (self.civil_twilight_begin, self.sunrise),
            "morning_golden_hour": (self.sunrise, self.sunrise + hour),
            "evening_golden_hour": (self.sunset - hour, self.sunset),
            "evening_blue_hour": (self.sunset, self.civil_twilight_end),
        }

    def local_time(self, now: datetime) -> datetime:
        """``now`` in the context's timezone, or UTC when it has none"""
        if self.timezone:
            try:
                return now.astimezone(pytz.timezone(self.timezone))
            except pytz.UnknownTimeZoneError:
                pass
        return now.astimezone(pytz.utc)

    def countdowns(self, now: datetime) -> Dict[str, Optional[str]]:
        """Time to each upcoming event and time since each past one"""
        events = {
            "sunrise": self.sunrise,
            "solar_noon": self.solar_noon,
            "sunset": self.sunset,
        }
        result = {}
        for name, instant in events.items():
            upcoming = not self.is_placeholder and now < instant
            past = not self.is_placeholder and now >= instant
            result[f"to_{name}"] = (
                format_time_difference(now, instant) if upcoming else None
            )
            result[f"since_{name}"] = (
                format_time_difference(instant, now, is_duration=True) if past else None
            )
        return result

    def greeting(self, now: datetime) -> str:
        if self.is_placeholder or not self.sunrise < self.sunset:
            return SKY_GREETINGS[self.sky_condition(now)]

        countdowns = self.countdowns(now)
        if now < self.sunrise:
            remaining = countdowns["to_sunrise"]
            if remaining == "Now":
                return "Rise and shine! Sunrise is happening now."
            return f"It's {remaining} to sunrise."
        if now < self.solar_noon:
            remaining = countdowns["to_solar_noon"]
            if remaining == "Now":
                return "Look up! It's solar noon."
            return f"{remaining} until solar noon."
        if now < self.sunset:
            remaining = countdowns["to_sunset"]
            if remaining == "Now":
                return "Enjoy the view! Sunset is beginning."
            return f"{remaining} to sunset."
        return f"Sunset was {countdowns['since_sunset']}."
