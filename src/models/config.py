"""
Pydantic models for service configuration and user settings
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from .solar import ResolutionMode


class DefaultPlaceConfig(BaseModel):
    """Place used when nothing has been selected yet"""

    name: str = Field(default="Philadelphia", description="Display name")
    latitude: float = Field(default=39.9526, description="Latitude in degrees")
    longitude: float = Field(default=-75.1652, description="Longitude in degrees")
    timezone: Optional[str] = Field(
        default="America/New_York", description="IANA timezone identifier"
    )


class ProviderConfig(BaseModel):
    """Remote almanac and air-quality provider settings"""

    forecastUrl: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Forecast (almanac) endpoint",
    )
    airQualityUrl: str = Field(
        default="https://air-quality-api.open-meteo.com/v1/air-quality",
        description="Air-quality endpoint",
    )
    timeoutSeconds: float = Field(default=10.0, description="HTTP timeout")
    dailyFields: List[str] = Field(
        default_factory=lambda: ["sunrise", "sunset", "uv_index_max"],
        description="Daily variables requested from the forecast endpoint",
    )
    hourlyFields: List[str] = Field(
        default_factory=lambda: ["weathercode", "cloudcover", "uv_index"],
        description="Hourly variables requested from the forecast endpoint",
    )


class GeocoderConfig(BaseModel):
    userAgent: str = Field(default="solar_sync_service", description="Nominatim user agent")
    timeoutSeconds: float = Field(default=10.0, description="Geocoder timeout")
    cacheTtlSeconds: int = Field(default=86400, description="Geocode cache TTL")


class ServiceConfig(BaseModel):
    """Top-level service configuration"""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    geocoder: GeocoderConfig = Field(default_factory=GeocoderConfig)
    defaultPlace: DefaultPlaceConfig = Field(default_factory=DefaultPlaceConfig)
    preferencesPath: str = Field(
        default="solar_preferences.json", description="Persisted preferences file"
    )
    deviceFixTimeoutSeconds: float = Field(
        default=30.0, description="How long to wait for a reported device fix"
    )
    deviceFixMaxAgeSeconds: float = Field(
        default=60.0, description="Age up to which a reported fix answers a request"
    )
    uvHorizonHours: int = Field(
        default=12, description="Hourly UV samples kept ahead of now"
    )
    transientLocationErrorCodes: List[str] = Field(
        default_factory=lambda: ["location_unknown"],
        description="Location error codes swallowed while a context exists",
    )
    notificationWebhookUrl: Optional[str] = Field(
        default=None, description="Webhook receiving fired alerts"
    )


class AlertSettings(BaseModel):
    """Per-alert-kind toggles"""

    notifications_enabled: bool = True
    sunrise_alert: bool = True
    sunset_alert: bool = True
    high_uv_alert: bool = True


class AppSettings(AlertSettings):
    """User-facing settings observed by the engine"""

    resolution_mode: ResolutionMode = ResolutionMode.USE_DEVICE_LOCATION
