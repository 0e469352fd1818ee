"""
Pydantic models for FastAPI requests and responses
"""

from datetime import date, datetime
from typing import Optional, Dict, List
from pydantic import BaseModel, Field

from .notifications import NotificationAuthorization
from .solar import AuthorizationState, ResolutionMode


class PlaceSelectionRequest(BaseModel):
    """Request model for selecting a place with known coordinates"""

    name: str = Field(..., description="Display name of the place")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")
    timezone: Optional[str] = Field(None, description="IANA timezone identifier")


class PlaceSearchRequest(BaseModel):
    """Request model for a free-text place search"""

    query: str = Field(..., min_length=1, description="City or place name to search")


class SettingsUpdateRequest(BaseModel):
    """Partial settings update; omitted fields are left unchanged"""

    resolution_mode: Optional[ResolutionMode] = Field(
        None, description="Use the device location or a manually selected place"
    )
    notifications_enabled: Optional[bool] = Field(
        None, description="Master switch for all alerts"
    )
    sunrise_alert: Optional[bool] = Field(None, description="Alert before sunrise")
    sunset_alert: Optional[bool] = Field(None, description="Alert before sunset")
    high_uv_alert: Optional[bool] = Field(None, description="Alert on high UV")


class DeviceAuthorizationReport(BaseModel):
    state: AuthorizationState = Field(
        ..., description="Location permission state reported by the device"
    )


class DeviceFixReport(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")


class DeviceFailureReport(BaseModel):
    code: str = Field(
        "location_unknown", description="Classified failure code from the device"
    )
    detail: Optional[str] = Field(None, description="Optional provider detail")


class NotificationAuthorizationRequest(BaseModel):
    status: NotificationAuthorization = Field(
        ..., description="Notification permission reported by the client"
    )


class CommandAccepted(BaseModel):
    """Response for commands posted to the engine"""

    accepted: bool = Field(True, description="Whether the command was queued")
    message: str = Field(..., description="Human-readable result message")
    timestamp: datetime = Field(
        default_factory=datetime.now, description="Response timestamp"
    )


class HourlyUVInfo(BaseModel):
    time: datetime
    uv_index: float
    rounded_index: int
    category: str


class SolarContextResponse(BaseModel):
    """The current solar context plus its derived values"""

    city: str = Field(..., description="Resolved place name")
    latitude: Optional[float] = Field(None, description="Resolved latitude")
    longitude: Optional[float] = Field(None, description="Resolved longitude")
    timezone: Optional[str] = Field(None, description="Timezone reported by the provider")
    current_date: date
    sunrise: datetime
    sunset: datetime
    solar_noon: datetime
    twilight: Dict[str, Optional[datetime]] = Field(
        default_factory=dict, description="Civil, nautical and astronomical twilight"
    )
    moonrise: Optional[datetime] = None
    moonset: Optional[datetime] = None
    moon_illumination: Optional[float] = None
    moon_phase: str
    uv_index: int
    uv_index_category: str
    hourly_uv: List[HourlyUVInfo] = Field(default_factory=list)
    current_altitude: float
    current_azimuth: float
    heading: str
    sky_condition: str
    sun_progress: float
    daylight_duration: str
    golden_hours: Dict[str, List[Optional[datetime]]] = Field(default_factory=dict)
    countdowns: Dict[str, Optional[str]] = Field(
        default_factory=dict, description="Time to or since sunrise, solar noon and sunset"
    )
    greeting: str = Field("", description="Greeting for the current time of day")
    us_aqi: Optional[int] = None
    us_aqi_category: str
    pm2_5: Optional[float] = None
    weather_code: Optional[int] = None
    cloud_cover: Optional[int] = None
    is_placeholder: bool


class EngineStatusResponse(BaseModel):
    loading_state: str
    message: Optional[str] = None
    resolution_mode: str
    authorization_state: str
    is_fetching_device_location: bool
    device_fix_requested: bool = False
    is_geocoding: bool
    manual_selection_depth: int
    generation: int
    city: str
    is_placeholder: bool


class ScheduledNotificationInfo(BaseModel):
    identifier: str
    title: str
    body: str
    fire_at: datetime


class NotificationListResponse(BaseModel):
    authorization: NotificationAuthorization
    notifications: List[ScheduledNotificationInfo]
    total_count: int
