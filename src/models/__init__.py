"""
Package initialization for models
"""

# Domain models
from .solar import (
    AuthorizationState,
    HourlyUV,
    LoadingState,
    LoadingStatus,
    LocationFix,
    Place,
    Placemark,
    ResolutionMode,
    SkyCondition,
    SolarContext,
    SunPosition,
)

# Remote payload models
from .almanac import (
    AirQualityReading,
    AlmanacResponse,
    DailyAlmanac,
    HourlyAlmanac,
)

# Notification models
from .notifications import NotificationAuthorization, ScheduledAlert

# Configuration models
from .config import (
    AlertSettings,
    AppSettings,
    DefaultPlaceConfig,
    GeocoderConfig,
    ProviderConfig,
    ServiceConfig,
)

__all__ = [
    # Domain models
    "AuthorizationState",
    "HourlyUV",
    "LoadingState",
    "LoadingStatus",
    "LocationFix",
    "Place",
    "Placemark",
    "ResolutionMode",
    "SkyCondition",
    "SolarContext",
    "SunPosition",
    # Remote payload models
    "AirQualityReading",
    "AlmanacResponse",
    "DailyAlmanac",
    "HourlyAlmanac",
    # Notification models
    "NotificationAuthorization",
    "ScheduledAlert",
    # Config models
    "AlertSettings",
    "AppSettings",
    "DefaultPlaceConfig",
    "GeocoderConfig",
    "ProviderConfig",
    "ServiceConfig",
]
