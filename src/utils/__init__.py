"""
Utility modules for the solar sync service
"""

from .solar import SolarPositionCalculator, build_solar_context
from .open_meteo_utils import OpenMeteoClient
from .geocoding_utils import GeocodeAdapter
from .location_utils import LocationSource, ReportedLocationSource
from .notification_scheduler import NotificationScheduler
from .preferences_store import PreferencesStore
from .display_utils import DisplayRefreshSignal

__all__ = [
    "SolarPositionCalculator",
    "build_solar_context",
    "OpenMeteoClient",
    "GeocodeAdapter",
    "LocationSource",
    "ReportedLocationSource",
    "NotificationScheduler",
    "PreferencesStore",
    "DisplayRefreshSignal",
]
