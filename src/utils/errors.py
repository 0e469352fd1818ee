"""
Exception taxonomy shared by the adapters and the synchronization engine
"""

from typing import Optional


class SolarSyncError(Exception):
    """Base class for every failure the engine converts into an error state"""


class LocationError(SolarSyncError):
    """Positioning failure tagged with a classification code"""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class AuthorizationFailure(LocationError):
    MESSAGES = {
        "denied": "Location access was denied. Please enable it in Settings.",
        "restricted": "Location access is restricted on this device.",
        "unknown_authorization": "Location authorization status is unknown.",
    }

    def __init__(self, code: str):
        super().__init__(code, self.MESSAGES.get(code, self.MESSAGES["unknown_authorization"]))


class LocationUnavailable(LocationError):
    MESSAGES = {
        "location_unknown": "Your location is currently unknown.",
        "location_not_found": "Could not determine your current location.",
        "reverse_geocoding_failed": "Could not determine place name for the location.",
        "fix_timeout": "Timed out waiting for a location fix.",
    }

    def __init__(self, code: str, detail: Optional[str] = None):
        message = self.MESSAGES.get(code, "Could not determine your current location.")
        if detail:
            message = f"{message} {detail}"
        super().__init__(code, message)


class GeocodeFailure(SolarSyncError):
    def __init__(self, query: str, detail: str = ""):
        self.query = query
        self.detail = detail
        super().__init__(f'Could not find coordinates for "{query}". {detail}'.strip())


class RemoteFetchFailure(SolarSyncError):
    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ParseFailure(SolarSyncError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class AirQualityFailure(SolarSyncError):
    """Non-critical enrichment failure; logged, never surfaced"""
