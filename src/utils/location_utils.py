"""
Location source adapters: authorization state, device fixes and placemarks
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pytz

from models.events import AuthorizationChanged, EngineEvent, PlacemarkUpdated
from models.solar import AuthorizationState, LocationFix, Placemark
from utils.errors import AuthorizationFailure, LocationUnavailable

logger = logging.getLogger(__name__)

AUTHORIZATION_FAILURE_CODES = {
    AuthorizationState.DENIED: "denied",
    AuthorizationState.RESTRICTED: "restricted",
    AuthorizationState.UNKNOWN: "unknown_authorization",
    AuthorizationState.NOT_DETERMINED: "unknown_authorization",
}


class LocationSource(ABC):
    """Contract of a device positioning subsystem.

    Authorization and placemark changes are published as events to every
    subscriber; the engine subscribes with its queue's ``post`` method.
    """

    def __init__(
        self, authorization_state: AuthorizationState = AuthorizationState.NOT_DETERMINED
    ):
        self._authorization_state = authorization_state
        self._current_placemark: Optional[Placemark] = None
        self._subscribers: List[Callable[[EngineEvent], None]] = []

    @property
    def authorization_state(self) -> AuthorizationState:
        return self._authorization_state

    @property
    def current_placemark(self) -> Optional[Placemark]:
        return self._current_placemark

    @property
    def fix_requested(self) -> bool:
        """Whether a fix request is waiting on the positioning subsystem"""
        return False

    def subscribe(self, callback: Callable[[EngineEvent], None]) -> None:
        self._subscribers.append(callback)

    def _publish(self, event: EngineEvent) -> None:
        for callback in self._subscribers:
            callback(event)

    def _set_authorization_state(self, state: AuthorizationState) -> None:
        if state == self._authorization_state:
            return
        logger.info(f"Location authorization changed to {state.value}")
        self._authorization_state = state
        self._publish(AuthorizationChanged(state=state))

    def _set_placemark(self, placemark: Optional[Placemark]) -> None:
        self._current_placemark = placemark
        self._publish(PlacemarkUpdated(placemark=placemark))

    @abstractmethod
    def request_permission(self) -> None:
        """Ask for location permission; the answer arrives as AuthorizationChanged"""

    @abstractmethod
    async def request_current_fix(self) -> LocationFix:
        """Return exactly one fix or raise a LocationError"""

    @abstractmethod
    async def reverse_geocode(self, fix: LocationFix) -> Placemark:
        """Describe a fix; raises LocationUnavailable when it cannot"""


class ReportedLocationSource(LocationSource):
    """Location source fed by a client device over the HTTP API"""

    def __init__(
        self,
        geocoder,
        fix_timeout_seconds: float = 30.0,
        max_fix_age_seconds: float = 60.0,
    ):
        super().__init__()
        self.geocoder = geocoder
        self.fix_timeout_seconds = fix_timeout_seconds
        self.max_fix_age_seconds = max_fix_age_seconds
        self.permission_requested = False
        self.last_fix: Optional[LocationFix] = None
        self._pending_fix: Optional[asyncio.Future] = None

    @property
    def fix_requested(self) -> bool:
        """Whether a fix request is waiting for the device"""
        return self._pending_fix is not None and not self._pending_fix.done()

    def request_permission(self) -> None:
        if self.authorization_state == AuthorizationState.NOT_DETERMINED:
            self.permission_requested = True
            logger.info("Location permission requested from device")

    def report_authorization(self, state: AuthorizationState) -> None:
        """Record the permission state reported by the device"""
        self.permission_requested = False
        self._set_authorization_state(state)

        if state != AuthorizationState.AUTHORIZED:
            self.last_fix = None
            self._current_placemark = None
            if self.fix_requested:
                self._pending_fix.set_exception(
                    AuthorizationFailure(AUTHORIZATION_FAILURE_CODES[state])
                )

    def report_fix(self, latitude: float, longitude: float) -> LocationFix:
        fix = LocationFix(latitude=latitude, longitude=longitude)
        self.last_fix = fix
        logger.info(f"Location updated: ({latitude}, {longitude})")
        if self.fix_requested:
            self._pending_fix.set_result(fix)
        return fix

    def report_failure(self, code: str, detail: Optional[str] = None) -> None:
        logger.warning(f"Device reported location failure: {code}")
        if self.fix_requested:
            self._pending_fix.set_exception(LocationUnavailable(code, detail))

    def _recent_fix(self) -> Optional[LocationFix]:
        if self.last_fix is None:
            return None
        age = datetime.now(pytz.utc) - self.last_fix.timestamp
        if age > timedelta(seconds=self.max_fix_age_seconds):
            return None
        return self.last_fix

    async def request_current_fix(self) -> LocationFix:
        state = self.authorization_state
        if state != AuthorizationState.AUTHORIZED:
            raise AuthorizationFailure(AUTHORIZATION_FAILURE_CODES[state])

        recent = self._recent_fix()
        if recent is not None:
            logger.info("Using recently reported location")
            return recent

        if not self.fix_requested:
            self._pending_fix = asyncio.get_running_loop().create_future()
        future = self._pending_fix

        logger.info("Requesting current location...")
        try:
            return await asyncio.wait_for(
                asyncio.shield(future), timeout=self.fix_timeout_seconds
            )
        except asyncio.TimeoutError:
            raise LocationUnavailable("fix_timeout")
        finally:
            if self._pending_fix is future:
                self._pending_fix = None

    async def reverse_geocode(self, fix: LocationFix) -> Placemark:
        try:
            placemark = await self.geocoder.reverse(fix.latitude, fix.longitude)
        except LocationUnavailable:
            self._set_placemark(None)
            raise

        self._set_placemark(placemark)
        return placemark
