"""
Geocoding utilities: free-text place search and reverse geocoding of device fixes
"""

import asyncio
import logging
from typing import Optional

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.geocoders import Nominatim
from timezonefinder import TimezoneFinder

from models.config import GeocoderConfig
from models.solar import Place, Placemark
from utils.errors import GeocodeFailure, LocationUnavailable
from .geocode_cache import GeocodeCache

logger = logging.getLogger(__name__)


def _best_name(location, fallback: str) -> str:
    """Pick the locality out of a Nominatim result"""
    address = (getattr(location, "raw", None) or {}).get("address", {})
    locality = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("hamlet")
        or address.get("county")
    )
    if locality:
        return locality

    title = str(getattr(location, "address", "") or "").split(",")[0].strip()
    return title or fallback


class GeocodeAdapter:
    """Resolves place names to coordinates and timezones using Nominatim"""

    def __init__(
        self,
        config: Optional[GeocoderConfig] = None,
        geolocator=None,
        timezone_finder=None,
        cache: Optional[GeocodeCache] = None,
    ):
        self.config = config or GeocoderConfig()
        self.geolocator = geolocator or Nominatim(user_agent=self.config.userAgent)
        self.timezone_finder = timezone_finder or TimezoneFinder()
        self.cache = cache or GeocodeCache(self.config.cacheTtlSeconds)

    def timezone_for(self, latitude: float, longitude: float) -> Optional[str]:
        return self.timezone_finder.timezone_at(lat=latitude, lng=longitude)

    async def geocode(self, text: str) -> Optional[Place]:
        """Resolve free text to a place.

        Returns None when nothing matches; raises GeocodeFailure when the
        geocoding service itself fails.
        """
        query = text.strip()
        if not query:
            return None

        if self.cache.contains(query):
            return self.cache.get(query)

        try:
            location = await asyncio.to_thread(
                self.geolocator.geocode,
                query,
                exactly_one=True,
                addressdetails=True,
                timeout=self.config.timeoutSeconds,
            )
        except (GeocoderTimedOut, GeocoderUnavailable, GeocoderServiceError) as e:
            logger.warning(f"Geocoding failed for '{query}': {e}")
            raise GeocodeFailure(query, str(e))

        if not location:
            logger.warning(f"No coordinates found for '{query}'")
            self.cache.set(query, None)
            return None

        latitude, longitude = float(location.latitude), float(location.longitude)
        place = Place(
            name=_best_name(location, query),
            latitude=latitude,
            longitude=longitude,
            timezone=self.timezone_for(latitude, longitude),
        )
        self.cache.set(query, place)
        logger.info(f"Geocoded '{query}' to {place.name} ({latitude}, {longitude})")
        return place

    async def reverse(self, latitude: float, longitude: float) -> Placemark:
        """Describe a coordinate pair; raises LocationUnavailable when geocoding fails"""
        try:
            location = await asyncio.to_thread(
                self.geolocator.reverse,
                (latitude, longitude),
                exactly_one=True,
                addressdetails=True,
                timeout=self.config.timeoutSeconds,
            )
        except (GeocoderTimedOut, GeocoderUnavailable, GeocoderServiceError) as e:
            logger.warning(f"Reverse geocoding failed for ({latitude}, {longitude}): {e}")
            raise LocationUnavailable("reverse_geocoding_failed", str(e))

        if not location:
            logger.warning(f"No placemark found for ({latitude}, {longitude})")
            raise LocationUnavailable("reverse_geocoding_failed")

        placemark = Placemark(
            name=_best_name(location, "Current Location"),
            latitude=getattr(location, "latitude", None),
            longitude=getattr(location, "longitude", None),
            timezone=self.timezone_for(latitude, longitude),
        )
        logger.info(f"Placemark found: {placemark.name}")
        return placemark
