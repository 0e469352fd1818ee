"""
Tests for GeocodeAdapter, GeocodeCache and DisplayRefreshSignal
"""

import pytest
import sys
import os
from unittest.mock import MagicMock, patch

from geopy.exc import GeocoderServiceError, GeocoderTimedOut

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "src"))

from models.solar import Place
from utils.display_utils import DisplayRefreshSignal
from utils.errors import GeocodeFailure, LocationUnavailable
from utils.geocode_cache import GeocodeCache
from utils.geocoding_utils import GeocodeAdapter


def make_location(latitude, longitude, address=None, title=""):
    location = MagicMock()
    location.latitude = latitude
    location.longitude = longitude
    location.raw = {"address": address or {}}
    location.address = title
    return location


class TestGeocodeAdapter:
    """Test cases for forward and reverse geocoding"""

    @pytest.fixture
    def geolocator(self):
        return MagicMock()

    @pytest.fixture
    def timezone_finder(self):
        finder = MagicMock()
        finder.timezone_at.return_value = "Asia/Tokyo"
        return finder

    @pytest.fixture
    def adapter(self, geolocator, timezone_finder):
        return GeocodeAdapter(geolocator=geolocator, timezone_finder=timezone_finder)

    @pytest.mark.asyncio
    async def test_geocode_success(self, adapter, geolocator, timezone_finder):
        geolocator.geocode.return_value = make_location(
            35.6762, 139.6503, address={"city": "Tokyo", "country": "Japan"}
        )

        place = await adapter.geocode("  tokyo ")

        assert place == Place(name="Tokyo", latitude=35.6762, longitude=139.6503)
        assert place.timezone == "Asia/Tokyo"
        assert geolocator.geocode.call_args.args[0] == "tokyo"
        timezone_finder.timezone_at.assert_called_once_with(lat=35.6762, lng=139.6503)

    @pytest.mark.asyncio
    async def test_geocode_falls_back_to_address_title(self, adapter, geolocator):
        geolocator.geocode.return_value = make_location(
            48.8584, 2.2945, title="Tour Eiffel, Paris, France"
        )

        place = await adapter.geocode("eiffel tower")

        assert place.name == "Tour Eiffel"

    @pytest.mark.asyncio
    async def test_geocode_uses_cache(self, adapter, geolocator):
        geolocator.geocode.return_value = make_location(
            35.6762, 139.6503, address={"city": "Tokyo"}
        )

        first = await adapter.geocode("Tokyo")
        second = await adapter.geocode("TOKYO")

        assert first == second
        assert geolocator.geocode.call_count == 1

    @pytest.mark.asyncio
    async def test_geocode_miss_is_cached(self, adapter, geolocator):
        geolocator.geocode.return_value = None

        assert await adapter.geocode("Atlantis") is None
        assert await adapter.geocode("atlantis") is None
        assert geolocator.geocode.call_count == 1

    @pytest.mark.asyncio
    async def test_geocode_blank_query(self, adapter, geolocator):
        assert await adapter.geocode("   ") is None
        geolocator.geocode.assert_not_called()

    @pytest.mark.asyncio
    async def test_geocode_service_failure(self, adapter, geolocator):
        geolocator.geocode.side_effect = GeocoderTimedOut("timed out")

        with pytest.raises(GeocodeFailure) as exc_info:
            await adapter.geocode("Tokyo")

        assert exc_info.value.query == "Tokyo"
        assert str(exc_info.value).startswith('Could not find coordinates for "Tokyo".')
        assert len(adapter.cache) == 0

    @pytest.mark.asyncio
    async def test_reverse_success(self, adapter, geolocator, timezone_finder):
        timezone_finder.timezone_at.return_value = "America/New_York"
        geolocator.reverse.return_value = make_location(
            39.9526, -75.1652, address={"town": "Philadelphia"}
        )

        placemark = await adapter.reverse(39.9526, -75.1652)

        assert placemark.name == "Philadelphia"
        assert placemark.latitude == 39.9526
        assert placemark.timezone == "America/New_York"
        assert geolocator.reverse.call_args.args[0] == (39.9526, -75.1652)

    @pytest.mark.asyncio
    async def test_reverse_service_failure(self, adapter, geolocator):
        geolocator.reverse.side_effect = GeocoderServiceError("unavailable")

        with pytest.raises(LocationUnavailable) as exc_info:
            await adapter.reverse(1.0, 2.0)

        assert exc_info.value.code == "reverse_geocoding_failed"

    @pytest.mark.asyncio
    async def test_reverse_no_result(self, adapter, geolocator):
        geolocator.reverse.return_value = None

        with pytest.raises(LocationUnavailable) as exc_info:
            await adapter.reverse(0.0, 0.0)

        assert exc_info.value.message == "Could not determine place name for the location."


class TestGeocodeCache:
    """Test cases for GeocodeCache"""

    def test_normalized_keys(self):
        cache = GeocodeCache()
        place = Place(name="Oslo", latitude=59.91, longitude=10.75)

        cache.set("  Oslo   Norway ", place)

        assert cache.contains("oslo norway")
        assert cache.get("OSLO NORWAY") == place

    def test_expired_entries_are_dropped(self):
        cache = GeocodeCache(ttl_seconds=60)
        cache.set("Oslo", None)

        with patch("utils.geocode_cache.datetime") as mock_datetime:
            mock_datetime.now.return_value.timestamp.return_value = 10**12
            assert not cache.contains("Oslo")

        assert len(cache) == 0

    def test_clear(self):
        cache = GeocodeCache()
        cache.set("Oslo", None)
        cache.clear()
        assert len(cache) == 0


class TestDisplayRefreshSignal:
    """Test cases for DisplayRefreshSignal"""

    def test_invalidate_notifies_subscribers(self):
        signal = DisplayRefreshSignal()
        calls = []
        signal.subscribe(lambda: calls.append("refreshed"))

        signal.invalidate_all()
        signal.invalidate_all()

        assert signal.version == 2
        assert signal.last_invalidated_at is not None
        assert calls == ["refreshed", "refreshed"]

    def test_failing_subscriber_does_not_propagate(self):
        signal = DisplayRefreshSignal()
        calls = []

        def broken():
            raise RuntimeError("widget gone")

        signal.subscribe(broken)
        signal.subscribe(lambda: calls.append("ok"))

        signal.invalidate_all()

        assert signal.version == 1
        assert calls == ["ok"]
