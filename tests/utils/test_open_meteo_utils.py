"""
Tests for OpenMeteoClient using httpx.MockTransport
"""

import pytest
import sys
import os

import httpx

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "src"))

from models.config import ProviderConfig
from utils.errors import AirQualityFailure, ParseFailure, RemoteFetchFailure
from utils.open_meteo_utils import OpenMeteoClient

ALMANAC_PAYLOAD = {
    "latitude": 39.95,
    "longitude": -75.16,
    "timezone": "America/New_York",
    "utc_offset_seconds": -14400,
    "daily": {
        "time": ["2025-06-21"],
        "sunrise": ["2025-06-21T05:25"],
        "sunset": ["2025-06-21T20:31"],
        "uv_index_max": [7.4],
    },
    "hourly": {
        "time": ["2025-06-21T00:00", "2025-06-21T01:00"],
        "weathercode": [0, 1],
        "cloudcover": [10, 20],
        "uv_index": [0.0, 0.0],
    },
}


def client_for(handler) -> OpenMeteoClient:
    return OpenMeteoClient(ProviderConfig(), transport=httpx.MockTransport(handler))


class TestFetchAlmanac:
    """Test cases for the forecast endpoint"""

    @pytest.mark.asyncio
    async def test_success(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=ALMANAC_PAYLOAD)

        almanac = await client_for(handler).fetch_almanac(39.9526, -75.1652)

        assert almanac.timezone == "America/New_York"
        assert almanac.daily.sunrise == ["2025-06-21T05:25"]
        assert almanac.hourly.cloudcover == [10, 20]

        params = requests[0].url.params
        assert requests[0].url.host == "api.open-meteo.com"
        assert params["latitude"] == "39.9526"
        assert params["longitude"] == "-75.1652"
        assert params["daily"] == "sunrise,sunset,uv_index_max"
        assert params["hourly"] == "weathercode,cloudcover,uv_index"
        assert params["timezone"] == "auto"
        assert params["forecast_days"] == "1"

    @pytest.mark.asyncio
    async def test_configured_fields_are_requested(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=ALMANAC_PAYLOAD)

        config = ProviderConfig(dailyFields=["sunrise", "sunset"], hourlyFields=["uv_index"])
        client = OpenMeteoClient(config, transport=httpx.MockTransport(handler))
        await client.fetch_almanac(1.0, 2.0)

        assert requests[0].url.params["daily"] == "sunrise,sunset"
        assert requests[0].url.params["hourly"] == "uv_index"

    @pytest.mark.asyncio
    async def test_http_error_includes_reason(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": True, "reason": "Latitude must be in range"})

        with pytest.raises(RemoteFetchFailure) as exc_info:
            await client_for(handler).fetch_almanac(99.0, 0.0)

        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == (
            "Server returned an error: 400. Latitude must be in range"
        )

    @pytest.mark.asyncio
    async def test_http_error_without_reason(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(RemoteFetchFailure, match="Server returned an error: 503."):
            await client_for(handler).fetch_almanac(1.0, 2.0)

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteFetchFailure, match="Network error"):
            await client_for(handler).fetch_almanac(1.0, 2.0)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>not json</html>")

        with pytest.raises(ParseFailure):
            await client_for(handler).fetch_almanac(1.0, 2.0)

    @pytest.mark.asyncio
    async def test_payload_missing_timezone(self):
        payload = dict(ALMANAC_PAYLOAD)
        del payload["timezone"]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        with pytest.raises(ParseFailure, match="Failed to decode the response"):
            await client_for(handler).fetch_almanac(1.0, 2.0)


class TestFetchAirQuality:
    """Test cases for the air-quality endpoint"""

    @pytest.mark.asyncio
    async def test_success(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"current": {"us_aqi": 42, "pm2_5": 8.5}})

        reading = await client_for(handler).fetch_air_quality(39.9526, -75.1652)

        assert reading.us_aqi == 42
        assert reading.pm2_5 == 8.5
        assert requests[0].url.host == "air-quality-api.open-meteo.com"
        assert requests[0].url.params["current"] == "us_aqi,pm2_5"

    @pytest.mark.asyncio
    async def test_http_error_becomes_air_quality_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"reason": "boom"})

        with pytest.raises(AirQualityFailure, match="boom"):
            await client_for(handler).fetch_air_quality(1.0, 2.0)

    @pytest.mark.asyncio
    async def test_network_error_becomes_air_quality_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(AirQualityFailure):
            await client_for(handler).fetch_air_quality(1.0, 2.0)

    @pytest.mark.asyncio
    async def test_missing_current_block(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"hourly": {}})

        with pytest.raises(AirQualityFailure, match="no current readings"):
            await client_for(handler).fetch_air_quality(1.0, 2.0)
