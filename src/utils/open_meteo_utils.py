"""
Open-Meteo API utilities for almanac and air-quality data
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from models.almanac import AirQualityReading, AirQualityResponse, AlmanacResponse
from models.config import ProviderConfig
from utils.errors import AirQualityFailure, ParseFailure, RemoteFetchFailure

logger = logging.getLogger(__name__)


class OpenMeteoClient:
    """Client for the forecast and air-quality endpoints"""

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ProviderConfig()
        # Injected transport lets tests substitute httpx.MockTransport
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeoutSeconds, transport=self._transport
        )

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        detail = f"Server returned an error: {response.status_code}."
        try:
            reason = response.json().get("reason")
        except (json.JSONDecodeError, ValueError, AttributeError):
            reason = None
        if reason:
            detail = f"{detail} {reason}"
        return detail

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Network error requesting {url}: {e}")
            raise RemoteFetchFailure(f"Network error: {e}")

        if response.status_code != 200:
            detail = self._error_detail(response)
            logger.error(f"HTTP {response.status_code} from {url}: {response.text}")
            raise RemoteFetchFailure(detail, status_code=response.status_code)

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise ParseFailure(f"Failed to decode the response: {e}.")

    async def fetch_almanac(self, latitude: float, longitude: float) -> AlmanacResponse:
        """Fetch sunrise/sunset, twilight, moon and hourly UV data for a coordinate"""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "daily": ",".join(self.config.dailyFields),
            "hourly": ",".join(self.config.hourlyFields),
            "timezone": "auto",
            "forecast_days": 1,
        }
        logger.info(f"Fetching almanac for ({latitude}, {longitude})")
        payload = await self._get_json(self.config.forecastUrl, params)

        try:
            almanac = AlmanacResponse.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Almanac payload failed validation: {e}")
            raise ParseFailure(f"Failed to decode the response: {e}.")

        logger.info(f"Decoded almanac for timezone {almanac.timezone}")
        return almanac

    async def fetch_air_quality(self, latitude: float, longitude: float) -> AirQualityReading:
        """Fetch current US AQI and PM2.5; every failure surfaces as AirQualityFailure"""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "us_aqi,pm2_5",
            "forecast_days": 1,
        }
        try:
            payload = await self._get_json(self.config.airQualityUrl, params)
            response = AirQualityResponse.model_validate(payload)
        except (RemoteFetchFailure, ParseFailure) as e:
            raise AirQualityFailure(str(e))
        except ValidationError as e:
            raise AirQualityFailure(f"Failed to decode the response: {e}.")

        if response.current is None:
            raise AirQualityFailure("Air-quality response has no current readings.")

        return AirQualityReading(
            us_aqi=response.current.us_aqi, pm2_5=response.current.pm2_5
        )
