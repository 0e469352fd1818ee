"""
Pydantic models for the remote almanac and air-quality payloads
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class DailyAlmanac(BaseModel):
    """Daily series; every list is indexed by day, local wall times in the response timezone"""

    time: List[str] = Field(default_factory=list, description="Dates as YYYY-MM-DD")
    sunrise: List[str] = Field(default_factory=list)
    sunset: List[str] = Field(default_factory=list)
    uv_index_max: List[Optional[float]] = Field(default_factory=list)

    civil_twilight_begin: Optional[List[Optional[str]]] = None
    civil_twilight_end: Optional[List[Optional[str]]] = None
    nautical_twilight_begin: Optional[List[Optional[str]]] = None
    nautical_twilight_end: Optional[List[Optional[str]]] = None
    astronomical_twilight_begin: Optional[List[Optional[str]]] = None
    astronomical_twilight_end: Optional[List[Optional[str]]] = None

    moonrise: Optional[List[Optional[str]]] = None
    moonset: Optional[List[Optional[str]]] = None
    moon_phase: Optional[List[Optional[float]]] = None


class HourlyAlmanac(BaseModel):
    time: List[str] = Field(default_factory=list)
    weathercode: Optional[List[Optional[int]]] = None
    cloudcover: Optional[List[Optional[int]]] = None
    uv_index: Optional[List[Optional[float]]] = None


class AlmanacResponse(BaseModel):
    """Forecast endpoint response"""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: str = Field(..., description="IANA timezone reported by the provider")
    utc_offset_seconds: Optional[int] = None
    daily: DailyAlmanac
    hourly: Optional[HourlyAlmanac] = None


class CurrentAirQuality(BaseModel):
    us_aqi: Optional[int] = None
    pm2_5: Optional[float] = None


class AirQualityResponse(BaseModel):
    current: Optional[CurrentAirQuality] = None


class AirQualityReading(BaseModel):
    """Air quality values merged into the solar context"""

    us_aqi: Optional[int] = None
    pm2_5: Optional[float] = None
