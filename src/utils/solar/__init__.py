"""
Solar calculation package for the solar sync service

This package provides the sun position calculator and the almanac
derivation that turns a provider payload into a solar context.
"""

from .core import SolarPositionCalculator
from .constants import SolarConstants
from .almanac import build_solar_context, parse_local_datetime

__all__ = [
    "SolarPositionCalculator",
    "SolarConstants",
    "build_solar_context",
    "parse_local_datetime",
]
