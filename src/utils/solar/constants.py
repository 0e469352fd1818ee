"""
Constants for solar calculations and alert derivation
"""


class SolarConstants:
    """Constants used throughout the solar package"""

    # Julian Day of the J2000.0 epoch
    J2000 = 2451545.0
    DAYS_PER_CENTURY = 36525.0

    # Rounded UV index from which the high-UV alert fires
    HIGH_UV_THRESHOLD = 6

    # Alert lead times in minutes
    SUNRISE_ALERT_LEAD_MINUTES = 15
    SUNSET_ALERT_LEAD_MINUTES = 30

    # Alert identifiers
    SUNRISE_ALERT_ID = "sunrise_alert"
    SUNSET_ALERT_ID = "sunset_alert"
    HIGH_UV_ALERT_ID = "high_uv_alert"

    # Provider wall-time format, e.g. 2025-06-21T05:25
    LOCAL_TIME_FORMAT = "%Y-%m-%dT%H:%M"
    DATE_FORMAT = "%Y-%m-%d"
