"""
Configuration management utilities for the solar sync service
"""

import logging
import os
import json
from typing import Optional

from dotenv import load_dotenv

from models.config import ServiceConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "solar_config.json"


class ConfigManager:
    """Utility class for managing configuration and environment setup"""

    @staticmethod
    def load_environment():
        """Load environment variables from .env file"""
        load_dotenv()

    @staticmethod
    def default_config_path() -> str:
        return os.getenv(
            "SOLAR_CONFIG_PATH",
            os.path.join(
                os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
                DEFAULT_CONFIG_FILE,
            ),
        )

    @staticmethod
    def load_service_config(config_path: Optional[str] = None) -> ServiceConfig:
        """Load service configuration from a JSON file; a missing file yields defaults"""
        config_path = config_path or ConfigManager.default_config_path()

        if not os.path.exists(config_path):
            logger.info(f"No configuration file at {config_path}, using defaults")
            return ServiceConfig()

        try:
            with open(config_path, "r") as f:
                config_data = json.load(f)
            config = ServiceConfig(**config_data)
            logger.info(f"Loaded configuration from {config_path}")
            return config
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")
            raise

    @staticmethod
    def override_from_environment(config: ServiceConfig) -> ServiceConfig:
        """Override config with SOLAR_* environment variables"""
        forecast_url = os.getenv("SOLAR_FORECAST_URL")
        air_quality_url = os.getenv("SOLAR_AIR_QUALITY_URL")
        user_agent = os.getenv("SOLAR_GEOCODER_USER_AGENT")
        preferences_path = os.getenv("SOLAR_PREFERENCES_PATH")
        webhook_url = os.getenv("SOLAR_NOTIFICATION_WEBHOOK_URL")
        fix_timeout = os.getenv("SOLAR_DEVICE_FIX_TIMEOUT")
        fix_max_age = os.getenv("SOLAR_DEVICE_FIX_MAX_AGE")
        transient_codes = os.getenv("SOLAR_TRANSIENT_LOCATION_ERRORS")

        if forecast_url:
            config.provider.forecastUrl = forecast_url
        if air_quality_url:
            config.provider.airQualityUrl = air_quality_url
        if user_agent:
            config.geocoder.userAgent = user_agent
        if preferences_path:
            config.preferencesPath = preferences_path
        if webhook_url:
            config.notificationWebhookUrl = webhook_url
        if fix_timeout:
            config.deviceFixTimeoutSeconds = float(fix_timeout)
        if fix_max_age:
            config.deviceFixMaxAgeSeconds = float(fix_max_age)
        if transient_codes:
            config.transientLocationErrorCodes = [
                code.strip() for code in transient_codes.split(",") if code.strip()
            ]

        return config

    @staticmethod
    def validate_config(config: ServiceConfig) -> bool:
        """Validate values that pydantic cannot check on its own"""
        problems = []
        if config.uvHorizonHours <= 0:
            problems.append("uvHorizonHours must be positive")
        if config.deviceFixTimeoutSeconds <= 0:
            problems.append("deviceFixTimeoutSeconds must be positive")
        if config.deviceFixMaxAgeSeconds < 0:
            problems.append("deviceFixMaxAgeSeconds must not be negative")
        if not config.provider.forecastUrl.startswith(("http://", "https://")):
            problems.append("provider.forecastUrl must be an http(s) URL")

        if problems:
            logger.error(f"Invalid configuration: {problems}")
            return False

        return True

    @staticmethod
    def get_config_summary(config: ServiceConfig) -> dict:
        """Get a summary of the current configuration for logging/debugging"""
        return {
            "forecast_url": config.provider.forecastUrl,
            "air_quality_url": config.provider.airQualityUrl,
            "default_place": config.defaultPlace.name,
            "preferences_path": config.preferencesPath,
            "uv_horizon_hours": config.uvHorizonHours,
            "transient_location_errors": list(config.transientLocationErrorCodes),
            "webhook_configured": bool(config.notificationWebhookUrl),
        }
