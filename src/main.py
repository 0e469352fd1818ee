"""
Solar Sync Service - Main Application Entry Point
"""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from api import device, root, solar
from engine import SolarSyncEngine
from models.config import AppSettings
from models.solar import ResolutionMode
from utils.config_utils import ConfigManager
from utils.display_utils import DisplayRefreshSignal
from utils.geocoding_utils import GeocodeAdapter
from utils.location_utils import ReportedLocationSource
from utils.notification_scheduler import NotificationScheduler
from utils.open_meteo_utils import OpenMeteoClient
from utils.preferences_store import PreferencesStore

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO")),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.FileHandler("debug.log"), logging.StreamHandler()],
)
logger = logging.getLogger(__name__)

# Global engine instance
engine = None


def build_engine() -> SolarSyncEngine:
    """Construct the engine and the services it depends on"""
    config = ConfigManager.load_service_config()
    config = ConfigManager.override_from_environment(config)
    if not ConfigManager.validate_config(config):
        raise ValueError("Invalid service configuration")

    preferences = PreferencesStore(config.preferencesPath)
    settings = AppSettings(
        resolution_mode=(
            ResolutionMode.USE_DEVICE_LOCATION
            if preferences.load_use_current_location()
            else ResolutionMode.USE_MANUAL_PLACE
        )
    )

    geocoder = GeocodeAdapter(config.geocoder)
    location_source = ReportedLocationSource(
        geocoder,
        fix_timeout_seconds=config.deviceFixTimeoutSeconds,
        max_fix_age_seconds=config.deviceFixMaxAgeSeconds,
    )

    logger.info(f"Configuration: {ConfigManager.get_config_summary(config)}")
    return SolarSyncEngine(
        settings=settings,
        config=config,
        location_source=location_source,
        geocoder=geocoder,
        data_client=OpenMeteoClient(config.provider),
        notifier=NotificationScheduler(webhook_url=config.notificationWebhookUrl),
        preferences=preferences,
        display=DisplayRefreshSignal(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global engine

    # Startup
    logger.info("Starting Solar Sync Service...")
    engine = build_engine()
    await engine.notifier.start()
    await engine.start()

    # Inject engine into API modules
    solar.set_engine(engine)
    device.set_location_source(engine.location_source)

    logger.info("Solar Sync Service initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down Solar Sync Service...")
    if engine:
        await engine.shutdown()
        await engine.notifier.shutdown()
    logger.info("Solar Sync Service shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Solar Sync Service API",
    description="""
    Keeps a single solar context (sunrise/sunset, twilight, moon, UV, sun
    position and air quality) in sync with the user's current place.

    ## Features
    * Device location, manual selection and free-text place search
    * Stale-result protection for overlapping resolutions
    * Sunrise, sunset and high-UV alerts
    * Display refresh signal for widgets

    ## Getting Started
    1. Report permission and fixes with `/device/authorization` and `/device/fix`
    2. Or pick a place with `/solar/places/search` or `/solar/places/select`
    3. Read the result with `/solar/context` and `/solar/status`
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(root.router)
app.include_router(solar.router)
app.include_router(device.router)


async def main():
    """Main application function"""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", 8000))

    logger.info(f"Starting Solar Sync Service API on {host}:{port}")

    config = uvicorn.Config(app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
