"""
Solar context API endpoints for the solar sync service
"""

import logging
from fastapi import APIRouter, HTTPException

from models.api import (
    CommandAccepted,
    EngineStatusResponse,
    NotificationAuthorizationRequest,
    NotificationListResponse,
    PlaceSearchRequest,
    PlaceSelectionRequest,
    SettingsUpdateRequest,
    SolarContextResponse,
)
from models.solar import Place

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/solar")

# This will be injected by main.py
engine = None


def set_engine(engine_instance):
    """Set the global engine instance"""
    global engine
    engine = engine_instance


def _require_engine():
    if not engine:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


def build_context_response(context, now) -> SolarContextResponse:
    """Flatten a solar context and its derived values for the API"""
    return SolarContextResponse(
        city=context.city,
        latitude=context.place.latitude,
        longitude=context.place.longitude,
        timezone=context.timezone,
        current_date=context.current_date,
        sunrise=context.sunrise,
        sunset=context.sunset,
        solar_noon=context.solar_noon,
        twilight={
            "civil_begin": context.civil_twilight_begin,
            "civil_end": context.civil_twilight_end,
            "nautical_begin": context.nautical_twilight_begin,
            "nautical_end": context.nautical_twilight_end,
            "astronomical_begin": context.astronomical_twilight_begin,
            "astronomical_end": context.astronomical_twilight_end,
        },
        moonrise=context.moonrise,
        moonset=context.moonset,
        moon_illumination=context.moon_illumination,
        moon_phase=context.moon_phase_name,
        uv_index=context.uv_index,
        uv_index_category=context.uv_index_category,
        hourly_uv=[
            {
                "time": sample.time,
                "uv_index": sample.uv_index,
                "rounded_index": sample.rounded_index,
                "category": sample.category,
            }
            for sample in context.hourly_uv
        ],
        current_altitude=context.current_altitude,
        current_azimuth=context.current_azimuth,
        heading=context.heading,
        sky_condition=context.sky_condition(now).value,
        sun_progress=context.sun_progress(now),
        daylight_duration=context.daylight_duration,
        golden_hours={
            name: list(window) for name, window in context.golden_hours().items()
        },
        countdowns=context.countdowns(now),
        greeting=context.greeting(now),
        us_aqi=context.us_aqi,
        us_aqi_category=context.us_aqi_category,
        pm2_5=context.pm2_5,
        weather_code=context.weather_code,
        cloud_cover=context.cloud_cover,
        is_placeholder=context.is_placeholder,
    )


@router.get("/context", response_model=SolarContextResponse, tags=["Solar Context"])
async def get_solar_context():
    """
    Get the current solar context

    Returns sunrise/sunset, twilight, moon, UV, sun position and air quality
    for the currently resolved place, together with derived values such as
    the compass heading, sky condition and golden hours.
    """
    current = _require_engine()
    return build_context_response(current.context, current.clock())


@router.get("/status", response_model=EngineStatusResponse, tags=["Solar Context"])
async def get_engine_status():
    """Get the loading state, resolution mode and in-flight guards"""
    return _require_engine().snapshot()


@router.post("/refresh", response_model=CommandAccepted, tags=["Solar Context"])
async def refresh():
    """Re-resolve the current place and refetch its data"""
    _require_engine().refresh()
    return CommandAccepted(message="Refresh requested")


@router.post(
    "/location/current", response_model=CommandAccepted, tags=["Location"]
)
async def use_current_location():
    """Resolve the place from the device's current location"""
    _require_engine().request_device_location()
    return CommandAccepted(message="Device location requested")


@router.post("/places/select", response_model=CommandAccepted, tags=["Location"])
async def select_place(request: PlaceSelectionRequest):
    """
    Select a place with known coordinates

    **Request Body:**
    ```json
    {
        "name": "Philadelphia",
        "latitude": 39.9526,
        "longitude": -75.1652,
        "timezone": "America/New_York"
    }
    ```
    """
    place = Place(
        name=request.name,
        latitude=request.latitude,
        longitude=request.longitude,
        timezone=request.timezone,
    )
    _require_engine().select_place(place)
    return CommandAccepted(message=f"Selected {place.name}")


@router.post("/places/search", response_model=CommandAccepted, tags=["Location"])
async def search_place(request: PlaceSearchRequest):
    """Search a place by name and resolve it when found"""
    current = _require_engine()
    if current.is_geocoding or current.manual_selection_depth > 0:
        return CommandAccepted(
            accepted=False, message="A place selection is already in progress"
        )

    current.search_place(request.query)
    return CommandAccepted(message=f"Searching for {request.query}")


@router.put("/settings", response_model=CommandAccepted, tags=["Settings"])
async def update_settings(request: SettingsUpdateRequest):
    """Update alert toggles and/or the resolution mode"""
    changes = request.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No settings provided")

    _require_engine().update_settings(**changes)
    return CommandAccepted(message=f"Updated settings: {', '.join(sorted(changes))}")


@router.get(
    "/notifications", response_model=NotificationListResponse, tags=["Notifications"]
)
async def get_notifications():
    """List the alerts currently scheduled for the resolved place"""
    notifier = _require_engine().notifier
    scheduled = notifier.get_scheduled()
    return NotificationListResponse(
        authorization=await notifier.get_authorization_status(),
        notifications=scheduled,
        total_count=len(scheduled),
    )


@router.put(
    "/notifications/authorization",
    response_model=CommandAccepted,
    tags=["Notifications"],
)
async def set_notification_authorization(request: NotificationAuthorizationRequest):
    """Record the client's notification permission and re-derive alerts"""
    current = _require_engine()
    current.notifier.set_authorization_status(request.status)
    current.resync_notifications()
    return CommandAccepted(
        message=f"Notification authorization set to {request.status.value}"
    )
