"""
Device reporting endpoints: location permission, GPS fixes and failures
"""

import logging
from fastapi import APIRouter, HTTPException

from models.api import (
    CommandAccepted,
    DeviceAuthorizationReport,
    DeviceFailureReport,
    DeviceFixReport,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/device", tags=["Device"])

# This will be injected by main.py
location_source = None


def set_location_source(source_instance):
    """Set the global location source instance"""
    global location_source
    location_source = source_instance


def _require_source():
    if not location_source:
        raise HTTPException(status_code=503, detail="Location source not initialized")
    return location_source


@router.post("/authorization", response_model=CommandAccepted)
async def report_authorization(report: DeviceAuthorizationReport):
    """
    Report the device's location permission state

    Reporting `authorized` while the device-location mode is active starts a
    resolution; `denied`, `restricted` and `unknown` surface an error.
    """
    _require_source().report_authorization(report.state)
    return CommandAccepted(message=f"Authorization recorded: {report.state.value}")


@router.post("/fix", response_model=CommandAccepted)
async def report_fix(report: DeviceFixReport):
    """Report a GPS fix; it completes any pending location request"""
    source = _require_source()
    was_requested = source.fix_requested
    source.report_fix(report.latitude, report.longitude)
    message = "Fix delivered" if was_requested else "Fix recorded, no request pending"
    return CommandAccepted(message=message)


@router.post("/failure", response_model=CommandAccepted)
async def report_failure(report: DeviceFailureReport):
    """Report a positioning failure such as `location_unknown`"""
    _require_source().report_failure(report.code, report.detail)
    return CommandAccepted(message=f"Failure recorded: {report.code}")
