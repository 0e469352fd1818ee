"""
Tests for the reported location source
"""

import asyncio
import pytest
import sys
import os
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytz

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "src"))

from models.events import AuthorizationChanged, PlacemarkUpdated
from models.solar import AuthorizationState, LocationFix, Placemark
from utils.errors import AuthorizationFailure, LocationUnavailable
from utils.location_utils import ReportedLocationSource

PLACEMARK = Placemark(
    name="Philadelphia", latitude=39.9526, longitude=-75.1652, timezone="America/New_York"
)


class TestReportedLocationSource:
    """Test cases for ReportedLocationSource"""

    @pytest.fixture
    def geocoder(self):
        geocoder = AsyncMock()
        geocoder.reverse.return_value = PLACEMARK
        return geocoder

    @pytest.fixture
    def source(self, geocoder):
        return ReportedLocationSource(geocoder, fix_timeout_seconds=0.5)

    @pytest.fixture
    def events(self, source):
        received = []
        source.subscribe(received.append)
        return received

    def test_initial_state(self, source):
        assert source.authorization_state == AuthorizationState.NOT_DETERMINED
        assert source.current_placemark is None
        assert not source.fix_requested

    def test_request_permission(self, source):
        source.request_permission()
        assert source.permission_requested

    def test_authorization_change_is_published_once(self, source, events):
        source.report_authorization(AuthorizationState.AUTHORIZED)
        source.report_authorization(AuthorizationState.AUTHORIZED)

        assert events == [AuthorizationChanged(state=AuthorizationState.AUTHORIZED)]
        assert not source.permission_requested

    @pytest.mark.asyncio
    async def test_request_fix_requires_authorization(self, source):
        source.report_authorization(AuthorizationState.DENIED)

        with pytest.raises(AuthorizationFailure) as exc_info:
            await source.request_current_fix()

        assert exc_info.value.code == "denied"
        assert "denied" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_fix_delivered_to_pending_request(self, source):
        source.report_authorization(AuthorizationState.AUTHORIZED)

        request = asyncio.create_task(source.request_current_fix())
        await asyncio.sleep(0)
        assert source.fix_requested

        source.report_fix(39.9526, -75.1652)
        fix = await request

        assert fix.latitude == 39.9526
        assert source.last_fix == fix
        assert not source.fix_requested

    @pytest.mark.asyncio
    async def test_fix_timeout(self, source):
        source.report_authorization(AuthorizationState.AUTHORIZED)

        with pytest.raises(LocationUnavailable) as exc_info:
            await source.request_current_fix()

        assert exc_info.value.code == "fix_timeout"
        assert not source.fix_requested

    @pytest.mark.asyncio
    async def test_reported_failure_fails_pending_request(self, source):
        source.report_authorization(AuthorizationState.AUTHORIZED)

        request = asyncio.create_task(source.request_current_fix())
        await asyncio.sleep(0)
        source.report_failure("location_unknown")

        with pytest.raises(LocationUnavailable) as exc_info:
            await request
        assert exc_info.value.code == "location_unknown"

    @pytest.mark.asyncio
    async def test_revoked_authorization_fails_pending_request(self, source):
        source.report_authorization(AuthorizationState.AUTHORIZED)

        request = asyncio.create_task(source.request_current_fix())
        await asyncio.sleep(0)
        source.report_authorization(AuthorizationState.RESTRICTED)

        with pytest.raises(AuthorizationFailure) as exc_info:
            await request
        assert exc_info.value.code == "restricted"

    def test_fix_without_request_is_recorded(self, source):
        fix = source.report_fix(10.0, 20.0)
        assert source.last_fix == fix

    @pytest.mark.asyncio
    async def test_recent_fix_answers_request_without_waiting(self, source):
        source.report_authorization(AuthorizationState.AUTHORIZED)
        reported = source.report_fix(39.9526, -75.1652)

        fix = await source.request_current_fix()

        assert fix == reported
        assert not source.fix_requested

    @pytest.mark.asyncio
    async def test_old_fix_is_not_reused(self, source):
        source.report_authorization(AuthorizationState.AUTHORIZED)
        source.report_fix(39.9526, -75.1652)
        source.last_fix = source.last_fix.model_copy(
            update={"timestamp": datetime.now(pytz.utc) - timedelta(minutes=5)}
        )

        with pytest.raises(LocationUnavailable) as exc_info:
            await source.request_current_fix()

        assert exc_info.value.code == "fix_timeout"

    @pytest.mark.asyncio
    async def test_revoked_authorization_forgets_recent_fix(self, source):
        source.report_authorization(AuthorizationState.AUTHORIZED)
        source.report_fix(39.9526, -75.1652)
        source.report_authorization(AuthorizationState.DENIED)
        source.report_authorization(AuthorizationState.AUTHORIZED)

        with pytest.raises(LocationUnavailable):
            await source.request_current_fix()

    @pytest.mark.asyncio
    async def test_reverse_geocode_publishes_placemark(self, source, geocoder, events):
        fix = LocationFix(latitude=39.9526, longitude=-75.1652)

        placemark = await source.reverse_geocode(fix)

        assert placemark == PLACEMARK
        assert source.current_placemark == PLACEMARK
        assert events[-1] == PlacemarkUpdated(placemark=PLACEMARK)
        geocoder.reverse.assert_awaited_once_with(39.9526, -75.1652)

    @pytest.mark.asyncio
    async def test_reverse_geocode_failure_clears_placemark(
        self, source, geocoder, events
    ):
        geocoder.reverse.side_effect = LocationUnavailable("reverse_geocoding_failed")

        with pytest.raises(LocationUnavailable):
            await source.reverse_geocode(LocationFix(latitude=1.0, longitude=2.0))

        assert source.current_placemark is None
        assert events[-1] == PlacemarkUpdated(placemark=None)
