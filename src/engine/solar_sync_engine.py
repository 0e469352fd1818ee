"""
Location/data synchronization engine using LangGraph for the update-for-place pipeline
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Set, TypedDict, Literal

import pytz
from langgraph.graph import StateGraph, END

from models.almanac import AlmanacResponse
from models.config import AppSettings, ServiceConfig
from models.events import (
    AuthorizationChanged,
    EngineEvent,
    InitialResolution,
    PlacemarkUpdated,
    Refresh,
    RequestDeviceLocation,
    SearchPlace,
    SelectPlace,
    SetResolutionMode,
    SettingsChanged,
)
from models.notifications import NotificationAuthorization
from models.solar import (
    DENIED_CITY,
    AuthorizationState,
    LoadingState,
    Place,
    ResolutionMode,
    SolarContext,
)
from utils.errors import (
    AirQualityFailure,
    AuthorizationFailure,
    GeocodeFailure,
    LocationError,
)
from utils.location_utils import AUTHORIZATION_FAILURE_CODES
from utils.notification_utils import derive_notifications
from utils.solar import SolarPositionCalculator, build_solar_context

logger = logging.getLogger(__name__)

MISSING_DEVICE_COORDINATES = (
    "Could not resolve your current location: coordinates are missing."
)


class PipelineState(TypedDict):
    """State for the update-for-place graph"""

    generation: int
    place: Place
    almanac: Optional[AlmanacResponse]
    solar_context: Optional[SolarContext]
    committed: bool
    error: Optional[str]


class SolarSyncEngine:
    """Owns the current solar context and arbitrates between location sources.

    Every public command posts an event onto a single queue consumed by one
    coordination loop. Resolution pipelines run as tasks tagged with a
    generation number; only the pipeline holding the latest generation may
    commit, so the newest trigger always wins.
    """

    def __init__(
        self,
        settings: AppSettings,
        config: ServiceConfig,
        location_source,
        geocoder,
        data_client,
        notifier,
        preferences,
        display,
        calculator=SolarPositionCalculator,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.config = config
        self.location_source = location_source
        self.geocoder = geocoder
        self.data_client = data_client
        self.notifier = notifier
        self.preferences = preferences
        self.display = display
        self.calculator = calculator
        self.clock = clock or (lambda: datetime.now(pytz.utc))

        self.context = SolarContext.placeholder(today=self.clock().date())
        self.loading_state = LoadingState.idle()
        self.authorization_state = location_source.authorization_state

        # In-flight guards
        self.is_fetching_device_location = False
        self.is_geocoding = False
        self.manual_selection_depth = 0
        self._awaiting_permission = False
        self._device_generation = 0

        self._generation = 0
        self._last_terminal_state = LoadingState.idle()
        self._queue: "asyncio.Queue[EngineEvent]" = asyncio.Queue()
        self._loop_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

        self.graph = None
        self._build_graph()

    # Lifecycle

    async def start(self):
        """Subscribe to the location source, start the loop and run the initial resolution"""
        if self._loop_task is not None:
            return

        self.location_source.subscribe(self.post)
        self._loop_task = asyncio.create_task(self._run())
        self.post(InitialResolution())
        logger.info(
            f"Solar sync engine started in {self.settings.resolution_mode.value} mode"
        )

    async def shutdown(self):
        """Stop the coordination loop and any in-flight pipeline"""
        tasks = list(self._tasks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Solar sync engine shutdown completed")

    async def drain(self):
        """Wait until the queue is empty and no pipeline task is running"""
        while True:
            await self._queue.join()
            if not self._tasks:
                if self._queue.empty():
                    return
                continue
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Commands

    def post(self, event: EngineEvent) -> None:
        self._queue.put_nowait(event)

    def request_device_location(self) -> None:
        self.post(RequestDeviceLocation())

    def select_place(self, place: Place) -> None:
        self.post(SelectPlace(place=place))

    def search_place(self, text: str) -> None:
        self.post(SearchPlace(text=text))

    def refresh(self) -> None:
        self.post(Refresh())

    def set_resolution_mode(self, mode: ResolutionMode) -> None:
        self.post(SetResolutionMode(mode=mode))

    def update_settings(self, **changes: Any) -> None:
        self.post(SettingsChanged(changes=changes))

    def resync_notifications(self) -> None:
        """Re-derive alerts, e.g. after the notification permission changed"""
        self.post(SettingsChanged())

    def snapshot(self) -> Dict[str, Any]:
        """Status summary for logging and the status endpoint"""
        return {
            "loading_state": self.loading_state.status.value,
            "message": self.loading_state.message,
            "resolution_mode": self.settings.resolution_mode.value,
            "authorization_state": self.authorization_state.value,
            "is_fetching_device_location": self.is_fetching_device_location,
            "device_fix_requested": self.location_source.fix_requested,
            "is_geocoding": self.is_geocoding,
            "manual_selection_depth": self.manual_selection_depth,
            "generation": self._generation,
            "city": self.context.city,
            "is_placeholder": self.context.is_placeholder,
        }

    # Coordination loop

    async def _run(self):
        while True:
            event = await self._queue.get()
            try:
                await self._handle(event)
            except Exception as e:
                logger.exception(f"Error handling {type(event).__name__}: {e}")
            finally:
                self._queue.task_done()

    async def _handle(self, event: EngineEvent):
        logger.debug(f"Handling {type(event).__name__}")

        if isinstance(event, InitialResolution):
            self._on_initial_resolution()
        elif isinstance(event, AuthorizationChanged):
            self._on_authorization_changed(event.state)
        elif isinstance(event, PlacemarkUpdated):
            if event.placemark is not None:
                logger.info(f"Placemark updated: {event.placemark.name}")
        elif isinstance(event, RequestDeviceLocation):
            self._trigger_device_location()
        elif isinstance(event, SelectPlace):
            self._start_manual_selection(event.place)
        elif isinstance(event, SearchPlace):
            self._on_search_place(event.text)
        elif isinstance(event, Refresh):
            self._on_refresh()
        elif isinstance(event, SetResolutionMode):
            self._on_set_resolution_mode(event.mode)
        elif isinstance(event, SettingsChanged):
            await self._on_settings_changed(event.changes)
        else:
            logger.warning(f"Unhandled engine event: {event!r}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Pipeline task failed: {task.exception()!r}")

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    # Loading state

    def _set_state(self, state: LoadingState) -> None:
        if state != self.loading_state:
            logger.info(
                f"Loading state: {self.loading_state.status.value} -> {state.status.value}"
            )
        self.loading_state = state
        if state.is_terminal:
            self._last_terminal_state = state

    def _set_loading(self) -> None:
        self._set_state(LoadingState.loading())

    def _set_error(self, message: str) -> None:
        logger.error(f"Resolution failed: {message}")
        self._set_state(LoadingState.error(message))

    def _revert_loading(self) -> None:
        self._set_state(self._last_terminal_state)

    # Triggers

    def _on_initial_resolution(self):
        if self.settings.resolution_mode == ResolutionMode.USE_DEVICE_LOCATION:
            self._trigger_device_location()
        else:
            self._start_manual_selection(self._persisted_or_default_place())

    def _persisted_or_default_place(self) -> Place:
        place = self.preferences.load_last_place()
        if place is not None:
            logger.info(f"Using persisted place: {place.name}")
            return place

        default = self.config.defaultPlace
        logger.info(f"No persisted place, using default: {default.name}")
        return Place(
            name=default.name,
            latitude=default.latitude,
            longitude=default.longitude,
            timezone=default.timezone,
        )

    def _trigger_device_location(self):
        in_flight = self._is_current(self._device_generation)
        if self.is_fetching_device_location and in_flight:
            logger.info("Device location request already in flight, ignoring trigger")
            return

        # A stale outstanding request does not block a new one
        self.is_fetching_device_location = True
        generation = self._next_generation()
        self._device_generation = generation
        self._set_loading()

        state = self.location_source.authorization_state
        self.authorization_state = state
        if state == AuthorizationState.AUTHORIZED:
            self._spawn_device_pipeline(generation)
        elif state == AuthorizationState.NOT_DETERMINED:
            logger.info("Location permission not determined, requesting permission")
            self._awaiting_permission = True
            self.location_source.request_permission()
        else:
            self._apply_authorization_failure(state)

    def _apply_authorization_failure(self, state: AuthorizationState):
        error = AuthorizationFailure(AUTHORIZATION_FAILURE_CODES[state])
        self._next_generation()
        self.is_fetching_device_location = False
        self._awaiting_permission = False
        self.context = SolarContext.placeholder(DENIED_CITY, today=self.clock().date())
        self._set_error(error.message)

    def _on_authorization_changed(self, state: AuthorizationState):
        self.authorization_state = state

        if self.settings.resolution_mode != ResolutionMode.USE_DEVICE_LOCATION:
            self._cancel_permission_wait()
            logger.info(f"Authorization is {state.value} but manual mode is active")
            return

        if state == AuthorizationState.AUTHORIZED:
            if self._awaiting_permission:
                self._awaiting_permission = False
                self._spawn_device_pipeline(self._next_generation())
            else:
                self._trigger_device_location()
        elif state != AuthorizationState.NOT_DETERMINED:
            self._apply_authorization_failure(state)

    def _spawn_device_pipeline(self, generation: int):
        self._device_generation = generation
        self._spawn(self._device_location_pipeline(generation))

    def _cancel_permission_wait(self):
        if self._awaiting_permission:
            self._awaiting_permission = False
            self.is_fetching_device_location = False

    def _start_manual_selection(self, place: Place):
        generation = self._next_generation()
        self.manual_selection_depth += 1
        self._set_loading()
        self._force_manual_mode()
        self._spawn(self._manual_selection_pipeline(place, generation))

    def _end_manual_selection(self):
        self.manual_selection_depth = max(0, self.manual_selection_depth - 1)

    def _abandon_device_request(self):
        """Release the device guard; an outstanding fix can no longer commit"""
        self._awaiting_permission = False
        if self.is_fetching_device_location:
            logger.info("Device location request superseded by a manual selection")
            self.is_fetching_device_location = False

    def _force_manual_mode(self):
        self._abandon_device_request()
        if self.settings.resolution_mode == ResolutionMode.USE_MANUAL_PLACE:
            return
        self.settings.resolution_mode = ResolutionMode.USE_MANUAL_PLACE
        self.preferences.save_use_current_location(False)
        logger.info("Resolution mode forced to manual place")

    def _on_search_place(self, text: str):
        if self.is_geocoding or self.manual_selection_depth > 0:
            logger.info(f"Search for '{text}' ignored: a manual selection is in flight")
            return

        generation = self._next_generation()
        self.is_geocoding = True
        self.manual_selection_depth += 1
        self._set_loading()
        self._force_manual_mode()
        self._spawn(self._search_pipeline(text, generation))

    def _on_refresh(self):
        if self.settings.resolution_mode == ResolutionMode.USE_DEVICE_LOCATION:
            self._trigger_device_location()
            return

        place = self.context.place
        if self.context.is_placeholder or not place.has_coordinates:
            place = self._persisted_or_default_place()
        self._start_manual_selection(place)

    def _on_set_resolution_mode(self, mode: ResolutionMode):
        if self.manual_selection_depth > 0:
            logger.info(
                f"Mode change to {mode.value} ignored: manual selection in flight"
            )
            return
        if mode == self.settings.resolution_mode:
            return

        self.settings.resolution_mode = mode
        self.preferences.save_use_current_location(
            mode == ResolutionMode.USE_DEVICE_LOCATION
        )
        logger.info(f"Resolution mode changed to {mode.value}")

        if mode == ResolutionMode.USE_DEVICE_LOCATION:
            self._trigger_device_location()
        else:
            self._start_manual_selection(self._persisted_or_default_place())

    async def _on_settings_changed(self, changes: Dict[str, Any]):
        changes = dict(changes)
        mode = changes.pop("resolution_mode", None)
        for key, value in changes.items():
            if not hasattr(self.settings, key):
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            setattr(self.settings, key, value)

        if changes:
            logger.info(f"Settings updated: {changes}")
        if changes or mode is None:
            await self._sync_notifications()

        if mode is not None:
            self._on_set_resolution_mode(ResolutionMode(mode))

    # Pipelines

    async def _device_location_pipeline(self, generation: int):
        try:
            try:
                fix = await self.location_source.request_current_fix()
                placemark = await self.location_source.reverse_geocode(fix)
            except LocationError as e:
                if self._is_current(generation):
                    self._handle_location_failure(e)
                return

            if placemark.latitude is None or placemark.longitude is None:
                if self._is_current(generation):
                    self._set_error(MISSING_DEVICE_COORDINATES)
                return

            if not self._is_current(generation):
                logger.info(f"Discarding stale device location (generation {generation})")
                return

            place = Place(
                name=placemark.name,
                latitude=placemark.latitude,
                longitude=placemark.longitude,
                timezone=placemark.timezone,
            )
            await self._update_for_place(place, generation)
        finally:
            # A newer device request owns the flag once it has been re-armed
            if self._device_generation == generation:
                self.is_fetching_device_location = False

    def _handle_location_failure(self, error: LocationError):
        transient = error.code in self.config.transientLocationErrorCodes
        if transient and not self.context.is_placeholder:
            logger.warning(f"Ignoring transient location error: {error.code}")
            self._revert_loading()
            return
        self._set_error(error.message)

    async def _manual_selection_pipeline(self, place: Place, generation: int):
        try:
            await self._update_for_place(place, generation)
        finally:
            self._end_manual_selection()

    async def _search_pipeline(self, text: str, generation: int):
        try:
            try:
                place = await self.geocoder.geocode(text)
            except GeocodeFailure as e:
                if self._is_current(generation):
                    self._set_error(str(e))
                return
            finally:
                self.is_geocoding = False

            if place is None or not place.has_coordinates:
                if self._is_current(generation):
                    self._set_error(f'No coordinates found for "{text}".')
                return

            if not self._is_current(generation):
                logger.info(f"Discarding stale search result for '{text}'")
                return

            await self._update_for_place(place, generation)
        finally:
            self._end_manual_selection()

    async def _update_for_place(self, place: Place, generation: int):
        """Run the fetch/derive/commit graph for a place"""
        if self._is_current(generation):
            self._set_loading()

        if not place.has_coordinates:
            if self._is_current(generation):
                self._set_error(f"Latitude/Longitude not available for {place.name}.")
            return

        logger.info(
            f"Updating solar data for {place.name} ({place.latitude}, {place.longitude})"
        )
        initial_state = PipelineState(
            generation=generation,
            place=place,
            almanac=None,
            solar_context=None,
            committed=False,
            error=None,
        )
        await self.graph.ainvoke(initial_state)

    # Update-for-place graph

    def _build_graph(self):
        """Build the LangGraph workflow"""
        workflow = StateGraph(PipelineState)

        workflow.add_node("fetch_almanac", self._fetch_almanac_node)
        workflow.add_node("derive_context", self._derive_context_node)
        workflow.add_node("commit_context", self._commit_context_node)
        workflow.add_node("enrich_air_quality", self._enrich_air_quality_node)
        workflow.add_node("error_handler", self._error_handler_node)

        workflow.set_entry_point("fetch_almanac")

        workflow.add_conditional_edges(
            "fetch_almanac",
            self._route_on_error,
            {
                "continue": "derive_context",
                "error": "error_handler",
            },
        )
        workflow.add_conditional_edges(
            "derive_context",
            self._route_on_error,
            {
                "continue": "commit_context",
                "error": "error_handler",
            },
        )
        workflow.add_conditional_edges(
            "commit_context",
            self._route_after_commit,
            {
                "enrich": "enrich_air_quality",
                "end": END,
            },
        )

        workflow.add_edge("enrich_air_quality", END)
        workflow.add_edge("error_handler", END)

        self.graph = workflow.compile()

    async def _fetch_almanac_node(self, state: PipelineState) -> PipelineState:
        """Entry node: fetch the remote almanac"""
        place = state["place"]
        try:
            state["almanac"] = await self.data_client.fetch_almanac(
                place.latitude, place.longitude
            )
        except Exception as e:
            logger.error(f"Error fetching almanac for {place.name}: {e}")
            state["error"] = f"Failed to fetch solar data: {e}"

        return state

    async def _derive_context_node(self, state: PipelineState) -> PipelineState:
        """Derive the new context: noon, UV, conditions and sun position"""
        place = state["place"]
        try:
            state["solar_context"] = build_solar_context(
                place,
                state["almanac"],
                self.clock(),
                calculator=self.calculator,
                horizon_hours=self.config.uvHorizonHours,
            )
        except Exception as e:
            logger.error(f"Error deriving solar context for {place.name}: {e}")
            state["error"] = str(e)

        return state

    async def _commit_context_node(self, state: PipelineState) -> PipelineState:
        """Replace the current context and run the post-commit effects"""
        generation = state["generation"]
        if not self._is_current(generation):
            logger.info(
                f"Discarding stale result for {state['place'].name} "
                f"(generation {generation}, current {self._generation})"
            )
            return state

        context = state["solar_context"]
        self.context = context
        state["committed"] = True
        self._set_state(LoadingState.success())
        logger.info(
            f"Solar context committed for {context.city}: sunrise {context.sunrise}, "
            f"sunset {context.sunset}, UV {context.uv_index} ({context.uv_index_category})"
        )

        await self._sync_notifications()

        if self.settings.resolution_mode == ResolutionMode.USE_MANUAL_PLACE:
            try:
                self.preferences.save_last_place(context.place)
            except OSError as e:
                logger.error(f"Error persisting last place: {e}")

        self.display.invalidate_all()
        return state

    async def _enrich_air_quality_node(self, state: PipelineState) -> PipelineState:
        """Best-effort merge of air-quality readings into the committed context"""
        place = state["place"]
        try:
            reading = await self.data_client.fetch_air_quality(
                place.latitude, place.longitude
            )
        except AirQualityFailure as e:
            logger.warning(f"Air quality unavailable for {place.name}: {e}")
            return state

        if not self._is_current(state["generation"]):
            logger.info(f"Discarding stale air quality for {place.name}")
            return state

        self.context = self.context.model_copy(
            update={"us_aqi": reading.us_aqi, "pm2_5": reading.pm2_5}
        )
        logger.info(f"Air quality merged for {place.name}: US AQI {reading.us_aqi}")
        self.display.invalidate_all()
        return state

    async def _error_handler_node(self, state: PipelineState) -> PipelineState:
        """Surface the pipeline error unless a newer pipeline superseded this one"""
        if not self._is_current(state["generation"]):
            logger.info(f"Discarding stale error: {state['error']}")
            return state

        self._set_error(state.get("error") or "Unknown error occurred")
        return state

    def _route_on_error(self, state: PipelineState) -> Literal["continue", "error"]:
        if state.get("error"):
            return "error"
        return "continue"

    def _route_after_commit(self, state: PipelineState) -> Literal["enrich", "end"]:
        if state.get("committed"):
            return "enrich"
        return "end"

    # Notifications

    async def _sync_notifications(self):
        """Cancel every pending alert and schedule the set derived from the context"""
        self.notifier.cancel_all()

        status = await self.notifier.get_authorization_status()
        if status != NotificationAuthorization.AUTHORIZED:
            logger.info(f"Notifications not scheduled: authorization is {status.value}")
            return
        if not self.settings.notifications_enabled:
            logger.info("Notifications not scheduled: disabled in settings")
            return

        alerts = derive_notifications(self.context, self.settings, self.clock())
        for alert in alerts:
            self.notifier.schedule(alert.identifier, alert.title, alert.body, alert.fire_at)
        logger.info(f"Scheduled {len(alerts)} notification(s) for {self.context.city}")
