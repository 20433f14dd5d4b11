"""
Location coordinator

Runs one refresh cycle at a time:

    IDLE -> REQUESTING_AUTHORIZATION -> ACQUIRING_LOCATION
         -> RESOLVING (reverse geocoding || air quality fetch) -> SETTLED

with RETRYING looping back into ACQUIRING_LOCATION on transient
location errors. All writes to the session state happen on the event
loop and carry the generation of the cycle that produced them; writes
from a superseded cycle are dropped.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from airbar.core.config import Settings, settings as default_settings
from airbar.models.session import CoordinatorPhase, LocationFix, SessionState
from airbar.services.air_quality_client import AirQualityClient, AirQualityError
from airbar.services.geocoding_service import (
    Geocoder, GeocodingError, NominatimGeocoder, compose_display_name
)
from airbar.services.location_service import (
    AuthorizationStatus, LocationError, LocationService, build_location_service
)

logger = logging.getLogger(__name__)

# Status messages
FETCHING_LOCATION = "Fetching location..."
LOCATION_SERVICES_DISABLED = "Location services are disabled"
ACCESS_DENIED = "Location access denied. Please enable in Settings."
UNKNOWN_AUTHORIZATION = "Unknown authorization status"
RETRIES_EXHAUSTED = "Unable to fetch location after several attempts. Please try again later."
LOCATION_UPDATED = "Location updated, fetching air quality..."
NO_PLACEMARK = "No placemark found"


class LocationCoordinator:
    """
    Location -> reverse geocoding + air quality pipeline

    `start()` must be called from a running event loop. A new `start()`
    cancels the cycle in flight (last one wins).
    """

    def __init__(
        self,
        location_service: LocationService,
        geocoder: Geocoder,
        air_quality_client: AirQualityClient,
        state: Optional[SessionState] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        desired_accuracy: float = 100.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._location_service = location_service
        self._geocoder = geocoder
        self._client = air_quality_client
        self._state = state or SessionState()
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.desired_accuracy = desired_accuracy
        self._sleep = sleep

        self._generation = 0
        self._retry_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def scale(self):
        return self._client.scale

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Begin a new refresh cycle and return its task"""
        if self.is_running:
            logger.info("Superseding refresh cycle %d", self._generation)
            self._task.cancel()
            self._location_service.stop_updates()

        self._generation += 1
        generation = self._generation
        self._retry_count = 0
        self._state.update(
            status=FETCHING_LOCATION,
            is_loading=True,
            phase=CoordinatorPhase.IDLE,
            generation=generation,
        )
        logger.info("Refresh cycle %d started", generation)

        self._task = asyncio.create_task(self._run(generation))
        return self._task

    async def refresh(self) -> SessionState:
        """Start a cycle and wait until it settles (or is superseded)"""
        task = self.start()
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
        return self._state.snapshot()

    async def aclose(self):
        """Cancel the cycle in flight and close owned clients"""
        if self.is_running:
            self._task.cancel()
            await asyncio.wait({self._task})
        self._location_service.stop_updates()
        for component in (self._client, self._location_service, self._geocoder):
            close = getattr(component, "aclose", None)
            if close is not None:
                await close()

    # State writes

    def _apply(self, generation: int, **changes) -> bool:
        if generation != self._generation:
            logger.debug("Dropping update from superseded cycle %d: %s", generation, changes)
            return False
        self._state.update(**changes)
        return True

    def _settle(self, generation: int, status: str) -> None:
        self._apply(generation, status=status, is_loading=False, phase=CoordinatorPhase.SETTLED)

    # Cycle

    async def _run(self, generation: int) -> None:
        try:
            if not self._location_service.services_enabled():
                logger.warning("Location services are disabled")
                self._settle(generation, LOCATION_SERVICES_DISABLED)
                return

            await self._check_authorization(
                generation, self._location_service.authorization_status, may_request=True
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Refresh cycle %d failed", generation)
            self._location_service.stop_updates()
            self._settle(generation, f"Error: {str(e) or e.__class__.__name__}")

    async def _check_authorization(
        self, generation: int, status: AuthorizationStatus, may_request: bool
    ) -> None:
        if status == AuthorizationStatus.AUTHORIZED:
            await self._acquire_location(generation)
        elif status in (AuthorizationStatus.DENIED, AuthorizationStatus.RESTRICTED):
            logger.warning("Location access %s", status.value)
            self._settle(generation, ACCESS_DENIED)
        elif status == AuthorizationStatus.NOT_DETERMINED and may_request:
            self._apply(generation, phase=CoordinatorPhase.REQUESTING_AUTHORIZATION)
            new_status = await self._location_service.request_authorization()
            await self._check_authorization(generation, new_status, may_request=False)
        else:
            logger.warning("Unknown authorization status: %s", status)
            self._settle(generation, UNKNOWN_AUTHORIZATION)

    async def _acquire_location(self, generation: int) -> None:
        while True:
            self._apply(generation, phase=CoordinatorPhase.ACQUIRING_LOCATION)
            self._location_service.start_updates(self.desired_accuracy)
            try:
                fixes = []
                while not fixes:
                    fixes = await self._location_service.wait_for_update()
            except LocationError as e:
                self._location_service.stop_updates()
                if not e.transient:
                    logger.warning("Location error: %s", e.description)
                    self._settle(generation, f"Error: {e.description}")
                    return
                if self._retry_count >= self.max_retries:
                    logger.warning("Giving up after %d location retries", self._retry_count)
                    self._settle(generation, RETRIES_EXHAUSTED)
                    return
                self._retry_count += 1
                logger.info(
                    "Temporary location error, retrying (%d/%d): %s",
                    self._retry_count, self.max_retries, e.description,
                )
                self._apply(generation, phase=CoordinatorPhase.RETRYING)
                await self._sleep(self.retry_delay)
                continue

            # Single shot: the first batch is enough
            self._location_service.stop_updates()
            await self._resolve(generation, fixes[-1])
            return

    async def _resolve(self, generation: int, fix: LocationFix) -> None:
        self._apply(
            generation,
            location=fix,
            status=LOCATION_UPDATED,
            phase=CoordinatorPhase.RESOLVING,
        )
        results = await asyncio.gather(
            self._reverse_geocode(generation, fix),
            self._fetch_air_quality(generation, fix),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error("Refresh cycle %d step failed", generation, exc_info=result)
        self._apply(generation, is_loading=False, phase=CoordinatorPhase.SETTLED)

    async def _reverse_geocode(self, generation: int, fix: LocationFix) -> None:
        try:
            placemarks = await self._geocoder.reverse_geocode(fix)
        except GeocodingError as e:
            self._apply(generation, status=f"Geocoding error: {e}")
            return

        if not placemarks:
            self._apply(generation, status=NO_PLACEMARK)
            return

        name = compose_display_name(placemarks[0])
        self._apply(generation, location=fix.with_name(name))

    async def _fetch_air_quality(self, generation: int, fix: LocationFix) -> None:
        try:
            reading = await self._client.fetch(fix.latitude, fix.longitude)
        except AirQualityError as e:
            logger.warning("Air quality fetch failed: %s", e.status_message)
            self._apply(generation, status=e.status_message, is_loading=False)
            return

        self._apply(generation, reading=reading, status="", is_loading=False)


def build_coordinator(settings: Settings = default_settings) -> LocationCoordinator:
    """Wire a coordinator from settings"""
    return LocationCoordinator(
        location_service=build_location_service(settings),
        geocoder=NominatimGeocoder(
            user_agent=settings.GEOCODER_USER_AGENT,
            timeout=settings.GEOCODER_TIMEOUT,
            language=settings.GEOCODER_LANGUAGE,
        ),
        air_quality_client=AirQualityClient(
            scale=settings.AQI_SCALE,
            base_url=settings.AIR_QUALITY_API_URL,
        ),
        max_retries=settings.LOCATION_MAX_RETRIES,
        retry_delay=settings.LOCATION_RETRY_DELAY,
        desired_accuracy=settings.DESIRED_ACCURACY_METERS,
    )
