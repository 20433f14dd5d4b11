"""
Location services

The coordinator talks to a `LocationService`: authorization status and
request, start/stop of updates, and an awaitable stream of fixes.
Two providers are available:
- IPLocationService: approximate location from an IP geolocation API
- FixedLocationService: coordinates from configuration
"""
import enum
import logging
from typing import List, Optional, Protocol, Sequence

import httpx

from airbar.core.config import Settings, settings as default_settings
from airbar.models.session import LocationFix

logger = logging.getLogger(__name__)


class AuthorizationStatus(str, enum.Enum):
    """Location authorization status"""
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


class LocationError(Exception):
    """
    Location could not be determined

    `transient` errors mean the location is temporarily unavailable and
    the request can be retried.
    """

    def __init__(self, description: str, transient: bool = False):
        super().__init__(description)
        self.description = description
        self.transient = transient


class LocationService(Protocol):
    """Location capability used by the coordinator"""

    def services_enabled(self) -> bool: ...

    @property
    def authorization_status(self) -> AuthorizationStatus: ...

    async def request_authorization(self) -> AuthorizationStatus: ...

    def start_updates(self, desired_accuracy: float) -> None: ...

    def stop_updates(self) -> None: ...

    async def wait_for_update(self) -> Sequence[LocationFix]: ...


def _parse_authorization(value: str) -> AuthorizationStatus:
    try:
        return AuthorizationStatus(value.strip().lower())
    except ValueError:
        logger.warning("Unknown LOCATION_AUTHORIZATION %r, treating as not determined", value)
        return AuthorizationStatus.NOT_DETERMINED


class IPLocationService:
    """
    Approximate location from an IP geolocation endpoint

    Expects a JSON object with `latitude` and `longitude` (ipapi.co format).
    Accuracy is city level at best; the desired accuracy is only recorded.
    """

    TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        url: Optional[str] = None,
        enabled: bool = True,
        authorization: str = "not_determined",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url or default_settings.IP_LOCATION_URL
        self.enabled = enabled
        self._authorization = _parse_authorization(authorization)
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._updating = False
        self.desired_accuracy: Optional[float] = None

    def services_enabled(self) -> bool:
        return self.enabled

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._authorization

    async def request_authorization(self) -> AuthorizationStatus:
        # Enabling the provider is the consent
        if self._authorization == AuthorizationStatus.NOT_DETERMINED:
            logger.info("Location authorization granted for IP geolocation")
            self._authorization = AuthorizationStatus.AUTHORIZED
        return self._authorization

    def start_updates(self, desired_accuracy: float) -> None:
        self.desired_accuracy = desired_accuracy
        self._updating = True

    def stop_updates(self) -> None:
        self._updating = False

    async def wait_for_update(self) -> List[LocationFix]:
        if not self._updating:
            raise LocationError("Location updates are not running")

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        try:
            response = await self._client.get(self.url)
        except httpx.RequestError as e:
            raise LocationError(str(e) or e.__class__.__name__, transient=True) from e

        if response.status_code in self.TRANSIENT_STATUS_CODES:
            raise LocationError(f"Location service unavailable (HTTP {response.status_code})", transient=True)
        if response.status_code != 200:
            raise LocationError(f"Location lookup failed (HTTP {response.status_code})")

        try:
            data = response.json()
            fix = LocationFix(latitude=float(data["latitude"]), longitude=float(data["longitude"]))
        except (ValueError, KeyError, TypeError) as e:
            raise LocationError(f"Unusable location response: {e}") from e

        if not (-90 <= fix.latitude <= 90 and -180 <= fix.longitude <= 180):
            raise LocationError(f"Location out of range: {fix.latitude}, {fix.longitude}")

        logger.debug("IP location: %s, %s", fix.latitude, fix.longitude)
        return [fix]

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class FixedLocationService:
    """Always reports the configured coordinates"""

    def __init__(self, latitude: float, longitude: float, enabled: bool = True):
        self.fix = LocationFix(latitude=latitude, longitude=longitude)
        self.enabled = enabled
        self._updating = False

    def services_enabled(self) -> bool:
        return self.enabled

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return AuthorizationStatus.AUTHORIZED

    async def request_authorization(self) -> AuthorizationStatus:
        return AuthorizationStatus.AUTHORIZED

    def start_updates(self, desired_accuracy: float) -> None:
        self._updating = True

    def stop_updates(self) -> None:
        self._updating = False

    async def wait_for_update(self) -> List[LocationFix]:
        if not self._updating:
            raise LocationError("Location updates are not running")
        return [self.fix]


def build_location_service(settings: Settings = default_settings) -> LocationService:
    """Create the provider selected by LOCATION_PROVIDER"""
    provider = settings.LOCATION_PROVIDER.strip().lower()
    if provider == "fixed":
        return FixedLocationService(
            settings.DEFAULT_LATITUDE,
            settings.DEFAULT_LONGITUDE,
            enabled=settings.LOCATION_SERVICES_ENABLED,
        )
    if provider == "ip":
        return IPLocationService(
            url=settings.IP_LOCATION_URL,
            enabled=settings.LOCATION_SERVICES_ENABLED,
            authorization=settings.LOCATION_AUTHORIZATION,
            timeout=settings.IP_LOCATION_TIMEOUT,
        )
    raise ValueError(f"Unknown LOCATION_PROVIDER: {settings.LOCATION_PROVIDER!r}")
