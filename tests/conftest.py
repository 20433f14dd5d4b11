"""
Shared fixtures and fakes
"""
import asyncio
import json
from typing import List, Optional, Sequence, Union

import httpx
import pytest

from airbar.models.air_quality import AqiScale
from airbar.models.session import LocationFix
from airbar.services.air_quality_client import AirQualityClient
from airbar.services.geocoding_service import GeocodingError, Placemark
from airbar.services.location_coordinator import LocationCoordinator
from airbar.services.location_service import AuthorizationStatus, LocationError

HOME = LocationFix(latitude=40.1885, longitude=29.061)

SUCCESS_PAYLOAD = {
    "latitude": 40.2,
    "longitude": 29.100002,
    "current_units": {"european_aqi": "EAQI", "pm10": "μg/m³"},
    "current": {
        "time": "2024-05-01T12:00",
        "interval": 3600,
        "european_aqi": 42,
        "us_aqi": 57,
        "pm10": 12.3,
        "pm2_5": 7.8,
        "carbon_monoxide": 180.5,
        "nitrogen_dioxide": 9.1,
        "sulphur_dioxide": 1.2,
        "ozone": 65.0,
    },
}


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode())


class MockAirQualityAPI:
    """httpx handler returning queued responses (the last one repeats)"""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses) or [json_response(SUCCESS_PAYLOAD)]
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def make_client(handler, scale: AqiScale = AqiScale.EUROPEAN) -> AirQualityClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AirQualityClient(scale=scale, base_url="https://aq.test/v1/air-quality", client=http)


Outcome = Union[Sequence[LocationFix], Exception]


class FakeLocationService:
    """
    Location service driven by a list of outcomes

    Each `wait_for_update` call consumes the next outcome: a batch of fixes
    is returned, an exception is raised. The last outcome repeats.
    """

    def __init__(
        self,
        outcomes: Optional[List[Outcome]] = None,
        enabled: bool = True,
        authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
        granted: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
    ):
        self.outcomes = list(outcomes or [[HOME]])
        self.enabled = enabled
        self._authorization = authorization
        self.granted = granted
        self.authorization_requests = 0
        self.start_calls: List[float] = []
        self.stop_calls = 0
        self.wait_calls = 0
        self.updating = False
        self.gate: Optional[asyncio.Event] = None

    def services_enabled(self) -> bool:
        return self.enabled

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._authorization

    async def request_authorization(self) -> AuthorizationStatus:
        self.authorization_requests += 1
        self._authorization = self.granted
        return self._authorization

    def start_updates(self, desired_accuracy: float) -> None:
        self.start_calls.append(desired_accuracy)
        self.updating = True

    def stop_updates(self) -> None:
        self.stop_calls += 1
        self.updating = False

    async def wait_for_update(self) -> Sequence[LocationFix]:
        self.wait_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeGeocoder:
    def __init__(
        self,
        placemarks: Optional[List[Placemark]] = None,
        error: Optional[GeocodingError] = None,
    ):
        if placemarks is None:
            placemarks = [Placemark(name="Atatürk Caddesi", locality="Osmangazi",
                                    administrative_area="Bursa", country="Türkiye")]
        self.placemarks = placemarks
        self.error = error
        self.calls: List[LocationFix] = []
        self.entered = asyncio.Event()
        self.release: Optional[asyncio.Event] = None

    async def reverse_geocode(self, fix: LocationFix) -> List[Placemark]:
        self.calls.append(fix)
        self.entered.set()
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.placemarks


class SleepRecorder:
    """Stands in for asyncio.sleep and records the requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def api():
    return MockAirQualityAPI()


@pytest.fixture
def location_service():
    return FakeLocationService()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def coordinator(location_service, geocoder, api, sleep):
    return LocationCoordinator(
        location_service=location_service,
        geocoder=geocoder,
        air_quality_client=make_client(api),
        sleep=sleep,
    )
