import pytest
from fastapi.testclient import TestClient

from airbar.core.config import Settings
from airbar.main import create_app
from airbar.models.air_quality import AqiScale
from airbar.services.location_coordinator import LocationCoordinator
from airbar.services.location_service import AuthorizationStatus
from tests.conftest import (
    FakeGeocoder, FakeLocationService, MockAirQualityAPI, SleepRecorder, make_client
)


def make_test_client(location_service=None, scale=AqiScale.EUROPEAN, **settings):
    coordinator = LocationCoordinator(
        location_service=location_service or FakeLocationService(),
        geocoder=FakeGeocoder(),
        air_quality_client=make_client(MockAirQualityAPI(), scale=scale),
        sleep=SleepRecorder(),
    )
    settings.setdefault("START_ON_LAUNCH", False)
    app = create_app(settings=Settings(**settings), coordinator=coordinator)
    return TestClient(app)


@pytest.fixture
def client():
    with make_test_client() as test_client:
        yield test_client


class TestRootRoutes:
    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert r.json()["status"] == "active"

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestStatusRoute:
    def test_initial_status(self, client):
        r = client.get("/api/v1/air-quality/status")
        assert r.status_code == 200
        data = r.json()
        assert data["phase"] == "idle"
        assert data["generation"] == 0
        assert data["reading"] is None
        assert data["location"] is None


class TestRefreshRoute:
    def test_refresh_and_wait(self, client):
        r = client.post("/api/v1/air-quality/refresh", params={"wait": "true"})
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == ""
        assert data["is_loading"] is False
        assert data["phase"] == "settled"
        assert data["location"]["name"] == "Atatürk Caddesi, Osmangazi, Bursa, Türkiye"

        reading = data["reading"]
        assert reading["aqi"] == 42
        assert reading["scale"] == "european"
        assert reading["color"] == "green"
        assert reading["color_code"] == "#00E400"
        assert reading["level"] == "good"
        assert reading["pm2_5"] == 7.8

        r = client.get("/api/v1/air-quality/status")
        assert r.json()["reading"]["aqi"] == 42

    def test_refresh_in_background(self, client):
        r = client.post("/api/v1/air-quality/refresh")
        assert r.status_code == 202
        data = r.json()
        assert data["generation"] == 1
        assert data["status"] == "Fetching location..."

    def test_denied(self):
        location_service = FakeLocationService(authorization=AuthorizationStatus.DENIED)
        with make_test_client(location_service=location_service) as client:
            r = client.post("/api/v1/air-quality/refresh", params={"wait": "true"})
        data = r.json()
        assert data["status"] == "Location access denied. Please enable in Settings."
        assert data["reading"] is None
        assert data["is_loading"] is False


class TestStartOnLaunch:
    def test_cycle_started_by_lifespan(self):
        with make_test_client(START_ON_LAUNCH=True) as client:
            data = client.get("/api/v1/air-quality/status").json()
        assert data["generation"] == 1


class TestScaleRoute:
    def test_us_scale(self):
        with make_test_client(scale=AqiScale.US) as client:
            data = client.get("/api/v1/air-quality/scale").json()
        assert data["scale"] == "us"
        assert data["api_key"] == "us_aqi"
        assert data["buckets"][-1] == {
            "min": 301, "max": None, "color": "maroon", "hex": "#800000", "level": "hazardous",
        }
