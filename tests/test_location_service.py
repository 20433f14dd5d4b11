import httpx
import pytest

from airbar.core.config import Settings
from airbar.services.location_service import (
    AuthorizationStatus, FixedLocationService, IPLocationService, LocationError,
    build_location_service,
)
from tests.conftest import json_response


def ip_service(handler, **kwargs) -> IPLocationService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return IPLocationService(url="https://ip.test/json/", client=client, **kwargs)


class TestIPLocationService:
    async def test_fix_from_response(self):
        service = ip_service(lambda request: json_response(
            {"ip": "203.0.113.7", "city": "Bursa", "latitude": 40.19, "longitude": 29.06}
        ))
        service.start_updates(100.0)

        fixes = await service.wait_for_update()

        assert [(f.latitude, f.longitude) for f in fixes] == [(40.19, 29.06)]
        assert service.desired_accuracy == 100.0

    async def test_not_started(self):
        service = ip_service(lambda request: json_response({}))
        with pytest.raises(LocationError) as excinfo:
            await service.wait_for_update()
        assert not excinfo.value.transient

    @pytest.mark.parametrize("status_code", [429, 500, 503])
    async def test_unavailable_is_transient(self, status_code):
        service = ip_service(lambda request: json_response({}, status_code=status_code))
        service.start_updates(100.0)
        with pytest.raises(LocationError) as excinfo:
            await service.wait_for_update()
        assert excinfo.value.transient

    async def test_transport_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        service = ip_service(handler)
        service.start_updates(100.0)
        with pytest.raises(LocationError) as excinfo:
            await service.wait_for_update()
        assert excinfo.value.transient

    async def test_body_decoding_error_is_transient(self):
        def handler(request):
            raise httpx.DecodingError("bad gzip", request=request)

        service = ip_service(handler)
        service.start_updates(100.0)
        with pytest.raises(LocationError) as excinfo:
            await service.wait_for_update()
        assert excinfo.value.transient
        assert excinfo.value.description == "bad gzip"

    @pytest.mark.parametrize("response", [
        json_response({"error": True}, status_code=403),
        json_response({"error": True, "reason": "RateLimited"}),
        json_response({"latitude": "north", "longitude": 1}),
        json_response({"latitude": 95.0, "longitude": 1}),
        httpx.Response(200, content=b"not json"),
    ])
    async def test_permanent_errors(self, response):
        service = ip_service(lambda request: response)
        service.start_updates(100.0)
        with pytest.raises(LocationError) as excinfo:
            await service.wait_for_update()
        assert not excinfo.value.transient

    async def test_request_authorization_grants_when_undetermined(self):
        service = ip_service(lambda request: json_response({}))
        assert service.authorization_status == AuthorizationStatus.NOT_DETERMINED
        assert await service.request_authorization() == AuthorizationStatus.AUTHORIZED

    async def test_denied_stays_denied(self):
        service = ip_service(lambda request: json_response({}), authorization="denied")
        assert await service.request_authorization() == AuthorizationStatus.DENIED

    def test_unknown_authorization_value(self):
        service = ip_service(lambda request: json_response({}), authorization="maybe")
        assert service.authorization_status == AuthorizationStatus.NOT_DETERMINED


class TestFixedLocationService:
    async def test_returns_configured_fix(self):
        service = FixedLocationService(48.85, 2.35)
        service.start_updates(100.0)
        fixes = await service.wait_for_update()
        assert fixes[0].latitude == 48.85
        assert fixes[0].longitude == 2.35
        assert service.authorization_status == AuthorizationStatus.AUTHORIZED


class TestBuildLocationService:
    def test_fixed(self):
        service = build_location_service(Settings(
            LOCATION_PROVIDER="fixed", DEFAULT_LATITUDE=1.5, DEFAULT_LONGITUDE=2.5,
            LOCATION_SERVICES_ENABLED=False,
        ))
        assert isinstance(service, FixedLocationService)
        assert service.fix.latitude == 1.5
        assert not service.services_enabled()

    def test_ip(self):
        service = build_location_service(Settings(
            LOCATION_PROVIDER="ip", LOCATION_AUTHORIZATION="authorized",
            IP_LOCATION_URL="https://ip.test/json/",
        ))
        assert isinstance(service, IPLocationService)
        assert service.url == "https://ip.test/json/"
        assert service.authorization_status == AuthorizationStatus.AUTHORIZED

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            build_location_service(Settings(LOCATION_PROVIDER="gps"))
