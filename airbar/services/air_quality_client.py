"""
Open-Meteo air quality client

Fetches current air quality for a coordinate from the Open-Meteo
air quality API: https://open-meteo.com/en/docs/air-quality-api
"""
import json
import logging
import math
from typing import Optional

import httpx
from pydantic import ValidationError

from airbar.core.config import settings
from airbar.models.air_quality import AqiScale
from airbar.schemas.air_quality import POLLUTANT_KEYS, AirQualityReading

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"


class AirQualityError(Exception):
    """Base class for air quality fetch failures"""

    def __init__(self, description: str = ""):
        self.description = description
        super().__init__(description or self.status_message)

    @property
    def status_message(self) -> str:
        return "Air quality request failed"


class InvalidURLError(AirQualityError):
    """The request URL could not be built"""

    @property
    def status_message(self) -> str:
        return "Invalid URL"


class NetworkError(AirQualityError):
    """Transport failure: no connectivity, DNS, TLS, timeout"""

    @property
    def status_message(self) -> str:
        return f"Network error: {self.description}"


class ServerError(AirQualityError):
    """HTTP status outside 200-299"""

    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code

    @property
    def status_message(self) -> str:
        return "Server error"


class EmptyResponseError(AirQualityError):
    """Response had no body"""

    @property
    def status_message(self) -> str:
        return "No data received"


class DecodeError(AirQualityError):
    """Body is not valid JSON or does not match the expected schema"""

    @property
    def status_message(self) -> str:
        return f"Error decoding data: {self.description}"


def metric_keys(scale: AqiScale) -> str:
    """Comma separated list of `current` metrics requested for a scale"""
    return ",".join((scale.api_key,) + POLLUTANT_KEYS)


class AirQualityClient:
    """
    Air quality client

    One request per call: no retries, no caching, httpx default timeout.
    """

    def __init__(
        self,
        scale: Optional[AqiScale] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.scale = scale or settings.AQI_SCALE
        self.base_url = base_url or settings.AIR_QUALITY_API_URL or DEFAULT_BASE_URL
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def build_url(self, latitude: float, longitude: float) -> str:
        """
        Build the request URL

        Raises:
            InvalidURLError: coordinates out of range or URL not parseable
        """
        for value, limit, label in ((latitude, 90, "latitude"), (longitude, 180, "longitude")):
            if value is None or not math.isfinite(value) or not -limit <= value <= limit:
                raise InvalidURLError(f"{label} out of range: {value}")

        url = (
            f"{self.base_url}?latitude={latitude}&longitude={longitude}"
            f"&current={metric_keys(self.scale)}"
        )
        try:
            httpx.URL(url)
        except httpx.InvalidURL as e:
            raise InvalidURLError(str(e)) from e
        return url

    async def fetch(self, latitude: float, longitude: float) -> AirQualityReading:
        """
        Fetch current air quality

        Args:
            latitude: -90..90
            longitude: -180..180

        Returns:
            AirQualityReading

        Raises:
            AirQualityError subclass for each failure kind
        """
        url = self.build_url(latitude, longitude)
        logger.info("Fetching air quality for latitude=%s longitude=%s", latitude, longitude)
        logger.debug("URL: %s", url)

        try:
            response = await self._get_client().get(url)
        except httpx.RequestError as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if not 200 <= response.status_code <= 299:
            logger.warning("Air quality API returned HTTP %s", response.status_code)
            raise ServerError(response.status_code)

        if not response.content:
            raise EmptyResponseError()

        try:
            payload = response.json()
            return AirQualityReading.from_payload(payload, self.scale)
        except json.JSONDecodeError as e:
            raise DecodeError(f"invalid JSON: {e.msg}") from e
        except ValidationError as e:
            raise DecodeError(_summarize(e)) from e
        except ValueError as e:
            raise DecodeError(str(e)) from e

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _summarize(error: ValidationError) -> str:
    """First validation problem, e.g. "ozone: Input should be a valid number" """
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
