"""
Reverse geocoding

Resolves a location fix to placemarks and composes a display name.
Uses OpenStreetMap Nominatim through geopy.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from airbar.core.config import settings
from airbar.models.session import LocationFix

logger = logging.getLogger(__name__)

# Nominatim address keys, most specific first
LOCALITY_KEYS = ("city", "town", "village", "hamlet", "municipality", "suburb")
ADMINISTRATIVE_AREA_KEYS = ("state", "province", "region", "county")
NAME_KEYS = ("road", "neighbourhood", "amenity", "building")


class GeocodingError(Exception):
    """Reverse geocoding failed"""


@dataclass(frozen=True)
class Placemark:
    """Address parts of a reverse geocoding result"""
    name: Optional[str] = None
    locality: Optional[str] = None
    administrative_area: Optional[str] = None
    country: Optional[str] = None


def compose_display_name(placemark: Placemark) -> str:
    """Join name, locality, administrative area and country with ", ", skipping absent parts"""
    parts = [
        placemark.name,
        placemark.locality,
        placemark.administrative_area,
        placemark.country,
    ]
    return ", ".join(part.strip() for part in parts if part and part.strip())


class Geocoder(Protocol):
    async def reverse_geocode(self, fix: LocationFix) -> List[Placemark]: ...


def _first(address: dict, keys) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if value:
            return value
    return None


def placemark_from_nominatim(raw: dict) -> Placemark:
    """Map a Nominatim `raw` result to a placemark"""
    address = raw.get("address") or {}
    return Placemark(
        name=raw.get("name") or _first(address, NAME_KEYS),
        locality=_first(address, LOCALITY_KEYS),
        administrative_area=_first(address, ADMINISTRATIVE_AREA_KEYS),
        country=address.get("country"),
    )


class NominatimGeocoder:
    """
    Nominatim reverse geocoder

    geopy's Nominatim client is blocking, so lookups run in a worker
    thread and the result is returned to the event loop.
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        language: Optional[str] = None,
        geolocator: Optional[Nominatim] = None,
    ):
        self.timeout = timeout or settings.GEOCODER_TIMEOUT
        self.language = language or settings.GEOCODER_LANGUAGE
        self._geolocator = geolocator or Nominatim(
            user_agent=user_agent or settings.GEOCODER_USER_AGENT
        )

    async def reverse_geocode(self, fix: LocationFix) -> List[Placemark]:
        try:
            location = await asyncio.to_thread(
                self._geolocator.reverse,
                (fix.latitude, fix.longitude),
                exactly_one=True,
                language=self.language,
                timeout=self.timeout,
            )
        except GeopyError as e:
            logger.warning("Reverse geocoding failed for %s, %s: %s", fix.latitude, fix.longitude, e)
            raise GeocodingError(str(e) or e.__class__.__name__) from e

        if location is None:
            return []
        return [placemark_from_nominatim(location.raw)]
