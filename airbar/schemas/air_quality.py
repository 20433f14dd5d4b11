"""
Air quality schemas
"""
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, Field

from airbar.models.air_quality import (
    AqiScale, HEALTH_ADVICE, LEVEL_DESCRIPTIONS, color_for_aqi, level_for_aqi
)

POLLUTANT_KEYS = (
    "pm10",
    "pm2_5",
    "carbon_monoxide",
    "nitrogen_dioxide",
    "sulphur_dioxide",
    "ozone",
)


class AirQualityReading(BaseModel):
    """Current air quality at one location (pollutants in µg/m³)"""
    scale: AqiScale
    aqi: int = Field(ge=0, le=500)
    pm10: float
    pm2_5: float
    carbon_monoxide: float
    nitrogen_dioxide: float
    sulphur_dioxide: float
    ozone: float

    class Config:
        frozen = True

    @classmethod
    def from_payload(cls, payload: Any, scale: AqiScale) -> "AirQualityReading":
        """
        Build a reading from the API's JSON body

        Only the index for `scale` is read; the other scale's key is ignored
        even if present. Raises pydantic.ValidationError (or ValueError) when
        the body does not match the expected shape. Validation is strict, so
        numeric strings and booleans are rejected.
        """
        if not isinstance(payload, dict):
            raise ValueError("response body is not a JSON object")
        current = payload.get("current")
        if not isinstance(current, dict):
            raise ValueError("missing 'current' object")

        data = {key: current.get(key) for key in POLLUTANT_KEYS}
        data["aqi"] = current.get(scale.api_key)
        data["scale"] = scale
        return cls.model_validate(data, strict=True)


class LocationResponse(BaseModel):
    """Location fix"""
    latitude: float
    longitude: float
    name: Optional[str] = None


class AirQualityReadingResponse(BaseModel):
    """Reading with its color bucket and level"""
    scale: str
    aqi: int
    pm10: float
    pm2_5: float
    carbon_monoxide: float
    nitrogen_dioxide: float
    sulphur_dioxide: float
    ozone: float
    unit: str = "µg/m³"

    color: str
    color_code: str
    level: str

    # Human readable description
    level_description: Optional[str] = None
    health_advice: Optional[str] = None

    @classmethod
    def from_reading(cls, reading: AirQualityReading) -> "AirQualityReadingResponse":
        color = color_for_aqi(reading.aqi, reading.scale)
        level = level_for_aqi(reading.aqi, reading.scale)
        return cls(
            scale=reading.scale.value,
            aqi=reading.aqi,
            pm10=reading.pm10,
            pm2_5=reading.pm2_5,
            carbon_monoxide=reading.carbon_monoxide,
            nitrogen_dioxide=reading.nitrogen_dioxide,
            sulphur_dioxide=reading.sulphur_dioxide,
            ozone=reading.ozone,
            color=color.value,
            color_code=color.hex,
            level=level.value,
            level_description=LEVEL_DESCRIPTIONS.get(level),
            health_advice=HEALTH_ADVICE.get(level),
        )


class SessionStateResponse(BaseModel):
    """Session state as seen by the presentation layer"""
    status: str
    is_loading: bool
    phase: str
    generation: int
    location: Optional[LocationResponse] = None
    reading: Optional[AirQualityReadingResponse] = None
    updated_at: Optional[datetime] = None


class ColorBucket(BaseModel):
    """One bucket of the color scale"""
    min: int
    max: Optional[int] = None
    color: str
    hex: str
    level: str


class ScaleResponse(BaseModel):
    """Configured AQI scale"""
    scale: str
    api_key: str
    buckets: List[ColorBucket]
