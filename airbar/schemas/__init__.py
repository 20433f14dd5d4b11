# Pydantic Schemas
from airbar.schemas.air_quality import (
    AirQualityReading, AirQualityReadingResponse, LocationResponse,
    SessionStateResponse, ColorBucket, ScaleResponse
)

__all__ = [
    "AirQualityReading",
    "AirQualityReadingResponse",
    "LocationResponse",
    "SessionStateResponse",
    "ColorBucket",
    "ScaleResponse",
]
