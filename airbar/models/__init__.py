# Domain models
from airbar.models.air_quality import (
    AqiScale, AqiColor, AirQualityLevel, color_for_aqi, level_for_aqi, color_scale
)
from airbar.models.session import CoordinatorPhase, LocationFix, SessionState

__all__ = [
    # Air quality
    "AqiScale",
    "AqiColor",
    "AirQualityLevel",
    "color_for_aqi",
    "level_for_aqi",
    "color_scale",
    # Session
    "CoordinatorPhase",
    "LocationFix",
    "SessionState",
]
