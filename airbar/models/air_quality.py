"""
Air quality model: AQI scales, color buckets and levels
"""
import enum
from typing import List


class AqiScale(str, enum.Enum):
    """AQI scale requested from the API"""
    EUROPEAN = "european"
    US = "us"

    @property
    def api_key(self) -> str:
        """Key of the index in the API's `current` block"""
        return f"{self.value}_aqi"


class AqiColor(str, enum.Enum):
    """Color buckets"""
    GREEN = "green"      # 0-50
    YELLOW = "yellow"    # 51-100
    ORANGE = "orange"    # 101-150
    RED = "red"          # 151-200
    PURPLE = "purple"    # 201-300 (US), 201+ (European)
    MAROON = "maroon"    # 301+ (US only)

    @property
    def hex(self) -> str:
        return COLOR_HEX[self]


COLOR_HEX = {
    AqiColor.GREEN: "#00E400",
    AqiColor.YELLOW: "#FFFF00",
    AqiColor.ORANGE: "#FF7E00",
    AqiColor.RED: "#FF0000",
    AqiColor.PURPLE: "#8F3F97",
    AqiColor.MAROON: "#800000",
}


class AirQualityLevel(str, enum.Enum):
    """Air quality levels"""
    GOOD = "good"                    # 0-50
    MODERATE = "moderate"            # 51-100
    UNHEALTHY_SENSITIVE = "unhealthy_sensitive"  # 101-150
    UNHEALTHY = "unhealthy"          # 151-200
    VERY_UNHEALTHY = "very_unhealthy"  # 201-300
    HAZARDOUS = "hazardous"          # 301+


LEVEL_DESCRIPTIONS = {
    AirQualityLevel.GOOD: "Air quality is good. Suitable for outdoor activities.",
    AirQualityLevel.MODERATE: "Air quality is acceptable. Sensitive people should take care.",
    AirQualityLevel.UNHEALTHY_SENSITIVE: "Unhealthy for sensitive groups (children, elderly, people with respiratory conditions).",
    AirQualityLevel.UNHEALTHY: "Unhealthy for everyone. Avoid prolonged outdoor activity.",
    AirQualityLevel.VERY_UNHEALTHY: "Very unhealthy. Avoid going outside.",
    AirQualityLevel.HAZARDOUS: "Hazardous! Health emergency. Stay indoors.",
}

HEALTH_ADVICE = {
    AirQualityLevel.GOOD: "Enjoy outdoor activities.",
    AirQualityLevel.MODERATE: "Sensitive people should limit prolonged outdoor exertion.",
    AirQualityLevel.UNHEALTHY_SENSITIVE: "Sensitive groups should reduce outdoor activity. Wearing a mask is recommended.",
    AirQualityLevel.UNHEALTHY: "Everyone should limit outdoor activity. Use an N95 mask.",
    AirQualityLevel.VERY_UNHEALTHY: "Cancel all outdoor activities. Stay at home.",
    AirQualityLevel.HAZARDOUS: "Do not go outside! Keep windows and doors closed.",
}

# (upper bound inclusive, color, level); None means open-ended
_BUCKETS = {
    AqiScale.EUROPEAN: [
        (50, AqiColor.GREEN, AirQualityLevel.GOOD),
        (100, AqiColor.YELLOW, AirQualityLevel.MODERATE),
        (150, AqiColor.ORANGE, AirQualityLevel.UNHEALTHY_SENSITIVE),
        (200, AqiColor.RED, AirQualityLevel.UNHEALTHY),
        (None, AqiColor.PURPLE, AirQualityLevel.VERY_UNHEALTHY),
    ],
    AqiScale.US: [
        (50, AqiColor.GREEN, AirQualityLevel.GOOD),
        (100, AqiColor.YELLOW, AirQualityLevel.MODERATE),
        (150, AqiColor.ORANGE, AirQualityLevel.UNHEALTHY_SENSITIVE),
        (200, AqiColor.RED, AirQualityLevel.UNHEALTHY),
        (300, AqiColor.PURPLE, AirQualityLevel.VERY_UNHEALTHY),
        (None, AqiColor.MAROON, AirQualityLevel.HAZARDOUS),
    ],
}


def _bucket(aqi: int, scale: AqiScale):
    if aqi < 0:
        raise ValueError(f"AQI cannot be negative: {aqi}")
    for upper, color, level in _BUCKETS[scale]:
        if upper is None or aqi <= upper:
            return color, level
    raise AssertionError("unreachable: last bucket is open-ended")


def color_for_aqi(aqi: int, scale: AqiScale = AqiScale.EUROPEAN) -> AqiColor:
    """Return the color bucket for an AQI value"""
    return _bucket(aqi, scale)[0]


def level_for_aqi(aqi: int, scale: AqiScale = AqiScale.EUROPEAN) -> AirQualityLevel:
    """Return the level for an AQI value"""
    return _bucket(aqi, scale)[1]


def color_scale(scale: AqiScale) -> List[dict]:
    """
    Ordered color table for a scale

    Returns:
        [{"min": 0, "max": 50, "color": "green", "hex": "#00E400", "level": "good"}, ...]
        The last bucket has max=None.
    """
    table = []
    lower = 0
    for upper, color, level in _BUCKETS[scale]:
        table.append({
            "min": lower,
            "max": upper,
            "color": color.value,
            "hex": color.hex,
            "level": level.value,
        })
        if upper is not None:
            lower = upper + 1
    return table
