"""
Application configuration
"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings

from airbar.models.air_quality import AqiScale


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "airbar"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Air quality API
    AQI_SCALE: AqiScale = AqiScale.EUROPEAN
    AIR_QUALITY_API_URL: str = "https://air-quality-api.open-meteo.com/v1/air-quality"

    # Location
    LOCATION_PROVIDER: str = "ip"  # ip, fixed
    LOCATION_SERVICES_ENABLED: bool = True
    LOCATION_AUTHORIZATION: str = "not_determined"  # authorized, denied, restricted, not_determined
    IP_LOCATION_URL: str = "https://ipapi.co/json/"
    IP_LOCATION_TIMEOUT: float = 10.0
    DESIRED_ACCURACY_METERS: float = 100.0
    LOCATION_MAX_RETRIES: int = 3
    LOCATION_RETRY_DELAY: float = 1.0  # seconds

    # Default coordinates for the fixed provider
    DEFAULT_LATITUDE: float = 40.1885
    DEFAULT_LONGITUDE: float = 29.0610

    # Reverse geocoding (Nominatim)
    GEOCODER_USER_AGENT: str = "airbar/1.0"
    GEOCODER_TIMEOUT: float = 10.0
    GEOCODER_LANGUAGE: str = "en"

    # Start a refresh cycle when the app launches
    START_ON_LAUNCH: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()


settings = get_settings()
