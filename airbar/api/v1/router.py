"""
API v1 router
"""
from fastapi import APIRouter

from airbar.api.v1.endpoints import air_quality

api_router = APIRouter()

# Air quality
api_router.include_router(
    air_quality.router,
    prefix="/air-quality",
    tags=["Air Quality"]
)
