"""
Air quality endpoints
"""
from fastapi import APIRouter, Depends, Query, Request, Response, status

from airbar.models.air_quality import color_scale
from airbar.models.session import SessionState
from airbar.schemas.air_quality import (
    AirQualityReadingResponse, ColorBucket, LocationResponse,
    ScaleResponse, SessionStateResponse
)
from airbar.services.location_coordinator import LocationCoordinator

router = APIRouter()


def get_coordinator(request: Request) -> LocationCoordinator:
    """Coordinator created in the app lifespan"""
    return request.app.state.coordinator


def to_response(state: SessionState) -> SessionStateResponse:
    location = None
    if state.location is not None:
        location = LocationResponse(
            latitude=state.location.latitude,
            longitude=state.location.longitude,
            name=state.location.name,
        )

    reading = None
    if state.reading is not None:
        reading = AirQualityReadingResponse.from_reading(state.reading)

    return SessionStateResponse(
        status=state.status,
        is_loading=state.is_loading,
        phase=state.phase.value,
        generation=state.generation,
        location=location,
        reading=reading,
        updated_at=state.updated_at,
    )


@router.get("/status", response_model=SessionStateResponse)
async def get_status(
    coordinator: LocationCoordinator = Depends(get_coordinator)
):
    """
    Current location, air quality reading and status message
    """
    return to_response(coordinator.state.snapshot())


@router.post(
    "/refresh",
    response_model=SessionStateResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def refresh(
    response: Response,
    wait: bool = Query(False, description="Wait until the cycle settles"),
    coordinator: LocationCoordinator = Depends(get_coordinator)
):
    """
    Start a new refresh cycle

    Without `wait` the cycle runs in the background and 202 is returned
    with the state as of the start. With `wait=true` the settled state
    is returned.
    """
    if wait:
        state = await coordinator.refresh()
        response.status_code = status.HTTP_200_OK
        return to_response(state)

    coordinator.start()
    return to_response(coordinator.state.snapshot())


@router.get("/scale", response_model=ScaleResponse)
async def get_scale(
    coordinator: LocationCoordinator = Depends(get_coordinator)
):
    """
    AQI scale in use and its color buckets
    """
    scale = coordinator.scale
    return ScaleResponse(
        scale=scale.value,
        api_key=scale.api_key,
        buckets=[ColorBucket(**bucket) for bucket in color_scale(scale)],
    )
