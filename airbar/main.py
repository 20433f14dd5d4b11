"""
airbar API - main application
Publishes local air quality for a menu bar (or any other) client
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from airbar.api.v1.router import api_router
from airbar.core.config import Settings, settings as default_settings
from airbar.core.logging import configure_logging
from airbar.services.location_coordinator import LocationCoordinator, build_coordinator

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    coordinator: Optional[LocationCoordinator] = None,
) -> FastAPI:
    """Build the FastAPI application"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle"""
        configure_logging(settings.LOG_LEVEL)
        logger.info("Starting %s %s", settings.APP_NAME, settings.APP_VERSION)

        app.state.coordinator = coordinator or build_coordinator(settings)
        logger.info("AQI scale: %s", app.state.coordinator.scale.value)

        if settings.START_ON_LAUNCH:
            app.state.coordinator.start()

        yield

        logger.info("Shutting down")
        await app.state.coordinator.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
    ## airbar API

    Current air quality at the device location.

    - Location from the configured location provider
    - Place name via OpenStreetMap Nominatim reverse geocoding
    - Air quality from the Open-Meteo air quality API
    - European or US AQI scale with color buckets
    """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API Router
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/", tags=["Root"])
    async def root():
        """API status"""
        return {
            "message": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "status": "active"
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check"""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global error handler"""
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": str(exc) if settings.DEBUG else "Internal Server Error"
            }
        )

    return app


app = create_app()


def run():
    """Run with uvicorn"""
    import uvicorn

    uvicorn.run(
        "airbar.main:app",
        host="127.0.0.1",
        port=8000,
        reload=default_settings.DEBUG
    )


if __name__ == "__main__":
    run()
