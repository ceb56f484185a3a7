"""Earthquake API - FastAPI service for Indonesian earthquake data.

Serves the earthquakes ingested from BMKG. Routes are thin: each one calls
the query service and maps the envelope status to an HTTP code. The
ingestion scheduler can run in-process when INGESTION_ENABLED is set.

The module exposes the `create_app` factory rather than a module-level app,
so configuration and the store are only opened when the server starts:

    uvicorn --factory api.main:create_app --host 0.0.0.0 --port 8000
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.config import Config
from src.main import get_config, open_store
from src.orchestrator import IngestionOrchestrator
from src.query_service import ApiResponse, EarthquakeQueryService, ResponseStatus
from src.shell.scheduler import IntervalScheduler


logger = logging.getLogger(__name__)


_STATUS_CODES = {
    ResponseStatus.OK: 200,
    ResponseStatus.NOT_FOUND: 404,
    ResponseStatus.INVALID: 400,
    ResponseStatus.UNAVAILABLE: 503,
}


def _respond(result: ApiResponse) -> JSONResponse:
    return JSONResponse(content=result.to_dict(), status_code=_STATUS_CODES[result.status])


def _ingestion_enabled() -> bool:
    return os.environ.get("INGESTION_ENABLED", "").lower() in ("1", "true", "yes")


def create_app(
    query_service: EarthquakeQueryService | None = None,
    config: Config | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        query_service: Query service to serve (built from config if None)
        config: Application configuration (loaded if None)

    Raises:
        StoreUnavailableError: If the store is unreachable at startup
    """
    config = config or get_config()
    if query_service is None:
        query_service = EarthquakeQueryService(
            open_store(config),
            stats_timezone=config.stats_timezone,
        )
    service = query_service

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service.store.ping()
        scheduler = None
        if _ingestion_enabled():
            orchestrator = IngestionOrchestrator(config, service.store)
            scheduler = IntervalScheduler(
                task=orchestrator.run_ingestion_cycle,
                interval_seconds=config.ingestion_interval_seconds,
                name="ingestion",
                allow_overlap=True,
            )
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop(timeout=5.0)

    app = FastAPI(
        title="Earthquake API",
        description="Indonesian earthquake data from BMKG",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def index():
        """Describe the service and its endpoints."""
        return {
            "message": "Earthquake Early Warning API - Indonesia",
            "version": "1.0.0",
            "data_source": "BMKG Indonesia",
            "store": config.store_backend,
            "endpoints": {
                "earthquakes": "/api/earthquakes",
                "latest": "/api/earthquakes/latest",
                "nearby": "/api/earthquakes/nearby?lat=&lng=&radius=",
                "stats": "/api/earthquakes/stats",
                "by_id": "/api/earthquakes/{id}",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint for Cloud Run."""
        return {"status": "healthy"}

    @app.get("/api/earthquakes")
    def list_earthquakes(
        limit: str | None = Query(default=None),
        offset: str | None = Query(default=None),
        min_magnitude: str | None = Query(default=None, alias="minMagnitude"),
        max_magnitude: str | None = Query(default=None, alias="maxMagnitude"),
    ):
        """List earthquakes newest first."""
        return _respond(service.list_earthquakes(limit, offset, min_magnitude, max_magnitude))

    @app.get("/api/earthquakes/latest")
    def latest_earthquake():
        """Get the most recent earthquake."""
        return _respond(service.latest())

    @app.get("/api/earthquakes/nearby")
    def nearby_earthquakes(
        lat: str | None = Query(default=None),
        lng: str | None = Query(default=None),
        radius: str | None = Query(default=None),
    ):
        """Get earthquakes within a radius (km) of a point, nearest first."""
        return _respond(service.nearby(lat, lng, radius))

    @app.get("/api/earthquakes/stats")
    def earthquake_stats():
        """Get earthquake statistics."""
        return _respond(service.stats())

    # Declared last so it does not shadow the fixed paths above
    @app.get("/api/earthquakes/{earthquake_id}")
    def get_earthquake(earthquake_id: str):
        """Get one earthquake by ID."""
        return _respond(service.get_by_id(earthquake_id))

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
