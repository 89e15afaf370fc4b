"""
FastAPI application factory for the Gameday Status API.

Creates the app with:
- Status routes
- Middleware stack
- Health and readiness endpoints
- Lifespan management: feed client, schedule sync loop and monitoring probe
  start with the app and stop with it
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Union

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.dependencies import get_store, init_dependencies
from api.middleware import setup_middleware
from api.routes.status import router as status_router
from scheduler.service import build_engine

logger = get_logger(__name__)


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without the feed or background loops."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Starts the feed client and scheduler on startup, cancels them on shutdown.
    """
    settings = get_settings()
    setup_logging("api")
    start_metrics_server()

    engine = build_engine(settings)
    await engine.provider.start()
    init_dependencies(engine.store)
    await engine.scheduler.start()

    logger.info(
        "api_service_started",
        host=settings.api_host,
        port=settings.api_port,
        sports=engine.store.sports,
    )

    yield

    await engine.scheduler.stop()
    await engine.provider.close()
    logger.info("api_service_stopped")


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing without the feed."""
    app = FastAPI(
        title="Gameday Status API",
        description="Did the team win its last game, and is a game live right now?",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
    )

    setup_middleware(app)
    app.include_router(status_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    @app.get("/ready", tags=["system"], response_model=None)
    async def readiness() -> Union[JSONResponse, Dict[str, Union[str, bool]]]:
        """Readiness probe: ready once every sport has completed a sync pass."""
        try:
            store = get_store()
        except RuntimeError:
            return JSONResponse(status_code=503, content={"status": "starting"})

        synced = {sport: store.has_synced(sport) for sport in store.sports}
        status = "ok" if all(synced.values()) else "degraded"
        return {"status": status, **synced}

    return app


# For running with uvicorn directly
app = create_app()
