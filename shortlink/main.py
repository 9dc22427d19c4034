"""
FastAPI Application Entry Point

create_app() builds every component exactly once and wires them together:
- TelemetryLogger (remote or local sink, from settings)
- StorageGateway (async SQLAlchemy engine)
- URLShorteningService (business rules)

They are stored on app.state and reached by endpoints through FastAPI
dependencies, so tests can pass their own gateway and telemetry.

Startup creates missing tables and starts the expired-URL sweep; shutdown
stops the sweep and releases the engine and the telemetry client.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shortlink.api import endpoints
from shortlink.api.schemas import HealthResponse
from shortlink.core.exceptions import InternalError
from shortlink.core.logging_config import setup_logging
from shortlink.core.rate_limit import limiter
from shortlink.core.setting import Settings, settings
from shortlink.db.gateway import StorageGateway
from shortlink.middleware.logging import add_logging_middleware
from shortlink.services.background_tasks import start_cleanup_task, stop_cleanup_task
from shortlink.services.url_service import URLShorteningService
from shortlink.telemetry import TelemetryLogger, build_sink

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's default 422."""
    telemetry = getattr(request.app.state, "telemetry", None)
    if telemetry is not None:
        await telemetry.warn("middleware", f"Validation failed: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": jsonable_encoder(exc.errors())},
    )


def create_app(
    config: Optional[Settings] = None,
    gateway: Optional[StorageGateway] = None,
    telemetry: Optional[TelemetryLogger] = None,
    run_cleanup: bool = True,
) -> FastAPI:
    """
    Build the application and its components.

    Args:
        config: Settings to use (module-level settings by default)
        gateway: Pre-built storage gateway; built from DATABASE_URL when omitted
        telemetry: Pre-built telemetry logger; built from LOG_API_* when omitted
        run_cleanup: Start the periodic expired-URL sweep on startup
    """
    config = config or settings
    telemetry = telemetry or TelemetryLogger(build_sink(config))
    gateway = gateway or StorageGateway.from_url(config.DATABASE_URL, telemetry=telemetry)
    url_service = URLShorteningService.from_settings(
        config, gateway, telemetry, clock=gateway.clock
    )

    app = FastAPI(
        title="Shortlink Service",
        description="URL shortening microservice with expiring links and click analytics",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = config
    app.state.telemetry = telemetry
    app.state.gateway = gateway
    app.state.url_service = url_service
    app.state.cleanup_task = None
    app.state.started_at = time.monotonic()

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoint defined before router to match before catch-all route
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Liveness plus a database round trip."""
        try:
            await gateway.ping()
        except InternalError as e:
            await telemetry.error("handler", f"Health check error: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Service unhealthy"
            )
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc),
            uptime=time.monotonic() - app.state.started_at,
        )

    app.include_router(endpoints.router, tags=["URL Shortener"])

    @app.on_event("startup")
    async def startup_event():
        """Create tables and start the sweep."""
        setup_logging(config.LOG_LEVEL)
        await gateway.init_models()
        if run_cleanup:
            app.state.cleanup_task = start_cleanup_task(
                url_service, config.CLEANUP_INTERVAL_SECONDS
            )
        await telemetry.info("config", f"Shortlink service started ({config.ENV_SETTING.value})")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        await stop_cleanup_task(app.state.cleanup_task)
        app.state.cleanup_task = None
        await telemetry.info("config", "Shortlink service shutting down")
        await gateway.close()
        await telemetry.close()

    return app


def run() -> None:
    """Console entry point: uvicorn builds the app through the factory."""
    uvicorn.run("shortlink.main:create_app", factory=True, host=settings.HOST, port=settings.PORT)
