"""FastAPI application for the replenishment engine."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.core.config import get_settings
from app.core.logging import get_logger, set_run_id, setup_logging
from app.core.metrics import app_info, app_uptime_seconds, errors_total
from app.db.session import init_db
from app.domain.replenishment.errors import InvalidFrequency
from app.web.middleware import PrometheusMiddleware
from app.web.routers import replenishment

log = get_logger("replenishment.web")

settings = get_settings()
setup_logging(settings.log_level, file_path=settings.log_file_path)

# Application start time for uptime calculation
APP_START_TIME = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing inventory tables on startup."""
    init_db()
    log.info("app_started", extra={"version": settings.app_version})
    yield


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Replenishment API",
    version=settings.app_version,
    description="Sales-velocity based order suggestions, delivery boxes and stock alerts",
)

app.add_middleware(PrometheusMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set app info metric
app_info.labels(version=settings.app_version, environment=settings.environment).set(1)


@app.exception_handler(InvalidFrequency)
async def invalid_frequency_handler(request: Request, exc: InvalidFrequency):
    """Reject a disallowed order frequency with 422."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "invalid_frequency",
            "detail": str(exc),
            "frequency": exc.frequency if isinstance(exc.frequency, (int, float)) else str(exc.frequency),
            "key": exc.key,
        },
    )


# Global exception handler for unhandled errors (500)
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions with proper logging and response."""
    request_id = set_run_id()

    log.error(
        "unhandled_exception",
        extra={
            "path": str(request.url.path),
            "method": request.method,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )
    errors_total.labels(error_type=type(exc).__name__, component="web").inc()

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_server_error",
            "request_id": request_id,
            "hint": "Contact support with this request_id",
        },
    )


# Include routers
app.include_router(replenishment.router)


@app.get("/health")
def health():
    """Basic health check for monitoring."""
    return {"status": "healthy"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint."""
    # Update uptime metric
    uptime = time.time() - APP_START_TIME
    app_uptime_seconds.set(uptime)

    # Generate Prometheus metrics
    metrics_data = generate_latest()
    return Response(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
