"""
FastAPI application entry point.

This module creates and configures the FastAPI application using an
application factory (create_app), so tests can build fresh instances.

For local development:
    uvicorn poolbook.main:app --reload

For production:
    gunicorn poolbook.main:app -w 4 -k uvicorn.workers.UvicornWorker

Booking locks are held per process, so run a single worker per
reservation store unless the store itself enforces capacity.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import attendance, bookings, health, members, stats
from .config.settings import get_settings
from .core.scheduling.errors import ErrorCode, SchedulingError

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


# Error codes not listed here map to 400
ERROR_STATUS = {
    ErrorCode.RESERVATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.OVER_CAPACITY: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_CHECK_IN: status.HTTP_409_CONFLICT,
    ErrorCode.CHECK_IN_MISSING: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_CHECKED_OUT: status.HTTP_409_CONFLICT,
    ErrorCode.RESERVATION_CANCELLED: status.HTTP_409_CONFLICT,
    ErrorCode.CHECK_IN_WINDOW_CLOSED: status.HTTP_409_CONFLICT,
    ErrorCode.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration on startup and shutdown."""
    settings = get_settings()

    logger.info(
        "Poolbook API starting",
        extra={
            "version": settings.api_version,
            "mock_mode": {
                "snowflake": settings.snowflake_mock_mode,
                "notifications": settings.notifications_mock_mode,
            },
            "capacity": settings.pool_max_capacity_per_hour,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Poolbook API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Pool reservation scheduling and attendance.

        ## Authentication

        All endpoints except health checks require an API key provided in
        the `X-API-Key` header.

        ## Workflow

        1. **Check availability**: `GET /api/v1/bookings/slots?date=...`
        2. **Quote**: `POST /api/v1/bookings/quote` returns lanes and a booking code
        3. **Commit**: `POST /api/v1/bookings` writes one reservation per hour
        4. **Check in / out** at the desk: `POST /api/v1/attendance/{id}/check-in`
        5. **Review**: `GET /api/v1/stats/leaderboard`, `GET /api/v1/stats/occupancy`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        bookings.router,
        prefix="/api/v1/bookings",
        tags=["Bookings"],
    )

    app.include_router(
        attendance.router,
        prefix="/api/v1/attendance",
        tags=["Attendance"],
    )

    app.include_router(
        stats.router,
        prefix="/api/v1/stats",
        tags=["Statistics"],
    )

    app.include_router(
        members.router,
        prefix="/api/v1/members",
        tags=["Members"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "Poolbook API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(request: Request, exc: SchedulingError):
        """Render engine rejections as structured JSON with a stable code."""
        status_code = ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "Request rejected",
            extra={
                "path": request.url.path,
                "method": request.method,
                "code": exc.code.value,
            }
        )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "poolbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
