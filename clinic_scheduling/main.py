"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_scheduling.api.v1.router import api_router
from clinic_scheduling.config import settings
from clinic_scheduling.core.exceptions import AppException
from clinic_scheduling.core.firebase import initialize_firebase
from clinic_scheduling.database import AsyncSessionLocal, check_database_connection, engine
from clinic_scheduling.dependencies import (
    get_booking_locks,
    get_clock,
    get_lifecycle,
    get_notification_sender,
    get_store,
)
from clinic_scheduling.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from clinic_scheduling.middleware.logging import LoggingMiddleware, configure_logging
from clinic_scheduling.services.sweep_service import SweepService
from clinic_scheduling.workers.periodic import SweepScheduler

# Configure logging
configure_logging()
logger = structlog.get_logger()


def build_sweep_scheduler() -> SweepScheduler:
    """Wire the sweeps against the application database."""
    config = settings.scheduling
    clock = get_clock()
    sweeps = SweepService(
        store=get_store(AsyncSessionLocal),
        lifecycle=get_lifecycle(config, clock),
        sender=get_notification_sender(AsyncSessionLocal),
        config=config,
        clock=clock,
        locks=get_booking_locks(),
    )
    return SweepScheduler(
        sweeps,
        reminder_time=settings.reminder_sweep_time,
        tz=config.tz,
        no_show_interval=settings.no_show_sweep_interval_seconds,
        cleanup_interval=settings.cleanup_sweep_interval_seconds,
        clock=clock,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Bring up Firebase and the sweep scheduler; dispose of the engine on shutdown."""
    logger.info("application_startup", environment=settings.environment)

    try:
        if initialize_firebase(settings.firebase_credentials_path, settings.firebase_config_json):
            logger.info("firebase_initialized")
    except Exception as e:
        logger.warning(
            "firebase_initialization_failed",
            error=str(e),
            note="Push notifications disabled; events will only be logged.",
        )

    if await check_database_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    scheduler: SweepScheduler | None = None
    if settings.scheduler_enabled:
        scheduler = build_sweep_scheduler()
        scheduler.start()
        logger.info("sweep_scheduler_started", tasks=[task.name for task in scheduler.tasks])
    else:
        logger.info("sweep_scheduler_disabled")
    app.state.sweep_scheduler = scheduler

    yield

    logger.info("application_shutdown")

    if scheduler is not None:
        await scheduler.stop()
        app.state.sweep_scheduler = None
        logger.info("sweep_scheduler_stopped")

    await engine.dispose()
    logger.info("database_connections_closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Appointment scheduling and lifecycle engine for clinical offices",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)

app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)  # type: ignore[arg-type]

app.include_router(api_router, prefix=settings.api_v1_prefix)

# /metrics for Prometheus scraping
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics", f"{settings.api_v1_prefix}/ping"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "api": settings.api_v1_prefix,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clinic_scheduling.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
