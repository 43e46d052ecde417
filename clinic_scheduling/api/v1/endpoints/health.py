"""Liveness and readiness endpoints."""

from typing import Literal

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

from clinic_scheduling.config import settings
from clinic_scheduling.core.firebase import is_firebase_initialized
from clinic_scheduling.database import check_database_connection

router = APIRouter()

ComponentState = Literal["healthy", "unhealthy", "enabled", "disabled", "running", "stopped"]


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Health plus the state of each dependency the scheduling engine relies on."""

    database: ComponentState
    push_notifications: ComponentState
    sweep_scheduler: ComponentState


def _scheduler_state(request: Request) -> ComponentState:
    scheduler = getattr(request.app.state, "sweep_scheduler", None)
    if scheduler is None:
        return "disabled"
    return "running" if all(task.running for task in scheduler.tasks) else "stopped"


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness probe",
)
async def detailed_health_check(request: Request) -> DetailedHealthResponse:
    """
    Report database reachability, push delivery mode and sweep scheduler state.

    Only the database decides between ``healthy`` and ``degraded``: without
    Firebase notifications are logged instead of pushed, and sweeps can still
    be run through the admin endpoint.
    """
    db_healthy = await check_database_connection()
    return DetailedHealthResponse(
        status="healthy" if db_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        push_notifications="enabled" if is_firebase_initialized() else "disabled",
        sweep_scheduler=_scheduler_state(request),
    )


@router.get("/ping", summary="Simple ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
