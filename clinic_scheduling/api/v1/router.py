"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_scheduling.api.v1.endpoints import (
    admin,
    appointments,
    doctors,
    health,
    patients,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(doctors.router, tags=["Doctors"])
api_router.include_router(patients.router, tags=["Patients"])
api_router.include_router(admin.router, tags=["Admin"])
