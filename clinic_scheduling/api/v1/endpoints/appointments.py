"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import AwareDatetime

from clinic_scheduling.dependencies import AppointmentServiceDep
from clinic_scheduling.schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
)

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Book a new appointment.

    Args:
        data: Appointment creation data
        service: Appointment service

    Returns:
        Created appointment
    """
    appointment = await service.create(data)
    return AppointmentResponse.model_validate(appointment.model_dump())


@router.get(
    "/",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List appointments of all doctors in a time range",
)
async def list_appointments_in_range(
    service: AppointmentServiceDep,
    start: AwareDatetime = Query(..., description="Range start, with time zone"),
    end: AwareDatetime = Query(..., description="Range end, with time zone"),
) -> list[AppointmentResponse]:
    """
    List appointments starting in ``[start, end)``, ascending by start time.

    Args:
        service: Appointment service
        start: Range start
        end: Range end

    Returns:
        Appointments in range
    """
    items = await service.list_in_range(start, end)
    return [AppointmentResponse.model_validate(a.model_dump()) for a in items]


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Get a specific appointment."""
    appointment = await service.get(appointment_id)
    return AppointmentResponse.model_validate(appointment.model_dump())


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Cancel an appointment, subject to the minimum notice period.

    Args:
        appointment_id: Appointment ID
        service: Appointment service

    Returns:
        Cancelled appointment
    """
    appointment = await service.cancel(appointment_id)
    return AppointmentResponse.model_validate(appointment.model_dump())


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Update appointment status.

    Args:
        appointment_id: Appointment ID
        data: Status update data
        service: Appointment service

    Returns:
        Updated appointment
    """
    appointment = await service.update_status(appointment_id, data.status)
    return AppointmentResponse.model_validate(appointment.model_dump())
