"""Doctor schedule endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import AwareDatetime

from clinic_scheduling.dependencies import AppointmentServiceDep
from clinic_scheduling.schemas.appointments import AppointmentResponse

router = APIRouter()


@router.get(
    "/doctors/{doctor_id}/appointments",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List a doctor's appointments",
)
async def list_doctor_appointments(
    doctor_id: UUID,
    service: AppointmentServiceDep,
    start: AwareDatetime = Query(..., description="Range start, with time zone"),
    end: AwareDatetime = Query(..., description="Range end, with time zone"),
) -> list[AppointmentResponse]:
    """
    List a doctor's appointments overlapping ``[start, end)``.

    Args:
        doctor_id: Doctor ID
        service: Appointment service
        start: Range start
        end: Range end

    Returns:
        Appointments ascending by start time
    """
    items = await service.list_for_doctor(doctor_id, start, end)
    return [AppointmentResponse.model_validate(a.model_dump()) for a in items]
