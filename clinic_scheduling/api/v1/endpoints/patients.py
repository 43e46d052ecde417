"""Patient appointment history endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from clinic_scheduling.dependencies import AppointmentServiceDep
from clinic_scheduling.schemas.appointments import AppointmentResponse

router = APIRouter()


@router.get(
    "/patients/{patient_id}/appointments",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List a patient's appointments",
)
async def list_patient_appointments(
    patient_id: UUID,
    service: AppointmentServiceDep,
) -> list[AppointmentResponse]:
    """List all of a patient's appointments regardless of status."""
    items = await service.list_for_patient(patient_id)
    return [AppointmentResponse.model_validate(a.model_dump()) for a in items]
