"""Administrative endpoints for the periodic sweeps."""

from fastapi import APIRouter, status

from clinic_scheduling.dependencies import SweepServiceDep
from clinic_scheduling.schemas.sweeps import SweepName, SweepResult

router = APIRouter()


@router.post(
    "/admin/sweeps/{sweep}",
    response_model=SweepResult,
    status_code=status.HTTP_200_OK,
    summary="Run a sweep now",
)
async def run_sweep(sweep: SweepName, service: SweepServiceDep) -> SweepResult:
    """
    Run one of the periodic sweeps immediately.

    Args:
        sweep: reminders, no-shows or cleanup
        service: Sweep service

    Returns:
        Counts of selected, succeeded, skipped and failed appointments
    """
    return await service.run(sweep)
