"""Letter dispatch scheduler control endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from santa_letters.dependencies import get_letter_dispatch_job
from santa_letters.jobs.letter_dispatch_job import LetterDispatchJob, LetterDispatchJobError
from santa_letters.models.api.scheduler_request import (
    EmailCheckResponse,
    SchedulerConfigUpdateRequest,
    SchedulerStatusResponse,
)

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get("/status", response_model=SchedulerStatusResponse)
async def scheduler_status(job: LetterDispatchJob = Depends(get_letter_dispatch_job)):
    return SchedulerStatusResponse(**asdict(job.get_status()))


@router.get("/statistics")
async def scheduler_statistics(job: LetterDispatchJob = Depends(get_letter_dispatch_job)):
    return job.get_statistics()


@router.post("/run", response_model=EmailCheckResponse)
async def run_check(job: LetterDispatchJob = Depends(get_letter_dispatch_job)):
    """Run the check-and-dispatch routine now, outside the timer."""
    result = await job.run_manual_check()
    return EmailCheckResponse(**asdict(result))


@router.put("/config")
async def update_config(
    request: SchedulerConfigUpdateRequest,
    job: LetterDispatchJob = Depends(get_letter_dispatch_job),
):
    try:
        config = job.update_config(**request.model_dump(exclude_unset=True, exclude_none=True))
    except LetterDispatchJobError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return {"config": config.model_dump(), "is_running": job.state.is_running}
