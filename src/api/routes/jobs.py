"""Jobs API - status of triggered workflow runs."""

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_dispatcher
from src.application.jobs.dispatcher import JobDispatcher
from src.application.workflow.dto import JobResponse

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}")
async def get_job(job_id: str, dispatcher: JobDispatcher = Depends(get_dispatcher)) -> JobResponse:
    """Job status, attempts and final outcome."""
    record = dispatcher.get(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobResponse.from_record(record)
