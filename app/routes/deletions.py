"""
Bulk Deletion API Routes
"Delete all subscribers from a list" runs in the background; callers poll
the returned job id until it completes or fails.
"""

from fastapi import APIRouter, Depends, status

from app.dependencies import get_deletion_runner
from app.jobs.deletion_job import DeletionJobRunner
from app.jobs.exceptions import JobError
from app.models.api.job_request import StartDeletionRequest
from app.models.api.job_response import DeletionJobResponse, JobHandleResponse
from app.services.providers.base import ProviderError
from app.utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/deletions", tags=["deletions"])


@router.post("", response_model=JobHandleResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_delete_all(
    body: StartDeletionRequest, runner: DeletionJobRunner = Depends(get_deletion_runner)
):
    """Start deleting every subscriber of a list."""
    try:
        record = await runner.start_delete_all(body.account_id, body.list_id)
    except (JobError, ProviderError) as e:
        raise to_http_exception(e) from e
    return JobHandleResponse(job_id=record.id, state=record.state.value)


@router.get("/{job_id}", response_model=DeletionJobResponse)
async def get_deletion_status(
    job_id: str, runner: DeletionJobRunner = Depends(get_deletion_runner)
):
    """
    Poll a deletion job.
    Finished jobs disappear 60 seconds after their final status was first read.
    """
    try:
        return DeletionJobResponse.from_record(runner.get_status(job_id))
    except JobError as e:
        raise to_http_exception(e) from e
