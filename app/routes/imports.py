"""
Bulk Import API Routes
Start, control and poll background import jobs.
"""

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_import_registry
from app.infrastructure.observability.logging import get_logger
from app.jobs.exceptions import JobError
from app.jobs.import_registry import ImportJobRegistry
from app.models.api.job_request import StartImportRequest
from app.models.api.job_response import (
    ImportJobResponse,
    ImportJobsListResponse,
    JobHandleResponse,
)
from app.services.providers.base import ProviderError
from app.utils.http_errors import to_http_exception

logger = get_logger(__name__)

router = APIRouter(prefix="/api/imports", tags=["imports"])


@router.post("", response_model=JobHandleResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_import(
    body: StartImportRequest, registry: ImportJobRegistry = Depends(get_import_registry)
):
    """Start an import; returns immediately with the job id."""
    try:
        snapshot = await registry.start(
            account_id=body.account_id,
            list_id=body.list_id,
            list_name=body.list_name or body.list_id,
            raw_contact_text=body.contacts_text,
            delay_seconds=body.delay_seconds,
        )
    except (JobError, ProviderError) as e:
        logger.info("Import start rejected", account_id=body.account_id, error=str(e))
        raise to_http_exception(e) from e

    return JobHandleResponse(job_id=snapshot.id, state=snapshot.state.value)


@router.get("", response_model=ImportJobsListResponse)
async def list_imports(
    account_id: str | None = Query(default=None),
    active_only: bool = Query(default=False),
    registry: ImportJobRegistry = Depends(get_import_registry),
):
    """List import jobs, optionally only the active one of an account."""
    jobs = [
        ImportJobResponse.from_snapshot(snapshot)
        for snapshot in registry.list_jobs(account_id=account_id, active_only=active_only)
    ]
    return ImportJobsListResponse(jobs=jobs, total_count=len(jobs))


@router.get("/{job_id}", response_model=ImportJobResponse)
async def get_import(job_id: str, registry: ImportJobRegistry = Depends(get_import_registry)):
    """Current progress and results of an import."""
    try:
        return ImportJobResponse.from_snapshot(registry.get_snapshot(job_id))
    except JobError as e:
        raise to_http_exception(e) from e


@router.post("/{job_id}/pause", response_model=ImportJobResponse)
async def pause_import(job_id: str, registry: ImportJobRegistry = Depends(get_import_registry)):
    try:
        return ImportJobResponse.from_snapshot(registry.pause(job_id))
    except JobError as e:
        raise to_http_exception(e) from e


@router.post("/{job_id}/resume", response_model=ImportJobResponse)
async def resume_import(job_id: str, registry: ImportJobRegistry = Depends(get_import_registry)):
    try:
        return ImportJobResponse.from_snapshot(registry.resume(job_id))
    except JobError as e:
        raise to_http_exception(e) from e


@router.post("/{job_id}/cancel", response_model=ImportJobResponse)
async def cancel_import(job_id: str, registry: ImportJobRegistry = Depends(get_import_registry)):
    """Request cancellation; the job stops at its next checkpoint."""
    try:
        return ImportJobResponse.from_snapshot(registry.cancel(job_id))
    except JobError as e:
        raise to_http_exception(e) from e


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_import(job_id: str, registry: ImportJobRegistry = Depends(get_import_registry)):
    """Forget a finished import."""
    try:
        registry.remove(job_id)
    except JobError as e:
        raise to_http_exception(e) from e
