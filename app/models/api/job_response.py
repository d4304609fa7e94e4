# app/models/api/job_response.py
"""
Job API response models, built from the domain snapshots.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.models.domain.job_domain import DeletionJobRecord, ImportJobSnapshot


class JobHandleResponse(BaseModel):
    job_id: str
    state: str


class ImportResultResponse(BaseModel):
    index: int
    email: str
    status: str = Field(..., description="success or failed")
    data: Any = None


class ImportJobResponse(BaseModel):
    id: str
    account_id: str
    list_id: str
    list_name: str
    status: str
    progress: float
    total_contacts: int
    processed: int
    success_count: int
    failed_count: int
    elapsed_seconds: int
    delay_seconds: float
    created_at: datetime
    finished_at: datetime | None = None
    results: list[ImportResultResponse] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: ImportJobSnapshot) -> "ImportJobResponse":
        return cls(
            id=snapshot.id,
            account_id=snapshot.account_id,
            list_id=snapshot.list_id,
            list_name=snapshot.list_name,
            status=snapshot.state.value,
            progress=round(snapshot.progress_percent, 2),
            total_contacts=snapshot.total_contacts,
            processed=snapshot.processed_count,
            success_count=snapshot.success_count,
            failed_count=snapshot.failed_count,
            elapsed_seconds=round(snapshot.elapsed_seconds),
            delay_seconds=snapshot.delay_seconds,
            created_at=snapshot.created_at,
            finished_at=snapshot.finished_at,
            results=[
                ImportResultResponse(
                    index=result.index,
                    email=result.email,
                    status=result.outcome.value,
                    data=result.payload,
                )
                for result in snapshot.results
            ],
        )


class ImportJobsListResponse(BaseModel):
    jobs: list[ImportJobResponse]
    total_count: int


class DeletionJobResponse(BaseModel):
    id: str
    account_id: str
    list_id: str
    status: str
    progress: float
    total_count: int
    message: str
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: DeletionJobRecord) -> "DeletionJobResponse":
        return cls(
            id=record.id,
            account_id=record.account_id,
            list_id=record.list_id,
            status=record.state.value,
            progress=round(record.progress_percent, 2),
            total_count=record.total_count,
            message=record.message,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
