"""
Domain models for background jobs.

Contacts and import results are immutable once created. Job snapshots are
copies handed to readers so that polling never observes a half-applied
mutation.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ImportJobState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportJobState.COMPLETED, ImportJobState.CANCELLED)

    @property
    def is_active(self) -> bool:
        return not self.is_terminal


class ImportOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class DeletionJobState(str, Enum):
    STARTED = "started"
    FETCHING = "fetching"
    DELETING = "deleting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DeletionJobState.COMPLETED, DeletionJobState.FAILED)


@dataclass(slots=True, frozen=True)
class Contact:
    """One contact queued for import."""

    email: str
    first_name: str = ""
    last_name: str = ""


@dataclass(slots=True, frozen=True)
class ImportResult:
    """Outcome of sending one contact; index is the 1-based input position."""

    index: int
    email: str
    outcome: ImportOutcome
    payload: Any


@dataclass(slots=True, frozen=True)
class ImportJobSnapshot:
    """Consistent read-only view of an import job."""

    id: str
    account_id: str
    list_id: str
    list_name: str
    state: ImportJobState
    progress_percent: float
    results: tuple[ImportResult, ...]  # most recent first
    total_contacts: int
    elapsed_seconds: float
    delay_seconds: float
    created_at: datetime
    finished_at: datetime | None

    @property
    def processed_count(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.outcome is ImportOutcome.SUCCESS)

    @property
    def failed_count(self) -> int:
        return self.processed_count - self.success_count


@dataclass(slots=True)
class DeletionJobRecord:
    """Mutable deletion job state owned by the job body."""

    id: str
    account_id: str
    list_id: str
    created_at: datetime
    state: DeletionJobState = DeletionJobState.STARTED
    progress_percent: float = 0.0
    total_count: int = 0
    message: str = "Deletion job started"
    updated_at: datetime | None = None
