"""
In-memory status store for deletion jobs.

Entries live until RETENTION seconds after a caller first reads them in a
terminal state (completed or failed). The retention window starts at that
first terminal read, not at job completion, so a slow poller always gets
to see the final result at least once.

A finished job nobody polls is dropped ABANDONED_RETENTION seconds after
it reached its terminal state.
"""

import asyncio
import dataclasses
import time
from collections.abc import Callable

from app.infrastructure.observability.logging import get_logger
from app.jobs.exceptions import NotFoundError
from app.models.domain.job_domain import DeletionJobRecord

logger = get_logger(__name__)

DEFAULT_RETENTION_SECONDS = 60.0
DEFAULT_ABANDONED_RETENTION_SECONDS = 3600.0


class JobStatusStore:
    def __init__(
        self,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        abandoned_retention_seconds: float = DEFAULT_ABANDONED_RETENTION_SECONDS,
    ):
        self.retention_seconds = retention_seconds
        self.abandoned_retention_seconds = abandoned_retention_seconds
        self._clock = clock
        self._records: dict[str, DeletionJobRecord] = {}
        self._expires_at: dict[str, float] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        # Jobs whose terminal state has been seen by a reader
        self._read_terminal: set[str] = set()

    def put(self, record: DeletionJobRecord) -> None:
        self._records[record.id] = record

    def get(self, job_id: str) -> DeletionJobRecord:
        """
        Return a copy of the job record.

        Raises:
            NotFoundError: Unknown job, or retention window elapsed
        """
        record = self._records.get(job_id)
        if record is None:
            raise NotFoundError(f"Deletion job '{job_id}' not found", job_id=job_id)

        expires_at = self._expires_at.get(job_id)
        if expires_at is not None and self._clock() >= expires_at:
            self._purge(job_id)
            raise NotFoundError(f"Deletion job '{job_id}' has expired", job_id=job_id)

        if record.state.is_terminal and job_id not in self._read_terminal:
            self._read_terminal.add(job_id)
            self._arm_expiry(job_id, self.retention_seconds)

        return dataclasses.replace(record)

    def mark_finished(self, job_id: str) -> None:
        """Start the abandoned-job window for a job that just reached a terminal state."""
        if job_id not in self._records or job_id in self._read_terminal:
            return
        if job_id not in self._expires_at:
            self._arm_expiry(job_id, self.abandoned_retention_seconds)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def _arm_expiry(self, job_id: str, seconds: float) -> None:
        self._expires_at[job_id] = self._clock() + seconds
        previous = self._timers.pop(job_id, None)
        if previous is not None:
            previous.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (sync caller): the expiry is still enforced on the next get()
            return
        self._timers[job_id] = loop.call_later(seconds, self._purge, job_id)
        logger.debug("Deletion job expiry armed", job_id=job_id, seconds=seconds)

    def _purge(self, job_id: str) -> None:
        self._records.pop(job_id, None)
        self._expires_at.pop(job_id, None)
        self._read_terminal.discard(job_id)
        timer = self._timers.pop(job_id, None)
        if timer is not None:
            timer.cancel()
        logger.debug("Deletion job purged", job_id=job_id)

    def close(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
