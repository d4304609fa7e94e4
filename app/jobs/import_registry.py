"""
Import job registry.

Holds every import job of the process, enforces at most one active
(running or paused) import per account, launches job bodies under a
TaskSupervisor and drives the elapsed-time ticker.

Constructed once at application startup and injected into the routes
through app.state.
"""

import asyncio

from app.infrastructure.observability.logging import get_logger
from app.jobs.contact_parser import parse_contacts
from app.jobs.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.jobs.import_job import ImportJob
from app.jobs.supervisor import TaskSupervisor
from app.models.domain.job_domain import ImportJobSnapshot
from app.services.credentials import CredentialResolver

logger = get_logger(__name__)


class ImportJobRegistry:
    def __init__(
        self,
        resolver: CredentialResolver,
        tick_seconds: float = 1.0,
        max_delay_seconds: float | None = None,
    ):
        self.resolver = resolver
        self.tick_seconds = tick_seconds
        self.max_delay_seconds = max_delay_seconds
        self._jobs: dict[str, ImportJob] = {}
        self._supervisor = TaskSupervisor("imports")
        self._ticker: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Start / lookup
    # ------------------------------------------------------------------

    async def start(
        self,
        account_id: str,
        list_id: str,
        list_name: str,
        raw_contact_text: str,
        delay_seconds: float,
    ) -> ImportJobSnapshot:
        """
        Register a new import and launch it in the background.

        Raises:
            ValidationError: No contacts in the input or a bad delay
            ConflictError: The account already has an active import
            NotFoundError: Unknown account
            AuthenticationError: Account credentials could not be resolved
        """
        contacts = parse_contacts(raw_contact_text)
        if not contacts:
            raise ValidationError("No contacts to import")
        if delay_seconds < 0:
            raise ValidationError("Delay must not be negative")
        if self.max_delay_seconds is not None and delay_seconds > self.max_delay_seconds:
            raise ValidationError(f"Delay must not exceed {self.max_delay_seconds} seconds")
        if not list_id:
            raise ValidationError("A target list is required")

        self._ensure_no_active_job(account_id)
        resolved = await self.resolver.resolve(account_id)
        # Another start for the same account may have registered while resolving
        self._ensure_no_active_job(account_id)

        self._drop_finished_jobs(account_id)

        job = ImportJob(
            account_id=account_id,
            list_id=list_id,
            list_name=list_name,
            contacts=contacts,
            delay_seconds=delay_seconds,
            gateway=resolved.gateway,
            credential=resolved.credential,
        )
        self._jobs[job.id] = job
        self._supervisor.spawn(job.run(), task_name=f"import-job-{job.id}")

        logger.info(
            "Import job registered",
            job_id=job.id,
            account_id=account_id,
            provider=resolved.account.provider,
            total_contacts=job.total_contacts,
        )
        return job.snapshot()

    def get(self, job_id: str) -> ImportJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Import job '{job_id}' not found", job_id=job_id)
        return job

    def get_snapshot(self, job_id: str) -> ImportJobSnapshot:
        return self.get(job_id).snapshot()

    def get_active_job_for_account(self, account_id: str) -> ImportJob | None:
        for job in self._jobs.values():
            if job.account_id == account_id and job.state.is_active:
                return job
        return None

    def list_jobs(
        self, account_id: str | None = None, active_only: bool = False
    ) -> list[ImportJobSnapshot]:
        snapshots = []
        for job in self._jobs.values():
            if account_id is not None and job.account_id != account_id:
                continue
            if active_only and not job.state.is_active:
                continue
            snapshots.append(job.snapshot())
        return snapshots

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def pause(self, job_id: str) -> ImportJobSnapshot:
        job = self.get(job_id)
        job.pause()
        return job.snapshot()

    def resume(self, job_id: str) -> ImportJobSnapshot:
        job = self.get(job_id)
        job.resume()
        return job.snapshot()

    def cancel(self, job_id: str) -> ImportJobSnapshot:
        job = self.get(job_id)
        job.cancel()
        return job.snapshot()

    def remove(self, job_id: str) -> None:
        """Forget a finished job. Active jobs must be cancelled first."""
        job = self.get(job_id)
        if job.state.is_active:
            raise InvalidStateError(
                "Cannot remove an active job; cancel it first",
                job_id=job_id,
                state=job.state.value,
            )
        del self._jobs[job_id]

    def _ensure_no_active_job(self, account_id: str) -> None:
        active = self.get_active_job_for_account(account_id)
        if active is not None:
            raise ConflictError(
                f"Account '{account_id}' already has an active import job",
                account_id=account_id,
                active_job_id=active.id,
            )

    def _drop_finished_jobs(self, account_id: str) -> None:
        stale = [
            job_id
            for job_id, job in self._jobs.items()
            if job.account_id == account_id and job.state.is_terminal
        ]
        for job_id in stale:
            del self._jobs[job_id]

    # ------------------------------------------------------------------
    # Elapsed-time ticker and lifecycle
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Credit one ticker interval of wall time to every running job."""
        for job in self._jobs.values():
            job.tick(self.tick_seconds)

    async def _run_ticker(self) -> None:
        while True:
            await asyncio.sleep(self.tick_seconds)
            self.tick()

    def start_ticker(self) -> None:
        if self._ticker is None or self._ticker.done():
            self._ticker = asyncio.create_task(self._run_ticker(), name="import-elapsed-ticker")

    async def shutdown(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            await asyncio.gather(self._ticker, return_exceptions=True)
            self._ticker = None
        await self._supervisor.shutdown()
