"""
Bulk import job.

Sends a parsed contact list to one provider list, one contact at a time,
with an optional delay between contacts. The job can be paused, resumed
and cancelled while it runs; every processed contact produces exactly one
ImportResult whether the provider accepted it or not.

States:
    running -> paused | completed | cancelled
    paused  -> running | cancelled

Cancellation is cooperative. It is observed at the top of the loop, after
a pause wait, and during the inter-contact delay. A provider call already
in flight is allowed to finish and its result is kept.
"""

import asyncio
import uuid
from collections import deque
from datetime import UTC, datetime
from typing import Any

from app.infrastructure.observability.logging import get_logger, log_job_transition
from app.jobs.exceptions import InvalidStateError
from app.models.domain.account_domain import Credential
from app.models.domain.job_domain import (
    Contact,
    ImportJobSnapshot,
    ImportJobState,
    ImportOutcome,
    ImportResult,
)
from app.services.providers.base import ProviderError, ProviderGateway

logger = get_logger(__name__)


class ImportJob:
    """
    State and processing loop of a single import run.

    All mutations happen on the event loop and never span an await, so
    the loop body, the control methods and the elapsed-time ticker can
    share the job without a lock.
    """

    def __init__(
        self,
        account_id: str,
        list_id: str,
        list_name: str,
        contacts: list[Contact],
        delay_seconds: float,
        gateway: ProviderGateway,
        credential: Credential,
        job_id: str | None = None,
    ):
        self.id = job_id or str(uuid.uuid4())
        self.account_id = account_id
        self.list_id = list_id
        self.list_name = list_name
        self.contacts = tuple(contacts)
        self.delay_seconds = max(0.0, float(delay_seconds))
        self.gateway = gateway
        self.credential = credential

        self.state = ImportJobState.RUNNING
        self.progress_percent = 0.0
        self.elapsed_seconds = 0.0
        self.created_at = datetime.now(UTC)
        self.finished_at: datetime | None = None

        self._results: deque[ImportResult] = deque()
        self._cancel_requested = False
        # Set while the job may proceed; cleared by pause()
        self._resume_event = asyncio.Event()
        self._resume_event.set()
        self._cancel_event = asyncio.Event()

    @property
    def total_contacts(self) -> int:
        return len(self.contacts)

    @property
    def processed_count(self) -> int:
        return len(self._results)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def snapshot(self) -> ImportJobSnapshot:
        return ImportJobSnapshot(
            id=self.id,
            account_id=self.account_id,
            list_id=self.list_id,
            list_name=self.list_name,
            state=self.state,
            progress_percent=self.progress_percent,
            results=tuple(self._results),
            total_contacts=self.total_contacts,
            elapsed_seconds=self.elapsed_seconds,
            delay_seconds=self.delay_seconds,
            created_at=self.created_at,
            finished_at=self.finished_at,
        )

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------

    def pause(self) -> None:
        if self.state is not ImportJobState.RUNNING or self._cancel_requested:
            raise InvalidStateError(
                f"Cannot pause job in state '{self._describe_state()}'",
                job_id=self.id,
                state=self._describe_state(),
            )
        self.state = ImportJobState.PAUSED
        self._resume_event.clear()
        log_job_transition("import", self.id, self.state.value, processed=self.processed_count)

    def resume(self) -> None:
        if self.state is not ImportJobState.PAUSED or self._cancel_requested:
            raise InvalidStateError(
                f"Cannot resume job in state '{self._describe_state()}'",
                job_id=self.id,
                state=self._describe_state(),
            )
        self.state = ImportJobState.RUNNING
        self._resume_event.set()
        log_job_transition("import", self.id, self.state.value, processed=self.processed_count)

    def cancel(self) -> None:
        if self.state.is_terminal:
            raise InvalidStateError(
                f"Cannot cancel job in state '{self.state.value}'",
                job_id=self.id,
                state=self.state.value,
            )
        if self._cancel_requested:
            return
        self._cancel_requested = True
        self._cancel_event.set()
        # Wake a paused loop so it can observe the cancellation
        self._resume_event.set()
        logger.info("Import cancellation requested", job_id=self.id, state=self.state.value)

    def tick(self, seconds: float = 1.0) -> None:
        """Advance elapsed time; only counts while running."""
        if self.state is ImportJobState.RUNNING:
            self.elapsed_seconds += seconds

    def _describe_state(self) -> str:
        if self._cancel_requested and not self.state.is_terminal:
            return "cancelling"
        return self.state.value

    # ------------------------------------------------------------------
    # Processing loop
    # ------------------------------------------------------------------

    async def run(self) -> ImportJobSnapshot:
        logger.info(
            "Import job started",
            job_id=self.id,
            account_id=self.account_id,
            list_id=self.list_id,
            total_contacts=self.total_contacts,
            delay_seconds=self.delay_seconds,
        )

        try:
            for position, contact in enumerate(self.contacts):
                if self._cancel_requested:
                    break

                await self._wait_while_paused()
                if self._cancel_requested:
                    break

                if position > 0 and self.delay_seconds > 0:
                    await self._sleep_unless_cancelled(self.delay_seconds)
                    if self._cancel_requested:
                        break

                result = await self._process_contact(position, contact)
                self._record(result)
            else:
                # A pause that arrived during the last provider call holds the
                # job paused until it is resumed or cancelled.
                await self._wait_while_paused()

        except asyncio.CancelledError:
            self._finish(ImportJobState.CANCELLED)
            raise

        self._finish(
            ImportJobState.CANCELLED if self._cancel_requested else ImportJobState.COMPLETED
        )
        return self.snapshot()

    async def _wait_while_paused(self) -> None:
        while self.state is ImportJobState.PAUSED and not self._cancel_requested:
            await self._resume_event.wait()

    async def _sleep_unless_cancelled(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=seconds)
        except TimeoutError:
            pass

    async def _process_contact(self, position: int, contact: Contact) -> ImportResult:
        index = position + 1
        try:
            payload: Any = await self.gateway.send_contact(self.credential, contact, self.list_id)
            outcome = ImportOutcome.SUCCESS
        except ProviderError as e:
            payload = e.to_payload()
            outcome = ImportOutcome.FAILED
        except Exception as e:
            logger.error(
                "Unexpected error sending contact",
                job_id=self.id,
                index=index,
                error=str(e),
                error_type=type(e).__name__,
            )
            payload = {"message": str(e), "error_type": type(e).__name__}
            outcome = ImportOutcome.FAILED

        if outcome is ImportOutcome.FAILED:
            logger.warning(
                "Contact import failed", job_id=self.id, index=index, email=contact.email
            )

        return ImportResult(index=index, email=contact.email, outcome=outcome, payload=payload)

    def _record(self, result: ImportResult) -> None:
        self._results.appendleft(result)
        self.progress_percent = self.processed_count / self.total_contacts * 100

    def _finish(self, state: ImportJobState) -> None:
        if self.state.is_terminal:
            return
        self.state = state
        if state is ImportJobState.COMPLETED:
            self.progress_percent = 100.0
        self.finished_at = datetime.now(UTC)
        self._resume_event.set()

        succeeded = sum(1 for r in self._results if r.outcome is ImportOutcome.SUCCESS)
        log_job_transition(
            "import",
            self.id,
            state.value,
            processed=self.processed_count,
            succeeded=succeeded,
            failed=self.processed_count - succeeded,
            elapsed_seconds=round(self.elapsed_seconds, 2),
        )
