"""
Background "delete all subscribers" job.

The launcher resolves credentials synchronously, records the job as
started and returns its id before the body runs. The body then runs
detached:

    1. count subscribers (0 -> completed, nothing else happens)
    2. fetching: page through every address, progress 0-50 %
    3. deleting: one batch delete with everything fetched
    4. completed at 100 %

Any error moves the job to failed with a readable message and keeps the
last progress value. Partial deletions are not distinguished from total
failure.
"""

import uuid
from datetime import UTC, datetime

from app.infrastructure.observability.logging import get_logger, log_job_transition
from app.jobs.job_status_store import JobStatusStore
from app.jobs.supervisor import TaskSupervisor
from app.models.domain.job_domain import DeletionJobRecord, DeletionJobState
from app.services.credentials import CredentialResolver, ResolvedAccount
from app.services.providers.base import ProviderError

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 100
FETCH_PHASE_SHARE = 50.0


class DeletionJobRunner:
    def __init__(
        self,
        resolver: CredentialResolver,
        store: JobStatusStore,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.resolver = resolver
        self.store = store
        self.page_size = page_size
        self._supervisor = TaskSupervisor("deletions")

    async def start_delete_all(self, account_id: str, list_id: str) -> DeletionJobRecord:
        """
        Launch a delete-all run and return the initial record.

        Raises:
            NotFoundError: Unknown account
            AuthenticationError: Account credentials could not be resolved
        """
        resolved = await self.resolver.resolve(account_id)

        now = datetime.now(UTC)
        record = DeletionJobRecord(
            id=str(uuid.uuid4()),
            account_id=account_id,
            list_id=list_id,
            created_at=now,
            updated_at=now,
        )
        self.store.put(record)
        log_job_transition("deletion", record.id, record.state.value, list_id=list_id)

        self._supervisor.spawn(self._run(record, resolved), task_name=f"deletion-job-{record.id}")
        return record

    def get_status(self, job_id: str) -> DeletionJobRecord:
        return self.store.get(job_id)

    async def shutdown(self) -> None:
        await self._supervisor.shutdown()
        self.store.close()

    # ------------------------------------------------------------------
    # Job body
    # ------------------------------------------------------------------

    async def _run(self, record: DeletionJobRecord, resolved: ResolvedAccount) -> None:
        gateway = resolved.gateway
        credential = resolved.credential

        try:
            total = await gateway.get_subscriber_count(credential, record.list_id)
            if total <= 0:
                self._update(
                    record,
                    state=DeletionJobState.COMPLETED,
                    total_count=0,
                    progress_percent=100.0,
                    message="No subscribers to delete",
                )
                return

            self._update(
                record,
                state=DeletionJobState.FETCHING,
                total_count=total,
                message=f"Fetching {total} subscribers",
            )

            addresses: list[str] = []
            offset = 0
            while len(addresses) < total:
                page = await gateway.list_subscriber_page(
                    credential, record.list_id, self.page_size, offset
                )
                if not page:
                    logger.warning(
                        "Subscriber paging ended early",
                        job_id=record.id,
                        fetched=len(addresses),
                        expected=total,
                    )
                    break
                addresses.extend(page)
                offset += self.page_size
                self._update(
                    record,
                    progress_percent=min(
                        FETCH_PHASE_SHARE, len(addresses) / total * FETCH_PHASE_SHARE
                    ),
                    message=f"Fetched {len(addresses)} of {total} subscribers",
                )

            if not addresses:
                self._update(
                    record,
                    state=DeletionJobState.COMPLETED,
                    progress_percent=100.0,
                    message="No subscriber addresses returned; nothing deleted",
                )
                return

            unique_addresses = set(addresses)
            self._update(
                record,
                state=DeletionJobState.DELETING,
                message=f"Deleting {len(unique_addresses)} subscribers",
            )
            await gateway.delete_subscribers(credential, record.list_id, unique_addresses)

            self._update(
                record,
                state=DeletionJobState.COMPLETED,
                progress_percent=100.0,
                message=f"Deleted {len(unique_addresses)} subscribers",
            )

        except ProviderError as e:
            self._update(record, state=DeletionJobState.FAILED, message=e.message)
        except Exception as e:
            logger.error(
                "Deletion job crashed",
                job_id=record.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._update(
                record,
                state=DeletionJobState.FAILED,
                message=f"Deletion failed: {e}" if str(e) else "Deletion failed",
            )

    def _update(self, record: DeletionJobRecord, **changes) -> None:
        previous_state = record.state
        for name, value in changes.items():
            setattr(record, name, value)
        record.updated_at = datetime.now(UTC)

        if record.state is not previous_state:
            log_job_transition(
                "deletion",
                record.id,
                record.state.value,
                progress_percent=round(record.progress_percent, 2),
                total_count=record.total_count,
                message=record.message,
            )
            if record.state.is_terminal:
                self.store.mark_finished(record.id)
