"""
Errors raised synchronously by job start and job control operations.

Errors that happen while a job is running never surface as exceptions;
they are recorded in the job state instead.
"""


class JobError(Exception):
    """Base exception for job operations."""

    def __init__(self, message: str, job_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.job_id = job_id


class ValidationError(JobError):
    """Malformed or empty input to a start operation."""


class ConflictError(JobError):
    """An import is already active for the account."""

    def __init__(self, message: str, account_id: str, active_job_id: str):
        super().__init__(message, job_id=active_job_id)
        self.active_job_id = active_job_id
        self.account_id = account_id


class InvalidStateError(JobError):
    """Control operation requested in a state that does not allow it."""

    def __init__(self, message: str, job_id: str, state: str):
        super().__init__(message, job_id=job_id)
        self.state = state


class NotFoundError(JobError):
    """Unknown or expired job handle, or unknown account."""
