"""
HTTP error helpers - map job and provider errors to HTTP responses.

Usage:
    from app.utils.http_errors import to_http_exception

    try:
        snapshot = registry.pause(job_id)
    except JobError as e:
        raise to_http_exception(e) from e
"""

from fastapi import HTTPException, status

from app.jobs.exceptions import (
    ConflictError,
    InvalidStateError,
    JobError,
    NotFoundError,
    ValidationError,
)
from app.services.providers.base import AuthenticationError, ProviderError

_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ProviderError, status.HTTP_502_BAD_GATEWAY),
]


def to_http_exception(error: JobError | ProviderError) -> HTTPException:
    """Build the HTTPException for a known error type."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = code
            break

    detail: dict = {"error": type(error).__name__, "message": error.message}
    if isinstance(error, ConflictError):
        detail["active_job_id"] = error.job_id
    elif isinstance(error, InvalidStateError):
        detail["state"] = error.state
    elif isinstance(error, ProviderError) and error.response_data:
        detail["provider_response"] = error.response_data

    return HTTPException(status_code=status_code, detail=detail)
