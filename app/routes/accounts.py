"""
Account API Routes
CRUD over the local accounts file plus thin pass-through calls to the
account's provider (connection check, lists, single contact, forget).
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_account_store, get_credential_resolver
from app.infrastructure.observability.logging import get_logger
from app.jobs.exceptions import JobError
from app.models.api.account_request import (
    AccountCreateRequest,
    AccountUpdateRequest,
    ForgetSubscriberRequest,
    SingleContactRequest,
)
from app.models.api.account_response import (
    AccountResponse,
    ConnectionStatusResponse,
    ProviderCallResponse,
)
from app.models.domain.job_domain import Contact
from app.services.account_store import AccountStore
from app.services.credentials import CredentialResolver
from app.services.providers.base import ProviderError
from app.utils.http_errors import to_http_exception

logger = get_logger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("", response_model=list[AccountResponse])
async def list_accounts(store: AccountStore = Depends(get_account_store)):
    """List all stored accounts."""
    accounts = await store.list_accounts()
    return [AccountResponse(**account.model_dump()) for account in accounts]


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    body: AccountCreateRequest, store: AccountStore = Depends(get_account_store)
):
    """Add a provider account."""
    account = await store.create_account(body.model_dump())
    return AccountResponse(**account.model_dump())


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    body: AccountUpdateRequest,
    store: AccountStore = Depends(get_account_store),
):
    """Update name or credentials of an account."""
    account = await store.update_account(account_id, body.model_dump())
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return AccountResponse(**account.model_dump())


@router.delete("/{account_id}")
async def delete_account(account_id: str, store: AccountStore = Depends(get_account_store)):
    """Delete an account."""
    if not await store.delete_account(account_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return {"message": "Account deleted successfully"}


@router.post("/{account_id}/check-status", response_model=ConnectionStatusResponse)
async def check_account_status(
    account_id: str, resolver: CredentialResolver = Depends(get_credential_resolver)
):
    """
    Check the account's credentials against the provider.
    Provider failures are reported in the body, never as an HTTP error.
    """
    try:
        resolved = await resolver.resolve(account_id)
        original = await resolved.gateway.check_connection(resolved.credential)
    except JobError as e:
        raise to_http_exception(e) from e
    except ProviderError as e:
        logger.info("Account connection check failed", account_id=account_id, error=e.message)
        return ConnectionStatusResponse(
            status="failed",
            response={
                "name": type(e).__name__,
                "message": e.message,
                "data": e.response_data if e.response_data else "No additional data provided.",
            },
        )

    return ConnectionStatusResponse(
        status="connected",
        response={"message": "Connection successful.", "original_response": original},
    )


@router.get("/{account_id}/lists", response_model=ProviderCallResponse)
async def list_account_lists(
    account_id: str, resolver: CredentialResolver = Depends(get_credential_resolver)
):
    """Lists (address books, campaigns) available in the provider account."""
    try:
        resolved = await resolver.resolve(account_id)
        lists = await resolved.gateway.list_lists(resolved.credential)
    except (JobError, ProviderError) as e:
        raise to_http_exception(e) from e
    return ProviderCallResponse(data=lists)


@router.post("/{account_id}/contacts", response_model=ProviderCallResponse)
async def import_single_contact(
    account_id: str,
    body: SingleContactRequest,
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    """Send one contact to a list and return the provider response."""
    contact = Contact(
        email=body.email.strip(),
        first_name=body.first_name.strip(),
        last_name=body.last_name.strip(),
    )
    try:
        resolved = await resolver.resolve(account_id)
        data = await resolved.gateway.send_contact(resolved.credential, contact, body.list_id)
    except (JobError, ProviderError) as e:
        raise to_http_exception(e) from e

    logger.info("Single contact imported", account_id=account_id, list_id=body.list_id)
    return ProviderCallResponse(data=data)


@router.post("/{account_id}/subscribers/forget", response_model=ProviderCallResponse)
async def forget_subscriber(
    account_id: str,
    body: ForgetSubscriberRequest,
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    """Permanently remove one address from a list."""
    try:
        resolved = await resolver.resolve(account_id)
        data = await resolved.gateway.delete_subscribers(
            resolved.credential, body.list_id, {body.email.strip()}
        )
    except (JobError, ProviderError) as e:
        raise to_http_exception(e) from e

    logger.info("Subscriber forgotten", account_id=account_id, list_id=body.list_id)
    return ProviderCallResponse(data=data)
