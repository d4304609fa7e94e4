"""
Provider Resource API Routes
Senders, email templates and automation statistics of an account.
Each call is proxied to the account's provider; providers without the
capability answer 502 with a "not supported" message.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_credential_resolver
from app.infrastructure.observability.logging import get_logger
from app.jobs.exceptions import JobError
from app.models.api.account_request import (
    ActionFilter,
    SenderCreateRequest,
    TemplateUpdateRequest,
)
from app.models.api.account_response import ProviderCallResponse
from app.services.credentials import CredentialResolver, ResolvedAccount
from app.services.providers.base import ProviderError
from app.utils.http_errors import to_http_exception

logger = get_logger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["provider-resources"])


async def _proxy(
    resolver: CredentialResolver,
    account_id: str,
    call: Callable[[ResolvedAccount], Awaitable[Any]],
) -> ProviderCallResponse:
    try:
        resolved = await resolver.resolve(account_id)
        data = await call(resolved)
    except (JobError, ProviderError) as e:
        raise to_http_exception(e) from e
    return ProviderCallResponse(data=data)


# ----------------------------------------------------------------------
# Senders
# ----------------------------------------------------------------------


@router.get("/{account_id}/senders", response_model=ProviderCallResponse)
async def list_senders(
    account_id: str, resolver: CredentialResolver = Depends(get_credential_resolver)
):
    return await _proxy(
        resolver, account_id, lambda r: r.gateway.list_senders(r.credential)
    )


@router.post("/{account_id}/senders", response_model=ProviderCallResponse)
async def add_sender(
    account_id: str,
    body: SenderCreateRequest,
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    """Register a sender; the provider usually sends a confirmation email to it."""
    response = await _proxy(
        resolver,
        account_id,
        lambda r: r.gateway.add_sender(r.credential, body.email.strip(), body.name.strip()),
    )
    logger.info("Sender added", account_id=account_id)
    return response


@router.delete("/{account_id}/senders/{email}", response_model=ProviderCallResponse)
async def delete_sender(
    account_id: str,
    email: str,
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    response = await _proxy(
        resolver, account_id, lambda r: r.gateway.delete_sender(r.credential, email)
    )
    logger.info("Sender deleted", account_id=account_id)
    return response


# ----------------------------------------------------------------------
# Email templates
# ----------------------------------------------------------------------


@router.get("/{account_id}/templates", response_model=ProviderCallResponse)
async def list_templates(
    account_id: str, resolver: CredentialResolver = Depends(get_credential_resolver)
):
    return await _proxy(
        resolver, account_id, lambda r: r.gateway.list_templates(r.credential)
    )


@router.get("/{account_id}/templates/{template_id}", response_model=ProviderCallResponse)
async def get_template(
    account_id: str,
    template_id: str,
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    return await _proxy(
        resolver, account_id, lambda r: r.gateway.get_template(r.credential, template_id)
    )


@router.put("/{account_id}/templates/{template_id}", response_model=ProviderCallResponse)
async def update_template(
    account_id: str,
    template_id: str,
    body: TemplateUpdateRequest,
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    response = await _proxy(
        resolver,
        account_id,
        lambda r: r.gateway.update_template(r.credential, template_id, body.html, body.lang),
    )
    logger.info("Email template updated", account_id=account_id, template_id=template_id)
    return response


# ----------------------------------------------------------------------
# Automations
# ----------------------------------------------------------------------


@router.get("/{account_id}/automations", response_model=ProviderCallResponse)
async def list_automations(
    account_id: str, resolver: CredentialResolver = Depends(get_credential_resolver)
):
    return await _proxy(
        resolver, account_id, lambda r: r.gateway.list_automations(r.credential)
    )


@router.get(
    "/{account_id}/automations/{automation_id}/statistics", response_model=ProviderCallResponse
)
async def get_automation_statistics(
    account_id: str,
    automation_id: str,
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    """Started, finished, sent, delivered, opened, clicked, unsubscribed, spam and error counts."""
    return await _proxy(
        resolver,
        account_id,
        lambda r: r.gateway.get_automation_statistics(r.credential, automation_id),
    )


@router.get(
    "/{account_id}/automations/{automation_id}/subscribers", response_model=ProviderCallResponse
)
async def list_action_subscribers(
    account_id: str,
    automation_id: str,
    filter_type: ActionFilter = Query(default="opened"),
    resolver: CredentialResolver = Depends(get_credential_resolver),
):
    """Subscribers behind one statistics card (opened, clicked, ...)."""
    return await _proxy(
        resolver,
        account_id,
        lambda r: r.gateway.list_action_subscribers(r.credential, automation_id, filter_type),
    )
