# app/models/api/account_request.py
from typing import Literal

from pydantic import BaseModel, Field

from app.models.domain.account_domain import ProviderName


class AccountCreateRequest(BaseModel):
    """Request body for adding a provider account."""

    name: str = Field(..., min_length=1, max_length=100)
    provider: ProviderName = "sendx"
    api_key: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    publishable_key: str | None = None
    secret_key: str | None = None


class AccountUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    provider: ProviderName | None = None
    api_key: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    publishable_key: str | None = None
    secret_key: str | None = None


class SingleContactRequest(BaseModel):
    """Add one contact to a provider list."""

    list_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    first_name: str = ""
    last_name: str = ""


class ForgetSubscriberRequest(BaseModel):
    """Remove one address from a provider list."""

    list_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)


class SenderCreateRequest(BaseModel):
    """Register a new "from" address with the provider."""

    email: str = Field(..., min_length=3)
    name: str = Field(..., min_length=1, max_length=100)


class TemplateUpdateRequest(BaseModel):
    """Replace the HTML body of an email template."""

    html: str = Field(..., min_length=1)
    lang: str = "en"


# Subscriber groups shown on the automation statistics cards
ActionFilter = Literal[
    "all", "delivered_not_read", "opened", "clicked", "unsubscribed", "spam_by_user", "errors"
]
