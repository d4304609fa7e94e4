# app/models/api/account_response.py
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.models.domain.account_domain import ProviderName


class AccountResponse(BaseModel):
    """Stored account as returned to the UI."""

    id: str
    name: str
    provider: ProviderName
    api_key: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    publishable_key: str | None = None
    secret_key: str | None = None


class ConnectionStatusResponse(BaseModel):
    """Result of a live credential check against the provider."""

    status: Literal["connected", "failed"]
    response: dict[str, Any] = Field(default_factory=dict)


class ProviderCallResponse(BaseModel):
    """Raw provider response for single-shot operations."""

    success: bool = True
    data: Any = None
