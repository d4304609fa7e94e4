# models/domain/account_domain.py
"""
Account domain model.
One record per provider account stored in the local accounts file.
"""

from datetime import UTC, datetime, timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict

ProviderName = Literal["sendx", "sendpulse", "getresponse", "magic_link"]

# Secret fields each provider needs before any API call can be made
REQUIRED_CREDENTIAL_FIELDS: dict[str, tuple[str, ...]] = {
    "sendx": ("api_key",),
    "getresponse": ("api_key",),
    "sendpulse": ("client_id", "client_secret"),
    "magic_link": ("secret_key",),
}


class Account(BaseModel):
    """Named set of credentials for one email-marketing provider."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    provider: ProviderName = "sendx"

    api_key: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    publishable_key: str | None = None
    secret_key: str | None = None

    def missing_credentials(self) -> list[str]:
        """Names of required credential fields that are empty."""
        required = REQUIRED_CREDENTIAL_FIELDS.get(self.provider, ())
        return [field for field in required if not (getattr(self, field) or "").strip()]


class Credential(BaseModel):
    """Resolved, ready-to-use credential for a single account."""

    account_id: str
    provider: ProviderName
    headers: dict[str, str]


class AccessToken(BaseModel):
    """Bearer token obtained through a client-credential exchange."""

    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime

    def needs_refresh(self, buffer_seconds: int = 60) -> bool:
        """Check if token expires within the buffer window."""
        return datetime.now(UTC) + timedelta(seconds=buffer_seconds) >= self.expires_at
