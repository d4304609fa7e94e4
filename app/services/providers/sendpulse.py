"""
SendPulse REST API gateway.

SendPulse uses an OAuth client-credential exchange: the account's client id
and secret are traded for a bearer token valid for one hour. Tokens are
cached per account and refreshed shortly before expiry, so a long import
keeps working after the first token runs out.
"""

import asyncio
import base64
import hashlib
from datetime import UTC, datetime, timedelta
from typing import Any

from app.infrastructure.observability.logging import get_logger
from app.models.domain.account_domain import AccessToken, Account, Credential
from app.models.domain.job_domain import Contact
from app.services.providers.base import AuthenticationError, ProviderError, ProviderGateway

logger = get_logger(__name__)

TOKEN_PATH = "/oauth/access_token"
DEFAULT_TOKEN_TTL_SECONDS = 3600


class SendPulseGateway(ProviderGateway):
    provider = "sendpulse"

    def __init__(self, *args, token_expiry_buffer_seconds: int = 60, **kwargs):
        super().__init__(*args, **kwargs)
        self.token_expiry_buffer_seconds = token_expiry_buffer_seconds
        # account_id -> (credential fingerprint, token)
        self._tokens: dict[str, tuple[str, AccessToken]] = {}
        self._accounts: dict[str, Account] = {}
        self._token_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Token handling
    # ------------------------------------------------------------------

    @staticmethod
    def _credential_fingerprint(account: Account) -> str:
        """Changes whenever the client id or the secret changes."""
        material = f"{account.client_id or ''}\x00{account.client_secret or ''}"
        return hashlib.sha256(material.encode("utf-8")).hexdigest()

    async def get_access_token(self, account: Account) -> AccessToken:
        """Return a cached token for the account, exchanging credentials if needed."""
        fingerprint = self._credential_fingerprint(account)
        async with self._token_lock:
            cached = self._tokens.get(account.id)
            if cached:
                cached_fingerprint, token = cached
                if cached_fingerprint == fingerprint and not token.needs_refresh(
                    self.token_expiry_buffer_seconds
                ):
                    return token

            token = await self._exchange_credentials(account)
            self._tokens[account.id] = (fingerprint, token)
            self._accounts[account.id] = account
            return token

    async def _exchange_credentials(self, account: Account) -> AccessToken:
        payload = {
            "grant_type": "client_credentials",
            "client_id": account.client_id,
            "client_secret": account.client_secret,
        }
        try:
            data = await self._request("POST", TOKEN_PATH, "token_exchange", json=payload)
        except ProviderError as e:
            raise AuthenticationError(
                f"SendPulse token exchange failed for account '{account.name}': {e.message}",
                provider=self.provider,
                status_code=e.status_code,
                response_data=e.response_data,
            ) from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise AuthenticationError(
                "SendPulse token response did not contain an access token",
                provider=self.provider,
                response_data=data,
            )

        expires_in = int(data.get("expires_in") or DEFAULT_TOKEN_TTL_SECONDS)
        logger.info(
            "SendPulse access token obtained",
            account_id=account.id,
            expires_in=expires_in,
        )
        return AccessToken(
            access_token=access_token,
            token_type=data.get("token_type") or "Bearer",
            expires_at=datetime.now(UTC) + timedelta(seconds=expires_in),
        )

    async def _auth_headers(self, credential: Credential) -> dict[str, str]:
        account = self._accounts.get(credential.account_id)
        if account is None:
            return credential.headers
        token = await self.get_access_token(account)
        return {"Authorization": f"{token.token_type} {token.access_token}"}

    # ------------------------------------------------------------------
    # Gateway capabilities
    # ------------------------------------------------------------------

    async def resolve_credentials(self, account: Account) -> Credential:
        self._require(account)
        token = await self.get_access_token(account)
        return Credential(
            account_id=account.id,
            provider="sendpulse",
            headers={"Authorization": f"{token.token_type} {token.access_token}"},
        )

    async def send_contact(self, credential: Credential, contact: Contact, list_id: str) -> Any:
        variables = {}
        if contact.first_name:
            variables["name"] = contact.first_name
        if contact.last_name:
            variables["surname"] = contact.last_name

        entry: dict[str, Any] = {"email": contact.email}
        if variables:
            entry["variables"] = variables

        return await self._request(
            "POST",
            f"/addressbooks/{list_id}/emails",
            "send_contact",
            credential=credential,
            json={"emails": [entry]},
        )

    async def get_subscriber_count(self, credential: Credential, list_id: str) -> int:
        data = await self._request(
            "GET",
            f"/addressbooks/{list_id}/emails/total",
            "get_subscriber_count",
            credential=credential,
        )
        try:
            return int(data["total"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(
                "SendPulse subscriber total missing from response",
                provider=self.provider,
                response_data=data,
            ) from e

    async def list_subscriber_page(
        self, credential: Credential, list_id: str, limit: int, offset: int
    ) -> list[str]:
        data = await self._request(
            "GET",
            f"/addressbooks/{list_id}/emails",
            "list_subscriber_page",
            credential=credential,
            params={"limit": limit, "offset": offset},
        )
        if not isinstance(data, list):
            return []
        return [item["email"] for item in data if isinstance(item, dict) and item.get("email")]

    async def delete_subscribers(
        self, credential: Credential, list_id: str, addresses: set[str] | list[str]
    ) -> Any:
        return await self._request(
            "DELETE",
            f"/addressbooks/{list_id}/emails",
            "delete_subscribers",
            credential=credential,
            json={"emails": sorted(addresses)},
        )

    async def list_lists(self, credential: Credential) -> list[dict]:
        return await self._request("GET", "/addressbooks", "list_lists", credential=credential)

    async def check_connection(self, credential: Credential) -> Any:
        return await self._request(
            "GET",
            "/addressbooks",
            "check_connection",
            credential=credential,
            params={"limit": 1},
        )

    # ------------------------------------------------------------------
    # Senders, templates and Automation 360
    # ------------------------------------------------------------------

    async def list_senders(self, credential: Credential) -> list[dict]:
        return await self._request("GET", "/senders", "list_senders", credential=credential)

    async def add_sender(self, credential: Credential, email: str, name: str) -> Any:
        return await self._request(
            "POST",
            "/senders",
            "add_sender",
            credential=credential,
            json={"email": email, "name": name},
        )

    async def delete_sender(self, credential: Credential, email: str) -> Any:
        return await self._request(
            "DELETE", "/senders", "delete_sender", credential=credential, json={"email": email}
        )

    async def list_templates(self, credential: Credential) -> list[dict]:
        return await self._request(
            "GET", "/templates", "list_templates", credential=credential, params={"owner": "me"}
        )

    async def get_template(self, credential: Credential, template_id: str) -> Any:
        return await self._request(
            "GET", f"/template/{template_id}", "get_template", credential=credential
        )

    async def update_template(
        self, credential: Credential, template_id: str, html: str, lang: str = "en"
    ) -> Any:
        # SendPulse expects the template body base64-encoded
        body = base64.b64encode(html.encode("utf-8")).decode("ascii")
        return await self._request(
            "POST",
            f"/template/edit/{template_id}",
            "update_template",
            credential=credential,
            json={"body": body, "lang": lang},
        )

    async def list_automations(self, credential: Credential) -> list[dict]:
        data = await self._request(
            "GET", "/a360/autoresponders/list", "list_automations", credential=credential
        )
        return data.get("data", []) if isinstance(data, dict) else data

    async def get_automation_statistics(self, credential: Credential, automation_id: str) -> Any:
        return await self._request(
            "GET",
            f"/a360/stats/autoresponder/{automation_id}",
            "get_automation_statistics",
            credential=credential,
        )

    async def list_action_subscribers(
        self, credential: Credential, automation_id: str, filter_type: str
    ) -> list[dict]:
        data = await self._request(
            "GET",
            f"/a360/stats/autoresponder/{automation_id}/addresses",
            "list_action_subscribers",
            credential=credential,
            params={"type": filter_type},
        )
        return data.get("data", []) if isinstance(data, dict) else data
