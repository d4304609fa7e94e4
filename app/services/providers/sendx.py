"""
SendX REST API gateway.
Authenticates every request with the team API key header.
"""

from typing import Any

from app.models.domain.account_domain import Account, Credential
from app.models.domain.job_domain import Contact
from app.services.providers.base import ProviderGateway


class SendXGateway(ProviderGateway):
    provider = "sendx"

    async def resolve_credentials(self, account: Account) -> Credential:
        self._require(account)
        return Credential(
            account_id=account.id,
            provider="sendx",
            headers={"X-Team-ApiKey": account.api_key.strip()},
        )

    async def send_contact(self, credential: Credential, contact: Contact, list_id: str) -> Any:
        payload = {
            "email": contact.email,
            "firstName": contact.first_name,
            "lastName": contact.last_name,
            "lists": [list_id],
        }
        return await self._request(
            "POST", "/contact", "send_contact", credential=credential, json=payload
        )

    async def list_lists(self, credential: Credential) -> list[dict]:
        data = await self._request("GET", "/list", "list_lists", credential=credential)
        return data if isinstance(data, list) else data.get("data", [])

    async def check_connection(self, credential: Credential) -> Any:
        return await self._request("GET", "/sender", "check_connection", credential=credential)
