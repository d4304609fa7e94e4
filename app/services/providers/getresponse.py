"""
GetResponse v3 API gateway.
Lists are GetResponse "campaigns"; contact creation is accepted asynchronously (HTTP 202).
"""

from typing import Any

from app.models.domain.account_domain import Account, Credential
from app.models.domain.job_domain import Contact
from app.services.providers.base import ProviderGateway


class GetResponseGateway(ProviderGateway):
    provider = "getresponse"

    async def resolve_credentials(self, account: Account) -> Credential:
        self._require(account)
        return Credential(
            account_id=account.id,
            provider="getresponse",
            headers={"X-Auth-Token": f"api-key {account.api_key.strip()}"},
        )

    async def send_contact(self, credential: Credential, contact: Contact, list_id: str) -> Any:
        payload: dict[str, Any] = {
            "email": contact.email,
            "campaign": {"campaignId": list_id},
            "customFieldValues": [],
        }
        name = " ".join(part for part in (contact.first_name, contact.last_name) if part)
        if name:
            payload["name"] = name

        return await self._request(
            "POST", "/contacts", "send_contact", credential=credential, json=payload
        )

    async def list_lists(self, credential: Credential) -> list[dict]:
        return await self._request("GET", "/campaigns", "list_lists", credential=credential)

    async def check_connection(self, credential: Credential) -> Any:
        return await self._request("GET", "/accounts", "check_connection", credential=credential)
