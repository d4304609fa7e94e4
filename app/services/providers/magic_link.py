"""
Magic.link admin API gateway.

Magic.link has no subscriber lists, so only the connection check is
available; imports against a Magic.link account record a failure per
contact.
"""

from typing import Any

from app.models.domain.account_domain import Account, Credential
from app.models.domain.job_domain import Contact
from app.services.providers.base import ProviderGateway


class MagicLinkGateway(ProviderGateway):
    provider = "magic_link"

    async def resolve_credentials(self, account: Account) -> Credential:
        self._require(account)
        return Credential(
            account_id=account.id,
            provider="magic_link",
            headers={"X-Magic-Secret-Key": account.secret_key.strip()},
        )

    async def send_contact(self, credential: Credential, contact: Contact, list_id: str) -> Any:
        raise self._unsupported("send_contact")

    async def list_lists(self, credential: Credential) -> list[dict]:
        raise self._unsupported("list_lists")

    async def check_connection(self, credential: Credential) -> Any:
        return await self._request(
            "GET", "/v1/admin/client/get", "check_connection", credential=credential
        )
