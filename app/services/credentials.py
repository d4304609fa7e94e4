"""
Credential resolution: "get a valid credential for account X".
Looks the account up, picks the gateway for its provider and asks the
gateway to turn the stored secrets into a usable credential.
"""

from dataclasses import dataclass

from app.jobs.exceptions import NotFoundError
from app.models.domain.account_domain import Account, Credential
from app.services.account_store import AccountStore
from app.services.providers.base import AuthenticationError, ProviderGateway


@dataclass(slots=True)
class ResolvedAccount:
    account: Account
    gateway: ProviderGateway
    credential: Credential


class CredentialResolver:
    def __init__(self, account_store: AccountStore, gateways: dict[str, ProviderGateway]):
        self.account_store = account_store
        self.gateways = gateways

    async def get_account(self, account_id: str) -> Account:
        account = await self.account_store.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Account '{account_id}' not found")
        return account

    def gateway_for(self, account: Account) -> ProviderGateway:
        gateway = self.gateways.get(account.provider)
        if gateway is None:
            raise AuthenticationError(
                f"No gateway configured for provider '{account.provider}'",
                provider=account.provider,
            )
        return gateway

    async def resolve(self, account_id: str) -> ResolvedAccount:
        """
        Raises:
            NotFoundError: Unknown account
            AuthenticationError: Credentials missing or rejected by the provider
        """
        account = await self.get_account(account_id)
        gateway = self.gateway_for(account)
        credential = await gateway.resolve_credentials(account)
        return ResolvedAccount(account=account, gateway=gateway, credential=credential)
