"""
Provider gateway base class.

Every email-marketing provider is reached through a ProviderGateway. The
jobs only depend on this interface, so providers are interchangeable
strategies. Operations a provider's API does not offer raise ProviderError
like any other provider failure.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from app.infrastructure.observability.logging import get_logger
from app.models.domain.account_domain import Account, Credential
from app.models.domain.job_domain import Contact

logger = get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds


class ProviderError(Exception):
    """Custom exception for provider API errors."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        response_data: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.response_data = response_data

    def to_payload(self) -> Any:
        """Error body recorded in job results."""
        if self.response_data:
            return self.response_data
        payload = {"message": self.message}
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload


class AuthenticationError(ProviderError):
    """Credentials for an account could not be resolved."""


class ProviderGateway(ABC):
    """
    Async HTTP client for one provider.

    Subclasses implement credential resolution and the provider-specific
    request shapes; request execution and error mapping live here.
    """

    provider: str = ""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Capabilities used by the jobs
    # ------------------------------------------------------------------

    @abstractmethod
    async def resolve_credentials(self, account: Account) -> Credential:
        """Return a usable credential or raise AuthenticationError."""

    @abstractmethod
    async def send_contact(self, credential: Credential, contact: Contact, list_id: str) -> Any:
        """Add one contact to a list; returns the provider response body."""

    async def get_subscriber_count(self, credential: Credential, list_id: str) -> int:
        raise self._unsupported("get_subscriber_count")

    async def list_subscriber_page(
        self, credential: Credential, list_id: str, limit: int, offset: int
    ) -> list[str]:
        raise self._unsupported("list_subscriber_page")

    async def delete_subscribers(
        self, credential: Credential, list_id: str, addresses: set[str] | list[str]
    ) -> Any:
        raise self._unsupported("delete_subscribers")

    # ------------------------------------------------------------------
    # Capabilities used by the account screens
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_lists(self, credential: Credential) -> list[dict]:
        """Lists / address books / campaigns of the account."""

    @abstractmethod
    async def check_connection(self, credential: Credential) -> Any:
        """Cheap authenticated call proving the credential works."""

    # Senders ("from" addresses)

    async def list_senders(self, credential: Credential) -> list[dict]:
        raise self._unsupported("list_senders")

    async def add_sender(self, credential: Credential, email: str, name: str) -> Any:
        raise self._unsupported("add_sender")

    async def delete_sender(self, credential: Credential, email: str) -> Any:
        raise self._unsupported("delete_sender")

    # Email templates

    async def list_templates(self, credential: Credential) -> list[dict]:
        raise self._unsupported("list_templates")

    async def get_template(self, credential: Credential, template_id: str) -> Any:
        raise self._unsupported("get_template")

    async def update_template(
        self, credential: Credential, template_id: str, html: str, lang: str = "en"
    ) -> Any:
        raise self._unsupported("update_template")

    # Automations

    async def list_automations(self, credential: Credential) -> list[dict]:
        raise self._unsupported("list_automations")

    async def get_automation_statistics(self, credential: Credential, automation_id: str) -> Any:
        raise self._unsupported("get_automation_statistics")

    async def list_action_subscribers(
        self, credential: Credential, automation_id: str, filter_type: str
    ) -> list[dict]:
        raise self._unsupported("list_action_subscribers")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _unsupported(self, operation: str) -> ProviderError:
        return ProviderError(
            f"{operation} is not supported by {self.provider}",
            provider=self.provider,
        )

    def _require(self, account: Account) -> None:
        """Raise AuthenticationError when required secrets are missing."""
        missing = account.missing_credentials()
        if missing:
            raise AuthenticationError(
                f"Account '{account.name}' is missing credentials: {', '.join(missing)}",
                provider=self.provider,
            )

    async def _auth_headers(self, credential: Credential) -> dict[str, str]:
        return credential.headers

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        credential: Credential | None = None,
        headers: dict[str, str] | None = None,
        params: dict | None = None,
        json: Any = None,
    ) -> Any:
        """
        Perform a request and return the parsed body.

        Raises:
            ProviderError: On transport errors and non-2xx responses
        """
        request_headers = dict(headers or {})
        if credential is not None:
            request_headers.update(await self._auth_headers(credential))

        try:
            response = await self._client.request(
                method, path, headers=request_headers, params=params, json=json
            )
        except httpx.RequestError as e:
            logger.warning(
                "Provider request error",
                provider=self.provider,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ProviderError(
                f"{self.provider} {operation} request failed: {e}",
                provider=self.provider,
            ) from e

        return self._handle_api_response(response, operation)

    def _handle_api_response(self, response: httpx.Response, operation: str) -> Any:
        """
        Handle and validate a provider API response.

        Args:
            response: HTTP response from the provider
            operation: Operation name for logging

        Returns:
            Parsed JSON body, or {"status_code": ...} for an empty success body

        Raises:
            ProviderError: If response contains errors
        """
        logger.debug(
            "Provider API response",
            provider=self.provider,
            operation=operation,
            status_code=response.status_code,
        )

        if response.is_success:
            if not response.content:
                return {"status_code": response.status_code}
            try:
                return response.json()
            except ValueError as e:
                raise ProviderError(
                    f"Invalid {self.provider} response format: {e}",
                    provider=self.provider,
                    status_code=response.status_code,
                ) from e

        try:
            error_data = response.json() if response.content else None
        except ValueError:
            error_data = {"body": response.text[:500]}

        message = _extract_error_message(error_data) or f"HTTP {response.status_code}"

        logger.warning(
            "Provider API call failed",
            provider=self.provider,
            operation=operation,
            status_code=response.status_code,
            error_message=message,
        )

        raise ProviderError(
            f"{self.provider} {operation} failed: {message}",
            provider=self.provider,
            status_code=response.status_code,
            response_data=error_data,
        )


def _extract_error_message(error_data: Any) -> str | None:
    """Pull a human-readable message out of the common provider error shapes."""
    if not isinstance(error_data, dict):
        return None
    for key in ("message", "error_description", "error", "codeDescription"):
        value = error_data.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"]
    return None
