import asyncio
import json

import pytest

from app.models.domain.account_domain import Account, Credential
from app.models.domain.job_domain import Contact
from app.services.account_store import AccountStore
from app.services.credentials import CredentialResolver
from app.services.providers.base import AuthenticationError, ProviderError

ACCOUNTS = [
    {"id": "acc_1", "name": "Main SendX", "provider": "sendx", "api_key": "key-1"},
    {"id": "acc_2", "name": "Second SendX", "provider": "sendx", "api_key": "key-2"},
    {
        "id": "acc_pulse",
        "name": "Pulse",
        "provider": "sendpulse",
        "client_id": "cid",
        "client_secret": "secret",
    },
]


class FakeGateway:
    """In-memory stand-in for a provider gateway."""

    provider = "sendx"

    def __init__(self):
        self.sent: list[Contact] = []
        self.fail_calls: set[int] = set()
        self.raise_unexpected_on: set[int] = set()
        self.auth_error: str | None = None
        # When set, send_contact blocks until the event is set
        self.gate: asyncio.Event | None = None
        self.in_flight = 0
        self.on_send = None

        self.subscribers: list[str] = []
        self.reported_total: int | None = None
        self.page_calls: list[tuple[int, int]] = []
        self.deleted: list[set[str]] = []
        self.count_calls = 0
        self.delete_error: str | None = None
        self.on_page = None
        self.connection_error: str | None = None

        self.senders: list[dict] = []
        self.templates: dict[str, dict] = {"tpl-1": {"name": "Welcome", "html": "<p>Hi</p>"}}
        self.action_filters: list[str] = []

    async def resolve_credentials(self, account: Account) -> Credential:
        if self.auth_error:
            raise AuthenticationError(self.auth_error, provider=self.provider)
        return Credential(account_id=account.id, provider=account.provider, headers={})

    async def send_contact(self, credential, contact, list_id):
        self.sent.append(contact)
        call_number = len(self.sent)
        if self.on_send is not None:
            self.on_send(call_number)
        if self.gate is not None:
            self.in_flight += 1
            await self.gate.wait()
            self.in_flight -= 1
        if call_number in self.raise_unexpected_on:
            raise RuntimeError("connection reset")
        if call_number in self.fail_calls:
            raise ProviderError(
                "rejected",
                provider=self.provider,
                status_code=400,
                response_data={"message": "rejected", "email": contact.email},
            )
        return {"id": f"contact-{call_number}", "email": contact.email, "list": list_id}

    async def get_subscriber_count(self, credential, list_id):
        self.count_calls += 1
        if self.reported_total is not None:
            return self.reported_total
        return len(self.subscribers)

    async def list_subscriber_page(self, credential, list_id, limit, offset):
        self.page_calls.append((limit, offset))
        if self.on_page is not None:
            self.on_page()
        return self.subscribers[offset : offset + limit]

    async def delete_subscribers(self, credential, list_id, addresses):
        if self.delete_error:
            raise ProviderError(self.delete_error, provider=self.provider, status_code=500)
        self.deleted.append(set(addresses))
        return {"result": True}

    async def list_lists(self, credential):
        return [{"id": "list-1", "name": "Newsletter"}]

    async def check_connection(self, credential):
        if self.connection_error:
            raise ProviderError(
                self.connection_error, provider=self.provider, status_code=401,
                response_data={"message": self.connection_error},
            )
        return {"senders": []}

    async def list_senders(self, credential):
        return list(self.senders)

    async def add_sender(self, credential, email, name):
        self.senders.append({"email": email, "name": name})
        return {"result": True}

    async def delete_sender(self, credential, email):
        self.senders = [s for s in self.senders if s["email"] != email]
        return {"result": True}

    async def list_templates(self, credential):
        return [{"id": tid, "name": t["name"]} for tid, t in self.templates.items()]

    async def get_template(self, credential, template_id):
        if template_id not in self.templates:
            raise ProviderError("Template not found", provider=self.provider, status_code=404)
        return {"id": template_id, **self.templates[template_id]}

    async def update_template(self, credential, template_id, html, lang="en"):
        self.templates[template_id]["html"] = html
        return {"result": True}

    async def list_automations(self, credential):
        return [{"id": 7, "name": "Welcome", "status": 1}]

    async def get_automation_statistics(self, credential, automation_id):
        return {"started": 10, "finished": 8, "sent": 10, "opened": 4, "automation": automation_id}

    async def list_action_subscribers(self, credential, automation_id, filter_type):
        self.action_filters.append(filter_type)
        return [{"email": "a@x.com"}]


async def _wait_until(predicate, timeout: float = 2.0):
    """Yield to the event loop until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def accounts_file(tmp_path):
    path = tmp_path / "accounts.json"
    path.write_text(json.dumps(ACCOUNTS), encoding="utf-8")
    return path


@pytest.fixture
def account_store(accounts_file):
    return AccountStore(accounts_file)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def resolver(account_store, fake_gateway):
    return CredentialResolver(
        account_store, {"sendx": fake_gateway, "sendpulse": fake_gateway}
    )


@pytest.fixture
def wait_until():
    return _wait_until
