"""
Tests for the JSON-file account store and credential resolution.
"""

import json

import pytest

from app.jobs.exceptions import NotFoundError
from app.services.account_store import AccountStore, AccountStoreError
from app.services.credentials import CredentialResolver
from app.services.providers.base import AuthenticationError


@pytest.mark.asyncio
async def test_missing_file_means_no_accounts(tmp_path):
    store = AccountStore(tmp_path / "accounts.json")

    assert await store.list_accounts() == []
    assert await store.get_account("acc_1") is None


@pytest.mark.asyncio
async def test_lists_accounts_from_file(account_store):
    accounts = await account_store.list_accounts()

    assert [a.id for a in accounts] == ["acc_1", "acc_2", "acc_pulse"]
    assert accounts[2].provider == "sendpulse"
    assert accounts[2].client_secret == "secret"


@pytest.mark.asyncio
async def test_create_assigns_id_and_persists(account_store, accounts_file):
    account = await account_store.create_account(
        {"name": "New", "provider": "getresponse", "api_key": "gr-key"}
    )

    assert account.id.startswith("acc_")
    stored = json.loads(accounts_file.read_text())
    assert stored[-1]["id"] == account.id
    assert stored[-1]["api_key"] == "gr-key"


@pytest.mark.asyncio
async def test_create_twice_gives_distinct_ids(tmp_path):
    store = AccountStore(tmp_path / "accounts.json")

    first = await store.create_account({"name": "One"})
    second = await store.create_account({"name": "Two"})

    assert first.id != second.id
    assert first.provider == "sendx"


@pytest.mark.asyncio
async def test_update_merges_non_null_fields(account_store):
    updated = await account_store.update_account("acc_1", {"name": "Renamed", "api_key": None})

    assert updated.name == "Renamed"
    assert updated.api_key == "key-1"
    assert (await account_store.get_account("acc_1")).name == "Renamed"


@pytest.mark.asyncio
async def test_update_unknown_account(account_store):
    assert await account_store.update_account("acc_missing", {"name": "x"}) is None


@pytest.mark.asyncio
async def test_delete_account(account_store):
    assert await account_store.delete_account("acc_2") is True
    assert await account_store.delete_account("acc_2") is False
    assert [a.id for a in await account_store.list_accounts()] == ["acc_1", "acc_pulse"]


@pytest.mark.asyncio
async def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "accounts.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(AccountStoreError):
        await AccountStore(path).list_accounts()


@pytest.mark.asyncio
async def test_non_list_file_raises(tmp_path):
    path = tmp_path / "accounts.json"
    path.write_text('{"id": "acc_1"}', encoding="utf-8")

    with pytest.raises(AccountStoreError):
        await AccountStore(path).list_accounts()


@pytest.mark.asyncio
async def test_record_missing_name_raises_store_error(tmp_path):
    path = tmp_path / "accounts.json"
    path.write_text(json.dumps([{"id": "acc_1", "provider": "sendx"}]), encoding="utf-8")

    with pytest.raises(AccountStoreError) as exc:
        await AccountStore(path).list_accounts()

    assert exc.value.path == str(path)


@pytest.mark.asyncio
async def test_resolver_returns_gateway_and_credential(resolver, fake_gateway):
    resolved = await resolver.resolve("acc_1")

    assert resolved.account.id == "acc_1"
    assert resolved.gateway is fake_gateway
    assert resolved.credential.account_id == "acc_1"


@pytest.mark.asyncio
async def test_resolver_unknown_account(resolver):
    with pytest.raises(NotFoundError):
        await resolver.resolve("acc_missing")


@pytest.mark.asyncio
async def test_resolver_without_gateway_for_provider(account_store):
    resolver = CredentialResolver(account_store, {})

    with pytest.raises(AuthenticationError):
        await resolver.resolve("acc_1")
