"""
Account Store for provider credentials.
Keeps accounts in a local JSON file (a list of records) next to the server.

Usage:
    store = AccountStore(settings.accounts_path())
    account = await store.create_account({"name": "Main", "provider": "sendx", "api_key": "..."})
"""

import asyncio
import json
import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from app.infrastructure.observability.logging import get_logger
from app.models.domain.account_domain import Account

logger = get_logger(__name__)


class AccountStoreError(Exception):
    """Custom exception for account storage failures."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class AccountStore:
    """
    JSON-file backed CRUD for accounts.

    All reads and writes go through one lock so concurrent requests never
    interleave a read-modify-write cycle.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read_records(self) -> list[dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise AccountStoreError(f"Accounts file is not valid JSON: {e}", str(self.path)) from e
        if not isinstance(data, list):
            raise AccountStoreError("Accounts file must contain a JSON list", str(self.path))
        return data

    def _write_records(self, records: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    async def _load(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._read_records)

    async def _save(self, records: list[dict[str, Any]]) -> None:
        await asyncio.to_thread(self._write_records, records)

    async def list_accounts(self) -> list[Account]:
        async with self._lock:
            records = await self._load()
        try:
            return [Account.model_validate(record) for record in records]
        except ValidationError as e:
            raise AccountStoreError(
                f"Accounts file holds an invalid record: {e.error_count()} error(s)", str(self.path)
            ) from e

    async def get_account(self, account_id: str) -> Account | None:
        for account in await self.list_accounts():
            if account.id == account_id:
                return account
        return None

    async def create_account(self, data: dict[str, Any]) -> Account:
        async with self._lock:
            records = await self._load()
            existing_ids = {record.get("id") for record in records}

            account_id = f"acc_{int(time.time() * 1000)}"
            suffix = 1
            while account_id in existing_ids:
                account_id = f"acc_{int(time.time() * 1000)}_{suffix}"
                suffix += 1

            account = Account.model_validate({**data, "id": account_id})
            records.append(account.model_dump())
            await self._save(records)

        logger.info("Account created", account_id=account.id, provider=account.provider)
        return account

    async def update_account(self, account_id: str, data: dict[str, Any]) -> Account | None:
        """Merge non-null fields into an existing account. Returns None if unknown."""
        async with self._lock:
            records = await self._load()
            for position, record in enumerate(records):
                if record.get("id") != account_id:
                    continue
                changes = {key: value for key, value in data.items() if value is not None}
                account = Account.model_validate({**record, **changes, "id": account_id})
                records[position] = account.model_dump()
                await self._save(records)
                logger.info("Account updated", account_id=account_id, fields=sorted(changes))
                return account
        return None

    async def delete_account(self, account_id: str) -> bool:
        async with self._lock:
            records = await self._load()
            remaining = [record for record in records if record.get("id") != account_id]
            if len(remaining) == len(records):
                return False
            await self._save(remaining)

        logger.info("Account deleted", account_id=account_id)
        return True
