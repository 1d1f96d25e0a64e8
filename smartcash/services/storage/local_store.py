"""
Local Storage Fallback

Used when Supabase is not configured (offline/demo mode).

DESIGN DECISION: The local store mimics browser local storage: a handful of
string slots, each holding one serialized value. The transaction slot holds
the complete list as JSON and is overwritten on every write.

TRADEOFFS:
- Last write wins, no merging, no conflict resolution
- No migrations or versioning of the stored format
- Fine for a single user on a single machine, which is all demo mode is
"""

import json
from pathlib import Path
from typing import Optional
from uuid import uuid4

import structlog
from pydantic import ValidationError

from smartcash.models.transaction import (
    NewTransaction,
    Transaction,
    demo_transactions,
)
from smartcash.services.storage.interface import (
    StorageError,
    TransactionStorageInterface,
)


TRANSACTIONS_KEY = "smartcash.transactions"
SESSION_KEY = "smartcash.session"

logger = structlog.get_logger(__name__)


class LocalKeyValueStore:
    """
    String slots persisted in a single JSON file.

    Handles reading and writing of the file; callers deal in strings only.
    """

    def __init__(self, path: str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read local storage: {e}")
        if not isinstance(data, dict):
            raise StorageError("Local storage file is not a key-value object")
        return data

    def _save(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(data, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            raise StorageError(f"Failed to write local storage: {e}")

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class LocalTransactionStorage(TransactionStorageInterface):
    """
    Local implementation of transaction storage.

    The whole list lives in one slot. Reads filter in memory by the
    current user's email when one is given.
    """

    def __init__(
        self,
        store: LocalKeyValueStore,
        seed_demo_data: bool = False,
    ):
        self._store = store
        self._seed_demo_data = seed_demo_data

    def _read_all(self) -> list[Transaction]:
        raw = self._store.get(TRANSACTIONS_KEY)

        if raw is None:
            if not self._seed_demo_data:
                return []
            seeded = demo_transactions()
            self._write_all(seeded)
            logger.info("local_storage_seeded", count=len(seeded))
            return seeded

        try:
            rows = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored transactions are not valid JSON: {e}")
        if not isinstance(rows, list):
            raise StorageError("Stored transactions are not a list")

        transactions = []
        for row in rows:
            try:
                transactions.append(Transaction.model_validate(row))
            except ValidationError:
                logger.warning("local_storage_skipped_row", row=row)
                continue  # Skip malformed rows
        return transactions

    def _write_all(self, transactions: list[Transaction]) -> None:
        payload = json.dumps(
            [t.model_dump(mode="json") for t in transactions],
            ensure_ascii=False,
        )
        self._store.set(TRANSACTIONS_KEY, payload)

    async def list_transactions(
        self,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> list[Transaction]:
        """List stored transactions, newest first."""
        transactions = self._read_all()

        if user_email:
            transactions = [t for t in transactions if t.user_email == user_email]

        # Sort by date descending (newest first)
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def insert_transaction(self, transaction: NewTransaction) -> Transaction:
        """Assign a client-side id and prepend to the stored list."""
        stored = Transaction(id=uuid4().hex, **transaction.model_dump())
        transactions = self._read_all()
        self._write_all([stored] + transactions)
        return stored

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Rewrite the stored list without the given id."""
        transactions = self._read_all()
        remaining = [t for t in transactions if t.id != transaction_id]

        if len(remaining) == len(transactions):
            return False

        self._write_all(remaining)
        return True
