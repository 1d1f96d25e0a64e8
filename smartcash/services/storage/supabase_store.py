"""
Supabase Storage Implementation

DESIGN DECISION: Supabase gives us Postgres tables behind a REST API plus
hosted auth, so there is no server code of our own to run.

The `transactions` table holds one row per transaction with the columns of
the Transaction model plus the ownership columns (user_id, user_email).

TRADEOFFS:
- Per-user scoping on reads is a query filter we add, not a row-level
  policy we rely on. Admin reads simply leave the filter out.
- Deletes are attempt-once. If one fails, the caller decides what to do
  with the list it already shows.
"""

from typing import Optional

import structlog
from pydantic import ValidationError
from supabase import Client, create_client
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from smartcash.config import SupabaseSettings, get_settings
from smartcash.models.transaction import NewTransaction, Transaction
from smartcash.services.storage.interface import (
    ConnectionError,
    StorageError,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)


def _error_message(error: Exception) -> str:
    """Provider message if there is one, otherwise the exception text."""
    message = getattr(error, "message", None)
    return str(message) if message else str(error)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Creates the client lazily and hands out table builders and the auth API.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        client: Optional[Client] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._client = client

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    def connect(self) -> Client:
        """Create the Supabase client on first use."""
        if self._client is None:
            try:
                self._client = create_client(
                    self._settings.url,
                    self._settings.anon_key,
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}")
        return self._client

    def transactions_table(self):
        """Query builder for the transactions table."""
        return self.connect().table(self._settings.table_name)

    @property
    def auth(self):
        return self.connect().auth


class SupabaseTransactionStorage(TransactionStorageInterface):
    """
    Supabase implementation of transaction storage.

    The server orders rows and assigns ids; the row it returns on insert is
    the source of truth for the new record.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    def _transaction_to_row(self, transaction: NewTransaction) -> dict:
        """Convert a NewTransaction to an insert payload."""
        return {
            "description": transaction.description,
            "amount": float(transaction.amount),
            "date": transaction.date.isoformat(),
            "category": transaction.category.value,
            "type": transaction.type.value,
            "notes": transaction.notes or None,
            "location": transaction.location or None,
            "payment_method": transaction.payment_method or None,
            "tags": transaction.tags or None,
            "user_id": transaction.user_id,
            "user_email": transaction.user_email,
        }

    def _row_to_transaction(self, row: dict) -> Transaction:
        """Convert a table row to a Transaction."""
        return Transaction.model_validate(row)

    async def list_transactions(
        self,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> list[Transaction]:
        """Select rows ordered by date descending, optionally for one owner."""
        attempts = self._client.settings.read_attempts

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_exponential(multiplier=1, min=1, max=5),
                reraise=True,
            ):
                with attempt:
                    query = self._client.transactions_table().select("*")
                    if user_id:
                        query = query.eq("user_id", user_id)
                    response = query.order("date", desc=True).execute()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(_error_message(e))

        transactions = []
        for row in response.data or []:
            try:
                transactions.append(self._row_to_transaction(row))
            except ValidationError:
                logger.warning("supabase_skipped_row", row_id=row.get("id"))
                continue  # Skip malformed rows
        return transactions

    async def insert_transaction(self, transaction: NewTransaction) -> Transaction:
        """Insert one row and return the row the server stored."""
        try:
            response = (
                self._client.transactions_table()
                .insert(self._transaction_to_row(transaction))
                .execute()
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(_error_message(e))

        if not response.data:
            raise StorageError("Insert returned no row")

        try:
            return self._row_to_transaction(response.data[0])
        except ValidationError as e:
            raise StorageError(f"Server returned an invalid row: {e}")

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete by id."""
        try:
            response = (
                self._client.transactions_table()
                .delete()
                .eq("id", transaction_id)
                .execute()
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(_error_message(e))

        return bool(response.data)
