"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for transaction storage.
This allows us to:
1. Run against Supabase when it is configured
2. Fall back to local storage for offline/demo mode
3. Use in-memory fakes for testing
4. Keep the dashboard flow decoupled from either backend

The interface is intentionally tiny - transactions are only ever listed,
inserted and deleted. There is no update.
"""

from abc import ABC, abstractmethod
from typing import Optional

from smartcash.models.transaction import NewTransaction, Transaction


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation (Supabase, local file, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_transactions(
        self,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> list[Transaction]:
        """
        List transactions, newest first.

        Args:
            user_id: Only return rows owned by this user id (remote storage)
            user_email: Only return rows attributed to this email (local storage)

        Passing neither returns every user's records (admin/demo reads).

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def insert_transaction(self, transaction: NewTransaction) -> Transaction:
        """
        Store a new transaction.

        Args:
            transaction: The record to store (without id)

        Returns:
            The stored Transaction, including its assigned id

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Args:
            transaction_id: The transaction's identifier

        Returns:
            True if a row was deleted, False if nothing matched

        Raises:
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
