"""
In-memory Transaction Store

The dashboard's only shared mutable state. It is owned by the DashboardFlow
and changed only through the methods below.

DESIGN DECISION: Every mutation builds a new list and swaps it in with a
single assignment. A snapshot taken before a mutation is never modified, so
readers cannot observe partial state. There are no locks: when two
operations race, the last one to finish wins.
"""

from typing import Iterable, Optional

from smartcash.models.transaction import Transaction


class TransactionStore:
    """Single-writer holder of the current transaction list."""

    def __init__(self, transactions: Optional[Iterable[Transaction]] = None):
        self._transactions: tuple[Transaction, ...] = tuple(transactions or ())

    def snapshot(self) -> list[Transaction]:
        """Current list, as a copy the caller may keep."""
        return list(self._transactions)

    def replace(self, transactions: Iterable[Transaction]) -> None:
        """Swap in a whole new list (e.g. after a fetch)."""
        self._transactions = tuple(transactions)

    def prepend(self, transaction: Transaction) -> None:
        """Put a newly created transaction at the top."""
        self._transactions = (transaction,) + self._transactions

    def remove(self, transaction_id: str) -> Optional[tuple[int, Transaction]]:
        """
        Drop a transaction by id.

        Returns:
            (index, transaction) of the removed item, or None when the id is
            unknown (the list is left untouched)
        """
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                self._transactions = (
                    self._transactions[:index] + self._transactions[index + 1:]
                )
                return index, transaction
        return None

    def restore(self, index: int, transaction: Transaction) -> None:
        """Put a removed transaction back at (or near) its old position."""
        index = max(0, min(index, len(self._transactions)))
        self._transactions = (
            self._transactions[:index] + (transaction,) + self._transactions[index:]
        )

    def __len__(self) -> int:
        return len(self._transactions)
