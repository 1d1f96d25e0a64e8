"""Shared fixtures for SmartCash tests."""

from datetime import date
from decimal import Decimal

import pytest

from smartcash.models.transaction import Category, Transaction, TransactionType


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""
    counter = {"next": 0}

    def _make(**overrides) -> Transaction:
        counter["next"] += 1
        fields = {
            "id": str(counter["next"]),
            "description": f"Transaction {counter['next']}",
            "amount": Decimal("100"),
            "date": date(2024, 5, 10),
            "category": Category.OTHER,
            "type": TransactionType.EXPENSE,
        }
        fields.update(overrides)
        return Transaction(**fields)

    return _make
