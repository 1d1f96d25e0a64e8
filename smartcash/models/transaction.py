"""
Core Data Models for SmartCash

These models define the schemas for everything that flows between the
storage adapters, the analytics functions and the UI.

DESIGN DECISION: Transactions are never updated in place. They are created
(through the entry form or demo seed) and deleted by id. That is why there is
no "update" model here.

The rule "income is always filed under Renda" belongs to the entry form, not
to these models. Records coming back from storage are accepted as they are,
even when category and type disagree.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """Fixed set of transaction categories."""
    FOOD = "Alimentação"
    HOUSING = "Moradia"
    TRANSPORT = "Transporte"
    LEISURE = "Lazer"
    HEALTH = "Saúde"
    EDUCATION = "Educação"
    OTHER = "Outros"
    INCOME = "Renda"


# What the entry form offers for expenses
EXPENSE_CATEGORIES: list[Category] = [
    category for category in Category if category is not Category.INCOME
]


class TransactionType(str, Enum):
    """Controls the sign of a transaction in every aggregation."""
    INCOME = "income"
    EXPENSE = "expense"


class InsightSeverity(str, Enum):
    """Severity attached to an AI insight."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def normalize_tags(tags: Optional[list[str]]) -> list[str]:
    """Strip tags, drop blanks and suppress duplicates (first one wins)."""
    normalized: list[str] = []
    for tag in tags or []:
        cleaned = str(tag).strip()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

# Longest text accepted per field
MAX_LENGTHS: dict[str, int] = {
    "description": 200,
    "notes": 1000,
    "location": 200,
    "payment_method": 100,
}


class NewTransaction(BaseModel):
    """
    A transaction that has not been stored yet.

    This is the payload handed to a storage adapter's insert. The adapter
    returns a full Transaction carrying the id it (or the server) assigned.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=MAX_LENGTHS["description"],
        description="Free-text label"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount, rendered as Brazilian Real"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date the transaction is attributed to"
    )
    category: Category
    type: TransactionType

    # Optional extra fields
    notes: Optional[str] = Field(default=None, max_length=MAX_LENGTHS["notes"])
    location: Optional[str] = Field(default=None, max_length=MAX_LENGTHS["location"])
    payment_method: Optional[str] = Field(default=None, max_length=MAX_LENGTHS["payment_method"])
    tags: list[str] = Field(default_factory=list)

    # Ownership, populated from the active session
    user_id: Optional[str] = None
    user_email: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def dedupe_tags(cls, v: Optional[list[str]]) -> list[str]:
        """Storage may hand back NULL for an empty tag list."""
        return normalize_tags(v)

    @field_validator("notes", "location", "payment_method", "user_id", "user_email", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the transaction type."""
        return self.amount if self.is_income else -self.amount


class Transaction(NewTransaction):
    """
    A stored transaction - the sole domain entity.

    The id is either a client-generated token (local fallback) or the
    server-assigned row id (remote storage).
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique transaction ID"
    )
    created_at: Optional[dt.datetime] = Field(
        default=None,
        description="Server-side creation timestamp, when available"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v) -> str:
        # Remote rows may use integer or UUID primary keys
        return str(v) if v is not None else v


# =============================================================================
# DERIVED MODELS (ephemeral, never persisted)
# =============================================================================

class AIInsight(BaseModel):
    """A structured, AI-generated recommendation."""

    title: str
    description: str
    recommendation: str
    severity: InsightSeverity


class CategoryTotal(BaseModel):
    """Expense total for one category."""

    name: str
    value: Decimal


class FinancialStats(BaseModel):
    """Summary card figures for a list of transactions."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_balance: Decimal = Decimal("0")
    category_breakdown: list[CategoryTotal] = Field(default_factory=list)

    # Only filled in admin mode
    user_count: Optional[int] = None


class UserSummary(BaseModel):
    """Per-user spending summary for the admin view."""

    email: str
    total_spent: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)
    last_activity: dt.date


class DayGroup(BaseModel):
    """All transactions of one calendar date, with the day's net total."""

    date: dt.date
    transactions: list[Transaction] = Field(default_factory=list)
    daily_total: Decimal = Decimal("0")


class DailyFlow(BaseModel):
    """Income and expense totals of one date, used by the flow chart."""

    date: dt.date
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


# =============================================================================
# ENTRY FORM
# =============================================================================

class TransactionForm(BaseModel):
    """
    Raw input from the add-transaction form.

    Nothing here is trusted yet. The amount is kept as typed by the user
    (e.g. "R$ 1.234,56") and parsed by the validator.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = ""
    amount: Union[str, int, float, Decimal, None] = None
    date: dt.date = Field(default_factory=dt.date.today)
    category: Category = Category.OTHER
    type: TransactionType = TransactionType.EXPENSE
    notes: Optional[str] = None
    location: Optional[str] = None
    payment_method: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


# =============================================================================
# DEMO DATA
# =============================================================================

DEMO_TRANSACTIONS: list[dict] = [
    {"id": "1", "description": "Salário Mensal", "amount": "5000", "date": "2024-05-05", "category": "Renda", "type": "income"},
    {"id": "2", "description": "Aluguel", "amount": "1500", "date": "2024-05-10", "category": "Moradia", "type": "expense"},
    {"id": "3", "description": "Supermercado", "amount": "450.50", "date": "2024-05-12", "category": "Alimentação", "type": "expense"},
    {"id": "4", "description": "Combustível", "amount": "200", "date": "2024-05-15", "category": "Transporte", "type": "expense"},
    {"id": "5", "description": "Restaurante Japa", "amount": "120", "date": "2024-05-18", "category": "Lazer", "type": "expense"},
]


def demo_transactions() -> list[Transaction]:
    """Seed data for demo mode, newest first."""
    seeded = [Transaction(**row) for row in DEMO_TRANSACTIONS]
    return sorted(seeded, key=lambda t: t.date, reverse=True)
