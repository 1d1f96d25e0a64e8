"""
Data Models Package

This package contains all Pydantic models used in SmartCash.
All data flowing through the system must conform to these schemas.
"""

from smartcash.models.transaction import (
    AIInsight,
    Category,
    CategoryTotal,
    DailyFlow,
    DayGroup,
    DEMO_TRANSACTIONS,
    EXPENSE_CATEGORIES,
    FinancialStats,
    InsightSeverity,
    MAX_LENGTHS,
    NewTransaction,
    Transaction,
    TransactionForm,
    TransactionType,
    UserSummary,
    demo_transactions,
    normalize_tags,
)
from smartcash.models.session import (
    Authenticated,
    Guest,
    Session,
    Unauthenticated,
)
from smartcash.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Transaction models
    "AIInsight",
    "Category",
    "CategoryTotal",
    "DailyFlow",
    "DayGroup",
    "DEMO_TRANSACTIONS",
    "EXPENSE_CATEGORIES",
    "FinancialStats",
    "InsightSeverity",
    "MAX_LENGTHS",
    "NewTransaction",
    "Transaction",
    "TransactionForm",
    "TransactionType",
    "UserSummary",
    "demo_transactions",
    "normalize_tags",
    # Session models
    "Authenticated",
    "Guest",
    "Session",
    "Unauthenticated",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
