"""
Aggregation of a transaction list into dashboard figures.

Everything here is a pure, synchronous fold over an in-memory list.
Callers recompute whenever the list changes; nothing is cached.

The type of a transaction decides where its amount goes. The category is
only used to break expenses down, so an income filed under an expense
category (a user error the storage layer keeps as submitted) still counts
as income and never shows up in the breakdown.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Iterable, Optional

from smartcash.models.transaction import (
    CategoryTotal,
    DailyFlow,
    FinancialStats,
    Transaction,
    TransactionType,
    UserSummary,
)


ANONYMOUS_USER = "anonymous"

ZERO = Decimal("0")


def user_key(transaction: Transaction) -> str:
    """Email used to attribute a transaction, with the anonymous sentinel."""
    email = (transaction.user_email or "").strip()
    return email or ANONYMOUS_USER


def calculate_stats(
    transactions: Iterable[Transaction],
    admin_mode: bool = False,
) -> FinancialStats:
    """
    Reduce a list of transactions into totals and a category breakdown.

    Args:
        transactions: Unfiltered list of transactions
        admin_mode: Also count distinct users

    Returns:
        FinancialStats; an empty input yields zeros and an empty breakdown
    """
    total_income = ZERO
    total_expenses = ZERO
    breakdown: "OrderedDict[str, Decimal]" = OrderedDict()
    users: set[str] = set()

    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            total_income += transaction.amount
        elif transaction.type == TransactionType.EXPENSE:
            total_expenses += transaction.amount
            name = transaction.category.value
            breakdown[name] = breakdown.get(name, ZERO) + transaction.amount

        if admin_mode:
            users.add(user_key(transaction))

    return FinancialStats(
        total_income=total_income,
        total_expenses=total_expenses,
        total_balance=total_income - total_expenses,
        category_breakdown=[
            CategoryTotal(name=name, value=value)
            for name, value in breakdown.items()
        ],
        user_count=len(users) if admin_mode else None,
    )


def sorted_breakdown(stats: FinancialStats) -> list[CategoryTotal]:
    """Category breakdown ordered for chart legends (largest first)."""
    return sorted(stats.category_breakdown, key=lambda item: item.value, reverse=True)


def summarize_users(transactions: Iterable[Transaction]) -> list[UserSummary]:
    """
    Build the admin per-user summary.

    total_spent and transaction_count only look at expenses; last_activity is
    the latest date seen for the user across all of their transactions.
    Output follows first-seen order.
    """
    summaries: "OrderedDict[str, UserSummary]" = OrderedDict()

    for transaction in transactions:
        key = user_key(transaction)
        summary = summaries.get(key)
        if summary is None:
            summary = UserSummary(email=key, last_activity=transaction.date)
            summaries[key] = summary
        elif transaction.date > summary.last_activity:
            summary.last_activity = transaction.date

        if transaction.type == TransactionType.EXPENSE:
            summary.total_spent += transaction.amount
            summary.transaction_count += 1

    return list(summaries.values())


def rank_user_summaries(summaries: list[UserSummary]) -> list[UserSummary]:
    """Order user summaries by total spent, highest first."""
    return sorted(summaries, key=lambda s: s.total_spent, reverse=True)


def daily_flow(
    transactions: Iterable[Transaction],
    days: Optional[int] = 7,
) -> list[DailyFlow]:
    """
    Income and expense per date, oldest first.

    Only dates with activity appear. When days is set, the last `days`
    active dates are kept.
    """
    flows: dict = {}
    for transaction in transactions:
        flow = flows.get(transaction.date)
        if flow is None:
            flow = DailyFlow(date=transaction.date)
            flows[transaction.date] = flow
        if transaction.type == TransactionType.INCOME:
            flow.income += transaction.amount
        else:
            flow.expense += transaction.amount

    ordered = sorted(flows.values(), key=lambda f: f.date)
    if days is not None:
        ordered = ordered[-days:] if days > 0 else []
    return ordered
