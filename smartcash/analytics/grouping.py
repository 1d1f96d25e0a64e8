"""
Filtering and per-day grouping for the transaction history.

The history view consumes the filtered list; the summary cards consume the
unfiltered one. Both read the same source list, so nothing in here may
mutate its input.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Literal, Optional

from smartcash.models.transaction import DayGroup, Transaction, TransactionType


TypeFilter = Literal["all", "income", "expense"]

TYPE_FILTERS: tuple[str, ...] = ("all", "income", "expense")


def matches_search(
    transaction: Transaction,
    search: str,
    admin_mode: bool = False,
) -> bool:
    """Case-insensitive substring match on description, category and (admin) email."""
    term = search.strip().lower()
    if not term:
        return True

    haystack = [transaction.description, transaction.category.value]
    if admin_mode and transaction.user_email:
        haystack.append(transaction.user_email)

    return any(term in value.lower() for value in haystack)


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    type_filter: TypeFilter = "all",
    admin_mode: bool = False,
) -> list[Transaction]:
    """Apply the search box and the type toggle. Order is preserved."""
    if type_filter not in TYPE_FILTERS:
        raise ValueError(f"Unknown type filter: {type_filter}")

    wanted: Optional[TransactionType] = (
        None if type_filter == "all" else TransactionType(type_filter)
    )

    return [
        t for t in transactions
        if (wanted is None or t.type == wanted)
        and matches_search(t, search, admin_mode)
    ]


def sort_by_date_desc(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first. Same-date items keep their source order (stable sort)."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def group_by_date(transactions: Iterable[Transaction]) -> list[DayGroup]:
    """
    Partition transactions by date for chronological display.

    Each group carries its transactions and the day's net total
    (income minus expenses). Groups are ordered newest first.
    """
    groups: dict[date, DayGroup] = {}

    for transaction in sort_by_date_desc(transactions):
        group = groups.get(transaction.date)
        if group is None:
            group = DayGroup(date=transaction.date, daily_total=Decimal("0"))
            groups[transaction.date] = group
        group.transactions.append(transaction)
        group.daily_total += transaction.signed_amount

    return sorted(groups.values(), key=lambda g: g.date, reverse=True)


def format_date_label(day: date, today: Optional[date] = None) -> str:
    """
    Heading shown above a day group.

    This is presentation only - grouping and sorting always use the date.
    """
    today = today or date.today()

    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return day.strftime("%d %B %Y")
