"""Aggregation and grouping of transaction lists."""

from smartcash.analytics.aggregation import (
    ANONYMOUS_USER,
    calculate_stats,
    daily_flow,
    rank_user_summaries,
    sorted_breakdown,
    summarize_users,
)
from smartcash.analytics.grouping import (
    TYPE_FILTERS,
    filter_transactions,
    format_date_label,
    group_by_date,
    sort_by_date_desc,
)

__all__ = [
    "ANONYMOUS_USER",
    "TYPE_FILTERS",
    "calculate_stats",
    "daily_flow",
    "filter_transactions",
    "format_date_label",
    "group_by_date",
    "rank_user_summaries",
    "sort_by_date_desc",
    "sorted_breakdown",
    "summarize_users",
]
