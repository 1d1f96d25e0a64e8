"""AI Agents package."""

from smartcash.agents.insights import (
    InsightAgent,
    PLACEHOLDER_INSIGHT,
    build_transactions_context,
    format_transaction_line,
    parse_insights,
)

__all__ = [
    "InsightAgent",
    "PLACEHOLDER_INSIGHT",
    "build_transactions_context",
    "format_transaction_line",
    "parse_insights",
]
