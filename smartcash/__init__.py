"""
SmartCash - Source Package

A personal-finance dashboard: log income and expenses, see totals and
charts, and ask an AI model for spending insights.

DESIGN PRINCIPLES:
1. Storage layer is swappable (Supabase or local fallback)
2. Aggregations are pure functions over plain lists
3. The AI never breaks the dashboard - failures become an empty result
4. Every action is logged with structured events
5. The admin gate is a convenience, not a security boundary
"""

__version__ = "1.0.0"
__author__ = "SmartCash Team"
