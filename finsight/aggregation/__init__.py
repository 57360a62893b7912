"""Aggregation engine package."""

from finsight.aggregation.engine import (
    TrendSeries,
    compute_budget_progress,
    compute_category_breakdown,
    compute_totals,
    compute_trend,
    filter_transactions,
    summarize_budgets,
    top_budget_alerts,
)

__all__ = [
    "TrendSeries",
    "compute_budget_progress",
    "compute_category_breakdown",
    "compute_totals",
    "compute_trend",
    "filter_transactions",
    "summarize_budgets",
    "top_budget_alerts",
]
