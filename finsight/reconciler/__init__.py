"""AI response reconciliation package."""

from finsight.reconciler.extraction import (
    MalformedResponseError,
    extract_json,
    find_balanced_json,
)
from finsight.reconciler.reconciler import (
    FALLBACK_ADVICE,
    fallback_forecast,
    match_category,
    reconcile_forecast,
    reconcile_forecast_text,
    reconcile_transaction,
    reconcile_transaction_text,
)

__all__ = [
    "FALLBACK_ADVICE",
    "MalformedResponseError",
    "extract_json",
    "fallback_forecast",
    "find_balanced_json",
    "match_category",
    "reconcile_forecast",
    "reconcile_forecast_text",
    "reconcile_transaction",
    "reconcile_transaction_text",
]
