"""
AI Response Reconciler

Bridges unreliable AI output into the typed data model.

CRITICAL BOUNDARIES:
- Only fields that are present AND well-typed overwrite a draft field.
  A missing or wrong-typed field leaves the user's value untouched.
- Amounts are made positive before acceptance; a negative number from
  the model never reaches a draft.
- Categories must be an exact member of the closed set. No fuzzy matching.
- Nothing here mutates the transaction store. The caller decides whether
  to apply the result.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from finsight.models.transaction import (
    Category,
    DraftPatch,
    Forecast,
    RiskFactor,
    SearchSource,
    TransactionDraft,
    TransactionType,
)
from finsight.reconciler.extraction import MalformedResponseError, extract_json


FALLBACK_ADVICE = "Connect your bank or add more transactions for better AI forecasting."


def match_category(value: Any) -> Optional[Category]:
    """
    Single-token category matching.

    Trims surrounding whitespace and accepts the value only if it is
    exactly one of the known categories. Anything else is "no suggestion".
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    for category in Category:
        if category.value == candidate:
            return category
    return None


def _as_amount(value: Any) -> Optional[Decimal]:
    """A finite JSON number as an absolute Decimal; None for anything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        return abs(Decimal(str(value)))
    except InvalidOperation:
        return None


def _as_transaction_type(value: Any) -> Optional[TransactionType]:
    if not isinstance(value, str):
        return None
    try:
        return TransactionType(value)
    except ValueError:
        return None


def reconcile_transaction(payload: Any, draft: TransactionDraft) -> DraftPatch:
    """
    Merge a parsed transaction payload into a draft.

    Raises:
        MalformedResponseError: If the payload is not a JSON object
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(payload).__name__}"
        )

    updates: dict[str, Any] = {}
    rejected: list[str] = []

    if "amount" in payload:
        amount = _as_amount(payload["amount"])
        # Zero carries no information about the transaction
        if amount:
            updates["amount"] = amount
        else:
            rejected.append("amount")

    if "category" in payload:
        category = match_category(payload["category"])
        if category is not None:
            updates["category"] = category
        else:
            rejected.append("category")

    if "type" in payload:
        transaction_type = _as_transaction_type(payload["type"])
        if transaction_type is not None:
            updates["type"] = transaction_type
        else:
            rejected.append("type")

    if "description" in payload:
        description = payload["description"]
        if isinstance(description, str) and description.strip():
            updates["description"] = description.strip()
        else:
            rejected.append("description")

    return DraftPatch(
        draft=draft.model_copy(update=updates),
        applied_fields=list(updates),
        rejected_fields=rejected,
    )


def reconcile_transaction_text(text: Optional[str], draft: TransactionDraft) -> DraftPatch:
    """Extract JSON from raw AI text and merge it into a draft."""
    return reconcile_transaction(extract_json(text), draft)


def _string_items(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _as_risk_factor(value: Any) -> RiskFactor:
    if isinstance(value, str):
        for risk in RiskFactor:
            if risk.value == value:
                return risk
    return RiskFactor.LOW


def _citations(sources: Iterable[SearchSource]) -> list[SearchSource]:
    return [s for s in sources if s.title and s.uri]


def reconcile_forecast(
    payload: Any,
    sources: Iterable[SearchSource] = (),
) -> Forecast:
    """
    Build a Forecast from a parsed payload, field by field.

    Raises:
        MalformedResponseError: If the payload is not a JSON object
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(payload).__name__}"
        )

    return Forecast(
        predicted_spend_next_month=_as_amount(payload.get("predictedSpendNextMonth")) or Decimal("0"),
        savings_potential=_as_amount(payload.get("savingsPotential")) or Decimal("0"),
        advice=_string_items(payload.get("advice")),
        risk_factor=_as_risk_factor(payload.get("riskFactor")),
        anomalies=_string_items(payload.get("anomalies")),
        search_sources=_citations(sources),
    )


def reconcile_forecast_text(
    text: Optional[str],
    sources: Iterable[SearchSource] = (),
) -> Forecast:
    """Extract JSON from raw AI text and build a Forecast."""
    return reconcile_forecast(extract_json(text), sources)


def fallback_forecast() -> Forecast:
    """The forecast shown when the AI backend fails or returns garbage."""
    return Forecast(advice=[FALLBACK_ADVICE])
