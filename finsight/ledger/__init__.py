"""Transaction store, budget ledger and state persistence."""

from finsight.ledger.budgets import BudgetLedger, budget_category, default_budgets
from finsight.ledger.state import (
    BUDGETS_KEY,
    TRANSACTIONS_KEY,
    AppState,
    StateRepository,
    sample_transactions,
)
from finsight.ledger.store import TransactionStore

__all__ = [
    "BUDGETS_KEY",
    "TRANSACTIONS_KEY",
    "AppState",
    "BudgetLedger",
    "StateRepository",
    "TransactionStore",
    "budget_category",
    "default_budgets",
    "sample_transactions",
]
