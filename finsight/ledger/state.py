"""
Application State and Persistence

DESIGN DECISION: The whole mutable state of the app is one explicit
AppState object (transaction store + budget ledger) handed to the flows,
rather than module-level globals.

Persisted layout: two independent JSON records under stable keys.
- finsight_transactions: array of transactions
- finsight_budgets: array of category budgets

Load policy:
- Key absent  -> uninitialized: seed defaults (sample transactions,
                 one default budget per non-income category)
- Key corrupt -> log and fall back to defaults; never crash
- Seeded budgets are written back immediately, so seeding happens once
  and never overwrites later edits
"""

import json
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from finsight.audit import AuditLogger
from finsight.ledger.budgets import BudgetLedger, default_budgets
from finsight.ledger.store import TransactionStore
from finsight.models.transaction import (
    CategoryBudget,
    Transaction,
    TransactionType,
)
from finsight.services.storage import KeyValueStorageInterface, StorageCorruptError


TRANSACTIONS_KEY = "finsight_transactions"
BUDGETS_KEY = "finsight_budgets"

_transactions_adapter = TypeAdapter(list[Transaction])
_budgets_adapter = TypeAdapter(list[CategoryBudget])


def sample_transactions() -> list[Transaction]:
    """The built-in sample log shown on first run."""
    return [
        Transaction(id="1", description="Monthly Rent", amount=Decimal("1200"),
                    date=date(2023, 10, 1), category="Housing", type=TransactionType.EXPENSE),
        Transaction(id="2", description="Grocery Store Run", amount=Decimal("85.50"),
                    date=date(2023, 10, 3), category="Food & Drink", type=TransactionType.EXPENSE),
        Transaction(id="3", description="Gas Station", amount=Decimal("45.00"),
                    date=date(2023, 10, 5), category="Transportation", type=TransactionType.EXPENSE),
        Transaction(id="4", description="Freelance Payment", amount=Decimal("2500"),
                    date=date(2023, 10, 10), category="Income", type=TransactionType.INCOME),
        Transaction(id="5", description="Netflix Subscription", amount=Decimal("15.99"),
                    date=date(2023, 10, 12), category="Entertainment", type=TransactionType.EXPENSE),
        Transaction(id="6", description="Coffee Shop", amount=Decimal("5.75"),
                    date=date(2023, 10, 15), category="Food & Drink", type=TransactionType.EXPENSE),
    ]


@dataclass
class AppState:
    """Everything the flows read and mutate."""

    transactions: TransactionStore
    budgets: BudgetLedger


class StateRepository:
    """
    Loads AppState from key/value storage and writes it back on change.

    The stores returned by load() are wired so that every accepted
    mutation triggers a synchronous save of the affected record.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        default_budget_limit: Decimal = Decimal("500"),
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._default_budget_limit = Decimal(str(default_budget_limit))
        self._audit_logger = audit_logger

    def load(self) -> AppState:
        transactions = self._load_transactions()
        budgets, seeded = self._load_budgets()

        store = TransactionStore(transactions, on_change=self.save_transactions)
        ledger = BudgetLedger(budgets, on_change=self.save_budgets)

        if seeded:
            self.save_budgets(ledger)
            if self._audit_logger:
                self._audit_logger.log_storage_seeded(BUDGETS_KEY, len(ledger))

        return AppState(transactions=store, budgets=ledger)

    def save_transactions(self, store: TransactionStore) -> None:
        self._storage.set_item(TRANSACTIONS_KEY, json.dumps(store.to_json()))

    def save_budgets(self, ledger: BudgetLedger) -> None:
        self._storage.set_item(BUDGETS_KEY, json.dumps(ledger.to_json()))

    def _load_transactions(self) -> list[Transaction]:
        try:
            records = self._read(TRANSACTIONS_KEY, _transactions_adapter)
        except StorageCorruptError as e:
            self._report_corrupt(e)
            return sample_transactions()
        if records is None:
            return sample_transactions()
        return records

    def _load_budgets(self) -> tuple[list[CategoryBudget], bool]:
        """Returns (budgets, seeded)."""
        try:
            records = self._read(BUDGETS_KEY, _budgets_adapter)
        except StorageCorruptError as e:
            self._report_corrupt(e)
            return default_budgets(self._default_budget_limit), False
        if records is None:
            return default_budgets(self._default_budget_limit), True
        return records, False

    def _read(self, key: str, adapter: TypeAdapter) -> Optional[Any]:
        """
        Read and validate one record.

        Returns None if the key is absent.

        Raises:
            StorageCorruptError: If the record cannot be decoded or does
                not match the schema
        """
        raw = self._storage.get_item(key)
        if raw is None:
            return None
        try:
            return adapter.validate_python(json.loads(raw))
        except json.JSONDecodeError as e:
            raise StorageCorruptError(key, f"invalid JSON: {e.msg}") from e
        except SchemaValidationError as e:
            raise StorageCorruptError(key, f"{e.error_count()} schema errors") from e

    def _report_corrupt(self, error: StorageCorruptError) -> None:
        if self._audit_logger:
            self._audit_logger.log_storage_corrupt(error.key, error.reason)
