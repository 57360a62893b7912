"""
Budget Ledger

Holds the category -> monthly limit mapping.

GUARANTEES:
- Categories are unique: upsert updates in place or appends, never duplicates
- Only spending categories carry a budget: Income and names outside the
  closed category set are rejected
- A limit must be a finite number >= 0; invalid input is rejected and the
  previous value is kept (no partial writes)
- Entries are never deleted
"""

from decimal import Decimal
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from finsight.models.transaction import Category, CategoryBudget
from finsight.reconciler import match_category
from finsight.validation import ValidationError, parse_budget_limit


def default_budgets(limit: Decimal) -> list[CategoryBudget]:
    """One budget per non-income category, all at the same limit."""
    return [
        CategoryBudget(category=category.value, limit=limit)
        for category in Category.budget_categories()
    ]


def budget_category(value: Union[str, Category]) -> Optional[Category]:
    """The spending category named by value, or None if it cannot carry a budget."""
    category = match_category(value.value if isinstance(value, Category) else value)
    if category is None or category is Category.INCOME:
        return None
    return category


class BudgetLedger:
    """
    Ordered, category-unique list of budgets.

    Entries handed to the constructor whose category cannot carry a
    budget are dropped; a later duplicate replaces an earlier one.
    """

    def __init__(
        self,
        budgets: Iterable[CategoryBudget] = (),
        on_change: Optional[Callable[["BudgetLedger"], None]] = None,
    ):
        self._budgets: list[CategoryBudget] = []
        for budget in budgets:
            category = budget_category(budget.category)
            if category is None:
                continue
            self._put(CategoryBudget(category=category.value, limit=budget.limit))
        self._on_change = on_change

    @property
    def budgets(self) -> tuple[CategoryBudget, ...]:
        return tuple(self._budgets)

    def __iter__(self) -> Iterator[CategoryBudget]:
        return iter(tuple(self._budgets))

    def __len__(self) -> int:
        return len(self._budgets)

    def get(self, category: Union[str, Category]) -> Optional[CategoryBudget]:
        key = category.value if isinstance(category, Category) else category
        for budget in self._budgets:
            if budget.category == key:
                return budget
        return None

    def upsert(self, category: Union[str, Category], limit: Any) -> CategoryBudget:
        """
        Set the limit for a category.

        Raises:
            ValidationError: If the category is Income or unknown, or if
                limit is not a finite number >= 0
        """
        resolved = budget_category(category)
        if resolved is None:
            raise ValidationError(f"No budget can be set for category {category!r}")
        budget = CategoryBudget(category=resolved.value, limit=parse_budget_limit(limit))
        self._put(budget)
        if self._on_change is not None:
            self._on_change(self)
        return budget

    def to_json(self) -> list[dict]:
        return [b.model_dump(mode="json") for b in self._budgets]

    def _put(self, budget: CategoryBudget) -> None:
        for i, existing in enumerate(self._budgets):
            if existing.category == budget.category:
                self._budgets[i] = budget
                return
        self._budgets.append(budget)
