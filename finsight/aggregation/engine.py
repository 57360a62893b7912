"""
Aggregation Engine

DESIGN DECISION: Every dashboard number is a pure function of
(transactions, budgets, reference_date). Nothing here reads the clock,
touches storage or mutates its inputs, so the same inputs always give
the same views.

Budget progress uses CALENDAR months (a YYYY-MM match against the
reference date), never rolling 30-day windows.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from itertools import groupby
from typing import Iterable, Iterator, Optional, Sequence

from finsight.models.transaction import (
    BudgetProgress,
    BudgetSummary,
    CategoryBudget,
    CategoryTotal,
    FinancialTotals,
    Transaction,
    TransactionType,
    TrendBucket,
)


ZERO = Decimal("0")


def _month_key(d: date) -> str:
    return d.isoformat()[:7]


def _sum_amounts(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def compute_totals(transactions: Iterable[Transaction]) -> FinancialTotals:
    """
    Income, expense, balance and savings rate over all transactions.

    The savings rate is floored at 0: spending more than you earn shows
    as 0%, never as a negative rate.
    """
    transactions = list(transactions)
    total_income = _sum_amounts(t for t in transactions if t.type == TransactionType.INCOME)
    total_expense = _sum_amounts(t for t in transactions if t.type == TransactionType.EXPENSE)
    balance = total_income - total_expense

    savings_rate = 0.0
    if total_income > 0:
        savings_rate = max(0.0, float(balance / total_income * 100))

    return FinancialTotals(
        total_income=total_income,
        total_expense=total_expense,
        balance=balance,
        savings_rate=savings_rate,
    )


def compute_category_breakdown(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """Expense totals per category, largest first."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            totals[t.category] += t.amount

    return sorted(
        (CategoryTotal(category=category, amount=amount) for category, amount in totals.items()),
        key=lambda item: item.amount,
        reverse=True,
    )


def compute_budget_progress(
    transactions: Iterable[Transaction],
    budgets: Iterable[CategoryBudget],
    reference_date: date,
) -> list[BudgetProgress]:
    """
    Actual spend against each budget for the reference date's month.

    A limit of 0 means "no budget set": its percentage is 0 rather than
    a division by zero.
    """
    month = _month_key(reference_date)
    spent: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.type == TransactionType.EXPENSE and _month_key(t.date) == month:
            spent[t.category] += t.amount

    progress = []
    for budget in budgets:
        actual = spent.get(budget.category, ZERO)
        percentage = float(actual / budget.limit * 100) if budget.limit > 0 else 0.0
        progress.append(BudgetProgress(
            category=budget.category,
            limit=budget.limit,
            actual=actual,
            percentage=percentage,
        ))
    return progress


class TrendSeries:
    """
    Daily income/expense buckets for the most recent active days.

    Iterating is lazy and can be repeated; each pass recomputes from the
    captured transactions. Days without transactions produce no bucket,
    so a sparse calendar yields a compressed trend line.
    """

    def __init__(self, transactions: Iterable[Transaction], window_size: int):
        self._transactions = tuple(transactions)
        self._window_size = window_size

    def _cutoff(self) -> Optional[date]:
        if self._window_size <= 0:
            return None
        active_days = sorted({t.date for t in self._transactions})
        if not active_days:
            return None
        return active_days[-self._window_size:][0]

    def __iter__(self) -> Iterator[TrendBucket]:
        cutoff = self._cutoff()
        if cutoff is None:
            return
        recent = sorted(
            (t for t in self._transactions if t.date >= cutoff),
            key=lambda t: t.date,
        )
        for day, group in groupby(recent, key=lambda t: t.date):
            income = ZERO
            expense = ZERO
            for t in group:
                if t.type == TransactionType.INCOME:
                    income += t.amount
                else:
                    expense += t.amount
            yield TrendBucket(date=day, income=income, expense=expense)


def compute_trend(transactions: Iterable[Transaction], window_size: int = 14) -> TrendSeries:
    """Trend buckets for the last `window_size` days that had any activity."""
    return TrendSeries(transactions, window_size)


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    type_filter: Optional[TransactionType] = None,
) -> list[Transaction]:
    """
    Ledger filter: case-insensitive search over description and category,
    optionally restricted to one transaction type. Order is preserved.
    """
    needle = search.strip().lower()
    results = []
    for t in transactions:
        if type_filter is not None and t.type != type_filter:
            continue
        if needle and needle not in t.description.lower() and needle not in t.category.lower():
            continue
        results.append(t)
    return results


def summarize_budgets(progress: Iterable[BudgetProgress]) -> BudgetSummary:
    """Total of all limits and of all month-to-date spend."""
    progress = list(progress)
    return BudgetSummary(
        total_budget=sum((p.limit for p in progress), ZERO),
        total_spent=sum((p.actual for p in progress), ZERO),
    )


def top_budget_alerts(progress: Sequence[BudgetProgress], limit: int = 3) -> list[BudgetProgress]:
    """The budgets closest to (or furthest over) their limit."""
    ordered = sorted(progress, key=lambda p: p.percentage, reverse=True)
    return ordered[:max(0, limit)]
