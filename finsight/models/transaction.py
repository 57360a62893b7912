"""
Core Data Models for FinSight

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce the transaction invariants at runtime (amount > 0, ISO dates)
2. Be serializable for local storage
3. Keep committed transactions separate from in-progress drafts

DESIGN DECISION: Committed transactions are frozen. The only way to change
the log is to add or delete a record, never to edit one in place.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


UNTITLED_DESCRIPTION = "Untitled Transaction"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    The closed set of transaction categories.

    Declaration order is the display order; the first member is the
    default selection for a new draft.
    """
    FOOD_AND_DRINK = "Food & Drink"
    HOUSING = "Housing"
    TRANSPORTATION = "Transportation"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    INCOME = "Income"
    UTILITIES = "Utilities"
    OTHER = "Other"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def budget_categories(cls) -> list["Category"]:
        """Categories that carry a spending budget (everything but Income)."""
        return [member for member in cls if member is not cls.INCOME]


class TransactionType(str, Enum):
    """Sign convention: expenses subtract, income adds."""
    EXPENSE = "expense"
    INCOME = "income"


class RiskFactor(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class BudgetStatus(str, Enum):
    OK = "ok"
    NEAR = "near"
    OVER = "over"


# =============================================================================
# TRANSACTIONS
# =============================================================================

def _new_transaction_id() -> str:
    return str(uuid4())


class Transaction(BaseModel):
    """
    A committed transaction in the store.

    CRITICAL: Only confirmed drafts become Transactions.
    AI output never creates one directly.

    `category` is a plain string so that records loaded from storage
    with a category outside the enumeration are tolerated. Such records
    simply never match a budget.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        default_factory=_new_transaction_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    description: str = Field(
        default=UNTITLED_DESCRIPTION,
        description="Free text description"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Positive amount, currency agnostic"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category label"
    )
    type: TransactionType

    @property
    def known_category(self) -> Optional[Category]:
        """The category as an enum member, or None if it is not in the closed set."""
        try:
            return Category(self.category)
        except ValueError:
            return None

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == TransactionType.INCOME else -self.amount


class TransactionDraft(BaseModel):
    """
    An in-progress, unconfirmed transaction.

    All fields are editable by the user and may be patched by AI
    suggestions. The draft is treated as a value: patches produce
    a new draft via model_copy().
    """

    description: str = ""
    amount: Optional[Decimal] = None
    date: dt.date = Field(default_factory=dt.date.today)
    category: Category = Category.FOOD_AND_DRINK
    type: TransactionType = TransactionType.EXPENSE


# =============================================================================
# BUDGETS
# =============================================================================

class CategoryBudget(BaseModel):
    """Monthly spending cap for one category."""
    model_config = ConfigDict(frozen=True)

    category: str = Field(..., min_length=1)
    limit: Decimal = Field(..., ge=0, allow_inf_nan=False)


# =============================================================================
# FORECAST
# =============================================================================

class SearchSource(BaseModel):
    """A grounding citation returned alongside an AI response."""

    title: str
    uri: str


class Forecast(BaseModel):
    """
    AI generated outlook for the coming month.

    Derived and ephemeral - regenerated on demand, never persisted.
    """

    predicted_spend_next_month: Decimal = Field(default=Decimal("0"), ge=0)
    savings_potential: Decimal = Field(default=Decimal("0"), ge=0)
    advice: list[str] = Field(default_factory=list)
    risk_factor: RiskFactor = RiskFactor.LOW
    anomalies: list[str] = Field(default_factory=list)
    search_sources: list[SearchSource] = Field(default_factory=list)


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class FinancialTotals(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    savings_rate: float = Field(ge=0.0)


class CategoryTotal(BaseModel):
    category: str
    amount: Decimal


class BudgetProgress(BaseModel):
    """Actual spend against a budget for one calendar month."""

    category: str
    limit: Decimal
    actual: Decimal
    percentage: float

    def status(self, warning_percentage: float = 80.0) -> BudgetStatus:
        if self.percentage >= 100:
            return BudgetStatus.OVER
        if self.percentage >= warning_percentage:
            return BudgetStatus.NEAR
        return BudgetStatus.OK

    @property
    def remaining(self) -> Decimal:
        return self.limit - self.actual


class BudgetSummary(BaseModel):
    total_budget: Decimal
    total_spent: Decimal

    @property
    def percentage(self) -> float:
        if self.total_budget > 0:
            return float(self.total_spent / self.total_budget * 100)
        return 0.0


class TrendBucket(BaseModel):
    """Income and expense totals for one day that had activity."""

    date: dt.date
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def label(self) -> str:
        """Short MM-DD label used on chart axes."""
        return self.date.isoformat()[5:]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a draft before commit.

    Errors block the commit; warnings are shown but don't block.
    """

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]


# =============================================================================
# AI REQUEST RESULTS
# =============================================================================

class AIRequestStatus(str, Enum):
    """
    Outcome of one AI request for a slot.

    PENDING is the slot state while a request is in flight.
    SUPERSEDED means a newer request for the same slot was issued
    before this one finished, so its result was discarded.
    """
    PENDING = "pending"
    SKIPPED = "skipped"
    SUCCESS = "success"
    FAILURE = "failure"
    SUPERSEDED = "superseded"


class DraftPatch(BaseModel):
    """Result of reconciling an AI payload into a draft."""

    draft: TransactionDraft
    applied_fields: list[str] = Field(default_factory=list)
    rejected_fields: list[str] = Field(default_factory=list)


class AIFillResult(BaseModel):
    """
    Outcome of a natural language AI fill.

    On anything but SUCCESS, `draft` is the caller's draft unchanged.
    """

    status: AIRequestStatus
    draft: TransactionDraft
    applied_fields: list[str] = Field(default_factory=list)
    message: Optional[str] = None


class SuggestionOutcome(BaseModel):
    """Outcome of a debounced category suggestion request."""

    status: AIRequestStatus
    category: Optional[Category] = None


class AdvisorReply(BaseModel):
    """Answer from the advisor chat, with any grounding citations."""

    text: str
    sources: list[SearchSource] = Field(default_factory=list)
    status: AIRequestStatus = AIRequestStatus.SUCCESS
