"""
Submission Validation

DESIGN DECISION: User-entered data is checked at the point of submission.

ERRORS block the commit:
- Missing, non-positive or non-finite amount
- Budget limit that is not a finite number >= 0

WARNINGS are shown but don't block:
- Empty description (the placeholder title will be used)
- Date further in the future than the configured tolerance

IMPORTANT: Validation NEVER silently fixes issues. A bad amount is
reported, not coerced. The only substitution is the documented
placeholder for an empty description.
"""

import math
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from finsight.config import get_settings
from finsight.models.transaction import (
    UNTITLED_DESCRIPTION,
    Transaction,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)


class ValidationError(Exception):
    """User data violates an invariant; the offending action is blocked."""

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        self.issues = issues or []
        super().__init__(message)


def parse_budget_limit(value: Any) -> Decimal:
    """
    Accept a budget limit only if it is a finite number >= 0.

    Numeric strings (from form fields) are accepted; booleans are not.

    Raises:
        ValidationError: If the value is not an acceptable limit
    """
    if isinstance(value, bool):
        raise ValidationError(f"Budget limit must be a number, got {value!r}")

    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"Budget limit must be finite, got {value!r}")

    if isinstance(value, (int, float)):
        limit = Decimal(str(value))
    elif isinstance(value, Decimal):
        limit = value
    elif isinstance(value, str):
        try:
            limit = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"Budget limit must be a number, got {value!r}")
    else:
        raise ValidationError(f"Budget limit must be a number, got {value!r}")

    if not limit.is_finite():
        raise ValidationError(f"Budget limit must be finite, got {value!r}")
    if limit < 0:
        raise ValidationError(f"Budget limit cannot be negative, got {value!r}")

    return limit


class TransactionValidator:
    """Validates drafts before they are committed to the store."""

    def __init__(self, future_date_tolerance_days: Optional[int] = None):
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().app.future_date_tolerance_days
        self._future_tolerance = timedelta(days=future_date_tolerance_days)

    def validate(
        self,
        draft: TransactionDraft,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Check a draft. Returns all issues found; errors make it invalid."""
        issues = []
        today = today or date.today()

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif not draft.amount.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be a finite number",
                severity="error",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if not draft.description.strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message=f"No description given; it will be saved as '{UNTITLED_DESCRIPTION}'",
                severity="warning",
            ))

        if draft.date > today + self._future_tolerance:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({draft.date}) is in the future",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return ValidationResult(is_valid=is_valid, issues=issues)

    def to_transaction(
        self,
        draft: TransactionDraft,
        today: Optional[date] = None,
    ) -> Transaction:
        """
        Turn a valid draft into a committed-ready Transaction.

        Raises:
            ValidationError: If the draft has any error-level issues
        """
        result = self.validate(draft, today=today)
        if not result.is_valid:
            messages = "; ".join(
                issue.message for issue in result.issues if issue.severity == "error"
            )
            raise ValidationError(messages, issues=result.issues)

        return Transaction(
            description=draft.description.strip() or UNTITLED_DESCRIPTION,
            amount=draft.amount,
            date=draft.date,
            category=draft.category.value,
            type=draft.type,
        )
