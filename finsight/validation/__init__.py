"""Validation package."""

from finsight.validation.validator import (
    TransactionValidator,
    ValidationError,
    parse_budget_limit,
)

__all__ = ["TransactionValidator", "ValidationError", "parse_budget_limit"]
