"""
Tests for submission validation.
"""

import math
from datetime import date, timedelta
from decimal import Decimal

import pytest

from finsight.models import UNTITLED_DESCRIPTION, Category, TransactionDraft, TransactionType
from finsight.validation import TransactionValidator, ValidationError, parse_budget_limit


TODAY = date(2024, 6, 15)


@pytest.fixture
def validator():
    return TransactionValidator(future_date_tolerance_days=7)


def make_draft(**overrides):
    fields = dict(
        description="Gas Station",
        amount=Decimal("45"),
        date=TODAY,
        category=Category.TRANSPORTATION,
        type=TransactionType.EXPENSE,
    )
    fields.update(overrides)
    return TransactionDraft(**fields)


class TestTransactionValidator:
    """Tests for draft validation."""

    def test_valid_draft(self, validator):
        result = validator.validate(make_draft(), today=TODAY)
        assert result.is_valid
        assert result.issues == []

    def test_missing_amount_blocks(self, validator):
        result = validator.validate(make_draft(amount=None), today=TODAY)
        assert not result.is_valid
        assert result.issues[0].field == "amount"
        assert result.issues[0].issue_type == "missing"

    def test_zero_and_negative_amounts_block(self, validator):
        assert not validator.validate(make_draft(amount=Decimal("0")), today=TODAY).is_valid
        assert not validator.validate(make_draft(amount=Decimal("-4")), today=TODAY).is_valid

    def test_empty_description_is_a_warning(self, validator):
        result = validator.validate(make_draft(description="  "), today=TODAY)
        assert result.is_valid
        assert [w.field for w in result.warnings] == ["description"]

    def test_future_date_is_a_warning(self, validator):
        within = validator.validate(make_draft(date=TODAY + timedelta(days=7)), today=TODAY)
        beyond = validator.validate(make_draft(date=TODAY + timedelta(days=8)), today=TODAY)
        assert within.issues == []
        assert beyond.is_valid
        assert beyond.warnings[0].issue_type == "future_date"

    def test_to_transaction(self, validator):
        t = validator.to_transaction(make_draft(description="  Gas Station "), today=TODAY)
        assert t.description == "Gas Station"
        assert t.amount == Decimal("45")
        assert t.category == "Transportation"
        assert t.type == TransactionType.EXPENSE
        assert t.date == TODAY

    def test_to_transaction_uses_placeholder(self, validator):
        t = validator.to_transaction(make_draft(description=""), today=TODAY)
        assert t.description == UNTITLED_DESCRIPTION

    def test_to_transaction_raises_with_issues(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.to_transaction(make_draft(amount=None), today=TODAY)
        assert exc_info.value.issues[0].field == "amount"
        assert "Amount is required" in str(exc_info.value)


class TestParseBudgetLimit:
    """Tests for budget limit input."""

    @pytest.mark.parametrize("value, expected", [
        (0, Decimal("0")),
        (250, Decimal("250")),
        (99.5, Decimal("99.5")),
        (Decimal("10.25"), Decimal("10.25")),
        (" 300 ", Decimal("300")),
    ])
    def test_accepted(self, value, expected):
        assert parse_budget_limit(value) == expected

    @pytest.mark.parametrize("value", [
        -1,
        "-5",
        "abc",
        "",
        None,
        True,
        math.inf,
        math.nan,
        "Infinity",
        Decimal("NaN"),
        [100],
    ])
    def test_rejected(self, value):
        with pytest.raises(ValidationError):
            parse_budget_limit(value)
