"""
Tests for the two-stage transaction validator.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger.errors import ValidationError
from ledger.models.finance import TransactionDraft, TransactionType
from ledger.validation import TransactionValidator

TODAY = date(2024, 2, 20)


@pytest.fixture
def validator():
    return TransactionValidator()


def draft(**overrides):
    fields = {
        "type": "expense",
        "amount": "25.50",
        "category": "food",
        "description": "Groceries",
        "date": "2024-02-19",
    }
    fields.update(overrides)
    return TransactionDraft(**fields)


def issue_fields(result):
    return {issue.field for issue in result.issues if issue.severity == "error"}


class TestSchemaStage:
    """Stage 1: structural errors reject the draft."""

    def test_valid_draft_builds_transaction(self, validator):
        result = validator.validate(draft(), today=TODAY)

        assert result.is_valid
        assert result.transaction.type == TransactionType.EXPENSE
        assert result.transaction.amount == Decimal("25.50")
        assert result.transaction.date == date(2024, 2, 19)
        assert result.issues == []

    def test_accepts_typed_values(self, validator):
        """Enums, decimals and dates are accepted as well as text."""
        result = validator.validate(
            draft(type=TransactionType.INCOME, amount=Decimal("10"), date=date(2024, 2, 1)),
            today=TODAY,
        )
        assert result.is_valid
        assert result.transaction.type == TransactionType.INCOME

    @pytest.mark.parametrize("field", ["type", "amount", "description", "date"])
    def test_missing_required_field(self, validator, field):
        result = validator.validate(draft(**{field: None}), today=TODAY)

        assert not result.is_valid
        assert result.transaction is None
        assert field in issue_fields(result)

    def test_blank_description_is_missing(self, validator):
        result = validator.validate(draft(description="   "), today=TODAY)
        assert "description" in issue_fields(result)

    @pytest.mark.parametrize("amount", ["abc", "0", "-5", "NaN", "1.005"])
    def test_invalid_amount(self, validator, amount):
        result = validator.validate(draft(amount=amount), today=TODAY)

        assert not result.schema_valid
        assert issue_fields(result) == {"amount"}

    def test_trailing_zeros_are_fine(self, validator):
        result = validator.validate(draft(amount="10.000"), today=TODAY)
        assert result.is_valid
        assert result.transaction.amount == Decimal("10.00")

    @pytest.mark.parametrize("value", ["2024-02-30", "19/02/2024", "yesterday"])
    def test_malformed_date(self, validator, value):
        result = validator.validate(draft(date=value), today=TODAY)
        assert issue_fields(result) == {"date"}

    def test_unknown_type(self, validator):
        result = validator.validate(draft(type="transfer"), today=TODAY)
        assert issue_fields(result) == {"type"}

    def test_category_is_optional(self, validator):
        result = validator.validate(draft(category=None), today=TODAY)
        assert result.is_valid
        assert result.transaction.category == ""

    def test_semantic_stage_skipped_on_schema_error(self, validator):
        result = validator.validate(draft(amount="x", date="2030-01-01"), today=TODAY)
        assert not any(issue.issue_type == "future_date" for issue in result.issues)


class TestSemanticStage:
    """Stage 2: plausibility checks only warn."""

    def test_far_future_date_warns(self, validator):
        result = validator.validate(draft(date="2024-03-15"), today=TODAY)

        assert result.is_valid
        assert len(result.warnings) == 1

    def test_date_within_tolerance(self, validator):
        result = validator.validate(draft(date="2024-02-25"), today=TODAY)
        assert result.warnings == []

    def test_huge_amount_warns(self, validator):
        result = validator.validate(draft(amount="2000000"), today=TODAY)

        assert result.is_valid
        assert any(issue.issue_type == "suspicious_value" for issue in result.issues)


class TestRequireValid:
    def test_raises_with_issues(self, validator):
        result = validator.validate(draft(amount="-1", description=None), today=TODAY)

        with pytest.raises(ValidationError) as exc_info:
            validator.require_valid(result)

        assert {issue.field for issue in exc_info.value.issues} == {"amount", "description"}

    def test_returns_transaction(self, validator):
        result = validator.validate(draft(), today=TODAY)
        assert validator.require_valid(result) is result.transaction


class TestRatioLimit:
    @pytest.mark.parametrize("value", [1, 30, 100])
    def test_valid(self, value):
        assert TransactionValidator.validate_ratio_limit(value) == value

    @pytest.mark.parametrize("value", [0, 101, -5, 30.5, True])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            TransactionValidator.validate_ratio_limit(value)


class TestSummary:
    def test_all_good(self, validator):
        result = validator.validate(draft(), today=TODAY)
        assert validator.get_user_friendly_summary(result) == "All checks passed."

    def test_lists_errors(self, validator):
        result = validator.validate(draft(amount="abc"), today=TODAY)
        summary = validator.get_user_friendly_summary(result)

        assert "could not be saved" in summary
        assert "'abc' is not a number" in summary
