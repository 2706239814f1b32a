"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Type and format checks (amount is a positive decimal, date is ISO)
- Any error here rejects the draft

STAGE 2 - SEMANTIC VALIDATION:
- Far-future date detection
- Absurd amount detection
- These only produce warnings: the user may really have earned a lot

WHY TWO STAGES:
1. Separation of concerns (structural vs plausibility)
2. Better error messages (know exactly what kind of issue)
3. Stage 2 is skipped when stage 1 fails

IMPORTANT: Validation NEVER silently fixes issues. Every rejection happens
before any store call is made.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from ledger.config import get_settings
from ledger.errors import ValidationError
from ledger.models.finance import (
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)

MAX_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_LENGTH = 100
CENT = Decimal("0.01")


def _parse_amount(text: str) -> Optional[Decimal]:
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _parse_date(text: str) -> Optional[date]:
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


class TransactionValidator:
    """
    Validates transaction drafts through a two-stage pipeline.

    Produces a ValidationResult; `require_valid` turns a failed result
    into a ValidationError for callers that must not continue.
    """

    def __init__(self):
        self._settings = get_settings().ledger

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.type:
            issues.append(ValidationIssue(
                field="type",
                issue_type="missing",
                message="Transaction type is required",
                severity="error",
            ))
        elif draft.type not in {t.value for t in TransactionType}:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Unknown transaction type '{draft.type}'",
                severity="error",
            ))

        if not draft.amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            amount = _parse_amount(draft.amount)
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount '{draft.amount}' is not a number",
                    severity="error",
                ))
            elif amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                ))
            elif amount.normalize().as_tuple().exponent < -2:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="Amount can have at most 2 decimal places",
                    severity="error",
                ))

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))
        elif len(draft.description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="invalid_value",
                message=f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
            ))

        if draft.category and len(draft.category) > MAX_CATEGORY_LENGTH:
            issues.append(ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=f"Category is longer than {MAX_CATEGORY_LENGTH} characters",
                severity="error",
            ))

        if not draft.date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        elif _parse_date(draft.date) is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date '{draft.date}' is not a valid YYYY-MM-DD date",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation. Assumes stage 1 passed.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        amount = _parse_amount(draft.amount)
        tx_date = _parse_date(draft.date)

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if tx_date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({tx_date}) is far in the future",
                severity="warning",
            ))

        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        draft: TransactionDraft,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Args:
            draft: Raw user input
            today: Reference date for plausibility checks (defaults to today)

        Returns:
            ValidationResult; `transaction` is set when the draft is valid
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        semantic_valid = False
        transaction = None
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft, today or date.today())
            all_issues.extend(semantic_issues)

            try:
                transaction = Transaction(
                    type=TransactionType(draft.type),
                    amount=Decimal(draft.amount).quantize(CENT),
                    category=draft.category or "",
                    description=draft.description,
                    date=date.fromisoformat(draft.date),
                )
            except PydanticValidationError as e:
                schema_valid = False
                for error in e.errors():
                    all_issues.append(ValidationIssue(
                        field=".".join(str(part) for part in error["loc"]) or "transaction",
                        issue_type="invalid_value",
                        message=error["msg"],
                        severity="error",
                    ))

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]
        is_valid = schema_valid and semantic_valid

        return ValidationResult(
            draft_id=draft.draft_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            issues=all_issues,
            warnings=warnings,
            transaction=transaction if is_valid else None,
        )

    def require_valid(self, result: ValidationResult) -> Transaction:
        """
        Return the validated transaction or raise.

        Raises:
            ValidationError: Carrying the error-level issues
        """
        if result.is_valid and result.transaction is not None:
            return result.transaction
        errors = [issue for issue in result.issues if issue.severity == "error"]
        raise ValidationError(
            "; ".join(issue.message for issue in errors) or "Invalid transaction",
            issues=errors,
        )

    @staticmethod
    def validate_ratio_limit(value: int) -> int:
        """
        Check a new ratio limit.

        Raises:
            ValidationError: Unless 1 <= value <= 100
        """
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 100:
            raise ValidationError(
                f"Ratio limit must be an integer between 1 and 100, got {value!r}",
                issues=[ValidationIssue(
                    field="ratio_limit",
                    issue_type="invalid_value",
                    message="Ratio limit must be between 1 and 100",
                    severity="error",
                )],
            )
        return value

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the form shows next to the save button.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("The transaction could not be saved:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
