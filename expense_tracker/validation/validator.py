"""
Two-Stage Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - REQUIRED FIELDS:
- Required field presence (name, category, amount, title...)
- Value ranges the record cannot exist without (target > 0)
- Failing this stage blocks the write with a ValidationError

STAGE 2 - SEMANTIC CHECKS:
- Future date detection
- Absurd amount detection
- Target dates already in the past
- These only produce warnings; the user may still save

WHY TWO STAGES:
1. Separation of concerns (structural vs logical)
2. Better error messages (know exactly what kind of issue)
3. Stage 2 is skipped when stage 1 fails

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.finance import (
    ContactCreate,
    GoalCreate,
    TransactionCreate,
)
from expense_tracker.models.validation import ValidationIssue, ValidationResult


CENT = Decimal("0.01")


class ValidationError(ValueError):
    """Input failed required-field or business checks."""

    def __init__(self, subject: str, issues: list[ValidationIssue]):
        self.subject = subject
        self.issues = issues
        summary = "; ".join(issue.message for issue in issues) or "invalid input"
        super().__init__(f"Invalid {subject}: {summary}")

    @classmethod
    def single(cls, subject: str, field: str, message: str) -> "ValidationError":
        """Shortcut for a one-issue error raised outside the validator."""
        return cls(subject, [ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=message,
            severity="error",
        )])


def _missing(field: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=message,
        severity="error",
        suggested_fix=fix,
    )


class FormValidator:
    """
    Validates user-supplied form data before it reaches a store.

    Stage 1: required fields (errors)
    Stage 2: semantic checks (warnings)
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._settings = settings or get_settings().app
        self._clock = clock or datetime.now

    def _today(self) -> date:
        return self._clock().date()

    def _result(
        self,
        subject: str,
        required_issues: list[ValidationIssue],
        semantic_issues: list[ValidationIssue],
    ) -> ValidationResult:
        required_valid = not any(i.severity == "error" for i in required_issues)
        return ValidationResult(
            subject=subject,
            required_valid=required_valid,
            semantic_valid=required_valid and not semantic_issues,
            issues=required_issues + semantic_issues,
        )

    def _check_amount_sanity(self, field: str, amount: Decimal) -> list[ValidationIssue]:
        max_amount = self._settings.max_transaction_amount
        if amount > max_amount:
            return [ValidationIssue(
                field=field,
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            )]
        return []

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def validate_transaction(self, data: TransactionCreate) -> ValidationResult:
        """Category and a positive amount are required."""
        issues = []

        if not data.category_id:
            issues.append(_missing(
                "category_id",
                "Category is required",
                "Pick a category for this transaction",
            ))

        if data.amount is None or data.amount <= 0:
            issues.append(_missing(
                "amount",
                "Amount must be greater than zero",
                "Enter the amount of the transaction",
            ))

        semantic = []
        if not issues:
            max_future_date = self._today() + timedelta(
                days=self._settings.future_date_tolerance_days
            )
            if data.date > max_future_date:
                semantic.append(ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message=f"Transaction date ({data.date}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the date is correct",
                ))
            semantic.extend(self._check_amount_sanity("amount", data.amount))

        return self._result("transaction", issues, semantic)

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def validate_goal(self, data: GoalCreate) -> ValidationResult:
        """Title and a positive target amount are required."""
        issues = []

        if not data.title:
            issues.append(_missing("title", "Goal title is required"))

        if data.target_amount is None or data.target_amount <= 0:
            issues.append(ValidationIssue(
                field="target_amount",
                issue_type="invalid_value",
                message="Target amount must be greater than zero",
                severity="error",
                suggested_fix="Enter how much you want to save",
            ))

        semantic = []
        if not issues:
            if data.target_date < self._today():
                semantic.append(ValidationIssue(
                    field="target_date",
                    issue_type="past_date",
                    message=f"Target date ({data.target_date}) has already passed",
                    severity="warning",
                ))
            if data.current_amount >= data.target_amount:
                semantic.append(ValidationIssue(
                    field="current_amount",
                    issue_type="already_reached",
                    message="Current amount already reaches the target",
                    severity="info",
                ))

        return self._result("goal", issues, semantic)

    def validate_contribution(self, amount: Decimal) -> ValidationResult:
        issues = []
        if amount is None or amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Contribution amount must be greater than zero",
                severity="error",
            ))
        elif amount != amount.quantize(CENT):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Contribution amount ({amount}) has more than 2 decimal places",
                severity="error",
                suggested_fix="Round the amount to whole cents",
            ))
        semantic = self._check_amount_sanity("amount", amount) if not issues else []
        return self._result("contribution", issues, semantic)

    # -------------------------------------------------------------------------
    # Contacts and categories
    # -------------------------------------------------------------------------

    def validate_contact(self, data: ContactCreate) -> ValidationResult:
        """Name and category are required."""
        issues = []
        if not data.name:
            issues.append(_missing("name", "Contact name is required"))
        if not data.category_id:
            issues.append(_missing("category_id", "Contact category is required"))

        semantic = []
        if not issues and data.email and "@" not in data.email:
            semantic.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message=f"Email address ({data.email}) looks malformed",
                severity="warning",
            ))

        return self._result("contact", issues, semantic)

    def validate_category_name(self, name: Optional[str]) -> ValidationResult:
        issues = []
        if not name or not name.strip():
            issues.append(_missing("name", "Category name is required"))
        return self._result("category", issues, [])

    # -------------------------------------------------------------------------
    # Enforcement
    # -------------------------------------------------------------------------

    @staticmethod
    def ensure_valid(result: ValidationResult) -> ValidationResult:
        """Raise ValidationError when the result holds any error."""
        if result.has_errors:
            raise ValidationError(
                result.subject,
                [issue for issue in result.issues if issue.severity == "error"],
            )
        return result

    @staticmethod
    def get_user_friendly_summary(result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the forms show under the submit button.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ Some required information is missing:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
