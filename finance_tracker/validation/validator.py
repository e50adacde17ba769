"""
Receipt Review Validation

DESIGN DECISION: An extraction is reviewed before the user sees the
pre-filled form, in two stages:

STAGE 1 - PRESENCE:
- Did the model give us an amount at all?
- Did it give us a vendor?
- Was the whole extraction a fallback?

STAGE 2 - PLAUSIBILITY:
- Future or very old dates
- Absurd amounts
- Categories the form does not offer

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the user fixes them in the form.
The form is always shown, so `can_proceed` is always True.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.finance import EXPENSE_CATEGORIES
from finance_tracker.models.receipt import ExtractedReceiptData
from finance_tracker.models.validation import ValidationIssue, ValidationResult


class ReceiptValidator:
    """Reviews an ExtractedReceiptData and reports issues for the form."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_presence(
        self,
        extracted: ExtractedReceiptData,
    ) -> list[ValidationIssue]:
        """Stage 1: required fields."""
        issues = []

        if extracted.is_fallback:
            issues.append(ValidationIssue(
                field="extraction",
                issue_type="fallback",
                message="AI extraction unavailable, placeholder values were filled in",
                severity="warning",
                suggested_fix="Please enter the receipt details manually",
            ))

        if extracted.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Total amount could not be read from the receipt",
                severity="error",
                suggested_fix="Enter the total amount before saving",
            ))

        if not extracted.vendor:
            issues.append(ValidationIssue(
                field="vendor",
                issue_type="missing",
                message="Store name could not be read from the receipt",
                severity="warning",
                suggested_fix="Add a description for this expense",
            ))

        return issues

    def _validate_plausibility(
        self,
        extracted: ExtractedReceiptData,
        today: date,
    ) -> list[ValidationIssue]:
        """Stage 2: values that are present but look wrong."""
        issues = []

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if extracted.date and extracted.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Receipt date ({extracted.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        min_reasonable_date = today - timedelta(days=365 * 2)
        if extracted.date and extracted.date < min_reasonable_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="suspicious_date",
                message=f"Receipt date ({extracted.date}) seems unusually old",
                severity="warning",
                suggested_fix="Please verify the date was read correctly",
            ))

        max_amount = Decimal(str(self._settings.max_receipt_amount))
        if extracted.amount and extracted.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=(
                    f"Amount ({self._settings.currency_symbol}{extracted.amount:,.2f}) "
                    "seems unusually high"
                ),
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if extracted.category and extracted.category not in EXPENSE_CATEGORIES:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Category '{extracted.category}' is not one of the expense categories",
                severity="warning",
                suggested_fix="The closest matching category was selected, please check it",
            ))

        return issues

    def validate(
        self,
        extracted: ExtractedReceiptData,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run both stages and collect every issue.

        Args:
            extracted: The extraction to review
            today: Reference date (defaults to date.today())
        """
        today = today or date.today()
        issues = self._validate_presence(extracted)
        issues.extend(self._validate_plausibility(extracted, today))

        return ValidationResult(
            extraction_id=extracted.extraction_id,
            is_valid=not any(issue.severity == "error" for issue in issues),
            can_proceed=True,
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the upload page shows above the form.
        """
        if result.is_valid and not result.warnings:
            return "All details were read. Please review them below."

        lines = []

        if result.has_errors:
            lines.append("Some details could not be read:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"- {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"  {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"- {warning}")

        return "\n".join(lines)
