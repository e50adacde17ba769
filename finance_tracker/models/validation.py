"""Validation result models for receipt review."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finance_tracker.models.finance import utc_now


class ValidationIssue(BaseModel):
    """One problem found while reviewing a receipt extraction."""

    field: str = Field(
        ...,
        description="Form field the issue applies to"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'future_date', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Message shown above the review form"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="error blocks saving until fixed, warning is advisory"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="What the user should do about it"
    )


class ValidationResult(BaseModel):
    """
    Result of reviewing an extraction.

    Errors must be fixed in the form before saving.
    Warnings are shown but never block.
    """

    extraction_id: UUID = Field(
        ...,
        description="Extraction this review belongs to"
    )
    validated_at: datetime = Field(
        default_factory=utc_now
    )

    is_valid: bool = Field(
        ...,
        description="No error-level issues"
    )
    can_proceed: bool = Field(
        default=True,
        description="Can the review form be shown?"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="Every issue, errors and warnings"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Warning messages, in issue order"
    )

    @property
    def has_errors(self) -> bool:
        """True when the user must fix something before saving."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
