"""
Activity Models for Finance Tracker

Every data operation and every call to an external service is
logged as an ActivityEvent. The log is what you read when a user
says "my transaction disappeared" or "the AI did nothing".

DESIGN DECISION: Events go to the structured log only.
The hosted database holds the user's data, not our diagnostics.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.finance import utc_now


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Identity
    USER_SIGNED_UP = "user_signed_up"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    SIGN_IN_FAILED = "sign_in_failed"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"

    # Records
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    INVESTMENT_CREATED = "investment_created"
    INVESTMENT_UPDATED = "investment_updated"
    INVESTMENT_DELETED = "investment_deleted"

    # Receipts
    RECEIPT_UPLOADED = "receipt_uploaded"
    RECEIPT_REJECTED = "receipt_rejected"
    RECEIPT_EXTRACTED = "receipt_extracted"
    RECEIPT_EXTRACTION_FALLBACK = "receipt_extraction_fallback"

    # Insights and exports
    INSIGHTS_GENERATED = "insights_generated"
    INSIGHTS_FALLBACK = "insights_fallback"
    EXPORT_CREATED = "export_created"

    # Failures
    STORAGE_ERROR = "storage_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    user_id: Optional[str] = Field(
        default=None,
        description="Signed-in user, when there is one"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction', 'receipt')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


_RECORD_EVENTS = {
    ("account", "created"): ActivityEventType.ACCOUNT_CREATED,
    ("account", "updated"): ActivityEventType.ACCOUNT_UPDATED,
    ("account", "deleted"): ActivityEventType.ACCOUNT_DELETED,
    ("transaction", "created"): ActivityEventType.TRANSACTION_CREATED,
    ("transaction", "updated"): ActivityEventType.TRANSACTION_UPDATED,
    ("transaction", "deleted"): ActivityEventType.TRANSACTION_DELETED,
    ("investment", "created"): ActivityEventType.INVESTMENT_CREATED,
    ("investment", "updated"): ActivityEventType.INVESTMENT_UPDATED,
    ("investment", "deleted"): ActivityEventType.INVESTMENT_DELETED,
}


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.record_changed("transaction", "created", ...)
        event = ActivityEventBuilder.storage_error("add transaction", ...)
    """

    @staticmethod
    def record_changed(
        entity_type: str,
        action: str,
        entity_id: UUID,
        user_id: str,
        details: Optional[dict] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=_RECORD_EVENTS[(entity_type, action)],
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {action}",
            details=details or {},
        )

    @staticmethod
    def user_signed_in(user_id: str, email: str, signed_up: bool = False) -> ActivityEvent:
        return ActivityEvent(
            event_type=(
                ActivityEventType.USER_SIGNED_UP
                if signed_up
                else ActivityEventType.USER_SIGNED_IN
            ),
            user_id=user_id,
            entity_type="user",
            description="User signed up" if signed_up else "User signed in",
            details={"email": email},
        )

    @staticmethod
    def sign_in_failed(email: str, reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SIGN_IN_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="user",
            description="Sign in failed",
            details={"email": email},
            error_message=reason,
        )

    @staticmethod
    def receipt_extracted(
        user_id: Optional[str],
        extraction_id: UUID,
        is_fallback: bool,
        fields_found: list[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=(
                ActivityEventType.RECEIPT_EXTRACTION_FALLBACK
                if is_fallback
                else ActivityEventType.RECEIPT_EXTRACTED
            ),
            severity=ActivitySeverity.WARNING if is_fallback else ActivitySeverity.INFO,
            user_id=user_id,
            entity_type="receipt",
            entity_id=extraction_id,
            description=(
                "Receipt extraction fell back to placeholder values"
                if is_fallback
                else f"Receipt extracted ({len(fields_found)} fields)"
            ),
            details={"fields_found": fields_found},
        )

    @staticmethod
    def receipt_rejected(
        user_id: Optional[str],
        upload_id: UUID,
        reason: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECEIPT_REJECTED,
            severity=ActivitySeverity.WARNING,
            user_id=user_id,
            entity_type="receipt",
            entity_id=upload_id,
            description="Receipt image rejected",
            error_message=reason,
        )

    @staticmethod
    def insights_generated(
        user_id: Optional[str],
        count: int,
        is_fallback: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=(
                ActivityEventType.INSIGHTS_FALLBACK
                if is_fallback
                else ActivityEventType.INSIGHTS_GENERATED
            ),
            severity=ActivitySeverity.WARNING if is_fallback else ActivitySeverity.INFO,
            user_id=user_id,
            entity_type="insight",
            description=f"{count} insights generated",
            details={"count": count, "fallback": is_fallback},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORAGE_ERROR,
            severity=ActivitySeverity.ERROR,
            user_id=user_id,
            description=f"Storage error: {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTERNAL_SERVICE_ERROR,
            severity=ActivitySeverity.ERROR,
            user_id=user_id,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
        )
