"""
Tests for Finance Tracker models

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with fake external services)
3. No real API calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from finance_tracker.models import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    Account,
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
    Insight,
    InsightType,
    Investment,
    InvestmentType,
    ReceiptImage,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    form_errors,
)


class TestAccountModel:
    """Tests for Account."""

    def test_account_creation(self):
        account = Account(user_id="u1", name="  HDFC Savings  ", type="Savings Account", balance=1500)
        assert account.name == "HDFC Savings"
        assert account.balance == Decimal("1500.00")

    def test_account_rejects_negative_balance(self):
        with pytest.raises(ValidationError):
            Account(user_id="u1", name="Wallet", type="Cash", balance=-1)

    def test_account_allows_zero_balance(self):
        account = Account(user_id="u1", name="Wallet", type="Cash", balance=0)
        assert account.balance == Decimal("0.00")

    def test_account_requires_name(self):
        with pytest.raises(ValidationError):
            Account(user_id="u1", name="", type="Cash", balance=10)

    def test_balance_rounded_to_cents(self):
        account = Account(user_id="u1", name="Wallet", type="Cash", balance="10.005")
        assert account.balance.as_tuple().exponent == -2


class TestTransactionModel:
    """Tests for Transaction."""

    def _make(self, **overrides):
        fields = dict(
            user_id="u1",
            account_id=uuid4(),
            type=TransactionType.EXPENSE,
            amount=Decimal("250.50"),
            category="Food & Dining",
            description="Lunch",
            date=date(2024, 3, 10),
        )
        fields.update(overrides)
        return Transaction(**fields)

    def test_transaction_creation(self):
        transaction = self._make()
        assert transaction.amount == Decimal("250.50")
        assert transaction.created_at.tzinfo is not None

    @pytest.mark.parametrize("amount", [0, -5, "-0.01"])
    def test_transaction_rejects_non_positive_amount(self, amount):
        with pytest.raises(ValidationError):
            self._make(amount=amount)

    def test_transaction_rejects_garbage_amount(self):
        with pytest.raises(ValidationError):
            self._make(amount="abc")

    def test_signed_amount(self):
        assert self._make().signed_amount == Decimal("-250.50")
        assert self._make(type=TransactionType.INCOME).signed_amount == Decimal("250.50")

    def test_blank_notes_become_none(self):
        transaction = self._make(notes="", receipt_url="")
        assert transaction.notes is None
        assert transaction.receipt_url is None

    def test_description_required(self):
        with pytest.raises(ValidationError):
            self._make(description="   ")


class TestInvestmentModel:
    """Tests for Investment derived values."""

    def test_gain_and_percentage(self):
        investment = Investment(
            user_id="u1",
            name="INFY",
            type=InvestmentType.STOCK,
            quantity=Decimal("10"),
            buy_price=Decimal("100"),
            current_price=Decimal("120"),
        )
        assert investment.current_value == Decimal("1200")
        assert investment.total_cost == Decimal("1000")
        assert investment.gain_loss == Decimal("200")
        assert investment.gain_loss_percentage == pytest.approx(20.0)

    def test_loss(self):
        investment = Investment(
            user_id="u1",
            name="BTC",
            type=InvestmentType.CRYPTO,
            quantity=Decimal("0.5"),
            buy_price=Decimal("200"),
            current_price=Decimal("150"),
        )
        assert investment.gain_loss == Decimal("-25.0")
        assert investment.gain_loss_percentage == pytest.approx(-25.0)

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            Investment(
                user_id="u1",
                name="Gold",
                type=InvestmentType.GOLD,
                quantity=0,
                buy_price=1,
                current_price=1,
            )

    def test_type_labels(self):
        assert InvestmentType.MUTUAL_FUND.label == "Mutual Funds"
        assert InvestmentType.OTHER.label == "Others"


class TestCategories:
    """Tests for category helpers."""

    def test_categories_for_type(self):
        assert categories_for(TransactionType.INCOME) == INCOME_CATEGORIES
        assert categories_for(TransactionType.EXPENSE) == EXPENSE_CATEGORIES

    def test_others_in_both(self):
        assert "Others" in EXPENSE_CATEGORIES
        assert "Others" in INCOME_CATEGORIES


class TestFormErrors:
    """Tests for flattening validation errors."""

    def test_one_message_per_field(self):
        with pytest.raises(ValidationError) as exc_info:
            Account(user_id="u1", name="", type="", balance=-5)
        errors = form_errors(exc_info.value)
        assert set(errors) == {"name", "type", "balance"}
        assert all(isinstance(message, str) for message in errors.values())


class TestReceiptImage:
    """Tests for receipt upload metadata."""

    def test_accepts_supported_types(self):
        image = ReceiptImage(original_filename="r.PNG", file_size_bytes=10, mime_type="IMAGE/PNG")
        assert image.mime_type == "image/png"

    def test_rejects_pdf(self):
        with pytest.raises(ValidationError, match="valid image file"):
            ReceiptImage(original_filename="r.pdf", file_size_bytes=10, mime_type="application/pdf")


class TestActivityModels:
    """Tests for activity events."""

    def test_activity_event_creation(self):
        event = ActivityEvent(
            event_type=ActivityEventType.RECEIPT_UPLOADED,
            description="Receipt uploaded",
        )
        assert event.severity == ActivitySeverity.INFO

    def test_activity_event_to_log_dict(self):
        event = ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_CREATED,
            description="Transaction created",
            details={"amount": "100"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_created"
        assert log_dict["details"]["amount"] == "100"

    def test_builder_record_changed(self):
        record_id = uuid4()
        event = ActivityEventBuilder.record_changed("account", "deleted", record_id, "u1")
        assert event.event_type == ActivityEventType.ACCOUNT_DELETED
        assert event.entity_id == record_id
        assert event.description == "Account deleted"

    def test_builder_receipt_fallback_is_warning(self):
        event = ActivityEventBuilder.receipt_extracted("u1", uuid4(), True, [])
        assert event.event_type == ActivityEventType.RECEIPT_EXTRACTION_FALLBACK
        assert event.severity == ActivitySeverity.WARNING

    def test_builder_storage_error(self):
        event = ActivityEventBuilder.storage_error("add transaction", "boom", user_id="u1")
        assert event.severity == ActivitySeverity.ERROR
        assert event.details["operation"] == "add transaction"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            extraction_id=uuid4(),
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        result = ValidationResult(
            extraction_id=uuid4(),
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_issue_severity_restricted(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestInsightModel:

    def test_defaults(self):
        insight = Insight(title="  Spending up  ", message="You spent more")
        assert insight.type == InsightType.INFO
        assert insight.title == "Spending up"

    def test_title_required(self):
        with pytest.raises(ValidationError):
            Insight(title="", message="x")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
