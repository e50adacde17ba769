"""Shared fixtures for Finance Tracker tests."""

import io
from datetime import date
from decimal import Decimal

import pytest
from PIL import Image, ImageDraw

from finance_tracker.activity import ActivityLogger
from finance_tracker.models import (
    Account,
    Investment,
    InvestmentType,
    Transaction,
    TransactionType,
)
from finance_tracker.services.data_service import FinanceDataService
from finance_tracker.services.storage import (
    InMemoryAccountStorage,
    InMemoryInvestmentStorage,
    InMemoryTransactionStorage,
)


USER_ID = "user-1"


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content_async(self, contents, **kwargs):
        self.calls.append(contents)
        if self.error is not None:
            raise self.error
        return FakeResponse(self.text)


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def account():
    return Account(user_id=USER_ID, name="HDFC Savings", type="Savings Account", balance=Decimal("5000"))


@pytest.fixture
def make_transaction(account):
    """Factory for transactions on the sample account."""

    def _make(amount, type=TransactionType.EXPENSE, category="Food & Dining", on=None, **fields):
        return Transaction(
            user_id=fields.pop("user_id", USER_ID),
            account_id=fields.pop("account_id", account.id),
            type=type,
            amount=Decimal(str(amount)),
            category=category,
            description=fields.pop("description", f"{category} entry"),
            date=on or date(2024, 3, 15),
            **fields,
        )

    return _make


@pytest.fixture
def make_investment():
    def _make(name="INFY", type=InvestmentType.STOCK, quantity="10", buy="100", current="120"):
        return Investment(
            user_id=USER_ID,
            name=name,
            type=type,
            quantity=Decimal(quantity),
            buy_price=Decimal(buy),
            current_price=Decimal(current),
        )

    return _make


@pytest.fixture
def activity_logger():
    return ActivityLogger()


@pytest.fixture
def data_service(activity_logger):
    return FinanceDataService(
        user_id=USER_ID,
        account_storage=InMemoryAccountStorage(),
        transaction_storage=InMemoryTransactionStorage(),
        investment_storage=InMemoryInvestmentStorage(),
        activity_logger=activity_logger,
    )


@pytest.fixture
def receipt_image_bytes():
    """A sharp, well-exposed fake receipt as PNG bytes."""
    image = Image.new("RGB", (800, 1200), "white")
    draw = ImageDraw.Draw(image)
    for row in range(40, 1160, 30):
        draw.rectangle([60, row, 740, row + 12], fill="black")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def fake_model():
    return FakeModel


