"""
Core Data Models for Finance Tracker

These models define the records a user owns:
1. Accounts (manually tracked balances)
2. Transactions (income/expense entries linked to an account)
3. Investments (holdings tracked for gain/loss)

The form validation rules live here too: every record that reaches
storage has been through these validators, whether it came from a
form, a receipt extraction or a partial update.

DESIGN DECISION: Records are flat. No balance is ever recomputed from
transactions and deleting an account does not touch its transactions.
"""

import datetime as dt
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)


# =============================================================================
# CONSTANTS - Category and type labels offered in the forms
# =============================================================================

EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Education",
    "Travel",
    "Others",
)

INCOME_CATEGORIES: tuple[str, ...] = (
    "Salary",
    "Business",
    "Investment",
    "Freelance",
    "Rental",
    "Others",
)

ACCOUNT_TYPES: tuple[str, ...] = (
    "Savings Account",
    "Current Account",
    "Credit Card",
    "Cash",
    "Investment Account",
    "Others",
)

MONEY_QUANTUM = Decimal("0.01")


def utc_now() -> datetime:
    """Timezone-aware current time used for created_at stamps."""
    return datetime.now(timezone.utc)


def to_money(value) -> Decimal:
    """Coerce a number-like value to a 2-place Decimal."""
    try:
        return Decimal(str(value)).quantize(MONEY_QUANTUM)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a valid amount: {value!r}")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class InvestmentType(str, Enum):
    """Supported investment types."""
    STOCK = "stock"
    MUTUAL_FUND = "mutual_fund"
    CRYPTO = "crypto"
    GOLD = "gold"
    SIP = "sip"
    OTHER = "other"

    @property
    def label(self) -> str:
        return INVESTMENT_TYPE_LABELS[self]


INVESTMENT_TYPE_LABELS: dict[InvestmentType, str] = {
    InvestmentType.STOCK: "Stocks",
    InvestmentType.MUTUAL_FUND: "Mutual Funds",
    InvestmentType.CRYPTO: "Cryptocurrency",
    InvestmentType.GOLD: "Gold",
    InvestmentType.SIP: "SIP",
    InvestmentType.OTHER: "Others",
}


def categories_for(transaction_type: TransactionType) -> tuple[str, ...]:
    """Categories offered for a transaction type."""
    if transaction_type == TransactionType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


# =============================================================================
# RECORDS
# =============================================================================

class Account(BaseModel):
    """
    A bank/cash/investment holding with a manually entered balance.

    The balance is whatever the user typed. It is never reconciled
    against the account's transactions.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owning user (identity service uid)"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    type: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Account type label (e.g. Savings Account)"
    )
    balance: Decimal = Field(
        ...,
        ge=0,
        description="Current balance, entered by hand"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the account was registered"
    )

    @field_validator('balance', mode='before')
    @classmethod
    def quantize_balance(cls, v):
        return to_money(v)


class Transaction(BaseModel):
    """
    A single income or expense record linked to an account.

    Amount is always positive; the direction comes from `type`.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owning user (identity service uid)"
    )
    account_id: UUID = Field(
        ...,
        description="Account this transaction belongs to"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount, must be positive"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Category label"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    date: dt.date
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free-form notes"
    )
    receipt_url: Optional[str] = Field(
        default=None,
        description="URL of the hosted receipt image"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was created"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def quantize_amount(cls, v):
        return to_money(v)

    @field_validator('notes', 'receipt_url')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expenses negative."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return self.amount


class Investment(BaseModel):
    """A holding tracked by quantity, purchase price and current price."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique investment ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owning user (identity service uid)"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Investment name (ticker, fund, ...)"
    )
    type: InvestmentType
    quantity: Decimal = Field(
        ...,
        gt=0,
        description="Units held"
    )
    buy_price: Decimal = Field(
        ...,
        gt=0,
        description="Purchase price per unit"
    )
    current_price: Decimal = Field(
        ...,
        gt=0,
        description="Latest price per unit, entered by hand"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the holding was added"
    )

    @property
    def current_value(self) -> Decimal:
        return self.quantity * self.current_price

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.buy_price

    @property
    def gain_loss(self) -> Decimal:
        return self.current_value - self.total_cost

    @property
    def gain_loss_percentage(self) -> float:
        cost = self.total_cost
        if cost <= 0:
            return 0.0
        return float(self.gain_loss / cost * 100)


def form_errors(exc: ValidationError) -> dict[str, str]:
    """
    Flatten a pydantic ValidationError into {field: message}.

    Only the first message per field is kept; that is what a form shows.
    """
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "form"
        errors.setdefault(field, error["msg"])
    return errors
