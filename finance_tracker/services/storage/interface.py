"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run against the hosted spreadsheet in production
2. Use in-memory storage for tests and offline demos
3. Keep business logic decoupled from storage implementation

Every read is scoped to the owning user. A record that belongs to
someone else is indistinguishable from a record that does not exist.

The interface is intentionally simple: single-record writes and
a full list per user. Filtering and aggregation happen in Python.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from finance_tracker.models.finance import Account, Investment, Transaction


class AccountStorageInterface(ABC):
    """Abstract interface for account storage."""

    @abstractmethod
    async def add_account(self, account: Account) -> Account:
        """
        Persist a new account.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_account(self, user_id: str, account_id: UUID) -> Optional[Account]:
        """Return the user's account, or None if it does not exist for them."""
        pass

    @abstractmethod
    async def update_account(self, account: Account) -> Account:
        """
        Replace a stored account with this version.

        Raises:
            NotFoundError: If the user has no account with this id
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_account(self, user_id: str, account_id: UUID) -> bool:
        """Delete the user's account. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_accounts(self, user_id: str) -> list[Account]:
        """All of the user's accounts, oldest first."""
        pass


class TransactionStorageInterface(ABC):
    """Abstract interface for transaction storage."""

    @abstractmethod
    async def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Persist a new transaction.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_transaction(
        self,
        user_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Raises:
            NotFoundError: If the user has no transaction with this id
        """
        pass

    @abstractmethod
    async def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        pass

    @abstractmethod
    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """All of the user's transactions, newest date first."""
        pass


class InvestmentStorageInterface(ABC):
    """Abstract interface for investment storage."""

    @abstractmethod
    async def add_investment(self, investment: Investment) -> Investment:
        pass

    @abstractmethod
    async def get_investment(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> Optional[Investment]:
        pass

    @abstractmethod
    async def update_investment(self, investment: Investment) -> Investment:
        """
        Raises:
            NotFoundError: If the user has no investment with this id
        """
        pass

    @abstractmethod
    async def delete_investment(self, user_id: str, investment_id: UUID) -> bool:
        pass

    @abstractmethod
    async def list_investments(self, user_id: str) -> list[Investment]:
        """All of the user's investments, oldest first."""
        pass


def sort_transactions(transactions: list[Transaction]) -> list[Transaction]:
    """Newest date first; same-day entries by creation time, newest first."""
    return sorted(
        transactions,
        key=lambda t: (t.date, t.created_at),
        reverse=True,
    )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
