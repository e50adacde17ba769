"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the hosted backend; the in-memory backend is for tests
and offline use.
"""

from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    ConnectionError,
    InvestmentStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
    sort_transactions,
)
from finance_tracker.services.storage.google_sheets import (
    GoogleSheetsAccountStorage,
    GoogleSheetsClient,
    GoogleSheetsInvestmentStorage,
    GoogleSheetsTransactionStorage,
)
from finance_tracker.services.storage.memory import (
    InMemoryAccountStorage,
    InMemoryInvestmentStorage,
    InMemoryTransactionStorage,
)

__all__ = [
    # Interfaces
    "AccountStorageInterface",
    "InvestmentStorageInterface",
    "TransactionStorageInterface",
    "sort_transactions",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAccountStorage",
    "GoogleSheetsClient",
    "GoogleSheetsInvestmentStorage",
    "GoogleSheetsTransactionStorage",
    # In-memory implementation
    "InMemoryAccountStorage",
    "InMemoryInvestmentStorage",
    "InMemoryTransactionStorage",
]
