"""
In-Memory Storage

Dict-backed implementations of the storage interfaces. Used by the
test suite and when no spreadsheet is configured. Data lives as long
as the process does.
"""

from typing import Optional
from uuid import UUID

from finance_tracker.models.finance import Account, Investment, Transaction
from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    InvestmentStorageInterface,
    NotFoundError,
    TransactionStorageInterface,
    sort_transactions,
)


class _MemoryTable:
    """Records keyed by id, copied in and out so callers cannot mutate storage."""

    def __init__(self, kind: str):
        self._kind = kind
        self._records: dict[UUID, object] = {}

    def add(self, record):
        self._records[record.id] = record.model_copy(deep=True)
        return record

    def get(self, user_id: str, record_id: UUID):
        record = self._records.get(record_id)
        if record is None or record.user_id != user_id:
            return None
        return record.model_copy(deep=True)

    def update(self, record):
        if self.get(record.user_id, record.id) is None:
            raise NotFoundError(f"{self._kind} not found: {record.id}")
        self._records[record.id] = record.model_copy(deep=True)
        return record

    def delete(self, user_id: str, record_id: UUID) -> bool:
        if self.get(user_id, record_id) is None:
            return False
        del self._records[record_id]
        return True

    def list(self, user_id: str) -> list:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if record.user_id == user_id
        ]


class InMemoryAccountStorage(AccountStorageInterface):

    def __init__(self):
        self._table = _MemoryTable("Account")

    async def add_account(self, account: Account) -> Account:
        return self._table.add(account)

    async def get_account(self, user_id: str, account_id: UUID) -> Optional[Account]:
        return self._table.get(user_id, account_id)

    async def update_account(self, account: Account) -> Account:
        return self._table.update(account)

    async def delete_account(self, user_id: str, account_id: UUID) -> bool:
        return self._table.delete(user_id, account_id)

    async def list_accounts(self, user_id: str) -> list[Account]:
        return sorted(self._table.list(user_id), key=lambda a: a.created_at)


class InMemoryTransactionStorage(TransactionStorageInterface):

    def __init__(self):
        self._table = _MemoryTable("Transaction")

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        return self._table.add(transaction)

    async def get_transaction(
        self,
        user_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        return self._table.get(user_id, transaction_id)

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        return self._table.update(transaction)

    async def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        return self._table.delete(user_id, transaction_id)

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        return sort_transactions(self._table.list(user_id))


class InMemoryInvestmentStorage(InvestmentStorageInterface):

    def __init__(self):
        self._table = _MemoryTable("Investment")

    async def add_investment(self, investment: Investment) -> Investment:
        return self._table.add(investment)

    async def get_investment(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> Optional[Investment]:
        return self._table.get(user_id, investment_id)

    async def update_investment(self, investment: Investment) -> Investment:
        return self._table.update(investment)

    async def delete_investment(self, user_id: str, investment_id: UUID) -> bool:
        return self._table.delete(user_id, investment_id)

    async def list_investments(self, user_id: str) -> list[Investment]:
        return sorted(self._table.list(user_id), key=lambda i: i.created_at)
