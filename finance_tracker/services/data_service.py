"""
Finance Data Service

The one place the UI goes for a signed-in user's records.

DESIGN DECISION: The service is bound to a single user id. Every
record it creates is stamped with that id and every read passes it to
storage, so one user can never see or touch another user's data.

Error handling:
- Validation errors (pydantic) propagate unchanged for form display
- Storage errors are logged to the activity log and re-raised
- Calls without a signed-in user raise NotSignedInError
"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finance_tracker.activity import ActivityLogger
from finance_tracker.models.finance import Account, Investment, Transaction
from finance_tracker.services.storage import (
    AccountStorageInterface,
    InvestmentStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)


# Fields a partial update may never change
PROTECTED_FIELDS = frozenset({"id", "user_id", "created_at"})


class NotSignedInError(Exception):
    """A data operation was attempted without a signed-in user."""
    pass


class FinanceSnapshot(BaseModel):
    """Everything one user owns, loaded in one go."""

    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    investments: list[Investment] = Field(default_factory=list)

    def account_name(self, account_id: UUID) -> str:
        for account in self.accounts:
            if account.id == account_id:
                return account.name
        return "Unknown"


class FinanceDataService:
    """
    User-scoped CRUD over accounts, transactions and investments.

    Usage:
        service = FinanceDataService(session.uid, accounts, transactions, investments)
        snapshot = await service.load()
        await service.add_transaction(account_id=..., type="expense", ...)
    """

    def __init__(
        self,
        user_id: Optional[str],
        account_storage: AccountStorageInterface,
        transaction_storage: TransactionStorageInterface,
        investment_storage: InvestmentStorageInterface,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._user_id = user_id
        self._accounts = account_storage
        self._transactions = transaction_storage
        self._investments = investment_storage
        self._activity = activity_logger or ActivityLogger()

    @property
    def user_id(self) -> str:
        if not self._user_id:
            raise NotSignedInError("Please sign in to continue")
        return self._user_id

    async def _run(self, operation: str, call):
        """Await a storage call, logging and re-raising storage failures."""
        try:
            return await call
        except StorageError as e:
            await self._activity.log_storage_error(
                operation=operation,
                error_message=str(e),
                user_id=self._user_id,
            )
            raise

    @staticmethod
    async def _require(call, message: str):
        """Await a get call and treat a missing record as NotFoundError."""
        record = await call
        if record is None:
            raise NotFoundError(message)
        return record

    @staticmethod
    def _merge(record: BaseModel, changes: dict[str, Any]):
        """Apply a partial update and re-run validation on the result."""
        data = record.model_dump()
        data.update({k: v for k, v in changes.items() if k not in PROTECTED_FIELDS})
        return type(record).model_validate(data)

    # ===== LOAD =====

    async def load(self) -> FinanceSnapshot:
        """Load all of the user's records."""
        user_id = self.user_id
        return FinanceSnapshot(
            accounts=await self._run("list accounts", self._accounts.list_accounts(user_id)),
            transactions=await self._run(
                "list transactions", self._transactions.list_transactions(user_id)
            ),
            investments=await self._run(
                "list investments", self._investments.list_investments(user_id)
            ),
        )

    # ===== ACCOUNTS =====

    async def add_account(self, **fields) -> Account:
        """
        Create an account.

        Raises:
            ValidationError: If the form values are invalid
            StorageError: If the write fails
        """
        account = Account(user_id=self.user_id, **fields)
        await self._run("add account", self._accounts.add_account(account))
        await self._activity.log_record_changed("account", "created", account.id, self.user_id)
        return account

    async def update_account(self, account_id: UUID, changes: dict[str, Any]) -> Account:
        existing = await self._run("get account", self._require(
            self._accounts.get_account(self.user_id, account_id),
            f"Account not found: {account_id}",
        ))
        updated = self._merge(existing, changes)
        await self._run("update account", self._accounts.update_account(updated))
        await self._activity.log_record_changed(
            "account", "updated", account_id, self.user_id,
            details={"fields": sorted(changes)},
        )
        return updated

    async def delete_account(self, account_id: UUID) -> bool:
        """Delete an account. Its transactions are left as they are."""
        deleted = await self._run(
            "delete account", self._accounts.delete_account(self.user_id, account_id)
        )
        if deleted:
            await self._activity.log_record_changed("account", "deleted", account_id, self.user_id)
        return deleted

    # ===== TRANSACTIONS =====

    async def add_transaction(self, **fields) -> Transaction:
        transaction = Transaction(user_id=self.user_id, **fields)
        await self._run("add transaction", self._transactions.add_transaction(transaction))
        await self._activity.log_record_changed(
            "transaction", "created", transaction.id, self.user_id,
            details={
                "type": transaction.type.value,
                "amount": str(transaction.amount),
                "has_receipt": transaction.receipt_url is not None,
            },
        )
        return transaction

    async def update_transaction(
        self,
        transaction_id: UUID,
        changes: dict[str, Any],
    ) -> Transaction:
        existing = await self._run("get transaction", self._require(
            self._transactions.get_transaction(self.user_id, transaction_id),
            f"Transaction not found: {transaction_id}",
        ))
        updated = self._merge(existing, changes)
        await self._run("update transaction", self._transactions.update_transaction(updated))
        await self._activity.log_record_changed(
            "transaction", "updated", transaction_id, self.user_id,
            details={"fields": sorted(changes)},
        )
        return updated

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        deleted = await self._run(
            "delete transaction",
            self._transactions.delete_transaction(self.user_id, transaction_id),
        )
        if deleted:
            await self._activity.log_record_changed(
                "transaction", "deleted", transaction_id, self.user_id
            )
        return deleted

    # ===== INVESTMENTS =====

    async def add_investment(self, **fields) -> Investment:
        investment = Investment(user_id=self.user_id, **fields)
        await self._run("add investment", self._investments.add_investment(investment))
        await self._activity.log_record_changed(
            "investment", "created", investment.id, self.user_id
        )
        return investment

    async def update_investment(
        self,
        investment_id: UUID,
        changes: dict[str, Any],
    ) -> Investment:
        existing = await self._run("get investment", self._require(
            self._investments.get_investment(self.user_id, investment_id),
            f"Investment not found: {investment_id}",
        ))
        updated = self._merge(existing, changes)
        await self._run("update investment", self._investments.update_investment(updated))
        await self._activity.log_record_changed(
            "investment", "updated", investment_id, self.user_id,
            details={"fields": sorted(changes)},
        )
        return updated

    async def delete_investment(self, investment_id: UUID) -> bool:
        deleted = await self._run(
            "delete investment",
            self._investments.delete_investment(self.user_id, investment_id),
        )
        if deleted:
            await self._activity.log_record_changed(
                "investment", "deleted", investment_id, self.user_id
            )
        return deleted


