"""Tests for the user-scoped data service."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from finance_tracker.activity import ActivityLogger
from finance_tracker.models import ActivityEventType, InvestmentType, TransactionType
from finance_tracker.services.data_service import FinanceDataService, NotSignedInError
from finance_tracker.services.storage import (
    InMemoryAccountStorage,
    InMemoryInvestmentStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
)


class BrokenTransactionStorage(InMemoryTransactionStorage):
    async def add_transaction(self, transaction):
        raise StorageError("spreadsheet unavailable")


class TestAccounts:

    @pytest.mark.asyncio
    async def test_add_and_load(self, data_service):
        account = await data_service.add_account(name="Wallet", type="Cash", balance=Decimal("250"))
        snapshot = await data_service.load()
        assert snapshot.accounts == [account]
        assert snapshot.account_name(account.id) == "Wallet"
        assert snapshot.account_name(uuid4()) == "Unknown"

    @pytest.mark.asyncio
    async def test_invalid_account_not_saved(self, data_service):
        with pytest.raises(ValidationError):
            await data_service.add_account(name="Wallet", type="Cash", balance=Decimal("-1"))
        assert (await data_service.load()).accounts == []

    @pytest.mark.asyncio
    async def test_update_keeps_identity(self, data_service):
        account = await data_service.add_account(name="Wallet", type="Cash", balance=10)
        updated = await data_service.update_account(
            account.id,
            {"balance": Decimal("99.5"), "id": uuid4(), "user_id": "intruder"},
        )
        assert updated.id == account.id
        assert updated.user_id == "user-1"
        assert updated.created_at == account.created_at
        assert updated.balance == Decimal("99.50")

    @pytest.mark.asyncio
    async def test_update_validates(self, data_service):
        account = await data_service.add_account(name="Wallet", type="Cash", balance=10)
        with pytest.raises(ValidationError):
            await data_service.update_account(account.id, {"balance": -5})
        assert (await data_service.load()).accounts[0].balance == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_update_missing(self, data_service, activity_logger):
        with pytest.raises(NotFoundError):
            await data_service.update_account(uuid4(), {"name": "x"})
        event = activity_logger.recent_events("user-1")[0]
        assert event.event_type == ActivityEventType.STORAGE_ERROR
        assert "Account not found" in event.error_message

    @pytest.mark.asyncio
    async def test_delete_does_not_cascade(self, data_service):
        account = await data_service.add_account(name="Wallet", type="Cash", balance=10)
        await data_service.add_transaction(
            account_id=account.id,
            type=TransactionType.EXPENSE,
            amount=Decimal("5"),
            category="Others",
            description="Snack",
            date=date(2024, 3, 1),
        )
        assert await data_service.delete_account(account.id) is True
        snapshot = await data_service.load()
        assert snapshot.accounts == []
        assert len(snapshot.transactions) == 1
        assert snapshot.account_name(snapshot.transactions[0].account_id) == "Unknown"


class TestTransactions:

    @pytest.mark.asyncio
    async def test_crud(self, data_service, account):
        transaction = await data_service.add_transaction(
            account_id=account.id,
            type="income",
            amount="1000",
            category="Salary",
            description="March salary",
            date=date(2024, 3, 31),
        )
        assert transaction.type == TransactionType.INCOME

        updated = await data_service.update_transaction(
            transaction.id, {"amount": Decimal("1200"), "notes": "bonus"}
        )
        assert updated.amount == Decimal("1200.00")
        assert updated.notes == "bonus"

        assert await data_service.delete_transaction(transaction.id) is True
        assert await data_service.delete_transaction(transaction.id) is False
        assert (await data_service.load()).transactions == []

    @pytest.mark.asyncio
    async def test_activity_is_logged(self, data_service, activity_logger, account):
        await data_service.add_transaction(
            account_id=account.id,
            type=TransactionType.EXPENSE,
            amount=Decimal("10"),
            category="Others",
            description="Pen",
            date=date(2024, 3, 1),
        )
        event = activity_logger.recent_events("user-1")[0]
        assert event.event_type == ActivityEventType.TRANSACTION_CREATED
        assert event.user_id == "user-1"
        assert event.details["amount"] == "10.00"

    @pytest.mark.asyncio
    async def test_storage_error_logged_and_raised(self, activity_logger, account):
        service = FinanceDataService(
            user_id="user-1",
            account_storage=InMemoryAccountStorage(),
            transaction_storage=BrokenTransactionStorage(),
            investment_storage=InMemoryInvestmentStorage(),
            activity_logger=activity_logger,
        )
        with pytest.raises(StorageError):
            await service.add_transaction(
                account_id=account.id,
                type=TransactionType.EXPENSE,
                amount=Decimal("10"),
                category="Others",
                description="Pen",
                date=date(2024, 3, 1),
            )
        event = activity_logger.recent_events("user-1")[0]
        assert event.event_type == ActivityEventType.STORAGE_ERROR
        assert event.error_message == "spreadsheet unavailable"


class TestInvestments:

    @pytest.mark.asyncio
    async def test_crud(self, data_service):
        investment = await data_service.add_investment(
            name="Nifty Index Fund",
            type=InvestmentType.MUTUAL_FUND,
            quantity=Decimal("12.5"),
            buy_price=Decimal("100"),
            current_price=Decimal("110"),
        )
        updated = await data_service.update_investment(
            investment.id, {"current_price": Decimal("90")}
        )
        assert updated.gain_loss == Decimal("-125.0")
        assert await data_service.delete_investment(investment.id) is True

    @pytest.mark.asyncio
    async def test_edit_every_field(self, data_service):
        investment = await data_service.add_investment(
            name="Gold ETF",
            type=InvestmentType.MUTUAL_FUND,
            quantity=Decimal("1"),
            buy_price=Decimal("100"),
            current_price=Decimal("100"),
        )
        updated = await data_service.update_investment(investment.id, {
            "name": "Sovereign Gold Bond",
            "type": InvestmentType.GOLD,
            "quantity": Decimal("2"),
            "buy_price": Decimal("50"),
            "current_price": Decimal("60"),
        })
        assert (await data_service.load()).investments == [updated]
        assert updated.name == "Sovereign Gold Bond"
        assert updated.type == InvestmentType.GOLD
        assert updated.gain_loss == Decimal("20")

        with pytest.raises(ValidationError):
            await data_service.update_investment(investment.id, {"buy_price": Decimal("0")})


class TestUserScope:

    @pytest.mark.asyncio
    async def test_not_signed_in(self):
        service = FinanceDataService(
            user_id=None,
            account_storage=InMemoryAccountStorage(),
            transaction_storage=InMemoryTransactionStorage(),
            investment_storage=InMemoryInvestmentStorage(),
        )
        with pytest.raises(NotSignedInError):
            await service.load()

    @pytest.mark.asyncio
    async def test_users_do_not_see_each_other(self):
        accounts = InMemoryAccountStorage()
        transactions = InMemoryTransactionStorage()
        investments = InMemoryInvestmentStorage()
        alice = FinanceDataService("alice", accounts, transactions, investments)
        bob = FinanceDataService("bob", accounts, transactions, investments)

        account = await alice.add_account(name="Alice Savings", type="Savings Account", balance=1)
        assert (await bob.load()).accounts == []
        with pytest.raises(NotFoundError):
            await bob.update_account(account.id, {"name": "Mine now"})
        assert await bob.delete_account(account.id) is False

    @pytest.mark.asyncio
    async def test_recent_activity_is_per_user(self):
        accounts = InMemoryAccountStorage()
        transactions = InMemoryTransactionStorage()
        investments = InMemoryInvestmentStorage()
        shared_logger = ActivityLogger()
        alice = FinanceDataService("alice", accounts, transactions, investments, shared_logger)
        bob = FinanceDataService("bob", accounts, transactions, investments, shared_logger)

        await alice.add_account(name="Alice Savings", type="Savings Account", balance=1)

        assert [e.user_id for e in shared_logger.recent_events("alice")] == ["alice"]
        assert shared_logger.recent_events("bob") == []
        with pytest.raises(NotFoundError):
            await bob.update_account(uuid4(), {"name": "x"})
        assert [e.user_id for e in shared_logger.recent_events("alice")] == ["alice"]
        assert len(shared_logger.recent_events("bob")) == 1
