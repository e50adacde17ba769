"""
Google Sheets Storage Implementation

DESIGN DECISION: A Google Sheets spreadsheet is the hosted database:
1. Users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Layout: one worksheet per collection (Accounts, Transactions,
Investments), one record per row, a header row created on first use.
Every row carries the owning user_id and every read filters on it.

TRADEOFFS:
- Not suitable for high-volume data (fine for personal use)
- No batched writes; each operation touches a single row
- Limited query capabilities (we filter in Python)
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import get_settings
from finance_tracker.models.finance import (
    Account,
    Investment,
    InvestmentType,
    Transaction,
    TransactionType,
)
from finance_tracker.services.storage.interface import (
    AccountStorageInterface,
    ConnectionError,
    InvestmentStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
    sort_transactions,
)


logger = structlog.get_logger(__name__)


ACCOUNT_COLUMNS = [
    "id",
    "user_id",
    "name",
    "type",
    "balance",
    "created_at",
]

TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "account_id",
    "type",
    "amount",
    "category",
    "description",
    "date",
    "notes",
    "receipt_url",
    "created_at",
]

INVESTMENT_COLUMNS = [
    "id",
    "user_id",
    "name",
    "type",
    "quantity",
    "buy_price",
    "current_price",
    "created_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
            logger.info("worksheet_created", title=title)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS
        )

    def get_investments_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.investments_sheet_name, INVESTMENT_COLUMNS
        )


def _row_reader(row: list) -> Callable[[int], str]:
    """Index into a row, treating short rows and blank cells as ''."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class _SheetTable:
    """
    Row-level operations shared by the three collections.

    Column 0 is always the record id and column 1 the owning user_id.
    """

    kind = "Record"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        raise NotImplementedError

    def _to_row(self, record) -> list:
        raise NotImplementedError

    def _from_row(self, row: list):
        raise NotImplementedError

    def _find_row(self, user_id: str, record_id: UUID) -> tuple[Optional[int], Optional[list]]:
        """1-based sheet row index and contents of the user's record."""
        sheet = self._sheet()
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if len(row) > 1 and row[0] == str(record_id) and row[1] == user_id:
                return idx, row
        return None, None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append(self, record) -> None:
        try:
            self._sheet().append_row(self._to_row(record), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save {self.kind.lower()}: {e}")

    def _get(self, user_id: str, record_id: UUID):
        try:
            _, row = self._find_row(user_id, record_id)
        except Exception as e:
            raise StorageError(f"Failed to get {self.kind.lower()}: {e}")
        return self._from_row(row) if row else None

    def _update(self, record) -> None:
        try:
            idx, _ = self._find_row(record.user_id, record.id)
            if idx is None:
                raise NotFoundError(f"{self.kind} not found: {record.id}")
            # one write per row, so a failed edit never leaves a mixed row
            self._sheet().update(
                range_name=f"A{idx}",
                values=[self._to_row(record)],
                value_input_option="RAW",
            )
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self.kind.lower()}: {e}")

    def _delete(self, user_id: str, record_id: UUID) -> bool:
        try:
            idx, _ = self._find_row(user_id, record_id)
            if idx is None:
                return False
            self._sheet().delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {self.kind.lower()}: {e}")

    def _list(self, user_id: str) -> list:
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list {self.kind.lower()}s: {e}")

        records = []
        for row in all_rows:
            if len(row) < 2 or row[1] != user_id:
                continue
            try:
                records.append(self._from_row(row))
            except (ValueError, TypeError, InvalidOperation) as e:
                # A hand-edited row that no longer parses is skipped, not fatal
                logger.warning(
                    "sheet_row_skipped",
                    kind=self.kind,
                    row_id=row[0],
                    error=str(e),
                )
        return records


class GoogleSheetsAccountStorage(_SheetTable, AccountStorageInterface):
    """Accounts worksheet."""

    kind = "Account"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_accounts_sheet()

    def _to_row(self, account: Account) -> list:
        return [
            str(account.id),
            account.user_id,
            account.name,
            account.type,
            str(account.balance),
            account.created_at.isoformat(),
        ]

    def _from_row(self, row: list) -> Account:
        safe_get = _row_reader(row)
        return Account(
            id=UUID(safe_get(0)),
            user_id=safe_get(1),
            name=safe_get(2),
            type=safe_get(3),
            balance=Decimal(safe_get(4, "0")),
            created_at=datetime.fromisoformat(safe_get(5)),
        )

    async def add_account(self, account: Account) -> Account:
        self._append(account)
        return account

    async def get_account(self, user_id: str, account_id: UUID) -> Optional[Account]:
        return self._get(user_id, account_id)

    async def update_account(self, account: Account) -> Account:
        self._update(account)
        return account

    async def delete_account(self, user_id: str, account_id: UUID) -> bool:
        return self._delete(user_id, account_id)

    async def list_accounts(self, user_id: str) -> list[Account]:
        return sorted(self._list(user_id), key=lambda a: a.created_at)


class GoogleSheetsTransactionStorage(_SheetTable, TransactionStorageInterface):
    """Transactions worksheet."""

    kind = "Transaction"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_transactions_sheet()

    def _to_row(self, transaction: Transaction) -> list:
        return [
            str(transaction.id),
            transaction.user_id,
            str(transaction.account_id),
            transaction.type.value,
            str(transaction.amount),
            transaction.category,
            transaction.description,
            transaction.date.isoformat(),
            transaction.notes or "",
            transaction.receipt_url or "",
            transaction.created_at.isoformat(),
        ]

    def _from_row(self, row: list) -> Transaction:
        safe_get = _row_reader(row)
        return Transaction(
            id=UUID(safe_get(0)),
            user_id=safe_get(1),
            account_id=UUID(safe_get(2)),
            type=TransactionType(safe_get(3)),
            amount=Decimal(safe_get(4)),
            category=safe_get(5),
            description=safe_get(6),
            date=dt.date.fromisoformat(safe_get(7)),
            notes=safe_get(8) or None,
            receipt_url=safe_get(9) or None,
            created_at=datetime.fromisoformat(safe_get(10)),
        )

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        self._append(transaction)
        return transaction

    async def get_transaction(
        self,
        user_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        return self._get(user_id, transaction_id)

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        self._update(transaction)
        return transaction

    async def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        return self._delete(user_id, transaction_id)

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        return sort_transactions(self._list(user_id))


class GoogleSheetsInvestmentStorage(_SheetTable, InvestmentStorageInterface):
    """Investments worksheet."""

    kind = "Investment"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_investments_sheet()

    def _to_row(self, investment: Investment) -> list:
        return [
            str(investment.id),
            investment.user_id,
            investment.name,
            investment.type.value,
            str(investment.quantity),
            str(investment.buy_price),
            str(investment.current_price),
            investment.created_at.isoformat(),
        ]

    def _from_row(self, row: list) -> Investment:
        safe_get = _row_reader(row)
        return Investment(
            id=UUID(safe_get(0)),
            user_id=safe_get(1),
            name=safe_get(2),
            type=InvestmentType(safe_get(3)),
            quantity=Decimal(safe_get(4)),
            buy_price=Decimal(safe_get(5)),
            current_price=Decimal(safe_get(6)),
            created_at=datetime.fromisoformat(safe_get(7)),
        )

    async def add_investment(self, investment: Investment) -> Investment:
        self._append(investment)
        return investment

    async def get_investment(
        self,
        user_id: str,
        investment_id: UUID,
    ) -> Optional[Investment]:
        return self._get(user_id, investment_id)

    async def update_investment(self, investment: Investment) -> Investment:
        self._update(investment)
        return investment

    async def delete_investment(self, user_id: str, investment_id: UUID) -> bool:
        return self._delete(user_id, investment_id)

    async def list_investments(self, user_id: str) -> list[Investment]:
        return sorted(self._list(user_id), key=lambda i: i.created_at)
