"""
Data Export

CSV export of transactions for the reports page and a JSON dump of
everything a user owns for the settings page.
"""

import csv
import datetime as dt
import io
import json
from typing import Iterable

from finance_tracker.models.finance import Account, Investment, Transaction, utc_now
from finance_tracker.models.report import ReportType
from finance_tracker.reports.aggregations import (
    filter_by_period,
    month_bounds,
    year_bounds,
)


CSV_HEADER = ("Date", "Type", "Amount", "Category", "Description", "Account")
UNKNOWN_ACCOUNT = "Unknown"


class ExportError(Exception):
    """Nothing to export, or the export could not be built."""
    pass


def transactions_to_csv(
    transactions: Iterable[Transaction],
    accounts: Iterable[Account],
) -> str:
    """
    Render transactions as CSV text.

    Accounts are looked up by id; a transaction whose account no longer
    exists is exported with "Unknown".
    """
    names = {account.id: account.name for account in accounts}

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for transaction in transactions:
        writer.writerow([
            transaction.date.isoformat(),
            transaction.type.value,
            str(transaction.amount),
            transaction.category,
            transaction.description,
            names.get(transaction.account_id, UNKNOWN_ACCOUNT),
        ])
    return buffer.getvalue()


def export_filename(period: dt.date) -> str:
    """Download name for a CSV export, e.g. transactions-2024-03.csv."""
    return f"transactions-{period.strftime('%Y-%m')}.csv"


def export_period_csv(
    transactions: Iterable[Transaction],
    accounts: Iterable[Account],
    report_type: ReportType,
    period: dt.date,
) -> str:
    """
    CSV of the transactions in the selected report period.

    Raises:
        ExportError: If there are no transactions, or none in the period
    """
    transactions = list(transactions)
    if not transactions:
        raise ExportError("No transactions to export")

    if report_type == ReportType.MONTHLY:
        start, end = month_bounds(period)
    else:
        start, end = year_bounds(period)

    in_period = filter_by_period(transactions, start, end)
    if not in_period:
        raise ExportError("No transactions found for the selected period")

    return transactions_to_csv(in_period, accounts)


def export_user_data_json(
    user_id: str,
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    investments: Iterable[Investment],
) -> str:
    """Everything the user owns as an indented JSON document."""
    payload = {
        "user_id": user_id,
        "exported_at": utc_now().isoformat(),
        "accounts": [a.model_dump(mode="json") for a in accounts],
        "transactions": [t.model_dump(mode="json") for t in transactions],
        "investments": [i.model_dump(mode="json") for i in investments],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)
