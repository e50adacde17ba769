"""
Report Aggregations

DESIGN DECISION: Aggregation is DETERMINISTIC and in-memory.
Every function here takes lists that were already loaded for one user
and returns new value objects. Nothing reads storage, nothing mutates
its input, and nothing here knows about the UI.

Conventions:
- Date ranges are inclusive on both ends.
- Money stays Decimal; percentages are floats.
- A savings rate or percent change with a zero denominator is 0.
"""

import calendar
import datetime as dt
from decimal import Decimal
from typing import Iterable, Optional

from finance_tracker.models.finance import (
    Account,
    Investment,
    InvestmentType,
    Transaction,
    TransactionType,
    to_money,
)
from finance_tracker.models.report import (
    ZERO,
    AccountBreakdown,
    CategoryTotal,
    DashboardSummary,
    InvestmentPerformance,
    InvestmentTypeBreakdown,
    PeriodReport,
    PeriodTotals,
    PortfolioSummary,
    ReportType,
    SpendingAnalysis,
    TrendPoint,
)


# =============================================================================
# PERIODS
# =============================================================================

def month_bounds(day: dt.date) -> tuple[dt.date, dt.date]:
    """First and last day of the month containing `day`."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def year_bounds(day: dt.date) -> tuple[dt.date, dt.date]:
    """First and last day of the year containing `day`."""
    return dt.date(day.year, 1, 1), dt.date(day.year, 12, 31)


def shift_month(day: dt.date, months: int) -> dt.date:
    """First day of the month `months` away from `day` (negative goes back)."""
    index = day.year * 12 + (day.month - 1) + months
    return dt.date(index // 12, index % 12 + 1, 1)


def percent_change(current: Decimal, previous: Decimal) -> float:
    """Relative change in percent. 0 when there is nothing to compare to."""
    if not previous:
        return 0.0
    return float((current - previous) / previous * 100)


# =============================================================================
# BASIC AGGREGATES
# =============================================================================

def filter_by_period(
    transactions: Iterable[Transaction],
    start: dt.date,
    end: dt.date,
) -> list[Transaction]:
    """Transactions dated between start and end, both inclusive."""
    return [t for t in transactions if start <= t.date <= end]


def period_totals(transactions: Iterable[Transaction]) -> PeriodTotals:
    """Sum income and expenses."""
    income = ZERO
    expenses = ZERO
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        else:
            expenses += transaction.amount
    return PeriodTotals(income=income, expenses=expenses)


def _share(amount: Decimal, total: Decimal) -> float:
    if total <= 0:
        return 0.0
    return round(float(amount / total * 100), 1)


def category_breakdown(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """
    Expense totals per category, largest first.

    Income is ignored. Percentages are shares of total expenses.
    """
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.type != TransactionType.EXPENSE:
            continue
        totals[transaction.category] = (
            totals.get(transaction.category, ZERO) + transaction.amount
        )

    total_expenses = sum(totals.values(), ZERO)
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryTotal(
            category=category,
            amount=amount,
            percentage=_share(amount, total_expenses),
        )
        for category, amount in ranked
    ]


def top_categories(
    transactions: Iterable[Transaction],
    limit: int = 5,
) -> list[CategoryTotal]:
    """The `limit` largest expense categories."""
    return category_breakdown(transactions)[:limit]


# =============================================================================
# TRENDS
# =============================================================================

def _trend_point(
    transactions: list[Transaction],
    label: str,
    start: dt.date,
    end: dt.date,
) -> TrendPoint:
    totals = period_totals(filter_by_period(transactions, start, end))
    return TrendPoint(
        label=label,
        start=start,
        end=end,
        income=totals.income,
        expenses=totals.expenses,
    )


def monthly_trend(
    transactions: Iterable[Transaction],
    end_month: dt.date,
    months: int = 6,
) -> list[TrendPoint]:
    """
    One point per calendar month, oldest first, ending with the month
    containing `end_month`. Months with no transactions are zeroed.
    """
    transactions = list(transactions)
    points = []
    for offset in range(months - 1, -1, -1):
        start, end = month_bounds(shift_month(end_month, -offset))
        points.append(_trend_point(transactions, start.strftime("%b"), start, end))
    return points


def yearly_trend(transactions: Iterable[Transaction], year: int) -> list[TrendPoint]:
    """Twelve monthly points for January through December of `year`."""
    return monthly_trend(transactions, dt.date(year, 12, 1), months=12)


def daily_trend(
    transactions: Iterable[Transaction],
    start: dt.date,
    end: dt.date,
) -> list[TrendPoint]:
    """One point per day from start to end inclusive."""
    transactions = list(transactions)
    points = []
    day = start
    while day <= end:
        points.append(_trend_point(transactions, day.strftime("%d"), day, day))
        day += dt.timedelta(days=1)
    return points


def account_breakdown(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
) -> list[AccountBreakdown]:
    """Income and expenses per account, in account order."""
    transactions = list(transactions)
    breakdown = []
    for account in accounts:
        totals = period_totals(t for t in transactions if t.account_id == account.id)
        breakdown.append(AccountBreakdown(
            account_id=account.id,
            account=account.name,
            income=totals.income,
            expenses=totals.expenses,
        ))
    return breakdown


# =============================================================================
# PAGE SUMMARIES
# =============================================================================

def portfolio_summary(investments: Iterable[Investment]) -> PortfolioSummary:
    """Totals, per-type breakdown and per-holding metrics."""
    investments = list(investments)
    performances = []
    by_type: dict[InvestmentType, InvestmentTypeBreakdown] = {}
    total_value = ZERO
    total_cost = ZERO

    for investment in investments:
        value = investment.current_value
        cost = investment.total_cost
        total_value += value
        total_cost += cost

        performances.append(InvestmentPerformance(
            investment_id=investment.id,
            name=investment.name,
            type=investment.type,
            quantity=investment.quantity,
            buy_price=investment.buy_price,
            current_price=investment.current_price,
            current_value=value,
            total_cost=cost,
            gain_loss=investment.gain_loss,
            gain_loss_percentage=investment.gain_loss_percentage,
        ))

        bucket = by_type.setdefault(
            investment.type,
            InvestmentTypeBreakdown(type=investment.type, name=investment.type.label),
        )
        bucket.value += value
        bucket.cost += cost
        bucket.gain_loss += investment.gain_loss
        bucket.count += 1

    type_data = sorted(by_type.values(), key=lambda b: b.value, reverse=True)
    for bucket in type_data:
        bucket.percentage = _share(bucket.value, total_value)

    return PortfolioSummary(
        total_value=total_value,
        total_cost=total_cost,
        type_data=type_data,
        investments=performances,
    )


def dashboard_summary(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    investments: Iterable[Investment],
    today: dt.date,
    months: int = 6,
    recent_count: int = 5,
) -> DashboardSummary:
    """Balance, this month's cash flow, trend and portfolio in one pass."""
    transactions = list(transactions)
    start, end = month_bounds(today)
    this_month = filter_by_period(transactions, start, end)
    portfolio = portfolio_summary(investments)

    recent = sorted(
        transactions,
        key=lambda t: (t.date, t.created_at),
        reverse=True,
    )[:recent_count]

    return DashboardSummary(
        total_balance=sum((a.balance for a in accounts), ZERO),
        month=period_totals(this_month),
        category_data=category_breakdown(this_month),
        monthly_trend=monthly_trend(transactions, today, months),
        portfolio_value=portfolio.total_value,
        portfolio_gain_loss=portfolio.total_gain_loss,
        recent_transactions=[t.id for t in recent],
    )


def period_report(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    report_type: ReportType,
    period: dt.date,
) -> PeriodReport:
    """
    Monthly or yearly report for the period containing `period`.

    With no accounts or no transactions the report is all zeros.
    """
    accounts = list(accounts)
    transactions = list(transactions)

    if report_type == ReportType.MONTHLY:
        start, end = month_bounds(period)
    else:
        start, end = year_bounds(period)

    if not accounts or not transactions:
        return PeriodReport(report_type=report_type, period_start=start, period_end=end)

    in_period = filter_by_period(transactions, start, end)
    if report_type == ReportType.MONTHLY:
        trend = daily_trend(in_period, start, end)
    else:
        trend = yearly_trend(in_period, period.year)

    return PeriodReport(
        report_type=report_type,
        period_start=start,
        period_end=end,
        totals=period_totals(in_period),
        transaction_count=len(in_period),
        category_data=category_breakdown(in_period),
        account_breakdown=account_breakdown(accounts, in_period),
        trend=trend,
    )


def spending_analysis(
    transactions: Iterable[Transaction],
    today: dt.date,
    months: int = 6,
) -> SpendingAnalysis:
    """This month against last month, plus the recent monthly history."""
    transactions = list(transactions)
    current = period_totals(filter_by_period(transactions, *month_bounds(today)))
    previous = period_totals(
        filter_by_period(transactions, *month_bounds(shift_month(today, -1)))
    )
    monthly_data = monthly_trend(transactions, today, months)
    this_month = filter_by_period(transactions, *month_bounds(today))

    average_expenses = ZERO
    average_rate = 0.0
    highest: Optional[str] = None
    if monthly_data:
        average_expenses = to_money(
            sum((p.expenses for p in monthly_data), ZERO) / len(monthly_data)
        )
        average_rate = sum(p.savings_rate for p in monthly_data) / len(monthly_data)
        peak = max(monthly_data, key=lambda p: p.expenses)
        if peak.expenses > 0:
            highest = peak.label

    return SpendingAnalysis(
        current=current,
        previous=previous,
        income_change=percent_change(current.income, previous.income),
        expense_change=percent_change(current.expenses, previous.expenses),
        monthly_data=monthly_data,
        top_categories=top_categories(this_month),
        average_monthly_expenses=average_expenses,
        average_savings_rate=average_rate,
        highest_expense_month=highest,
    )


# =============================================================================
# TRANSACTIONS PAGE
# =============================================================================

def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    type_filter: str = "all",
    category_filter: str = "all",
) -> list[Transaction]:
    """
    Filter for the transactions table.

    `search` matches description or category, case-insensitively.
    "all" disables the type and category filters.
    """
    needle = (search or "").strip().lower()
    results = []
    for transaction in transactions:
        if needle and (
            needle not in transaction.description.lower()
            and needle not in transaction.category.lower()
        ):
            continue
        if type_filter != "all" and transaction.type.value != type_filter:
            continue
        if category_filter != "all" and transaction.category != category_filter:
            continue
        results.append(transaction)
    return results
