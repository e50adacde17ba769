"""
Report Models

Value objects returned by the aggregation helpers in
finance_tracker.reports.aggregations. They carry no behaviour beyond
a few derived properties; the UI turns them into charts and tables.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finance_tracker.models.finance import InvestmentType


ZERO = Decimal("0")


class ReportType(str, Enum):
    """Reporting period granularity."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class PeriodTotals(BaseModel):
    """Income/expense totals for a set of transactions."""

    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses

    @property
    def savings_rate(self) -> float:
        """Net as a percentage of income (0 when there is no income)."""
        if self.income <= 0:
            return 0.0
        return float(self.net / self.income * 100)


class CategoryTotal(BaseModel):
    """Expense total for one category."""

    category: str
    amount: Decimal
    percentage: float = Field(
        default=0.0,
        description="Share of total expenses (0-100)"
    )


class TrendPoint(BaseModel):
    """One bucket (day or month) of an income/expense trend."""

    label: str = Field(
        ...,
        description="Short label for the chart axis (e.g. 'Jan' or '05')"
    )
    start: dt.date
    end: dt.date
    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses

    @property
    def savings_rate(self) -> float:
        if self.income <= 0:
            return 0.0
        return float(self.net / self.income * 100)


class AccountBreakdown(BaseModel):
    """Income/expenses attributed to one account over a period."""

    account_id: UUID
    account: str
    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class PeriodReport(BaseModel):
    """Monthly or yearly report for the reports page."""

    report_type: ReportType
    period_start: dt.date
    period_end: dt.date
    totals: PeriodTotals = Field(default_factory=PeriodTotals)
    transaction_count: int = 0
    category_data: list[CategoryTotal] = Field(default_factory=list)
    account_breakdown: list[AccountBreakdown] = Field(default_factory=list)
    trend: list[TrendPoint] = Field(default_factory=list)


class InvestmentPerformance(BaseModel):
    """Per-holding metrics."""

    investment_id: UUID
    name: str
    type: InvestmentType
    quantity: Decimal
    buy_price: Decimal
    current_price: Decimal
    current_value: Decimal
    total_cost: Decimal
    gain_loss: Decimal
    gain_loss_percentage: float


class InvestmentTypeBreakdown(BaseModel):
    """Aggregated metrics for one investment type."""

    type: InvestmentType
    name: str
    value: Decimal = ZERO
    cost: Decimal = ZERO
    gain_loss: Decimal = ZERO
    count: int = 0
    percentage: float = Field(
        default=0.0,
        description="Share of total portfolio value (0-100)"
    )


class PortfolioSummary(BaseModel):
    """Portfolio totals for the investments page and dashboard."""

    total_value: Decimal = ZERO
    total_cost: Decimal = ZERO
    type_data: list[InvestmentTypeBreakdown] = Field(default_factory=list)
    investments: list[InvestmentPerformance] = Field(default_factory=list)

    @property
    def total_gain_loss(self) -> Decimal:
        return self.total_value - self.total_cost

    @property
    def total_gain_loss_percentage(self) -> float:
        if self.total_cost <= 0:
            return 0.0
        return float(self.total_gain_loss / self.total_cost * 100)


class DashboardSummary(BaseModel):
    """Everything the dashboard cards and charts show."""

    total_balance: Decimal = ZERO
    month: PeriodTotals = Field(default_factory=PeriodTotals)
    category_data: list[CategoryTotal] = Field(default_factory=list)
    monthly_trend: list[TrendPoint] = Field(default_factory=list)
    portfolio_value: Decimal = ZERO
    portfolio_gain_loss: Decimal = ZERO
    recent_transactions: list[UUID] = Field(
        default_factory=list,
        description="IDs of the latest transactions, newest first"
    )


class SpendingAnalysis(BaseModel):
    """Month-over-month analysis for the analysis page."""

    current: PeriodTotals = Field(default_factory=PeriodTotals)
    previous: PeriodTotals = Field(default_factory=PeriodTotals)
    income_change: float = 0.0
    expense_change: float = 0.0
    monthly_data: list[TrendPoint] = Field(default_factory=list)
    top_categories: list[CategoryTotal] = Field(default_factory=list)
    average_monthly_expenses: Decimal = ZERO
    average_savings_rate: float = 0.0
    highest_expense_month: Optional[str] = None
