"""Tests for report aggregations."""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.models import Account, InvestmentType, ReportType, TransactionType
from finance_tracker.reports import (
    category_breakdown,
    dashboard_summary,
    filter_transactions,
    month_bounds,
    monthly_trend,
    percent_change,
    period_report,
    period_totals,
    portfolio_summary,
    shift_month,
    spending_analysis,
)


INCOME = TransactionType.INCOME


class TestPeriods:

    def test_month_bounds_leap_year(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_shift_month_across_years(self):
        assert shift_month(date(2024, 1, 31), -1) == date(2023, 12, 1)
        assert shift_month(date(2024, 11, 5), 3) == date(2025, 2, 1)

    def test_percent_change(self):
        assert percent_change(Decimal("150"), Decimal("100")) == pytest.approx(50.0)
        assert percent_change(Decimal("50"), Decimal("100")) == pytest.approx(-50.0)

    def test_percent_change_without_previous(self):
        assert percent_change(Decimal("100"), Decimal("0")) == 0.0


class TestTotals:

    def test_period_totals(self, make_transaction):
        totals = period_totals([
            make_transaction(1000, type=INCOME, category="Salary"),
            make_transaction(300),
            make_transaction(200),
        ])
        assert totals.income == Decimal("1000.00")
        assert totals.expenses == Decimal("500.00")
        assert totals.net == Decimal("500.00")
        assert totals.savings_rate == pytest.approx(50.0)

    def test_savings_rate_without_income(self, make_transaction):
        assert period_totals([make_transaction(100)]).savings_rate == 0.0

    def test_category_breakdown_ignores_income(self, make_transaction):
        breakdown = category_breakdown([
            make_transaction(5000, type=INCOME, category="Salary"),
            make_transaction(300, category="Shopping"),
            make_transaction(600, category="Food & Dining"),
            make_transaction(100, category="Shopping"),
        ])
        assert [c.category for c in breakdown] == ["Food & Dining", "Shopping"]
        assert breakdown[0].amount == Decimal("600.00")
        assert breakdown[0].percentage == pytest.approx(60.0)
        assert breakdown[1].percentage == pytest.approx(40.0)

    def test_category_breakdown_empty(self):
        assert category_breakdown([]) == []


class TestTrends:

    def test_monthly_trend_sums_each_month(self, make_transaction):
        transactions = [
            make_transaction(100, on=date(2024, 2, 3)),
            make_transaction(50, on=date(2024, 2, 29)),
            make_transaction(400, type=INCOME, category="Salary", on=date(2024, 3, 1)),
            make_transaction(70, on=date(2024, 3, 31)),
        ]
        trend = monthly_trend(transactions, date(2024, 3, 15), months=2)
        assert [p.label for p in trend] == ["Feb", "Mar"]
        assert trend[0].expenses == Decimal("150.00")
        assert trend[0].income == Decimal("0")
        assert trend[1].income == Decimal("400.00")
        assert trend[1].expenses == Decimal("70.00")

    def test_monthly_trend_zero_fills(self):
        trend = monthly_trend([], date(2024, 6, 1), months=6)
        assert len(trend) == 6
        assert trend[0].start == date(2024, 1, 1)
        assert all(p.income == 0 and p.expenses == 0 for p in trend)


class TestPeriodReport:

    def test_empty_when_no_accounts(self, make_transaction):
        report = period_report([], [make_transaction(10)], ReportType.MONTHLY, date(2024, 3, 1))
        assert report.transaction_count == 0
        assert report.totals.income == 0
        assert report.trend == []

    def test_monthly_report(self, account, make_transaction):
        other = Account(user_id="user-1", name="Cash", type="Cash", balance=0)
        transactions = [
            make_transaction(2000, type=INCOME, category="Salary", on=date(2024, 3, 1)),
            make_transaction(500, on=date(2024, 3, 10)),
            make_transaction(250, account_id=other.id, on=date(2024, 3, 20)),
            make_transaction(999, on=date(2024, 4, 1)),
        ]
        report = period_report([account, other], transactions, ReportType.MONTHLY, date(2024, 3, 5))

        assert report.period_start == date(2024, 3, 1)
        assert report.period_end == date(2024, 3, 31)
        assert report.transaction_count == 3
        assert report.totals.expenses == Decimal("750.00")
        assert len(report.trend) == 31
        assert report.account_breakdown[0].net == Decimal("1500.00")
        assert report.account_breakdown[1].expenses == Decimal("250.00")

    def test_yearly_report_has_twelve_points(self, account, make_transaction):
        report = period_report(
            [account],
            [make_transaction(10, on=date(2024, 7, 4))],
            ReportType.YEARLY,
            date(2024, 1, 1),
        )
        assert len(report.trend) == 12
        assert report.trend[6].expenses == Decimal("10.00")


class TestPortfolio:

    def test_portfolio_summary(self, make_investment):
        summary = portfolio_summary([
            make_investment("INFY", quantity="10", buy="100", current="120"),
            make_investment("TCS", quantity="2", buy="500", current="450"),
            make_investment("Gold", type=InvestmentType.GOLD, quantity="1", buy="3000", current="3300"),
        ])
        assert summary.total_value == Decimal("5400")
        assert summary.total_cost == Decimal("5000")
        assert summary.total_gain_loss == Decimal("400")
        assert summary.total_gain_loss_percentage == pytest.approx(8.0)

        gold, stocks = summary.type_data
        assert gold.type == InvestmentType.GOLD
        assert stocks.count == 2
        assert stocks.gain_loss == Decimal("100")
        assert gold.percentage + stocks.percentage == pytest.approx(100.0, abs=0.1)

    def test_empty_portfolio(self):
        summary = portfolio_summary([])
        assert summary.total_value == 0
        assert summary.total_gain_loss_percentage == 0.0


class TestPageSummaries:

    def test_dashboard_summary(self, account, make_transaction, make_investment):
        old = make_transaction(10, on=date(2024, 1, 2))
        new = make_transaction(20, on=date(2024, 3, 20))
        summary = dashboard_summary(
            [account],
            [old, new],
            [make_investment()],
            today=date(2024, 3, 25),
        )
        assert summary.total_balance == Decimal("5000.00")
        assert summary.month.expenses == Decimal("20.00")
        assert summary.recent_transactions == [new.id, old.id]
        assert summary.portfolio_gain_loss == Decimal("200")
        assert len(summary.monthly_trend) == 6

    def test_spending_analysis(self, make_transaction):
        transactions = [
            make_transaction(1000, type=INCOME, category="Salary", on=date(2024, 2, 1)),
            make_transaction(400, on=date(2024, 2, 10)),
            make_transaction(1000, type=INCOME, category="Salary", on=date(2024, 3, 1)),
            make_transaction(600, category="Travel", on=date(2024, 3, 12)),
        ]
        analysis = spending_analysis(transactions, today=date(2024, 3, 20), months=2)
        assert analysis.expense_change == pytest.approx(50.0)
        assert analysis.income_change == 0.0
        assert analysis.top_categories[0].category == "Travel"
        assert analysis.average_monthly_expenses == Decimal("500.00")
        assert analysis.average_savings_rate == pytest.approx(50.0)
        assert analysis.highest_expense_month == "Mar"

    def test_spending_analysis_without_data(self):
        analysis = spending_analysis([], today=date(2024, 3, 20))
        assert analysis.highest_expense_month is None
        assert analysis.top_categories == []


class TestFilterTransactions:

    def test_filters(self, make_transaction):
        lunch = make_transaction(10, description="Lunch at cafe")
        salary = make_transaction(100, type=INCOME, category="Salary", description="March pay")
        taxi = make_transaction(5, category="Transportation", description="Taxi")
        transactions = [lunch, salary, taxi]

        assert filter_transactions(transactions, search="CAFE") == [lunch]
        assert filter_transactions(transactions, search="transport") == [taxi]
        assert filter_transactions(transactions, type_filter="income") == [salary]
        assert filter_transactions(transactions, category_filter="Transportation") == [taxi]
        assert filter_transactions(transactions) == transactions
