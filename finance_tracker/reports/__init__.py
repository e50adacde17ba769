"""Reports package: in-memory aggregations and exports."""

from finance_tracker.reports.aggregations import (
    account_breakdown,
    category_breakdown,
    daily_trend,
    dashboard_summary,
    filter_by_period,
    filter_transactions,
    month_bounds,
    monthly_trend,
    percent_change,
    period_report,
    period_totals,
    portfolio_summary,
    shift_month,
    spending_analysis,
    top_categories,
    year_bounds,
    yearly_trend,
)
from finance_tracker.reports.export import (
    ExportError,
    export_filename,
    export_period_csv,
    export_user_data_json,
    transactions_to_csv,
)

__all__ = [
    "account_breakdown",
    "category_breakdown",
    "daily_trend",
    "dashboard_summary",
    "filter_by_period",
    "filter_transactions",
    "month_bounds",
    "monthly_trend",
    "percent_change",
    "period_report",
    "period_totals",
    "portfolio_summary",
    "shift_month",
    "spending_analysis",
    "top_categories",
    "year_bounds",
    "yearly_trend",
    "ExportError",
    "export_filename",
    "export_period_csv",
    "export_user_data_json",
    "transactions_to_csv",
]
