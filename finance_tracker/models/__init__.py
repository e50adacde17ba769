"""
Data Models Package

This package contains all Pydantic models used in Finance Tracker.
Every record read from or written to storage conforms to these schemas.
"""

from finance_tracker.models.finance import (
    ACCOUNT_TYPES,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    INVESTMENT_TYPE_LABELS,
    Account,
    Investment,
    InvestmentType,
    Transaction,
    TransactionType,
    categories_for,
    form_errors,
    to_money,
    utc_now,
)
from finance_tracker.models.receipt import (
    ALLOWED_RECEIPT_MIME_TYPES,
    ExtractedReceiptData,
    ImageQuality,
    ReceiptDraft,
    ReceiptImage,
    ReceiptImageCheck,
)
from finance_tracker.models.insight import Insight, InsightSource, InsightType
from finance_tracker.models.report import (
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
from finance_tracker.models.validation import ValidationIssue, ValidationResult
from finance_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Records
    "ACCOUNT_TYPES",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "INVESTMENT_TYPE_LABELS",
    "Account",
    "Investment",
    "InvestmentType",
    "Transaction",
    "TransactionType",
    "categories_for",
    "form_errors",
    "to_money",
    "utc_now",
    # Receipts
    "ALLOWED_RECEIPT_MIME_TYPES",
    "ExtractedReceiptData",
    "ImageQuality",
    "ReceiptDraft",
    "ReceiptImage",
    "ReceiptImageCheck",
    # Insights
    "Insight",
    "InsightSource",
    "InsightType",
    # Reports
    "AccountBreakdown",
    "CategoryTotal",
    "DashboardSummary",
    "InvestmentPerformance",
    "InvestmentTypeBreakdown",
    "PeriodReport",
    "PeriodTotals",
    "PortfolioSummary",
    "ReportType",
    "SpendingAnalysis",
    "TrendPoint",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Activity
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
