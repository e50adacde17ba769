"""
AI Agents for Finance Tracker

Two agents talk to Gemini:

1. RECEIPT EXTRACTION AGENT:
   - CAN: Read vendor, total, date, category and items off a receipt image
   - CANNOT: Save anything. Its output only pre-fills the expense form
   - MUST: Return something usable even when the model call fails

2. INSIGHT AGENT:
   - CAN: Turn income/expense totals into 3-5 short observations
   - CANNOT: See individual transactions, only aggregates
   - MUST: Fall back to deterministic rules when the model fails

DESIGN DECISION: Model output is free text. We regex out the first
JSON object/array, parse it, and coerce every field ourselves. Anything
that does not survive coercion is dropped, never guessed.

AI calls are not retried. A failed call falls back immediately so the
user is never left waiting on a spinner.
"""

import json
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

import google.generativeai as genai
import structlog

from finance_tracker.config import get_settings
from finance_tracker.models.finance import (
    EXPENSE_CATEGORIES,
    Account,
    Transaction,
    to_money,
)
from finance_tracker.models.insight import Insight, InsightSource, InsightType
from finance_tracker.models.receipt import ExtractedReceiptData, ReceiptDraft
from finance_tracker.reports.aggregations import category_breakdown, period_totals


logger = structlog.get_logger(__name__)


JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

FALLBACK_VENDOR = "Sample Store"
FALLBACK_CATEGORY = "Shopping"

RECEIPT_DATE_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d/%m/%y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%Y/%m/%d",
)

# Labels the model (or an older receipt category list) may use,
# mapped onto the expense categories the forms offer.
RECEIPT_CATEGORY_ALIASES: dict[str, str] = {
    "groceries": "Food & Dining",
    "grocery": "Food & Dining",
    "food": "Food & Dining",
    "dining": "Food & Dining",
    "restaurant": "Food & Dining",
    "transportation": "Transportation",
    "transport": "Transportation",
    "fuel": "Transportation",
    "shopping": "Shopping",
    "gifts": "Shopping",
    "entertainment": "Entertainment",
    "utilities": "Bills & Utilities",
    "bills": "Bills & Utilities",
    "housing": "Bills & Utilities",
    "insurance": "Bills & Utilities",
    "healthcare": "Healthcare",
    "medical": "Healthcare",
    "education": "Education",
    "travel": "Travel",
    "personal": "Others",
    "other-expense": "Others",
    "other": "Others",
}


# =============================================================================
# PARSING HELPERS
# =============================================================================

def extract_json_block(text: str, pattern: re.Pattern) -> Any:
    """
    Pull the first JSON object/array out of free text and parse it.

    Raises:
        ValueError: If no block matches or it is not valid JSON
    """
    match = pattern.search(text or "")
    if not match:
        raise ValueError("No valid JSON found in response")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {e}") from e


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Coerce a model-supplied total to a positive Decimal.

    Tolerates currency symbols and thousands separators.
    Returns None for anything that is not a positive number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    else:
        # drop a leading currency prefix ("Rs.", "INR", "₹") before separators
        raw = re.sub(r"^[^\d\-]+", "", str(value).strip())
        raw = re.sub(r"[^\d.\-]", "", raw)
    try:
        amount = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return to_money(amount)


def parse_receipt_date(value: Any) -> Optional[date]:
    """Parse ISO or common day-first receipt dates."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in RECEIPT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a"):
        return None
    return text


def map_receipt_category(label: Optional[str]) -> str:
    """
    Map a model/category label onto one of the expense categories.

    Exact expense categories pass through. Unknown labels become Others.
    """
    if not label:
        return "Others"
    cleaned = label.strip()
    for category in EXPENSE_CATEGORIES:
        if cleaned.lower() == category.lower():
            return category
    return RECEIPT_CATEGORY_ALIASES.get(cleaned.lower(), "Others")


def build_receipt_draft(
    extracted: ExtractedReceiptData,
    receipt_url: Optional[str] = None,
) -> ReceiptDraft:
    """
    Turn an extraction into the expense form pre-fill.

    Description is the joined item names, or the vendor when no
    items were read.
    """
    description = ", ".join(extracted.items) if extracted.items else extracted.vendor
    amount = extracted.amount if extracted.amount and extracted.amount > 0 else None
    return ReceiptDraft(
        amount=amount,
        date=extracted.date,
        category=map_receipt_category(extracted.category),
        description=description,
        vendor=extracted.vendor,
        receipt_url=receipt_url,
    )


def _build_model(temperature: Optional[float] = None, max_tokens: Optional[int] = None):
    """Configure Google Generative AI and build the model from settings."""
    settings = get_settings().gemini
    genai.configure(api_key=settings.api_key)
    return genai.GenerativeModel(
        model_name=settings.model_name,
        generation_config={
            "temperature": settings.temperature if temperature is None else temperature,
            "max_output_tokens": max_tokens or settings.max_tokens,
        }
    )


# =============================================================================
# RECEIPT EXTRACTION
# =============================================================================

RECEIPT_PROMPT = """Analyze this receipt/bill image and extract the following information in JSON format:
- vendor: name of the store/business
- amount: total amount (number only, no currency symbols)
- date: date in YYYY-MM-DD format
- category: best guess category from these options: {categories}
- items: array of item names if visible

Return only valid JSON, no other text. If you cannot detect a field, set it to null."""


class ReceiptExtractionAgent:
    """
    Reads receipt fields from an image with a Gemini vision model.

    BOUNDARIES:
    - NEVER persists data
    - NEVER raises; failures return the placeholder extraction
    - The user reviews and edits everything before saving
    """

    def __init__(self, model: Any = None):
        """
        Args:
            model: Object with an async `generate_content_async`.
                   Built from GeminiSettings when omitted.
        """
        self._model = model if model is not None else _build_model(temperature=0.1)

    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedReceiptData:
        """Extract receipt fields, falling back to placeholders on any failure."""
        prompt = RECEIPT_PROMPT.format(categories=", ".join(EXPENSE_CATEGORIES))
        text = None
        try:
            response = await self._model.generate_content_async([
                prompt,
                {"mime_type": mime_type, "data": image_bytes},
            ])
            text = response.text
            data = extract_json_block(text, JSON_OBJECT_PATTERN)
            if not isinstance(data, dict):
                raise ValueError("Receipt response is not a JSON object")
            extracted = self.parse_receipt(data, raw_response=text)
            logger.info(
                "receipt_extracted",
                extraction_id=str(extracted.extraction_id),
                has_amount=extracted.amount is not None,
                has_date=extracted.date is not None,
            )
            return extracted
        except Exception as e:
            logger.error("receipt_extraction_failed", error=str(e))
            return self.fallback(raw_response=text)

    @staticmethod
    def parse_receipt(data: dict, raw_response: Optional[str] = None) -> ExtractedReceiptData:
        """Coerce a parsed JSON object into ExtractedReceiptData."""
        items = data.get("items") or []
        if isinstance(items, str):
            items = [items]
        elif not isinstance(items, list):
            items = []

        vendor = _clean_str(data.get("vendor"))
        category = _clean_str(data.get("category"))
        return ExtractedReceiptData(
            vendor=vendor[:200] if vendor else None,
            amount=parse_amount(data.get("amount")),
            date=parse_receipt_date(data.get("date")),
            category=category[:100] if category else None,
            items=[s for s in (_clean_str(item) for item in items) if s],
            raw_response=raw_response,
        )

    @staticmethod
    def fallback(raw_response: Optional[str] = None) -> ExtractedReceiptData:
        """Placeholder extraction used when the model is unavailable."""
        return ExtractedReceiptData(
            vendor=FALLBACK_VENDOR,
            amount=None,
            date=date.today(),
            category=FALLBACK_CATEGORY,
            is_fallback=True,
            raw_response=raw_response,
        )


# =============================================================================
# INSIGHTS
# =============================================================================

INSIGHT_PROMPT = """Analyze the following financial data and provide 3-5 actionable insights in JSON format:

Total Income: {currency}{income}
Total Expenses: {currency}{expenses}
Net Savings: {currency}{net}

Expense Categories: {categories}

For each insight, provide:
- type: "positive", "warning", or "info"
- title: short descriptive title
- message: detailed explanation
- recommendation: actionable advice (optional)

Focus on spending patterns, savings rate, budget optimization, and financial health.
Return as JSON array: [{{"type": "...", "title": "...", "message": "...", "recommendation": "..."}}]"""


def fallback_insights(
    transactions: Iterable[Transaction],
    currency: Optional[str] = None,
) -> list[Insight]:
    """
    Rule-based insights used when the model is unavailable.

    - savings rate above 20% -> positive
    - savings rate below 10% -> warning
    - any expenses -> info naming the largest expense category
    """
    if currency is None:
        currency = get_settings().app.currency_symbol
    transactions = list(transactions)
    rate = period_totals(transactions).savings_rate

    insights: list[Insight] = []
    if rate > 20:
        insights.append(Insight(
            type=InsightType.POSITIVE,
            title="Excellent Savings Rate",
            message=(
                f"Your savings rate is {rate:.1f}%. "
                "You're doing great at managing your finances!"
            ),
            recommendation="Consider investing your surplus savings for better returns.",
            source=InsightSource.RULES,
        ))
    elif rate < 10:
        insights.append(Insight(
            type=InsightType.WARNING,
            title="Low Savings Rate",
            message=(
                f"Your savings rate is {rate:.1f}%. "
                "This is below the recommended 20%."
            ),
            recommendation="Review your expenses and identify areas where you can cut back.",
            source=InsightSource.RULES,
        ))

    categories = category_breakdown(transactions)
    if categories:
        top = categories[0]
        insights.append(Insight(
            type=InsightType.INFO,
            title="Top Spending Category",
            message=(
                f"Your highest spending category is {top.category} "
                f"with {currency}{top.amount:,.2f}."
            ),
            recommendation="Monitor this category closely and look for optimization opportunities.",
            source=InsightSource.RULES,
        ))

    return insights


def parse_insights(data: Any) -> list[Insight]:
    """
    Coerce a parsed JSON array into Insights.

    Missing or unknown `type` becomes info. Entries without a title
    or message are dropped.
    """
    if not isinstance(data, list):
        return []

    insights = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        title = _clean_str(entry.get("title"))
        message = _clean_str(entry.get("message"))
        if not title or not message:
            continue
        try:
            insight_type = InsightType(str(entry.get("type") or "info").lower())
        except ValueError:
            insight_type = InsightType.INFO
        insights.append(Insight(
            type=insight_type,
            title=title[:200],
            message=message[:2000],
            recommendation=(_clean_str(entry.get("recommendation")) or "")[:1000] or None,
            source=InsightSource.AI,
        ))
    return insights


class InsightAgent:
    """
    Generates spending insights from aggregated totals.

    BOUNDARIES:
    - Sees totals and category sums only
    - NEVER raises; failures return rule-based insights
    """

    def __init__(self, model: Any = None, currency: Optional[str] = None):
        self._model = model if model is not None else _build_model()
        self._currency = currency or get_settings().app.currency_symbol

    def build_prompt(self, transactions: list[Transaction]) -> str:
        totals = period_totals(transactions)
        categories = {
            c.category: float(c.amount) for c in category_breakdown(transactions)
        }
        return INSIGHT_PROMPT.format(
            currency=self._currency,
            income=totals.income,
            expenses=totals.expenses,
            net=totals.net,
            categories=json.dumps(categories, ensure_ascii=False),
        )

    async def generate(
        self,
        transactions: Iterable[Transaction],
        accounts: Iterable[Account] = (),
    ) -> list[Insight]:
        """
        Ask the model for insights; use the rules when it fails.

        `accounts` is accepted so callers can pass the full snapshot;
        only transaction aggregates go into the prompt.
        """
        transactions = list(transactions)
        try:
            response = await self._model.generate_content_async(
                self.build_prompt(transactions)
            )
            insights = parse_insights(extract_json_block(response.text, JSON_ARRAY_PATTERN))
            if not insights:
                raise ValueError("Model returned no usable insights")
            logger.info("insights_generated", count=len(insights))
            return insights
        except Exception as e:
            logger.error("insight_generation_failed", error=str(e))
            return fallback_insights(transactions, currency=self._currency)
