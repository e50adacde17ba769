"""
Tests for the AI agents.

The Gemini model is replaced with a fake exposing generate_content_async.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.agents import (
    InsightAgent,
    ReceiptExtractionAgent,
    build_receipt_draft,
    extract_json_block,
    fallback_insights,
    map_receipt_category,
    parse_amount,
    parse_insights,
    parse_receipt_date,
)
from finance_tracker.agents.ai_agents import JSON_ARRAY_PATTERN, JSON_OBJECT_PATTERN
from finance_tracker.models import ExtractedReceiptData, InsightSource, InsightType, TransactionType


class TestParsingHelpers:

    def test_json_block_in_markdown(self):
        text = 'Here you go:\n```json\n{"vendor": "Cafe", "amount": 12.5}\n```'
        assert extract_json_block(text, JSON_OBJECT_PATTERN) == {"vendor": "Cafe", "amount": 12.5}

    def test_json_array_block(self):
        assert extract_json_block('noise [1, 2] noise', JSON_ARRAY_PATTERN) == [1, 2]

    def test_no_json(self):
        with pytest.raises(ValueError, match="No valid JSON"):
            extract_json_block("I cannot read this receipt", JSON_OBJECT_PATTERN)

    def test_broken_json(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            extract_json_block("{vendor: Cafe}", JSON_OBJECT_PATTERN)

    @pytest.mark.parametrize("value,expected", [
        (12.5, Decimal("12.50")),
        ("₹1,234.56", Decimal("1234.56")),
        ("INR 99", Decimal("99.00")),
        ("Rs. 99", Decimal("99.00")),
        ("Rs.1,250.00", Decimal("1250.00")),
        (0, None),
        (-4, None),
        ("abc", None),
        (True, None),
        (None, None),
    ])
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("2024-03-05", date(2024, 3, 5)),
        ("05/03/2024", date(2024, 3, 5)),
        ("5 Mar 2024", date(2024, 3, 5)),
        ("not a date", None),
        (None, None),
    ])
    def test_parse_receipt_date(self, value, expected):
        assert parse_receipt_date(value) == expected

    @pytest.mark.parametrize("label,expected", [
        ("Shopping", "Shopping"),
        ("food & dining", "Food & Dining"),
        ("groceries", "Food & Dining"),
        ("fuel", "Transportation"),
        ("spaceships", "Others"),
        (None, "Others"),
    ])
    def test_map_receipt_category(self, label, expected):
        assert map_receipt_category(label) == expected


class TestReceiptDraft:

    def test_items_become_description(self):
        extracted = ExtractedReceiptData(
            vendor="Cafe",
            amount=Decimal("120"),
            category="restaurant",
            items=["Coffee", "Bagel"],
        )
        draft = build_receipt_draft(extracted, receipt_url="https://img/1.jpg")
        assert draft.description == "Coffee, Bagel"
        assert draft.category == "Food & Dining"
        assert draft.receipt_url == "https://img/1.jpg"

    def test_vendor_when_no_items(self):
        draft = build_receipt_draft(ExtractedReceiptData(vendor="Cafe"))
        assert draft.description == "Cafe"
        assert draft.amount is None


class TestReceiptExtractionAgent:

    @pytest.mark.asyncio
    async def test_extract(self, fake_model):
        model = fake_model(text=json.dumps({
            "vendor": "D-Mart",
            "amount": "1,050.00",
            "date": "2024-03-01",
            "category": "Groceries",
            "items": ["Rice", None, "Oil"],
        }))
        extracted = await ReceiptExtractionAgent(model=model).extract(b"img", "image/png")

        assert extracted.is_fallback is False
        assert extracted.vendor == "D-Mart"
        assert extracted.amount == Decimal("1050.00")
        assert extracted.date == date(2024, 3, 1)
        assert extracted.items == ["Rice", "Oil"]
        prompt, image_part = model.calls[0]
        assert "Food & Dining" in prompt
        assert image_part == {"mime_type": "image/png", "data": b"img"}

    @pytest.mark.asyncio
    async def test_null_fields(self, fake_model):
        model = fake_model(text='{"vendor": null, "amount": null, "date": null}')
        extracted = await ReceiptExtractionAgent(model=model).extract(b"img", "image/jpeg")
        assert extracted.is_fallback is False
        assert extracted.vendor is None
        assert extracted.amount is None

    @pytest.mark.asyncio
    async def test_model_error_falls_back(self, fake_model):
        model = fake_model(error=RuntimeError("quota exceeded"))
        extracted = await ReceiptExtractionAgent(model=model).extract(b"img", "image/png")
        assert extracted.is_fallback is True
        assert extracted.vendor == "Sample Store"
        assert extracted.category == "Shopping"
        assert extracted.amount is None
        assert extracted.date == date.today()

    @pytest.mark.asyncio
    async def test_unparseable_response_falls_back(self, fake_model):
        model = fake_model(text="Sorry, I can't help with that.")
        extracted = await ReceiptExtractionAgent(model=model).extract(b"img", "image/png")
        assert extracted.is_fallback is True
        assert extracted.raw_response == "Sorry, I can't help with that."


class TestFallbackInsights:

    def test_high_savings(self, make_transaction):
        insights = fallback_insights(
            [
                make_transaction(1000, type=TransactionType.INCOME, category="Salary"),
                make_transaction(300, category="Travel"),
            ],
            currency="$",
        )
        assert [i.title for i in insights] == ["Excellent Savings Rate", "Top Spending Category"]
        assert insights[0].type == InsightType.POSITIVE
        assert "$300.00" in insights[1].message
        assert all(i.source == InsightSource.RULES for i in insights)

    def test_low_savings(self, make_transaction):
        insights = fallback_insights(
            [
                make_transaction(1000, type=TransactionType.INCOME, category="Salary"),
                make_transaction(950),
            ],
            currency="$",
        )
        assert insights[0].type == InsightType.WARNING
        assert insights[0].title == "Low Savings Rate"

    def test_middle_savings_rate(self, make_transaction):
        insights = fallback_insights(
            [
                make_transaction(1000, type=TransactionType.INCOME, category="Salary"),
                make_transaction(850),
            ],
            currency="$",
        )
        assert [i.title for i in insights] == ["Top Spending Category"]

    def test_income_only(self, make_transaction):
        insights = fallback_insights(
            [make_transaction(1000, type=TransactionType.INCOME, category="Salary")],
            currency="$",
        )
        assert [i.title for i in insights] == ["Excellent Savings Rate"]


class TestParseInsights:

    def test_coercion(self):
        insights = parse_insights([
            {"type": "WARNING", "title": "Dining up", "message": "You ate out a lot"},
            {"type": "bogus", "title": "Note", "message": "Something", "recommendation": ""},
            {"title": "", "message": "dropped"},
            "not a dict",
        ])
        assert [i.type for i in insights] == [InsightType.WARNING, InsightType.INFO]
        assert insights[1].recommendation is None

    def test_not_a_list(self):
        assert parse_insights({"title": "x"}) == []


class TestInsightAgent:

    @pytest.mark.asyncio
    async def test_generate(self, fake_model, make_transaction):
        model = fake_model(text='```json\n[{"type": "positive", "title": "Good", "message": "Nice"}]\n```')
        agent = InsightAgent(model=model, currency="$")
        insights = await agent.generate([make_transaction(100, category="Travel")])

        assert len(insights) == 1
        assert insights[0].source == InsightSource.AI
        assert '"Travel": 100.0' in model.calls[0]
        assert "Total Expenses: $100.00" in model.calls[0]

    @pytest.mark.asyncio
    async def test_empty_result_falls_back(self, fake_model, make_transaction):
        agent = InsightAgent(model=fake_model(text="[]"), currency="$")
        insights = await agent.generate([make_transaction(100)])
        assert insights
        assert all(i.source == InsightSource.RULES for i in insights)

    @pytest.mark.asyncio
    async def test_error_falls_back(self, fake_model, make_transaction):
        agent = InsightAgent(model=fake_model(error=TimeoutError()), currency="$")
        insights = await agent.generate([make_transaction(100)])
        assert insights[0].title == "Low Savings Rate"
