"""AI agents package."""

from finance_tracker.agents.ai_agents import (
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

__all__ = [
    "InsightAgent",
    "ReceiptExtractionAgent",
    "build_receipt_draft",
    "extract_json_block",
    "fallback_insights",
    "map_receipt_category",
    "parse_amount",
    "parse_insights",
    "parse_receipt_date",
]
