"""
Receipt Models

An uploaded receipt goes through:
1. ReceiptImage - upload metadata, type checked
2. ReceiptImageCheck - local quality heuristics
3. ExtractedReceiptData - what the AI model thinks it saw
4. ReceiptDraft - the form pre-fill the user edits and saves

CRITICAL: ExtractedReceiptData is PROPOSED data.
Nothing here is persisted until the user saves the transaction form.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finance_tracker.models.finance import utc_now


ALLOWED_RECEIPT_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
})


class ImageQuality(str, Enum):
    """Image quality assessment result."""
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"
    UNUSABLE = "unusable"  # Hard reject


class ReceiptImage(BaseModel):
    """Represents an uploaded receipt image before processing."""

    upload_id: UUID = Field(
        default_factory=uuid4,
        description="Unique upload identifier"
    )
    uploaded_at: datetime = Field(
        default_factory=utc_now
    )
    original_filename: str
    file_size_bytes: int = Field(ge=0)
    mime_type: str

    @field_validator('mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only allow image types."""
        if v.lower() not in ALLOWED_RECEIPT_MIME_TYPES:
            raise ValueError(
                "Please upload a valid image file (JPG, PNG, WEBP)"
            )
        return v.lower()


class ReceiptImageCheck(BaseModel):
    """Result of the local image quality heuristics."""

    quality: ImageQuality
    score: float = Field(
        ge=0.0,
        le=1.0,
        description="Quality score (0-1)"
    )
    issues: list[str] = Field(
        default_factory=list,
        description="List of detected quality issues"
    )


class ExtractedReceiptData(BaseModel):
    """
    Fields the AI model extracted from a receipt image.

    All fields are optional because the model may miss any of them.
    When the model call fails entirely, placeholder values are returned
    with `is_fallback` set so the UI can say so.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    extraction_id: UUID = Field(
        default_factory=uuid4,
        description="Unique ID for this extraction attempt"
    )
    extracted_at: datetime = Field(
        default_factory=utc_now
    )

    vendor: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Name of the store/business"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        description="Total amount"
    )
    date: Optional[dt.date] = Field(
        default=None,
        description="Date printed on the receipt"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Category suggested by the model"
    )
    items: list[str] = Field(
        default_factory=list,
        description="Item names, if visible"
    )

    is_fallback: bool = Field(
        default=False,
        description="True when placeholder values were substituted"
    )
    raw_response: Optional[str] = Field(
        default=None,
        description="Raw model output for debugging"
    )


class ReceiptDraft(BaseModel):
    """
    Form pre-fill derived from an extraction.

    The user edits this and it becomes an expense Transaction on save.
    """

    amount: Optional[Decimal] = None
    date: Optional[dt.date] = None
    category: Optional[str] = None
    description: Optional[str] = None
    vendor: Optional[str] = None
    receipt_url: Optional[str] = None
