"""Insight models shown on the analysis page."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InsightType(str, Enum):
    """Tone of an insight."""
    POSITIVE = "positive"
    WARNING = "warning"
    INFO = "info"


class InsightSource(str, Enum):
    """Where an insight came from."""
    AI = "ai"
    RULES = "rules"


class Insight(BaseModel):
    """A short observation about spending or savings."""
    model_config = ConfigDict(str_strip_whitespace=True)

    type: InsightType = InsightType.INFO
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    recommendation: Optional[str] = Field(default=None, max_length=1000)
    source: InsightSource = InsightSource.AI
