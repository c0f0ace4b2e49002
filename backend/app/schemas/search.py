# backend/app/schemas/search.py
"""Mentor search schemas."""

from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel


class SearchRequest(StrictRequestModel):
    query: str = Field("", description="Free-text description of the mentor you need")
    limit: Optional[int] = Field(None, description="Maximum results (default 10, max 50)")


class MentorSummary(StandardizedModel):
    id: str
    full_name: str
    username: Optional[str] = None
    bio: Optional[str] = None
    category: Optional[str] = None
    pricing: Money = Money(Decimal("0"))
    similarity: Optional[float] = None


class SearchResponse(StandardizedModel):
    success: bool = True
    data: List[MentorSummary] = Field(default_factory=list)
    fallback: bool = False
    message: Optional[str] = None
