# backend/app/schemas/admin.py
"""Admin dashboard schemas."""

from typing import Dict, List

from pydantic import Field

from .base import Money, StandardizedModel
from .booking import BookingResponse


class TopMentorResponse(StandardizedModel):
    mentor_id: str
    name: str
    revenue: Money
    sessions: int


class AdminMetricsResponse(StandardizedModel):
    total_mentors: int
    total_students: int
    total_bookings: int
    total_revenue: Money
    bookings_by_status: Dict[str, int] = Field(default_factory=dict)
    top_mentors: List[TopMentorResponse] = Field(default_factory=list)
    recent_bookings: List[BookingResponse] = Field(default_factory=list)
