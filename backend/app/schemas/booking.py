# backend/app/schemas/booking.py
"""
Booking schemas for the MatePeak platform.

Request models are strict; semantic checks (future start, duration range,
allowed transitions) live in the services so HTTP and background callers
share them.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel


class BookingCreate(StrictRequestModel):
    """Request a session with a mentor."""

    mentor_id: str = Field(..., description="Mentor to book")
    session_time: datetime = Field(..., description="Session start (UTC if no offset is given)")
    duration: int = Field(..., description="Session length in minutes")
    session_type: str = Field(..., description="Kind of session, e.g. 'Career guidance'")
    message: Optional[str] = Field(None, description="Optional note to the mentor")


class AvailabilityCheckRequest(StrictRequestModel):
    mentor_id: str
    session_time: datetime
    duration: int


class ManageSessionRequest(StrictRequestModel):
    """Single entry point for confirm / complete / cancel."""

    session_id: str
    action: str = Field(..., description="confirm | complete | cancel")
    payment_status: Optional[str] = Field(None, description="Required for complete: paid | refunded")
    refund: bool = False


class CompleteSessionRequest(StrictRequestModel):
    payment_status: str = Field(..., description="paid | refunded")


class CancelSessionRequest(StrictRequestModel):
    refund: bool = False


class ParticipantInfo(StandardizedModel):
    id: str
    full_name: str


class BookingResponse(StandardizedModel):
    """Booking as returned to participants."""

    id: str
    mentor_id: str
    student_id: str
    session_time: datetime
    end_time: datetime
    duration: int
    session_type: str
    message: Optional[str] = None
    total_amount: Money
    status: str
    payment_status: str
    meeting_link: Optional[str] = None
    cancelled_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    mentor: Optional[ParticipantInfo] = None
    student: Optional[ParticipantInfo] = None


class ConflictWindow(StandardizedModel):
    id: str
    session_time: datetime
    end_time: datetime
    status: str


class AvailabilityResponse(StandardizedModel):
    available: bool
    session_time: datetime
    end_time: datetime
    conflicts: List[ConflictWindow] = Field(default_factory=list)
