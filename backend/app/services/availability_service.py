# backend/app/services/availability_service.py
"""
Availability Service for the MatePeak platform.

A mentor is available for ``[start, start + duration)`` when no pending or
confirmed booking of theirs overlaps that half-open window. Back-to-back
sessions (one ending exactly when the next starts) do not conflict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_SESSION_DURATION
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    """Outcome of an availability check."""

    available: bool
    start: datetime
    end: datetime
    conflicts: List[Booking] = field(default_factory=list)


def validate_session_window(start: Optional[datetime], duration: Optional[int]) -> datetime:
    """
    Validate a requested session window and return its start in UTC.

    Raises:
        ValidationException: missing or past start, non-positive or oversized duration
    """
    if start is None:
        raise ValidationException("Session time is required", details={"field": "session_time"})
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise ValidationException(
            "Duration must be a positive number of minutes", details={"field": "duration"}
        )
    if duration > MAX_SESSION_DURATION:
        raise ValidationException(
            f"Duration cannot exceed {MAX_SESSION_DURATION} minutes",
            details={"field": "duration"},
        )

    start_utc = ensure_utc(start)
    if start_utc <= utc_now():
        raise ValidationException(
            "Session time must be in the future", details={"field": "session_time"}
        )
    return start_utc


class AvailabilityService(BaseService):
    """Resolves whether a mentor is free for a requested window."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.mentor_repository = RepositoryFactory.create_mentor_repository(db)

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self,
        mentor_id: str,
        start: Optional[datetime],
        duration: Optional[int],
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Check a mentor's calendar for the window ``[start, start + duration)``.

        Raises:
            ValidationException: invalid window
            NotFoundException: unknown or inactive mentor
        """
        start_utc = validate_session_window(start, duration)
        end_utc = start_utc + timedelta(minutes=duration or 0)

        if self.mentor_repository.get_active(mentor_id) is None:
            raise NotFoundException("Mentor not found", details={"mentor_id": mentor_id})

        conflicts = self.booking_repository.find_overlapping(
            mentor_id, start_utc, end_utc, exclude_booking_id=exclude_booking_id
        )
        if conflicts:
            logger.info(
                "Mentor %s unavailable for %s-%s: %d overlapping booking(s)",
                mentor_id,
                start_utc.isoformat(),
                end_utc.isoformat(),
                len(conflicts),
            )
        return AvailabilityResult(
            available=not conflicts, start=start_utc, end=end_utc, conflicts=conflicts
        )
