# backend/app/services/booking_service.py
"""
Booking Service for the MatePeak platform.

Handles the booking lifecycle:
- Creating session requests (students)
- Confirming and completing sessions (owning mentor)
- Cancelling sessions (either participant)
- Listing and reading a caller's own sessions

Every status change is a conditional UPDATE on the current status, so two
concurrent callers racing on the same booking get exactly one success; the
loser sees ``InvalidTransitionException``. Side effects (emails, wallet
credit) are written to the event outbox inside the same transaction as the
status change and delivered later by the Celery dispatcher.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    DEFAULT_QUERY_LIMIT,
    MAX_MESSAGE_LENGTH,
    MAX_QUERY_LIMIT,
    MAX_SESSION_TYPE_LENGTH,
)
from ..core.enums import BookingStatus, PaymentStatus, SessionAction
from ..core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import utc_now
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Principal, require_principal
from ..repositories.factory import RepositoryFactory
from .availability_service import AvailabilityService
from .base import BaseService

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking.created"
BOOKING_CONFIRMED = "booking.confirmed"
BOOKING_COMPLETED = "booking.completed"
BOOKING_CANCELLED = "booking.cancelled"

COMPLETION_PAYMENT_STATUSES = {PaymentStatus.PAID.value, PaymentStatus.REFUNDED.value}


def build_meeting_link(booking_id: str) -> str:
    return f"{settings.meeting_base_url}/{booking_id[:8]}"


def booking_event_key(booking_id: str, event_type: str) -> str:
    """Idempotency key for a booking outbox event (each transition happens at most once)."""
    return f"booking:{booking_id}:{event_type}"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Every public operation takes the caller as an explicit ``Principal``
    argument and performs its own authorization check.
    """

    def __init__(self, db: Session, availability_service: Optional[AvailabilityService] = None):
        super().__init__(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.mentor_repository = RepositoryFactory.create_mentor_repository(db)
        self.event_outbox_repository = RepositoryFactory.create_event_outbox_repository(db)
        self.availability_service = availability_service or AvailabilityService(db)

    # Outbox helpers

    def _serialize_booking_event_payload(self, booking: Booking, event_type: str) -> Dict[str, Any]:
        """Build JSON-safe payload for outbox events."""
        return {
            "booking_id": booking.id,
            "event_type": event_type,
            "status": booking.status,
            "payment_status": booking.payment_status,
            "student_id": booking.student_id,
            "mentor_id": booking.mentor_id,
            "session_time": _iso(booking.session_time),
            "end_time": _iso(booking.end_time),
            "duration": booking.duration,
            "session_type": booking.session_type,
            "total_amount": str(booking.total_amount),
            "meeting_link": booking.meeting_link,
            "cancelled_by_id": booking.cancelled_by_id,
        }

    def _enqueue_booking_outbox_event(self, booking: Booking, event_type: str) -> None:
        """Persist an outbox entry for the given booking event inside the current transaction."""
        self.event_outbox_repository.enqueue(
            event_type=event_type,
            aggregate_id=booking.id,
            payload=self._serialize_booking_event_payload(booking, event_type),
            idempotency_key=booking_event_key(booking.id, event_type),
        )

    # Lookups

    def _get_booking_for_participant(self, principal: Principal, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Session not found", details={"booking_id": booking_id})
        if not booking.is_participant(principal.id):
            raise ForbiddenException(
                "You do not have access to this session", details={"booking_id": booking_id}
            )
        return booking

    def _apply_transition(
        self,
        booking_id: str,
        from_statuses: Iterable[str],
        to_status: BookingStatus,
        **values: Any,
    ) -> Booking:
        """Run the conditional update and return the reloaded booking. Call inside a transaction."""
        applied = self.repository.transition_status(
            booking_id, from_statuses, to_status.value, **values
        )
        booking = self.repository.get_fresh(booking_id)
        prometheus_metrics.record_booking_transition(to_status.value, applied)
        if not applied or booking is None:
            current = booking.status if booking is not None else None
            raise InvalidTransitionException(booking_id, current, to_status.value)
        return booking

    # Create

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        principal: Optional[Principal],
        *,
        mentor_id: str,
        session_time: datetime,
        duration: int,
        session_type: str,
        message: Optional[str] = None,
    ) -> Booking:
        """
        Request a session with a mentor.

        Returns:
            The new booking in ``pending`` status with payment ``unpaid``

        Raises:
            UnauthorizedException: no caller
            ForbiddenException: caller is not a student
            ValidationException: invalid time window or text fields
            NotFoundException: mentor does not exist
            BookingConflictException: mentor already booked for an overlapping window
        """
        caller = require_principal(principal)
        if not caller.is_student:
            raise ForbiddenException("Only students can book sessions")

        session_type = (session_type or "").strip()
        if not session_type:
            raise ValidationException("Session type is required", details={"field": "session_type"})
        if len(session_type) > MAX_SESSION_TYPE_LENGTH:
            raise ValidationException(
                f"Session type must be at most {MAX_SESSION_TYPE_LENGTH} characters",
                details={"field": "session_type"},
            )
        if message is not None and len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationException(
                f"Message must be at most {MAX_MESSAGE_LENGTH} characters",
                details={"field": "message"},
            )

        self.log_operation(
            "create_booking", student_id=caller.id, mentor_id=mentor_id, duration=duration
        )

        # Validates the window and the mentor before looking for overlaps
        availability = self.availability_service.check_availability(mentor_id, session_time, duration)
        if not availability.available:
            raise BookingConflictException(
                details={
                    "mentor_id": mentor_id,
                    "conflicting_booking_ids": [b.id for b in availability.conflicts],
                }
            )

        mentor = self.mentor_repository.get_active(mentor_id)
        if mentor is None:
            raise NotFoundException("Mentor not found", details={"mentor_id": mentor_id})

        with self.transaction():
            try:
                booking = self.repository.create(
                    mentor_id=mentor_id,
                    student_id=caller.id,
                    session_time=availability.start,
                    end_time=availability.end,
                    duration=duration,
                    session_type=session_type,
                    message=message or None,
                    total_amount=Decimal(str(mentor.pricing or 0)),
                    status=BookingStatus.PENDING.value,
                    payment_status=PaymentStatus.UNPAID.value,
                )
            except IntegrityError as exc:
                # Overlap exclusion constraint won a race against the check above
                raise BookingConflictException(details={"mentor_id": mentor_id}) from exc
            self._enqueue_booking_outbox_event(booking, BOOKING_CREATED)

        logger.info(f"Booking {booking.id} requested by student {caller.id} with mentor {mentor_id}")
        return booking

    # Transitions

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, principal: Optional[Principal], booking_id: str) -> Booking:
        """Owning mentor accepts a pending session; sets the meeting link."""
        caller = require_principal(principal)
        booking = self._get_booking_for_participant(caller, booking_id)
        if booking.mentor_id != caller.id:
            raise ForbiddenException("Only mentors can confirm sessions")

        with self.transaction():
            booking = self._apply_transition(
                booking_id,
                [BookingStatus.PENDING.value],
                BookingStatus.CONFIRMED,
                confirmed_at=utc_now(),
                meeting_link=build_meeting_link(booking_id),
            )
            self._enqueue_booking_outbox_event(booking, BOOKING_CONFIRMED)

        self.log_operation("confirm_booking", booking_id=booking_id, mentor_id=caller.id)
        return booking

    @BaseService.measure_operation("complete_booking")
    def complete_booking(
        self,
        principal: Optional[Principal],
        booking_id: str,
        payment_status: Optional[str],
    ) -> Booking:
        """
        Owning mentor marks a confirmed session as held.

        The mentor's wallet credit is issued by the ``booking.completed``
        outbox handler when ``payment_status`` is ``paid``.
        """
        caller = require_principal(principal)
        if payment_status not in COMPLETION_PAYMENT_STATUSES:
            raise ValidationException(
                "Payment status must be 'paid' or 'refunded' to complete a session",
                details={"field": "payment_status", "value": payment_status},
            )
        booking = self._get_booking_for_participant(caller, booking_id)
        if booking.mentor_id != caller.id:
            raise ForbiddenException("Only mentors can mark sessions as complete")

        with self.transaction():
            booking = self._apply_transition(
                booking_id,
                [BookingStatus.CONFIRMED.value],
                BookingStatus.COMPLETED,
                completed_at=utc_now(),
                payment_status=payment_status,
            )
            self._enqueue_booking_outbox_event(booking, BOOKING_COMPLETED)

        self.log_operation(
            "complete_booking", booking_id=booking_id, payment_status=payment_status
        )
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        principal: Optional[Principal],
        booking_id: str,
        refund: bool = False,
    ) -> Booking:
        """
        Either participant cancels a pending or confirmed session.

        A paid session becomes ``refunded`` when the student cancels or the
        mentor asks for a refund.
        """
        caller = require_principal(principal)
        self._get_booking_for_participant(caller, booking_id)

        with self.transaction():
            booking = self._apply_transition(
                booking_id,
                [BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value],
                BookingStatus.CANCELLED,
                cancelled_at=utc_now(),
                cancelled_by_id=caller.id,
            )
            refund_due = caller.id == booking.student_id or refund
            if booking.payment_status == PaymentStatus.PAID.value and refund_due:
                booking.payment_status = PaymentStatus.REFUNDED.value
                self.db.flush()
            self._enqueue_booking_outbox_event(booking, BOOKING_CANCELLED)

        self.log_operation(
            "cancel_booking",
            booking_id=booking_id,
            cancelled_by=caller.id,
            payment_status=booking.payment_status,
        )
        return booking

    def manage_session(
        self,
        principal: Optional[Principal],
        session_id: str,
        action: str,
        payment_status: Optional[str] = None,
        refund: bool = False,
    ) -> Booking:
        """Dispatch a confirm/complete/cancel action by name."""
        try:
            session_action = SessionAction(action)
        except ValueError:
            raise ValidationException(
                "Invalid action", details={"action": action, "allowed": [a.value for a in SessionAction]}
            )

        if session_action is SessionAction.CONFIRM:
            return self.confirm_booking(principal, session_id)
        if session_action is SessionAction.COMPLETE:
            return self.complete_booking(principal, session_id, payment_status)
        return self.cancel_booking(principal, session_id, refund=refund)

    # Reads

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        principal: Optional[Principal],
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Booking]:
        """Students see their own bookings; mentors see bookings made with them."""
        caller = require_principal(principal)
        if not (caller.is_student or caller.is_mentor):
            raise ForbiddenException("Only students and mentors have sessions")
        if status is not None and status not in {s.value for s in BookingStatus}:
            raise ValidationException("Invalid status filter", details={"status": status})

        capped = DEFAULT_QUERY_LIMIT if limit is None else max(1, min(limit, MAX_QUERY_LIMIT))
        return self.repository.list_for_participant(
            caller.id, as_mentor=caller.is_mentor, status=status, limit=capped
        )

    @BaseService.measure_operation("get_booking")
    def get_booking(self, principal: Optional[Principal], booking_id: str) -> Booking:
        caller = require_principal(principal)
        return self._get_booking_for_participant(caller, booking_id)
