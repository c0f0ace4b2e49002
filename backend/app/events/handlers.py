"""Event handlers - process booking events delivered from the outbox."""
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.enums import PaymentStatus
from app.models.booking import Booking
from app.models.event_outbox import EventOutbox
from app.repositories.booking_repository import BookingRepository
from app.services.notification_service import NotificationService
from app.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any]


class UnknownEventType(Exception):
    """Raised for an outbox event with no registered handler."""


def _load_booking(db: Session, payload: Payload) -> Optional[Booking]:
    """Load booking with participants for notification rendering."""
    booking_id = payload.get("booking_id")
    booking = BookingRepository(db).get_fresh(booking_id) if booking_id else None
    if booking is None:
        logger.warning("Booking %s not found for outbox event", booking_id)
    return booking


def handle_booking_created(payload: Payload, db: Session) -> None:
    """Tell the mentor about the new request."""
    booking = _load_booking(db, payload)
    if not booking:
        return
    NotificationService(db).send_booking_requested(booking)
    logger.info("Sent booking request notice for %s", booking.id)


def handle_booking_confirmed(payload: Payload, db: Session) -> None:
    """Send the student their confirmation and meeting link."""
    booking = _load_booking(db, payload)
    if not booking:
        return
    NotificationService(db).send_booking_confirmed(booking)
    logger.info("Sent booking confirmation for %s", booking.id)


def handle_booking_cancelled(payload: Payload, db: Session) -> None:
    """Send cancellation notice to the other participant."""
    booking = _load_booking(db, payload)
    if not booking:
        return
    NotificationService(db).send_booking_cancelled(booking)
    logger.info("Sent cancellation notification for %s", booking.id)


def handle_booking_completed(payload: Payload, db: Session) -> None:
    """
    Credit the mentor for a paid session, then ask the student for a review.

    Redelivery is expected: the wallet credit is keyed on the booking id and
    only applies once. The credit is left uncommitted so it lands in the same
    commit as the event's SENT mark.
    """
    booking = _load_booking(db, payload)
    if not booking:
        return
    if booking.payment_status == PaymentStatus.PAID.value:
        WalletService(db).credit_for_booking(booking, commit=False)
    NotificationService(db).send_review_request(booking)
    logger.info("Processed completion of %s", booking.id)


def handle_booking_reminder(payload: Payload, db: Session) -> None:
    """Send a session reminder to both participants."""
    booking = _load_booking(db, payload)
    if not booking:
        return
    reminder_type = payload.get("kind") or "24h"
    NotificationService(db).send_booking_reminder(booking, reminder_type)
    logger.info("Sent %s reminder for %s", reminder_type, booking.id)


# Registry of event type -> handler function
EVENT_HANDLERS: Dict[str, Callable[[Payload, Session], None]] = {
    "booking.created": handle_booking_created,
    "booking.confirmed": handle_booking_confirmed,
    "booking.cancelled": handle_booking_cancelled,
    "booking.completed": handle_booking_completed,
    "booking.reminder": handle_booking_reminder,
}


def process_event(event: EventOutbox, db: Session) -> None:
    """
    Run the handler for an outbox event.

    Raises:
        UnknownEventType: no handler registered for ``event.event_type``
    """
    handler = EVENT_HANDLERS.get(event.event_type)
    if not handler:
        raise UnknownEventType(event.event_type)
    handler(event.payload or {}, db)
