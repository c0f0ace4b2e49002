# backend/app/services/reminder_service.py
"""
Session reminders.

A periodic job looks for confirmed sessions entering the 24 hour or 1 hour
reminder window. Each booking's reminder flag is claimed with a conditional
update and a ``booking.reminder`` outbox event is written in the same
transaction, so repeated or overlapping runs enqueue at most one reminder
per booking and window.
"""

from datetime import timedelta
import logging
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import REMINDER_1H_WINDOW, REMINDER_24H_WINDOW
from ..core.timezone_utils import utc_now
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

BOOKING_REMINDER = "booking.reminder"

REMINDER_WINDOWS: Dict[str, Tuple[int, int]] = {
    "24h": REMINDER_24H_WINDOW,
    "1h": REMINDER_1H_WINDOW,
}


class ReminderService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.event_outbox_repository = RepositoryFactory.create_event_outbox_repository(db)

    @BaseService.measure_operation("enqueue_due_reminders")
    def enqueue_due_reminders(self, kind: Optional[str] = None) -> Dict[str, int]:
        """
        Claim and enqueue reminders that are due now.

        Returns:
            Number of reminders enqueued per window
        """
        kinds = [kind] if kind else list(REMINDER_WINDOWS)
        now = utc_now()
        counts: Dict[str, int] = {}
        for current in kinds:
            low, high = REMINDER_WINDOWS[current]
            due = self.booking_repository.find_due_for_reminder(
                current, now + timedelta(minutes=low), now + timedelta(minutes=high)
            )
            enqueued = 0
            for booking in due:
                with self.transaction():
                    if not self.booking_repository.mark_reminder_sent(booking.id, current):
                        continue
                    self.event_outbox_repository.enqueue(
                        event_type=BOOKING_REMINDER,
                        aggregate_id=booking.id,
                        payload={"booking_id": booking.id, "kind": current},
                        idempotency_key=f"booking:{booking.id}:reminder_{current}",
                    )
                enqueued += 1
            counts[current] = enqueued

        if any(counts.values()):
            logger.info(f"Enqueued session reminders: {counts}")
        return counts
