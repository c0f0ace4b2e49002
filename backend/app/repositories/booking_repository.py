# backend/app/repositories/booking_repository.py
"""
Booking Repository for the MatePeak platform.

Handles:
- Overlap queries for availability checks
- Participant-scoped listing
- Conditional status transitions (compare-and-set on current status)
- Reminder selection and at-most-once reminder flags
- Aggregates for the admin dashboard
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, cast

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import ACTIVE_BOOKING_STATUSES, BookingStatus, PaymentStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

REMINDER_FLAGS = {
    "24h": Booking.reminder_24h_sent,
    "1h": Booking.reminder_1h_sent,
}


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    # Availability

    def find_overlapping(
        self,
        mentor_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Return the mentor's live bookings overlapping ``[start, end)``.

        Windows are half-open: a booking ending exactly at ``start`` (or
        starting exactly at ``end``) does not overlap.
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.mentor_id == mentor_id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.session_time < end,
                Booking.end_time > start,
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return cast(List[Booking], query.order_by(Booking.session_time.asc()).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking overlapping bookings: {str(e)}")
            raise RepositoryException(f"Failed to check booking overlap: {str(e)}")

    # Reads

    def get_fresh(self, booking_id: str) -> Optional[Booking]:
        """Load a booking bypassing stale identity-map state after a bulk update."""
        try:
            return cast(
                Optional[Booking],
                self._apply_eager_loading(self.db.query(Booking))
                .populate_existing()
                .filter(Booking.id == booking_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reloading booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to reload booking: {str(e)}")

    def list_for_participant(
        self,
        user_id: str,
        *,
        as_mentor: bool,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> List[Booking]:
        """Bookings where the user is the student (or mentor), newest session first."""
        column = Booking.mentor_id if as_mentor else Booking.student_id
        query = self._apply_eager_loading(self.db.query(Booking)).filter(column == user_id)
        if status:
            query = query.filter(Booking.status == status)
        return self._execute_query(
            query.order_by(Booking.session_time.desc(), Booking.id.desc()).limit(limit)
        )

    # Status transitions

    def transition_status(
        self,
        booking_id: str,
        from_statuses: Iterable[str],
        to_status: str,
        **values: Any,
    ) -> bool:
        """
        Move a booking to ``to_status`` only if it is currently in ``from_statuses``.

        Issued as a single ``UPDATE ... WHERE id = :id AND status IN (...)`` so
        two concurrent callers can never both observe and leave the same state.
        Returns True when exactly one row changed.
        """
        allowed = list(from_statuses)
        try:
            stmt = (
                update(Booking)
                .where(Booking.id == booking_id, Booking.status.in_(allowed))
                .values(status=to_status, updated_at=datetime.now(timezone.utc), **values)
                .execution_options(synchronize_session=False)
            )
            result = self.db.execute(stmt)
            changed = (result.rowcount or 0) == 1
            self.logger.debug(
                "Booking %s transition %s -> %s applied=%s", booking_id, allowed, to_status, changed
            )
            return changed
        except SQLAlchemyError as e:
            self.logger.error(f"Error transitioning booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking status: {str(e)}")

    # Reminders

    def find_due_for_reminder(
        self, kind: str, window_start: datetime, window_end: datetime
    ) -> List[Booking]:
        """Confirmed bookings starting in ``(window_start, window_end]`` without the reminder flag."""
        flag = REMINDER_FLAGS[kind]
        query = (
            self._apply_eager_loading(self.db.query(Booking))
            .filter(
                Booking.status == BookingStatus.CONFIRMED.value,
                flag.is_(False),
                Booking.session_time > window_start,
                Booking.session_time <= window_end,
            )
            .order_by(Booking.session_time.asc())
        )
        return self._execute_query(query)

    def mark_reminder_sent(self, booking_id: str, kind: str) -> bool:
        """Set the reminder flag if not already set. False means another run claimed it."""
        flag = REMINDER_FLAGS[kind]
        try:
            result = self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, flag.is_(False))
                .values({flag.key: True})
                .execution_options(synchronize_session=False)
            )
            return (result.rowcount or 0) == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error flagging reminder for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to flag reminder: {str(e)}")

    # Admin aggregates

    def count_by_status(self) -> Dict[str, int]:
        rows = self.db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        counts = {status.value: 0 for status in BookingStatus}
        counts.update({status: int(total) for status, total in rows})
        return counts

    def total_paid_revenue(self) -> Decimal:
        total = self._execute_scalar(
            self.db.query(func.coalesce(func.sum(Booking.total_amount), 0)).filter(
                Booking.payment_status == PaymentStatus.PAID.value
            )
        )
        return Decimal(str(total or 0))

    def top_mentors_by_revenue(self, limit: int = 5) -> List[Tuple[str, str, Decimal, int]]:
        """(mentor_id, mentor_name, revenue, paid_sessions) for the highest earning mentors."""
        revenue = func.sum(Booking.total_amount).label("revenue")
        rows = (
            self.db.query(Booking.mentor_id, User.full_name, revenue, func.count(Booking.id))
            .join(User, User.id == Booking.mentor_id)
            .filter(Booking.payment_status == PaymentStatus.PAID.value)
            .group_by(Booking.mentor_id, User.full_name)
            .order_by(revenue.desc())
            .limit(limit)
            .all()
        )
        return [
            (mentor_id, name, Decimal(str(total or 0)), int(sessions))
            for mentor_id, name, total, sessions in rows
        ]

    def recent(self, limit: int = 10) -> List[Booking]:
        query = (
            self._apply_eager_loading(self.db.query(Booking))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    # Helper method overrides

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.student), joinedload(Booking.mentor))
