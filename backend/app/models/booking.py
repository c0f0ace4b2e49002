# backend/app/models/booking.py
"""
Booking model for the MatePeak platform.

A booking is a scheduled session between a student and a mentor. Rows are
never deleted; status moves along pending -> confirmed -> completed, with
cancelled reachable from pending or confirmed. Status changes are applied by
``BookingRepository.transition_status`` as conditional updates, never by
mutating the ORM object directly.
"""

from datetime import timedelta
import logging
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus, PaymentStatus
from ..database import Base

logger = logging.getLogger(__name__)


class Booking(Base):
    """
    Session booking between a student and a mentor.

    ``end_time`` is stored alongside ``session_time`` so overlap checks are a
    single indexed range predicate. ``total_amount`` snapshots the mentor's
    price at booking time and is what the mentor is credited on completion.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    mentor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    session_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False)
    session_type = Column(String(100), nullable=False)
    message = Column(Text, nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)
    meeting_link = Column(String(255), nullable=True)

    reminder_24h_sent = Column(Boolean, nullable=False, default=False)
    reminder_1h_sent = Column(Boolean, nullable=False, default=False)

    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    student = relationship("User", foreign_keys=[student_id], lazy="joined")
    mentor = relationship("User", foreign_keys=[mentor_id], lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('unpaid', 'paid', 'refunded')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("duration > 0", name="ck_bookings_duration_positive"),
        CheckConstraint("total_amount >= 0", name="ck_bookings_amount_non_negative"),
        CheckConstraint("end_time > session_time", name="ck_bookings_time_order"),
        Index("ix_bookings_mentor_window", "mentor_id", "session_time", "end_time"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        if not self.payment_status:
            self.payment_status = PaymentStatus.UNPAID.value
        if self.end_time is None and self.session_time is not None and self.duration:
            self.end_time = self.session_time + timedelta(minutes=self.duration)

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: student={self.student_id}, mentor={self.mentor_id}, "
            f"time={self.session_time}, status={self.status}>"
        )

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.student_id, self.mentor_id)

