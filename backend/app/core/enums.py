# backend/app/core/enums.py
"""
Core enums for the MatePeak platform.

These enums are stored as plain strings in the database; the values here
are the canonical spellings used by models, schemas and services.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a caller can hold. Resolved once per request from the user row."""

    ADMIN = "admin"
    MENTOR = "mentor"
    STUDENT = "student"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class SessionAction(str, Enum):
    """Actions accepted by the manage-session dispatcher."""

    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCEL = "cancel"


class TransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


# Statuses that occupy a mentor's calendar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)

# Directed transition graph for bookings
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING.value: {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value},
    BookingStatus.CONFIRMED.value: {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value},
    BookingStatus.COMPLETED.value: set(),
    BookingStatus.CANCELLED.value: set(),
}
