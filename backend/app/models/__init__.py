"""
Database models for the MatePeak platform.

- Users and mentor catalog profiles
- Bookings
- Mentor wallets and the wallet ledger
- Event outbox for booking side effects
"""

from .booking import Booking
from .event_outbox import EventOutbox, EventOutboxStatus
from .mentor import MentorProfile
from .user import User
from .wallet import Wallet, WalletTransaction

__all__ = [
    "Booking",
    "EventOutbox",
    "EventOutboxStatus",
    "MentorProfile",
    "User",
    "Wallet",
    "WalletTransaction",
]
