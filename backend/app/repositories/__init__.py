# backend/app/repositories/__init__.py
"""
Repository layer for the MatePeak platform.

Usage:
    from app.repositories import RepositoryFactory

    booking_repository = RepositoryFactory.create_booking_repository(db)
    overlapping = booking_repository.find_overlapping(mentor_id, start, end)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .event_outbox_repository import EventOutboxRepository
from .factory import RepositoryFactory
from .mentor_repository import MentorRepository
from .user_repository import UserRepository
from .wallet_repository import WalletRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "EventOutboxRepository",
    "MentorRepository",
    "RepositoryFactory",
    "UserRepository",
    "WalletRepository",
]
