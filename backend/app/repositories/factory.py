# backend/app/repositories/factory.py
"""
Repository Factory for the MatePeak platform.

Centralizes creation of repository instances so services never construct
data access objects ad hoc.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .event_outbox_repository import EventOutboxRepository
    from .mentor_repository import MentorRepository
    from .user_repository import UserRepository
    from .wallet_repository import WalletRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        return BaseRepository(db, model)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_mentor_repository(db: Session) -> "MentorRepository":
        from .mentor_repository import MentorRepository

        return MentorRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_wallet_repository(db: Session) -> "WalletRepository":
        from .wallet_repository import WalletRepository

        return WalletRepository(db)

    @staticmethod
    def create_event_outbox_repository(db: Session) -> "EventOutboxRepository":
        from .event_outbox_repository import EventOutboxRepository

        return EventOutboxRepository(db)
