# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.admin_metrics_service import AdminMetricsService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.search.embedding_service import EmbeddingService
from ...services.search.mentor_search_service import MentorSearchService
from ...services.wallet_service import WalletService
from .database import get_db


@lru_cache(maxsize=1)
def get_embedding_service() -> EmbeddingService:
    """Process-wide embedding service (holds the lazily built provider client)."""
    return EmbeddingService()


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_wallet_service(db: Session = Depends(get_db)) -> WalletService:
    return WalletService(db)


def get_mentor_search_service(
    db: Session = Depends(get_db),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
) -> MentorSearchService:
    return MentorSearchService(db, embedding_service=embedding_service)


def get_admin_metrics_service(db: Session = Depends(get_db)) -> AdminMetricsService:
    return AdminMetricsService(db)
