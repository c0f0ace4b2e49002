# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_optional_principal
from .database import get_db
from .services import (
    get_admin_metrics_service,
    get_availability_service,
    get_booking_service,
    get_embedding_service,
    get_mentor_search_service,
    get_wallet_service,
)

__all__ = [
    # Auth
    "get_optional_principal",
    # Database
    "get_db",
    # Services
    "get_admin_metrics_service",
    "get_availability_service",
    "get_booking_service",
    "get_embedding_service",
    "get_mentor_search_service",
    "get_wallet_service",
]
