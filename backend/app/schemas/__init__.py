# backend/app/schemas/__init__.py
"""Pydantic schemas for the MatePeak API."""

from .admin import AdminMetricsResponse, TopMentorResponse
from .base import DataResponse, ErrorBody, ErrorResponse, Money, StandardizedModel
from .booking import (
    AvailabilityCheckRequest,
    AvailabilityResponse,
    BookingCreate,
    BookingResponse,
    CancelSessionRequest,
    CompleteSessionRequest,
    ConflictWindow,
    ManageSessionRequest,
)
from .search import MentorSummary, SearchRequest, SearchResponse
from .wallet import (
    AccountDetails,
    WalletSummaryResponse,
    WalletTransactionResponse,
    WithdrawRequest,
    WithdrawResponse,
)

__all__ = [
    "AccountDetails",
    "AdminMetricsResponse",
    "AvailabilityCheckRequest",
    "AvailabilityResponse",
    "BookingCreate",
    "BookingResponse",
    "CancelSessionRequest",
    "CompleteSessionRequest",
    "ConflictWindow",
    "DataResponse",
    "ErrorBody",
    "ErrorResponse",
    "ManageSessionRequest",
    "MentorSummary",
    "Money",
    "SearchRequest",
    "SearchResponse",
    "StandardizedModel",
    "TopMentorResponse",
    "WalletSummaryResponse",
    "WalletTransactionResponse",
    "WithdrawRequest",
    "WithdrawResponse",
]
