# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the MatePeak platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every exception carries a stable machine-readable ``code`` that is
rendered in the ``{"success": false, "error": {...}}`` envelope.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the error payload."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input or business validation fails (BadRequest)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "BAD_REQUEST"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE
    default_code = "BUSINESS_RULE"


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"


class ForbiddenException(DomainException):
    """Raised when an authenticated caller may not act on an entity."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "UNAUTHORIZED"


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    default_code = "INTERNAL"

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking conflicts with existing bookings."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message
            or "Mentor is not available at this time. Please choose another time slot.",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class InvalidTransitionException(ConflictException):
    """Raised when a booking status change is not allowed from its current state."""

    def __init__(self, booking_id: str, current_status: Optional[str], target_status: str):
        super().__init__(
            message=f"Cannot move session from {current_status or 'unknown'} to {target_status}",
            code="INVALID_TRANSITION",
            details={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class WalletNotFoundException(NotFoundException):
    """Raised when a mentor has no wallet to debit."""

    def __init__(self, mentor_id: str):
        super().__init__(
            message="Wallet not found",
            code="WALLET_NOT_FOUND",
            details={"mentor_id": mentor_id},
        )


class InsufficientBalanceException(BusinessRuleException):
    """Raised when a withdrawal exceeds the wallet balance."""

    def __init__(self, current_balance: Decimal, requested_amount: Decimal):
        super().__init__(
            message="Insufficient balance",
            code="INSUFFICIENT_BALANCE",
            details={
                "current_balance": str(current_balance),
                "requested_amount": str(requested_amount),
            },
        )


class LedgerWriteException(ServiceException):
    """Raised when a balance change could not be paired with its ledger entry."""

    def __init__(self, wallet_id: str, amount: Decimal):
        super().__init__(
            message="Withdrawal could not be recorded. No funds were moved; please retry.",
            code="LEDGER_WRITE_FAILED",
            details={"wallet_id": wallet_id, "amount": str(amount)},
        )


class ProviderException(DomainException):
    """Raised when an external provider (embeddings, email) fails."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = "PROVIDER_ERROR"


class ProviderTimeoutException(ProviderException):
    """Raised when an external provider does not answer in time."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_code = "PROVIDER_TIMEOUT"


class ProviderNotConfiguredException(ServiceException):
    """Raised when a provider credential is missing. Never degraded to a fallback."""

    def __init__(self, provider: str, setting: str):
        super().__init__(
            message=f"{provider} is not configured",
            code="PROVIDER_NOT_CONFIGURED",
            details={"provider": provider, "setting": setting},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
