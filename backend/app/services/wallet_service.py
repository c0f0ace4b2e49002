# backend/app/services/wallet_service.py
"""
Wallet Service for the MatePeak platform.

Every balance change is paired with exactly one ledger row written in the
same database transaction:
- withdrawals: conditional debit, then the debit entry; a failed ledger
  write rolls the debit back
- booking credits: ledger entry keyed ``booking-credit:{booking_id}``, then
  the balance increment; a repeated delivery finds the key and does nothing
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.enums import TransactionType
from ..core.exceptions import (
    ForbiddenException,
    InsufficientBalanceException,
    LedgerWriteException,
    RepositoryException,
    ValidationException,
    WalletNotFoundException,
)
from ..models.booking import Booking
from ..models.wallet import WalletTransaction
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Principal, require_principal
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")
MAX_TRANSACTIONS_LIMIT = 200


class _DuplicateCredit(Exception):
    """Another delivery already recorded this credit."""


@dataclass
class WithdrawalResult:
    new_balance: Decimal
    withdrawal_amount: Decimal
    transaction: WalletTransaction


@dataclass
class WalletSummary:
    wallet_id: Optional[str]
    balance: Decimal
    ledger_balance: Decimal
    reconciled: bool


def booking_credit_key(booking_id: str) -> str:
    return f"booking-credit:{booking_id}"


def parse_amount(amount: Union[Decimal, int, float, str, None]) -> Decimal:
    """
    Normalise a money amount.

    Raises:
        ValidationException: missing, non-numeric, non-positive, or more than two decimals
    """
    if amount is None or isinstance(amount, bool):
        raise ValidationException("Amount is required", details={"field": "amount"})
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationException("Amount must be a number", details={"field": "amount"})
    if not value.is_finite() or value <= 0:
        raise ValidationException("Amount must be greater than zero", details={"field": "amount"})
    if value != value.quantize(_CENTS):
        raise ValidationException(
            "Amount can have at most two decimal places", details={"field": "amount"}
        )
    return value.quantize(_CENTS)


class WalletService(BaseService):
    """Mentor wallet balance and ledger operations."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_wallet_repository(db)

    @staticmethod
    def _require_mentor(principal: Optional[Principal], action: str) -> Principal:
        caller = require_principal(principal)
        if not caller.is_mentor:
            raise ForbiddenException(f"Only mentors can {action}")
        return caller

    @BaseService.measure_operation("withdraw")
    def withdraw(
        self,
        principal: Optional[Principal],
        amount: Union[Decimal, int, float, str, None],
        account_details: Optional[Dict[str, Any]] = None,
    ) -> WithdrawalResult:
        """
        Move ``amount`` out of the caller's wallet.

        Raises:
            UnauthorizedException / ForbiddenException: caller is not a mentor
            ValidationException: invalid amount
            WalletNotFoundException: mentor has no wallet yet
            InsufficientBalanceException: balance below ``amount`` (balance unchanged)
            LedgerWriteException: debit could not be recorded (rolled back)
        """
        caller = self._require_mentor(principal, "withdraw funds")
        value = parse_amount(amount)
        bank_name = (account_details or {}).get("bank_name") or "bank account"
        description = f"Withdrawal to {bank_name}"

        with self.transaction():
            if not self.repository.debit_if_sufficient(caller.id, value):
                wallet = self.repository.get_by_mentor(caller.id, refresh=True)
                if wallet is None:
                    prometheus_metrics.record_withdrawal("not_found")
                    raise WalletNotFoundException(caller.id)
                prometheus_metrics.record_withdrawal("insufficient_balance")
                raise InsufficientBalanceException(Decimal(str(wallet.balance)), value)

            wallet = self.repository.get_by_mentor(caller.id, refresh=True)
            if wallet is None:
                raise WalletNotFoundException(caller.id)
            try:
                entry = self.repository.add_transaction(
                    wallet_id=wallet.id,
                    type=TransactionType.DEBIT,
                    amount=value,
                    description=description,
                )
            except (IntegrityError, RepositoryException) as exc:
                logger.error(
                    "Ledger write failed for withdrawal of %s from wallet %s; debit rolled back "
                    "(reconciliation): %s",
                    value,
                    wallet.id,
                    exc,
                )
                prometheus_metrics.record_withdrawal("ledger_failure")
                raise LedgerWriteException(wallet.id, value) from exc

        prometheus_metrics.record_withdrawal("success")
        self.log_operation("withdraw", mentor_id=caller.id, amount=str(value))
        return WithdrawalResult(
            new_balance=Decimal(str(wallet.balance)), withdrawal_amount=value, transaction=entry
        )

    @BaseService.measure_operation("credit_for_booking")
    def credit_for_booking(
        self, booking: Booking, *, commit: bool = True
    ) -> Optional[WalletTransaction]:
        """
        Credit the mentor with the booking's ``total_amount``.

        Safe to call repeatedly for the same booking: only the first call
        changes the balance. Returns the new ledger entry, or None when the
        credit was already recorded or there is nothing to credit.

        With ``commit=False`` the credit joins the caller's transaction and a
        racing duplicate surfaces as IntegrityError for the caller to roll back.
        Outbox delivery uses this so the credit and the SENT mark commit together.
        """
        amount = Decimal(str(booking.total_amount or 0)).quantize(_CENTS)
        if amount <= 0:
            logger.info("Booking %s has no amount to credit", booking.id)
            return None

        key = booking_credit_key(booking.id)
        if commit:
            try:
                with self.transaction():
                    try:
                        entry = self._record_credit(booking, amount, key)
                    except IntegrityError as exc:
                        raise _DuplicateCredit(key) from exc
            except _DuplicateCredit:
                entry = None
        else:
            entry = self._record_credit(booking, amount, key)

        if entry is None:
            logger.info("Credit for booking %s already recorded; skipping", booking.id)
            return None

        self.log_operation(
            "credit_for_booking", booking_id=booking.id, mentor_id=booking.mentor_id, amount=str(amount)
        )
        return entry

    def _record_credit(
        self, booking: Booking, amount: Decimal, key: str
    ) -> Optional[WalletTransaction]:
        if self.repository.get_transaction_by_key(key) is not None:
            return None
        wallet = self.repository.get_or_create_for_mentor(booking.mentor_id)
        entry = self.repository.add_transaction(
            wallet_id=wallet.id,
            type=TransactionType.CREDIT,
            amount=amount,
            description=f"Session payment for booking {booking.id}",
            booking_id=booking.id,
            idempotency_key=key,
        )
        self.repository.credit(wallet.id, amount)
        return entry

    @BaseService.measure_operation("get_wallet_summary")
    def get_summary(self, principal: Optional[Principal]) -> WalletSummary:
        """Balance, ledger total and whether they agree."""
        caller = self._require_mentor(principal, "view wallets")
        wallet = self.repository.get_by_mentor(caller.id, refresh=True)
        if wallet is None:
            zero = Decimal("0.00")
            return WalletSummary(wallet_id=None, balance=zero, ledger_balance=zero, reconciled=True)

        balance = Decimal(str(wallet.balance)).quantize(_CENTS)
        ledger = self.repository.ledger_balance(wallet.id)
        if balance != ledger:
            logger.error(
                "Wallet %s out of balance: stored %s, ledger %s", wallet.id, balance, ledger
            )
        return WalletSummary(
            wallet_id=wallet.id, balance=balance, ledger_balance=ledger, reconciled=balance == ledger
        )

    @BaseService.measure_operation("list_wallet_transactions")
    def list_transactions(
        self, principal: Optional[Principal], limit: int = 50
    ) -> List[WalletTransaction]:
        """Ledger entries for the caller's wallet, newest first."""
        caller = self._require_mentor(principal, "view wallets")
        wallet = self.repository.get_by_mentor(caller.id)
        if wallet is None:
            return []
        return self.repository.list_transactions(
            wallet.id, limit=max(1, min(limit, MAX_TRANSACTIONS_LIMIT))
        )
