"""Wallet withdrawals and booking credits."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from app.core.enums import PaymentStatus, TransactionType
from app.core.exceptions import (
    ForbiddenException,
    InsufficientBalanceException,
    LedgerWriteException,
    RepositoryException,
    UnauthorizedException,
    ValidationException,
    WalletNotFoundException,
)
from app.models.wallet import Wallet, WalletTransaction
from app.services.booking_service import BookingService
from app.services.wallet_service import WalletService, booking_credit_key, parse_amount


@pytest.fixture
def funded_wallet(db, test_mentor):
    wallet = Wallet(mentor_id=test_mentor.id, balance=Decimal("1000.00"))
    db.add(wallet)
    db.flush()
    db.add(
        WalletTransaction(
            wallet_id=wallet.id,
            type=TransactionType.CREDIT.value,
            amount=Decimal("1000.00"),
            description="Opening balance",
        )
    )
    db.commit()
    return wallet


@pytest.fixture
def completed_paid_booking(db, student_principal, mentor_principal, test_mentor, future_session_time):
    service = BookingService(db)
    booking = service.create_booking(
        student_principal,
        mentor_id=test_mentor.id,
        session_time=future_session_time,
        duration=60,
        session_type="Mock interview",
    )
    service.confirm_booking(mentor_principal, booking.id)
    return service.complete_booking(mentor_principal, booking.id, PaymentStatus.PAID.value)


def _ledger(db, wallet_id):
    return db.query(WalletTransaction).filter(WalletTransaction.wallet_id == wallet_id).all()


class TestWithdraw:
    def test_debits_balance_and_records_ledger_entry(self, db, mentor_principal, funded_wallet):
        result = WalletService(db).withdraw(
            mentor_principal, "250.50", {"bank_name": "HDFC Bank", "account_number": "0001"}
        )

        assert result.new_balance == Decimal("749.50")
        assert result.withdrawal_amount == Decimal("250.50")
        assert result.transaction.type == TransactionType.DEBIT.value
        assert result.transaction.description == "Withdrawal to HDFC Bank"
        assert len(_ledger(db, funded_wallet.id)) == 2

    def test_default_description_without_bank(self, db, mentor_principal, funded_wallet):
        result = WalletService(db).withdraw(mentor_principal, 10)
        assert result.transaction.description == "Withdrawal to bank account"

    def test_whole_balance_can_be_withdrawn(self, db, mentor_principal, funded_wallet):
        result = WalletService(db).withdraw(mentor_principal, "1000")
        assert result.new_balance == Decimal("0.00")

    def test_insufficient_balance_leaves_wallet_unchanged(
        self, db, mentor_principal, funded_wallet
    ):
        with pytest.raises(InsufficientBalanceException) as exc_info:
            WalletService(db).withdraw(mentor_principal, "1000.01")

        db.refresh(funded_wallet)
        assert Decimal(str(funded_wallet.balance)) == Decimal("1000.00")
        assert exc_info.value.details["current_balance"] == "1000.00"
        assert len(_ledger(db, funded_wallet.id)) == 1

    def test_missing_wallet(self, db, mentor_principal):
        with pytest.raises(WalletNotFoundException):
            WalletService(db).withdraw(mentor_principal, "10")

    def test_ledger_failure_rolls_back_debit(self, db, mentor_principal, funded_wallet):
        service = WalletService(db)

        with patch.object(
            service.repository, "add_transaction", side_effect=RepositoryException("disk full")
        ):
            with pytest.raises(LedgerWriteException):
                service.withdraw(mentor_principal, "100")

        db.refresh(funded_wallet)
        assert Decimal(str(funded_wallet.balance)) == Decimal("1000.00")
        assert len(_ledger(db, funded_wallet.id)) == 1

    @pytest.mark.parametrize("amount", [None, "abc", "0", "-5", "10.001"])
    def test_invalid_amounts(self, db, mentor_principal, funded_wallet, amount):
        with pytest.raises(ValidationException):
            WalletService(db).withdraw(mentor_principal, amount)

    def test_students_cannot_withdraw(self, db, student_principal):
        with pytest.raises(ForbiddenException):
            WalletService(db).withdraw(student_principal, "10")

    def test_requires_principal(self, db):
        with pytest.raises(UnauthorizedException):
            WalletService(db).withdraw(None, "10")


class TestCreditForBooking:
    def test_credits_booking_amount_once(self, db, test_mentor, completed_paid_booking):
        service = WalletService(db)

        first = service.credit_for_booking(completed_paid_booking)
        second = service.credit_for_booking(completed_paid_booking)

        assert first is not None
        assert first.idempotency_key == booking_credit_key(completed_paid_booking.id)
        assert second is None
        wallet = service.repository.get_by_mentor(test_mentor.id, refresh=True)
        assert Decimal(str(wallet.balance)) == Decimal("500.00")
        assert len(_ledger(db, wallet.id)) == 1

    def test_uncommitted_credit_is_discarded_on_rollback(self, db, test_mentor, completed_paid_booking):
        service = WalletService(db)

        entry = service.credit_for_booking(completed_paid_booking, commit=False)
        assert entry is not None
        assert service.credit_for_booking(completed_paid_booking, commit=False) is None

        db.rollback()

        assert service.repository.get_transaction_by_key(
            booking_credit_key(completed_paid_booking.id)
        ) is None

    def test_credit_adds_to_existing_balance(self, db, test_mentor, funded_wallet, completed_paid_booking):
        WalletService(db).credit_for_booking(completed_paid_booking)

        db.refresh(funded_wallet)
        assert Decimal(str(funded_wallet.balance)) == Decimal("1500.00")


class TestSummary:
    def test_reconciled_summary(self, db, mentor_principal, funded_wallet):
        WalletService(db).withdraw(mentor_principal, "200")

        summary = WalletService(db).get_summary(mentor_principal)

        assert summary.balance == Decimal("800.00")
        assert summary.ledger_balance == Decimal("800.00")
        assert summary.reconciled is True

    def test_no_wallet_is_zero(self, db, mentor_principal):
        summary = WalletService(db).get_summary(mentor_principal)
        assert summary.wallet_id is None
        assert summary.balance == Decimal("0.00")

    def test_transactions_newest_first(self, db, mentor_principal, funded_wallet):
        WalletService(db).withdraw(mentor_principal, "5")

        entries = WalletService(db).list_transactions(mentor_principal)

        assert [e.type for e in entries] == ["debit", "credit"]


def test_parse_amount_quantizes():
    assert parse_amount(12) == Decimal("12.00")
    assert parse_amount("7.5") == Decimal("7.50")
