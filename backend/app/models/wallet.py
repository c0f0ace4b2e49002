# backend/app/models/wallet.py
"""
Mentor wallet and its append-only ledger.

The wallet balance is a cached aggregate of ``wallet_transactions``: every
change to ``Wallet.balance`` is written in the same database transaction as
exactly one ``WalletTransaction`` row, so credits minus debits always equals
the balance.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Wallet(Base):
    """One wallet per mentor."""

    __tablename__ = "wallets"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    mentor_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc, onupdate=_now_utc)

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),)

    def __repr__(self) -> str:
        return f"<Wallet {self.id} mentor={self.mentor_id} balance={self.balance}>"


class WalletTransaction(Base):
    """Immutable ledger entry. ``type`` carries the sign; ``amount`` is always positive."""

    __tablename__ = "wallet_transactions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    wallet_id = Column(
        String(26), ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(10), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=False)
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=True)
    idempotency_key = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)

    wallet = relationship("Wallet")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
        CheckConstraint("type IN ('credit', 'debit')", name="ck_wallet_transactions_type"),
        Index("ix_wallet_transactions_wallet_created", "wallet_id", "created_at"),
    )
