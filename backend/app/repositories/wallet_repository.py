# backend/app/repositories/wallet_repository.py
"""
Wallet Repository for the MatePeak platform.

Balance changes are conditional UPDATE statements so the non-negative
invariant is enforced by the database, not by a read-then-write in Python.
Callers pair every balance change with ``add_transaction`` inside the same
service transaction.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
import ulid

from ..core.enums import TransactionType
from ..core.exceptions import RepositoryException
from ..models.wallet import Wallet, WalletTransaction
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def _to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(_CENTS)


class WalletRepository(BaseRepository[Wallet]):
    """Repository for wallets and their ledger entries."""

    def __init__(self, db: Session):
        super().__init__(db, Wallet)
        self.logger = logging.getLogger(__name__)

    # Wallets

    def get_by_mentor(self, mentor_id: str, *, refresh: bool = False) -> Optional[Wallet]:
        query = self.db.query(Wallet).filter(Wallet.mentor_id == mentor_id)
        if refresh:
            query = query.populate_existing()
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading wallet for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to load wallet: {str(e)}")

    def get_or_create_for_mentor(self, mentor_id: str) -> Wallet:
        """Create the mentor's wallet with a zero balance if it does not exist yet."""
        values = {
            "id": str(ulid.ULID()),
            "mentor_id": mentor_id,
            "balance": Decimal("0"),
            "updated_at": datetime.now(timezone.utc),
        }
        if self.dialect_name == "postgresql":
            stmt = pg_insert(Wallet).values(**values).on_conflict_do_nothing(
                index_elements=["mentor_id"]
            )
        else:
            stmt = insert(Wallet).values(**values).prefix_with("OR IGNORE")
        self.db.execute(stmt)
        wallet = self.get_by_mentor(mentor_id, refresh=True)
        if wallet is None:
            raise RepositoryException(f"Wallet for mentor {mentor_id} could not be created")
        return wallet

    def debit_if_sufficient(self, mentor_id: str, amount: Decimal) -> bool:
        """
        Subtract ``amount`` only when the balance covers it.

        Returns False when no row matched (no wallet, or balance too low).
        """
        try:
            result = self.db.execute(
                update(Wallet)
                .where(Wallet.mentor_id == mentor_id, Wallet.balance >= amount)
                .values(balance=Wallet.balance - amount, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            return (result.rowcount or 0) == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error debiting wallet for mentor {mentor_id}: {str(e)}")
            raise RepositoryException(f"Failed to debit wallet: {str(e)}")

    def credit(self, wallet_id: str, amount: Decimal) -> None:
        try:
            self.db.execute(
                update(Wallet)
                .where(Wallet.id == wallet_id)
                .values(balance=Wallet.balance + amount, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error crediting wallet {wallet_id}: {str(e)}")
            raise RepositoryException(f"Failed to credit wallet: {str(e)}")

    # Ledger

    def add_transaction(
        self,
        *,
        wallet_id: str,
        type: TransactionType,
        amount: Decimal,
        description: str,
        booking_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> WalletTransaction:
        """Append a ledger entry. A duplicate idempotency key raises IntegrityError."""
        entry = WalletTransaction(
            wallet_id=wallet_id,
            type=type.value,
            amount=amount,
            description=description,
            booking_id=booking_id,
            idempotency_key=idempotency_key,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self.db.add(entry)
            self.db.flush()
            return entry
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error writing ledger entry for wallet {wallet_id}: {str(e)}")
            raise RepositoryException(f"Failed to write ledger entry: {str(e)}")

    def get_transaction_by_key(self, idempotency_key: str) -> Optional[WalletTransaction]:
        return (
            self.db.query(WalletTransaction)
            .filter(WalletTransaction.idempotency_key == idempotency_key)
            .first()
        )

    def list_transactions(self, wallet_id: str, limit: int = 50) -> List[WalletTransaction]:
        return list(
            self.db.execute(
                select(WalletTransaction)
                .where(WalletTransaction.wallet_id == wallet_id)
                .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
                .limit(limit)
            ).scalars()
        )

    def ledger_balance(self, wallet_id: str) -> Decimal:
        """Sum of credits minus debits for the wallet."""
        signed = case(
            (WalletTransaction.type == TransactionType.CREDIT.value, WalletTransaction.amount),
            else_=-WalletTransaction.amount,
        )
        total = self._execute_scalar(
            self.db.query(func.coalesce(func.sum(signed), 0)).filter(
                WalletTransaction.wallet_id == wallet_id
            )
        )
        return _to_money(total)
