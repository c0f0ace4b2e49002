# backend/app/schemas/wallet.py
"""Wallet request and response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel


class AccountDetails(BaseModel):
    """Payout destination. Only ``bank_name`` is read; other fields pass through."""

    model_config = ConfigDict(extra="allow")

    bank_name: Optional[str] = None
    account_holder_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None


class WithdrawRequest(StrictRequestModel):
    amount: Decimal = Field(..., description="Amount to withdraw, at most two decimals")
    account_details: Optional[AccountDetails] = None


class WithdrawResponse(StandardizedModel):
    success: bool = True
    new_balance: Money
    withdrawal_amount: Money
    transaction_id: str


class WalletSummaryResponse(StandardizedModel):
    wallet_id: Optional[str] = None
    balance: Money
    ledger_balance: Money
    reconciled: bool


class WalletTransactionResponse(StandardizedModel):
    id: str
    type: str
    amount: Money
    description: str
    booking_id: Optional[str] = None
    created_at: datetime
