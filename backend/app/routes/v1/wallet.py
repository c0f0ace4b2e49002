# backend/app/routes/v1/wallet.py
"""
Mentor wallet routes - API v1

Endpoints:
    GET / - Balance and reconciliation status
    GET /transactions - Ledger entries, newest first
    POST /withdraw - Withdraw funds to a bank account
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import get_optional_principal, get_wallet_service
from ...principal import Principal
from ...schemas.base import DataResponse
from ...schemas.wallet import (
    WalletSummaryResponse,
    WalletTransactionResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from ...services.wallet_service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["wallet-v1"])


@router.get("", response_model=DataResponse[WalletSummaryResponse])
async def get_wallet(
    principal: Optional[Principal] = Depends(get_optional_principal),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> DataResponse[WalletSummaryResponse]:
    summary = await asyncio.to_thread(wallet_service.get_summary, principal)
    return DataResponse[WalletSummaryResponse](data=WalletSummaryResponse.model_validate(summary))


@router.get("/transactions", response_model=DataResponse[List[WalletTransactionResponse]])
async def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    principal: Optional[Principal] = Depends(get_optional_principal),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> DataResponse[List[WalletTransactionResponse]]:
    entries = await asyncio.to_thread(wallet_service.list_transactions, principal, limit)
    return DataResponse[List[WalletTransactionResponse]](
        data=[WalletTransactionResponse.model_validate(e) for e in entries]
    )


@router.post("/withdraw", response_model=WithdrawResponse)
async def withdraw(
    payload: WithdrawRequest = Body(...),
    principal: Optional[Principal] = Depends(get_optional_principal),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WithdrawResponse:
    """Debit the caller's wallet; the balance and ledger entry commit together."""
    account_details = payload.account_details.model_dump() if payload.account_details else None
    result = await asyncio.to_thread(
        wallet_service.withdraw, principal, payload.amount, account_details
    )
    return WithdrawResponse(
        new_balance=result.new_balance,
        withdrawal_amount=result.withdrawal_amount,
        transaction_id=result.transaction.id,
    )
