# mentorhub/routes/v1/wallet.py
"""
Wallet routes - API v1

Endpoints:
    GET /wallet - Balance and recent transactions for the caller
    POST /wallet/topup - Request a top-up (pending until an admin resolves it)
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_current_principal, get_ledger_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...principal import Principal
from ...schemas.ledger import TopUpRequest, TransactionResponse, WalletResponse
from ...services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["wallet-v1"])


@router.get("/wallet", response_model=WalletResponse, response_model_by_alias=True)
async def get_wallet(
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> WalletResponse:
    balance = await asyncio.to_thread(service.get_balance, principal.id)
    transactions = await asyncio.to_thread(service.recent_transactions, principal.id, limit)
    return WalletResponse(
        balance=balance,
        transactions=[TransactionResponse.model_validate(tx) for tx in transactions],
    )


@router.post(
    "/wallet/topup",
    response_model=TransactionResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def request_top_up(
    payload: TopUpRequest,
    principal: Principal = Depends(get_current_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    """Record a transfer to the admin wallet for review."""
    try:
        transaction = await asyncio.to_thread(
            service.credit_pending_top_up,
            principal.id,
            payload.amount,
            payload.sender_wallet_number,
        )
        return TransactionResponse.model_validate(transaction)
    except DomainException as e:
        handle_domain_exception(e)
