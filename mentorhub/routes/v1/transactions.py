# mentorhub/routes/v1/transactions.py
"""
Admin transaction routes - API v1

Endpoints:
    GET /transaction - Paginated transaction listing with status/type filters
    GET /transaction/pending - Pending top-ups awaiting review
    PATCH /transaction - Approve or reject a pending transaction
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_ledger_service, require_admin
from ...core.enums import TransactionStatus, TransactionType
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...principal import Principal
from ...schemas.ledger import (
    TransactionDecisionRequest,
    TransactionListResponse,
    TransactionResponse,
)
from ...services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transactions-v1"])


@router.get("/transaction", response_model=TransactionListResponse, response_model_by_alias=True)
async def list_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    status: Optional[TransactionStatus] = Query(None),
    tx_type: Optional[TransactionType] = Query(None, alias="type"),
    _: Principal = Depends(require_admin),
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    result = await asyncio.to_thread(
        service.list_transactions,
        status=status,
        tx_type=tx_type,
        page=page,
        page_size=page_size,
    )
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(tx) for tx in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get(
    "/transaction/pending",
    response_model=List[TransactionResponse],
    response_model_by_alias=True,
)
async def list_pending_top_ups(
    _: Principal = Depends(require_admin),
    service: LedgerService = Depends(get_ledger_service),
) -> List[TransactionResponse]:
    pending = await asyncio.to_thread(service.list_pending_top_ups)
    return [TransactionResponse.model_validate(tx) for tx in pending]


@router.patch("/transaction", response_model=TransactionResponse, response_model_by_alias=True)
async def resolve_transaction(
    payload: TransactionDecisionRequest,
    admin: Principal = Depends(require_admin),
    service: LedgerService = Depends(get_ledger_service),
) -> TransactionResponse:
    """Resolve a pending transaction; approved top-ups credit the wallet."""
    try:
        transaction = await asyncio.to_thread(
            service.resolve_generic_transaction, payload.transaction_id, payload.status
        )
        logger.info(
            "transaction_resolved_by_admin",
            extra={
                "event": "transaction_resolved_by_admin",
                "admin_id": admin.id,
                "transaction_id": payload.transaction_id,
                "decision": payload.status.value,
            },
        )
        return TransactionResponse.model_validate(transaction)
    except DomainException as e:
        handle_domain_exception(e)
