"""Wallet and transaction request/response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.enums import TransactionStatus, TransactionType
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money


class TopUpRequest(StrictRequestModel):
    amount: Money = Field(..., description="Amount transferred to the admin wallet")
    sender_wallet_number: str = Field(..., min_length=3, max_length=100)

    @field_validator("amount")
    @classmethod
    def minimum_top_up(cls, v: Money) -> Money:
        if v < 1:
            raise ValueError("Minimum top-up amount is 1.00")
        return v


class TransactionDecisionRequest(StrictRequestModel):
    transaction_id: str = Field(..., min_length=1, max_length=26)
    status: TransactionStatus

    @field_validator("status")
    @classmethod
    def must_be_decision(cls, v: TransactionStatus) -> TransactionStatus:
        if v == TransactionStatus.PENDING:
            raise ValueError("status must be APPROVED or REJECTED")
        return v


class TransactionResponse(StrictModel):
    id: str
    user_id: str
    type: TransactionType
    amount: Money
    status: TransactionStatus
    description: str
    sender_wallet_ref: Optional[str] = None
    admin_wallet_ref: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None


class TransactionListResponse(StrictModel):
    items: List[TransactionResponse]
    total: int
    page: int
    page_size: int


class WalletResponse(StrictModel):
    balance: Money
    transactions: List[TransactionResponse]
