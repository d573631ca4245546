# mentorhub/services/ledger_service.py
"""
Ledger Service for MentorHub

Sole owner of wallet balances. Every balance movement is a single conditional
UPDATE plus the Transaction row that records it, written in the same unit of
work. Pending top-ups are recorded without moving money; an admin decision
later flips them exactly once.
"""

from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import TransactionStatus, TransactionType
from ..core.exceptions import (
    AlreadyResolved,
    InsufficientBalance,
    ServiceException,
    TransactionNotFound,
    ValidationException,
    WalletNotFound,
)
from ..models.transaction import Transaction
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.money import MoneyInput, to_amount
from ..utils.time_utils import utc_now
from .base import BaseService

logger = logging.getLogger(__name__)

RESOLUTION_DECISIONS = frozenset({TransactionStatus.APPROVED, TransactionStatus.REJECTED})


@dataclass(frozen=True)
class TransactionPage:
    items: List[Transaction]
    total: int
    page: int
    page_size: int


class LedgerService(BaseService):
    """Wallet balance and transaction audit trail."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.wallet_repository = RepositoryFactory.create_wallet_repository(db)
        self.transaction_repository = RepositoryFactory.create_transaction_repository(db)

    def get_balance(self, user_id: str) -> Decimal:
        balance = self.wallet_repository.get_balance(user_id)
        return balance if balance is not None else Decimal("0.00")

    def open_wallet(self, user_id: str, *, use_transaction: bool = True) -> None:
        """Create an empty wallet for the user if one does not exist yet."""
        with self.unit_of_work(use_transaction):
            if self.wallet_repository.ensure_wallet(user_id):
                self.log_operation("wallet_opened", user_id=user_id)

    @BaseService.measure_operation("debit")
    def debit(
        self,
        user_id: str,
        amount: MoneyInput,
        tx_type: TransactionType,
        description: str,
        *,
        use_transaction: bool = True,
    ) -> Transaction:
        """
        Take ``amount`` from the user's wallet and record an APPROVED transaction.

        Raises:
            ValidationException: amount is not a positive two-decimal value
            InsufficientBalance: the balance does not cover the amount
            WalletNotFound: the user has no wallet
        """
        value = to_amount(amount)
        with self.unit_of_work(use_transaction):
            if not self.wallet_repository.decrement_if_sufficient(user_id, value):
                balance = self.wallet_repository.get_balance(user_id)
                if balance is None:
                    raise WalletNotFound(
                        "Wallet not found", details={"user_id": user_id}
                    )
                raise InsufficientBalance(balance=balance, required=value)

            transaction = self.transaction_repository.create(
                user_id=user_id,
                type=tx_type.value,
                amount=value,
                status=TransactionStatus.APPROVED.value,
                description=description,
            )

        prometheus_metrics.record_ledger_transaction(tx_type.value, TransactionStatus.APPROVED.value)
        self.log_operation(
            "wallet_debited",
            user_id=user_id,
            amount=str(value),
            tx_type=tx_type.value,
            transaction_id=transaction.id,
        )
        return transaction

    @BaseService.measure_operation("credit")
    def credit(
        self,
        user_id: str,
        amount: MoneyInput,
        tx_type: TransactionType,
        description: str,
        *,
        use_transaction: bool = True,
    ) -> Transaction:
        """Add ``amount`` to the user's wallet (opening it if needed) with an APPROVED record."""
        value = to_amount(amount)
        with self.unit_of_work(use_transaction):
            self._credit_wallet(user_id, value)
            transaction = self.transaction_repository.create(
                user_id=user_id,
                type=tx_type.value,
                amount=value,
                status=TransactionStatus.APPROVED.value,
                description=description,
            )

        prometheus_metrics.record_ledger_transaction(tx_type.value, TransactionStatus.APPROVED.value)
        self.log_operation(
            "wallet_credited",
            user_id=user_id,
            amount=str(value),
            tx_type=tx_type.value,
            transaction_id=transaction.id,
        )
        return transaction

    @BaseService.measure_operation("credit_pending_top_up")
    def credit_pending_top_up(
        self, user_id: str, amount: MoneyInput, sender_wallet_ref: str
    ) -> Transaction:
        """Record a top-up request awaiting admin review. The balance is untouched."""
        value = to_amount(amount)
        if not sender_wallet_ref or not sender_wallet_ref.strip():
            raise ValidationException(
                "Sender wallet reference is required", details={"field": "sender_wallet_ref"}
            )

        with self.transaction():
            transaction = self.transaction_repository.create(
                user_id=user_id,
                type=TransactionType.TOP_UP.value,
                amount=value,
                status=TransactionStatus.PENDING.value,
                description="Wallet top-up request",
                sender_wallet_ref=sender_wallet_ref.strip(),
                admin_wallet_ref=settings.admin_wallet_ref,
            )

        prometheus_metrics.record_ledger_transaction(
            TransactionType.TOP_UP.value, TransactionStatus.PENDING.value
        )
        self.log_operation(
            "top_up_requested",
            user_id=user_id,
            amount=str(value),
            transaction_id=transaction.id,
        )
        return transaction

    @BaseService.measure_operation("resolve_top_up")
    def resolve_top_up(self, transaction_id: str, decision: TransactionStatus) -> Transaction:
        """Approve (credit the wallet) or reject a PENDING top-up."""
        return self._resolve(transaction_id, decision, top_up_only=True)

    @BaseService.measure_operation("resolve_generic_transaction")
    def resolve_generic_transaction(
        self, transaction_id: str, decision: TransactionStatus
    ) -> Transaction:
        """
        Resolve any PENDING transaction. Only approved TOP_UP transactions move money;
        other types just record the decision.
        """
        return self._resolve(transaction_id, decision, top_up_only=False)

    def list_transactions(
        self,
        *,
        status: Optional[TransactionStatus] = None,
        tx_type: Optional[TransactionType] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> TransactionPage:
        items = self.transaction_repository.list_filtered(
            status=status, tx_type=tx_type, page=page, page_size=page_size
        )
        total = self.transaction_repository.count_filtered(status=status, tx_type=tx_type)
        return TransactionPage(items=items, total=total, page=page, page_size=page_size)

    def list_pending_top_ups(self, limit: int = 100) -> List[Transaction]:
        return self.transaction_repository.list_filtered(
            status=TransactionStatus.PENDING,
            tx_type=TransactionType.TOP_UP,
            page=1,
            page_size=limit,
        )

    def recent_transactions(self, user_id: str, limit: int = 20) -> List[Transaction]:
        return self.transaction_repository.list_for_user(user_id, limit=limit)

    def _resolve(
        self, transaction_id: str, decision: TransactionStatus, *, top_up_only: bool
    ) -> Transaction:
        if decision not in RESOLUTION_DECISIONS:
            raise ValidationException(
                "Decision must be APPROVED or REJECTED", details={"decision": str(decision)}
            )

        with self.transaction():
            current = self.transaction_repository.get_by_id(transaction_id, for_update=True)
            if current is None:
                raise TransactionNotFound(
                    "Transaction not found", details={"transaction_id": transaction_id}
                )
            if top_up_only and current.type != TransactionType.TOP_UP.value:
                raise ValidationException(
                    "Only top-up transactions can be resolved here",
                    details={"transaction_id": transaction_id, "type": current.type},
                )

            if not self.transaction_repository.resolve_if_pending(
                transaction_id, decision, resolved_at=utc_now()
            ):
                latest = self.transaction_repository.get_by_id(transaction_id)
                raise AlreadyResolved(
                    transaction_id, latest.status if latest is not None else current.status
                )

            if (
                decision == TransactionStatus.APPROVED
                and current.type == TransactionType.TOP_UP.value
            ):
                self._credit_wallet(current.user_id, Decimal(current.amount))

            resolved = self.transaction_repository.get_by_id(transaction_id)
            if resolved is None:
                raise ServiceException(
                    "Failed to reload transaction", code="transaction_reload_failed"
                )

        prometheus_metrics.record_ledger_transaction(resolved.type, resolved.status)
        self.log_operation(
            "transaction_resolved",
            transaction_id=transaction_id,
            user_id=resolved.user_id,
            decision=decision.value,
            amount=str(resolved.amount),
            tx_type=resolved.type,
        )
        return resolved

    def _credit_wallet(self, user_id: str, amount: Decimal) -> None:
        self.wallet_repository.ensure_wallet(user_id)
        if not self.wallet_repository.increment(user_id, amount):
            raise WalletNotFound("Wallet not found", details={"user_id": user_id})
