# mentorhub/repositories/transaction_repository.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import TransactionStatus, TransactionType
from ..core.exceptions import RepositoryException
from ..models.transaction import Transaction
from .base_repository import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    def __init__(self, db: Session):
        super().__init__(db, Transaction)

    def resolve_if_pending(
        self, transaction_id: str, decision: TransactionStatus, resolved_at: datetime
    ) -> bool:
        """Flip a PENDING transaction to ``decision``. False if it was not PENDING."""
        stmt = (
            update(Transaction)
            .where(
                Transaction.id == transaction_id,
                Transaction.status == TransactionStatus.PENDING.value,
            )
            .values(status=decision.value, resolved_at=resolved_at)
            .execution_options(synchronize_session=False)
        )
        try:
            return self.db.execute(stmt).rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error resolving transaction {transaction_id}: {str(e)}")
            raise RepositoryException(f"Failed to resolve transaction: {str(e)}") from e

    def list_for_user(self, user_id: str, limit: int = 20) -> List[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    def _filtered(
        self,
        status: Optional[TransactionStatus],
        tx_type: Optional[TransactionType],
    ) -> Select:
        stmt = select(Transaction)
        if status is not None:
            stmt = stmt.where(Transaction.status == status.value)
        if tx_type is not None:
            stmt = stmt.where(Transaction.type == tx_type.value)
        return stmt

    def list_filtered(
        self,
        *,
        status: Optional[TransactionStatus] = None,
        tx_type: Optional[TransactionType] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> List[Transaction]:
        stmt = self._filtered(status, tx_type).order_by(
            Transaction.created_at.desc(), Transaction.id.desc()
        )
        return self.list_page(stmt, page=page, page_size=page_size)

    def count_filtered(
        self,
        *,
        status: Optional[TransactionStatus] = None,
        tx_type: Optional[TransactionType] = None,
    ) -> int:
        subquery = self._filtered(status, tx_type).subquery()
        return int(self.db.execute(select(func.count()).select_from(subquery)).scalar_one())
