# mentorhub/repositories/wallet_repository.py
"""
Wallet data access.

Balance changes are single conditional UPDATE statements so the check and the
write are one atomic read-modify-write at the database.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.ulid_helper import generate_ulid
from ..models.user import Wallet
from .base_repository import BaseRepository


class WalletRepository(BaseRepository[Wallet]):
    def __init__(self, db: Session):
        super().__init__(db, Wallet)

    def get_balance(self, user_id: str) -> Optional[Decimal]:
        """Current balance straight from storage, or None when the user has no wallet."""
        try:
            return self.db.execute(
                select(Wallet.balance).where(Wallet.user_id == user_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading balance for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to read wallet balance: {str(e)}") from e

    def ensure_wallet(self, user_id: str) -> bool:
        """Create an empty wallet if missing. Returns True when one was created."""
        created = self.insert_ignore(
            [{"id": generate_ulid(), "user_id": user_id, "balance": Decimal("0.00")}],
            conflict_columns=["user_id"],
        )
        return created > 0

    def decrement_if_sufficient(self, user_id: str, amount: Decimal) -> bool:
        """Subtract ``amount`` only if the balance covers it. True when a row changed."""
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id, Wallet.balance >= amount)
            .values(balance=Wallet.balance - amount)
            .execution_options(synchronize_session=False)
        )
        return self._execute_balance_update(stmt, user_id)

    def increment(self, user_id: str, amount: Decimal) -> bool:
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id)
            .values(balance=Wallet.balance + amount)
            .execution_options(synchronize_session=False)
        )
        return self._execute_balance_update(stmt, user_id)

    def _execute_balance_update(self, stmt: object, user_id: str) -> bool:
        try:
            result = self.db.execute(stmt)  # type: ignore[call-overload]
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating balance for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to update wallet balance: {str(e)}") from e
