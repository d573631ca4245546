"""Ledger transaction model: the immutable audit trail behind every balance movement."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import ulid
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mentorhub.core.enums import TransactionStatus
from mentorhub.database import Base

if TYPE_CHECKING:
    from mentorhub.models.user import User


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.PENDING.value
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    sender_wallet_ref: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    admin_wallet_ref: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="transactions")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint(
            "type IN ('TOP_UP', 'PLATFORM_PURCHASE', 'MENTORSHIP_PAYMENT')",
            name="ck_transactions_type",
        ),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')", name="ck_transactions_status"
        ),
        Index("ix_transactions_user_created", "user_id", "created_at"),
        Index("ix_transactions_status_type", "status", "type"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, type={self.type}, amount={self.amount}, "
            f"status={self.status})>"
        )
