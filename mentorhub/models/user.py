"""
User and wallet models.

Users are owned by the identity collaborator and read here as plain data;
the only columns this service writes are the mentor settings. A wallet
belongs to exactly one user and its balance is written solely by the
ledger service.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import ulid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mentorhub.core.enums import RoleName
from mentorhub.database import Base

if TYPE_CHECKING:
    from mentorhub.models.transaction import Transaction


class User(Base):
    """Platform user (student or admin); admins flagged ``is_mentor`` take sessions."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=RoleName.STUDENT.value)
    is_mentor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    mentor_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    mentor_bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    wallet: Mapped[Optional["Wallet"]] = relationship("Wallet", back_populates="user", uselist=False)
    transactions: Mapped[list["Transaction"]] = relationship("Transaction", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('STUDENT', 'ADMIN')", name="ck_users_role"),
        CheckConstraint("mentor_rate IS NULL OR mentor_rate > 0", name="ck_users_mentor_rate"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role}, is_mentor={self.is_mentor})>"


class Wallet(Base):
    """Per-user balance. Never written outside the ledger service."""

    __tablename__ = "wallets"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="wallet")

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),)

    def __repr__(self) -> str:
        return f"<Wallet(user_id={self.user_id}, balance={self.balance})>"
