"""
Platform catalog and enrollment models.

Platforms are catalog data managed elsewhere. Enrollments are the time-boxed
access grants; one row per (user, platform), enforced by a unique constraint.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import ulid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mentorhub.database import Base


class Platform(Base):
    __tablename__ = "platforms"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (CheckConstraint("price >= 0", name="ck_platforms_price_non_negative"),)

    @property
    def requires_payment(self) -> bool:
        return bool(self.is_paid) and self.price > 0

    def __repr__(self) -> str:
        return f"<Platform(id={self.id}, name={self.name}, price={self.price})>"


class Enrollment(Base):
    __tablename__ = "enrollments"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    platform_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("platforms.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_renewal_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    platform: Mapped["Platform"] = relationship("Platform", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "platform_id", name="uq_enrollments_user_platform"),
        Index("ix_enrollments_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, user_id={self.user_id}, "
            f"platform_id={self.platform_id}, expires_at={self.expires_at})>"
        )
