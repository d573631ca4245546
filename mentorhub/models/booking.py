"""
Mentorship booking and recorded-session catalog models.

A face-to-face booking holds exactly one time slot while it is PENDING or
CONFIRMED; a partial unique index on ``available_date_id`` backs that at
the storage layer. A recorded purchase holds no slot, and a second partial
unique index keeps at most one CONFIRMED purchase per (student, session).
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
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mentorhub.core.enums import BookingStatus, SessionType
from mentorhub.database import Base
from mentorhub.models.availability import TimeSlot

ACTIVE_SLOT_HOLD_PREDICATE = "status IN ('PENDING', 'CONFIRMED') AND available_date_id IS NOT NULL"
CONFIRMED_PURCHASE_PREDICATE = "status = 'CONFIRMED' AND recorded_session_id IS NOT NULL"


class RecordedSession(Base):
    """Catalog entry for a pre-recorded mentorship session."""

    __tablename__ = "recorded_sessions"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_link: Mapped[str] = mapped_column(String(1000), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (CheckConstraint("price >= 0", name="ck_recorded_sessions_price"),)

    def __repr__(self) -> str:
        return f"<RecordedSession(id={self.id}, title={self.title}, price={self.price})>"


class MentorshipBooking(Base):
    __tablename__ = "mentorship_bookings"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    student_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    mentor_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    session_type: Mapped[str] = mapped_column(String(20), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.PENDING.value
    )

    session_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    available_date_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("time_slots.id", ondelete="SET NULL"), nullable=True
    )
    recorded_session_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("recorded_sessions.id", ondelete="SET NULL"), nullable=True
    )

    video_link: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    meeting_link: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    whatsapp_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    student_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_changed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    slot: Mapped[Optional[TimeSlot]] = relationship("TimeSlot", lazy="joined")
    recorded_session: Mapped[Optional[RecordedSession]] = relationship(
        "RecordedSession", lazy="joined"
    )

    __table_args__ = (
        CheckConstraint(
            "session_type IN ('RECORDED', 'FACE_TO_FACE')", name="ck_bookings_session_type"
        ),
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELLED')",
            name="ck_bookings_status",
        ),
        CheckConstraint("amount >= 0", name="ck_bookings_amount_non_negative"),
        CheckConstraint("duration > 0", name="ck_bookings_duration_positive"),
        Index(
            "uq_bookings_active_slot",
            "available_date_id",
            unique=True,
            postgresql_where=text(ACTIVE_SLOT_HOLD_PREDICATE),
            sqlite_where=text(ACTIVE_SLOT_HOLD_PREDICATE),
        ),
        Index(
            "uq_bookings_confirmed_purchase",
            "student_id",
            "recorded_session_id",
            unique=True,
            postgresql_where=text(CONFIRMED_PURCHASE_PREDICATE),
            sqlite_where=text(CONFIRMED_PURCHASE_PREDICATE),
        ),
        Index("ix_bookings_student_created", "student_id", "created_at"),
        Index("ix_bookings_status", "status"),
    )

    @property
    def is_face_to_face(self) -> bool:
        return self.session_type == SessionType.FACE_TO_FACE.value

    @property
    def booking_status(self) -> BookingStatus:
        return BookingStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<MentorshipBooking(id={self.id}, type={self.session_type}, "
            f"status={self.status}, slot={self.available_date_id})>"
        )
