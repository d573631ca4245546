"""
Availability calendar model.

A ``TimeSlot`` is either a one-off bookable slot or, with ``is_recurring``,
a weekly template that is never claimed directly. One-off slots are unique
per (date, start_time, end_time) through a partial unique index so that
insert-or-ignore can be keyed on it.
"""

import datetime as dt
from typing import Optional

import ulid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Time,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from mentorhub.database import Base

SLOT_NATURAL_KEY = ("date", "start_time", "end_time")
ONE_OFF_SLOT_PREDICATE = "is_recurring = false"


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # date.weekday() numbering: 0 = Monday ... 6 = Sunday
    day_of_week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_time_slots_time_order"),
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="ck_time_slots_day_of_week",
        ),
        CheckConstraint(
            "NOT (is_recurring AND is_booked)", name="ck_time_slots_recurring_never_booked"
        ),
        Index(
            "uq_time_slots_one_off",
            *SLOT_NATURAL_KEY,
            unique=True,
            postgresql_where=text(ONE_OFF_SLOT_PREDICATE),
            sqlite_where=text(ONE_OFF_SLOT_PREDICATE),
        ),
        Index("ix_time_slots_date_booked", "date", "is_booked"),
    )

    @property
    def starts_at(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.start_time)

    @property
    def length_minutes(self) -> int:
        ends_at = dt.datetime.combine(self.date, self.end_time)
        return int((ends_at - self.starts_at).total_seconds() // 60)

    def __repr__(self) -> str:
        return (
            f"<TimeSlot(id={self.id}, date={self.date}, {self.start_time}-{self.end_time}, "
            f"booked={self.is_booked}, recurring={self.is_recurring})>"
        )
