# mentorhub/repositories/time_slot_repository.py
"""
Time slot data access.

``is_booked`` only ever changes through the compare-and-set helpers here,
each a single conditional statement whose rowcount tells the caller whether
it won.
"""

from datetime import date, time
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, UniqueViolation
from ..models.availability import ONE_OFF_SLOT_PREDICATE, SLOT_NATURAL_KEY, TimeSlot
from .base_repository import BaseRepository


class TimeSlotRepository(BaseRepository[TimeSlot]):
    def __init__(self, db: Session):
        super().__init__(db, TimeSlot)

    def insert_slots(self, rows: Sequence[Dict[str, Any]]) -> int:
        """Insert-or-ignore keyed on the one-off (date, start, end) index."""
        return self.insert_ignore(
            rows,
            conflict_columns=SLOT_NATURAL_KEY,
            conflict_where=text(ONE_OFF_SLOT_PREDICATE),
        )

    def find_one_off(self, slot_date: date, start: time, end: time) -> Optional[TimeSlot]:
        stmt = (
            select(TimeSlot)
            .where(
                TimeSlot.date == slot_date,
                TimeSlot.start_time == start,
                TimeSlot.end_time == end,
                TimeSlot.is_recurring.is_(False),
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalars().first()

    def find_unbooked_starting_at(self, slot_date: date, start: time) -> Optional[TimeSlot]:
        stmt = (
            select(TimeSlot)
            .where(
                TimeSlot.date == slot_date,
                TimeSlot.start_time == start,
                TimeSlot.is_recurring.is_(False),
                TimeSlot.is_booked.is_(False),
            )
            .order_by(TimeSlot.end_time)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalars().first()

    def mark_booked_if_free(self, slot_id: str) -> bool:
        stmt = (
            update(TimeSlot)
            .where(
                TimeSlot.id == slot_id,
                TimeSlot.is_booked.is_(False),
                TimeSlot.is_recurring.is_(False),
            )
            .values(is_booked=True)
            .execution_options(synchronize_session=False)
        )
        return self._execute_cas(stmt, slot_id) == 1

    def mark_unbooked(self, slot_id: str) -> bool:
        stmt = (
            update(TimeSlot)
            .where(TimeSlot.id == slot_id)
            .values(is_booked=False)
            .execution_options(synchronize_session=False)
        )
        return self._execute_cas(stmt, slot_id) == 1

    def delete_if_unbooked(self, slot_id: str) -> bool:
        stmt = (
            delete(TimeSlot)
            .where(TimeSlot.id == slot_id, TimeSlot.is_booked.is_(False))
            .execution_options(synchronize_session=False)
        )
        return self._execute_cas(stmt, slot_id) == 1

    def delete_all_unbooked(self) -> int:
        stmt = (
            delete(TimeSlot)
            .where(TimeSlot.is_booked.is_(False))
            .execution_options(synchronize_session=False)
        )
        return self._execute_cas(stmt, "*")

    def retime_if_unbooked(self, slot_id: str, start: time, end: time) -> bool:
        stmt = (
            update(TimeSlot)
            .where(TimeSlot.id == slot_id, TimeSlot.is_booked.is_(False))
            .values(start_time=start, end_time=end)
            .execution_options(synchronize_session=False)
        )
        return self._execute_cas(stmt, slot_id) == 1

    def list_slots(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_booked: bool = True,
        include_recurring: bool = True,
    ) -> List[TimeSlot]:
        stmt = select(TimeSlot)
        if start_date is not None:
            stmt = stmt.where(TimeSlot.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(TimeSlot.date <= end_date)
        if not include_booked:
            stmt = stmt.where(TimeSlot.is_booked.is_(False))
        if not include_recurring:
            stmt = stmt.where(TimeSlot.is_recurring.is_(False))
        stmt = stmt.order_by(TimeSlot.date, TimeSlot.start_time).execution_options(
            populate_existing=True
        )
        try:
            return list(self.db.execute(stmt).scalars())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing time slots: {str(e)}")
            raise RepositoryException(f"Failed to list time slots: {str(e)}") from e

    def _execute_cas(self, stmt: Any, slot_id: str) -> int:
        try:
            return int(self.db.execute(stmt).rowcount or 0)
        except IntegrityError as e:
            self.logger.warning(f"Constraint conflict on time slot {slot_id}: {e.orig}")
            raise UniqueViolation(f"Time slot constraint violated: {e.orig}") from e
        except SQLAlchemyError as e:
            self.logger.error(f"Error writing time slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to write time slot: {str(e)}") from e
