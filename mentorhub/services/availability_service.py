# mentorhub/services/availability_service.py
"""
Availability Calendar Service for MentorHub

Owns the bookable time slots and is the only writer of ``is_booked``.

Slot creation never reads before writing: every path goes through
insert-or-ignore keyed on the one-off (date, start, end) unique index, so
overlapping bulk submissions and concurrent range batches cannot create
duplicates. Claims are a compare-and-set on ``is_booked``; exactly one of
any number of concurrent claimants wins.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, time
from functools import partial
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    DuplicateSlot,
    ServiceException,
    SlotAlreadyBooked,
    SlotInUse,
    SlotNotFound,
    UniqueViolation,
    ValidationException,
)
from ..core.ulid_helper import generate_ulid
from ..models.availability import TimeSlot
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.business_days import expand_days
from .base import BaseService

logger = logging.getLogger(__name__)

TimeRange = Tuple[time, time]
SlotKey = Tuple[date, time, time]


@dataclass
class SlotBatchResult:
    """Outcome of a bulk or range creation."""

    created_count: int
    total_requested: int
    skipped: List[SlotKey] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return self.total_requested - self.created_count


def validate_time_range(start: time, end: time) -> None:
    if start >= end:
        raise ValidationException(
            "Start time must be before end time",
            details={"start_time": start.isoformat(), "end_time": end.isoformat()},
        )


class AvailabilityService(BaseService):
    """Time-slot calendar: creation, claim/release and deletion."""

    def __init__(
        self,
        db: Session,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        """
        Args:
            db: Request-scoped session
            session_factory: Opens independent sessions for parallel range batches
        """
        super().__init__(db)
        self.session_factory = session_factory
        self.repository = RepositoryFactory.create_time_slot_repository(db)

    # Creation

    @BaseService.measure_operation("create_slot")
    def create_slot(
        self,
        slot_date: date,
        start: time,
        end: time,
        is_recurring: bool = False,
        day_of_week: Optional[int] = None,
    ) -> TimeSlot:
        """
        Create one slot.

        Raises:
            DuplicateSlot: a one-off slot already exists for (date, start, end);
                callers normally treat this as a no-op
        """
        validate_time_range(start, end)
        if day_of_week is not None and not 0 <= day_of_week <= 6:
            raise ValidationException(
                "day_of_week must be between 0 (Monday) and 6 (Sunday)",
                details={"day_of_week": day_of_week},
            )

        row = self._row(slot_date, start, end, is_recurring=is_recurring)
        if is_recurring:
            row["day_of_week"] = day_of_week if day_of_week is not None else slot_date.weekday()

        with self.transaction():
            inserted = self.repository.insert_slots([row])
            if inserted == 0:
                existing = self.repository.find_one_off(slot_date, start, end)
                raise DuplicateSlot(
                    "A slot already exists for this date and time",
                    existing_slot_id=existing.id if existing else None,
                )
            slot = self.repository.get_by_id(row["id"])
            if slot is None:
                raise ServiceException("Failed to reload time slot", code="slot_reload_failed")

        prometheus_metrics.inc_slots_created("single", 1)
        self.log_operation(
            "slot_created",
            slot_id=slot.id,
            slot_date=slot_date.isoformat(),
            recurring=is_recurring,
        )
        return slot

    @BaseService.measure_operation("create_bulk")
    def create_bulk(self, slot_date: date, ranges: Sequence[TimeRange]) -> SlotBatchResult:
        """Create one-off slots for a single day, skipping any that already exist."""
        result = self._create_days([slot_date], ranges)
        prometheus_metrics.inc_slots_created("bulk", result.created_count)
        self.log_operation(
            "slots_bulk_created",
            slot_date=slot_date.isoformat(),
            created_count=result.created_count,
            requested=result.total_requested,
        )
        return result

    @BaseService.measure_operation("create_range")
    def create_range(
        self,
        start_date: date,
        end_date: date,
        ranges: Sequence[TimeRange],
        exclude_weekends: bool = True,
    ) -> SlotBatchResult:
        """
        Expand [start_date, end_date] day by day and create every (day, range) slot.

        Weekend days come from ``settings.weekend_days``. Re-running over the
        same range creates nothing new.
        """
        if end_date < start_date:
            raise ValidationException(
                "End date must not be before start date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        days = expand_days(
            start_date,
            end_date,
            exclude_weekends=exclude_weekends,
            weekend_days=settings.weekend_days,
        )
        result = self._create_days(days, ranges)
        prometheus_metrics.inc_slots_created("range", result.created_count)
        self.log_operation(
            "slots_range_created",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            days=len(days),
            created_count=result.created_count,
            requested=result.total_requested,
        )
        return result

    # Claim / release / delete

    @BaseService.measure_operation("claim")
    def claim(self, slot_id: str, *, use_transaction: bool = True) -> TimeSlot:
        """
        Atomically mark a slot booked.

        Raises:
            SlotNotFound: no such slot
            SlotAlreadyBooked: someone else holds it (retryable with another slot)
            ValidationException: the slot is a recurring template
        """
        with self.unit_of_work(use_transaction):
            if not self.repository.mark_booked_if_free(slot_id):
                current = self.repository.get_by_id(slot_id)
                if current is None:
                    raise SlotNotFound("Time slot not found", details={"slot_id": slot_id})
                if current.is_recurring:
                    raise ValidationException(
                        "Recurring templates cannot be booked",
                        details={"slot_id": slot_id},
                    )
                prometheus_metrics.inc_slot_claim_conflict()
                raise SlotAlreadyBooked(
                    "This time slot is already booked", details={"slot_id": slot_id}
                )
            slot = self.repository.get_by_id(slot_id)
            if slot is None:
                raise ServiceException("Failed to reload time slot", code="slot_reload_failed")

        self.log_operation("slot_claimed", slot_id=slot_id)
        return slot

    @BaseService.measure_operation("release")
    def release(self, slot_id: str, *, use_transaction: bool = True) -> TimeSlot:
        """Mark a slot free again."""
        with self.unit_of_work(use_transaction):
            if not self.repository.mark_unbooked(slot_id):
                raise SlotNotFound("Time slot not found", details={"slot_id": slot_id})
            slot = self.repository.get_by_id(slot_id)
            if slot is None:
                raise ServiceException("Failed to reload time slot", code="slot_reload_failed")

        self.log_operation("slot_released", slot_id=slot_id)
        return slot

    @BaseService.measure_operation("delete_slot")
    def delete(self, slot_id: str) -> None:
        """Delete an unbooked slot. Raises SlotInUse while it is booked."""
        with self.transaction():
            if not self.repository.delete_if_unbooked(slot_id):
                current = self.repository.get_by_id(slot_id)
                if current is None:
                    raise SlotNotFound("Time slot not found", details={"slot_id": slot_id})
                raise SlotInUse("Cannot delete a booked slot", details={"slot_id": slot_id})
        self.log_operation("slot_deleted", slot_id=slot_id)

    @BaseService.measure_operation("delete_all_unbooked")
    def delete_all_unbooked(self) -> int:
        with self.transaction():
            deleted = self.repository.delete_all_unbooked()
        self.log_operation("slots_purged", deleted=deleted)
        return deleted

    @BaseService.measure_operation("update_slot")
    def update_slot(self, slot_id: str, start: time, end: time) -> TimeSlot:
        """Re-time an unbooked slot on the same date."""
        validate_time_range(start, end)
        with self.transaction():
            try:
                updated = self.repository.retime_if_unbooked(slot_id, start, end)
            except UniqueViolation as exc:
                raise DuplicateSlot("A slot already exists for this date and time") from exc
            if not updated:
                current = self.repository.get_by_id(slot_id)
                if current is None:
                    raise SlotNotFound("Time slot not found", details={"slot_id": slot_id})
                raise SlotInUse("Cannot update a booked slot", details={"slot_id": slot_id})
            slot = self.repository.get_by_id(slot_id)
            if slot is None:
                raise ServiceException("Failed to reload time slot", code="slot_reload_failed")

        self.log_operation("slot_updated", slot_id=slot_id)
        return slot

    # Reads

    def get_slot(self, slot_id: str) -> TimeSlot:
        slot = self.repository.get_by_id(slot_id)
        if slot is None:
            raise SlotNotFound("Time slot not found", details={"slot_id": slot_id})
        return slot

    def find_free_slot_at(self, slot_date: date, start: time) -> Optional[TimeSlot]:
        return self.repository.find_unbooked_starting_at(slot_date, start)

    def list_slots(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_booked: bool = True,
        include_recurring: bool = True,
    ) -> List[TimeSlot]:
        return self.repository.list_slots(
            start_date=start_date,
            end_date=end_date,
            include_booked=include_booked,
            include_recurring=include_recurring,
        )

    # Internals

    @staticmethod
    def _row(slot_date: date, start: time, end: time, *, is_recurring: bool = False) -> Dict[str, Any]:
        return {
            "id": generate_ulid(),
            "date": slot_date,
            "start_time": start,
            "end_time": end,
            "is_booked": False,
            "is_recurring": is_recurring,
            "day_of_week": None,
        }

    def _create_days(self, days: Sequence[date], ranges: Sequence[TimeRange]) -> SlotBatchResult:
        unique_ranges = list(dict.fromkeys(ranges))
        for start, end in unique_ranges:
            validate_time_range(start, end)

        requested = [(day, start, end) for day in days for start, end in unique_ranges]
        if not requested:
            return SlotBatchResult(created_count=0, total_requested=0)

        batches = list(self._batches_by_day(days, unique_ranges))
        if self._can_parallelize(len(batches)):
            created = self._insert_batches_parallel(batches)
        else:
            with self.transaction():
                created = sum(self.repository.insert_slots(batch) for batch in batches)

        result = SlotBatchResult(created_count=created, total_requested=len(requested))
        if settings.slot_duplicate_report == "detailed" and result.skipped_count:
            result.skipped = self._find_preexisting(requested, batches)
        return result

    def _batches_by_day(
        self, days: Iterable[date], ranges: Sequence[TimeRange]
    ) -> Iterable[List[Dict[str, Any]]]:
        """Group rows so each batch covers whole days and stays under the batch size."""
        batch: List[Dict[str, Any]] = []
        for day in days:
            day_rows = [self._row(day, start, end) for start, end in ranges]
            if batch and len(batch) + len(day_rows) > settings.slot_batch_size:
                yield batch
                batch = []
            for offset in range(0, len(day_rows), settings.slot_batch_size):
                chunk = day_rows[offset : offset + settings.slot_batch_size]
                if len(chunk) == settings.slot_batch_size:
                    yield chunk
                else:
                    batch.extend(chunk)
        if batch:
            yield batch

    def _can_parallelize(self, batch_count: int) -> bool:
        return (
            self.session_factory is not None
            and settings.slot_range_workers > 1
            and batch_count > 1
            and self.repository.dialect_name != "sqlite"
        )

    def _insert_batches_parallel(self, batches: Sequence[List[Dict[str, Any]]]) -> int:
        if self.session_factory is None:
            raise ServiceException("Parallel slot insertion needs a session factory")
        insert_batch = partial(self._insert_batch_in_own_session, self.session_factory)
        workers = min(settings.slot_range_workers, len(batches))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="slot-batch") as pool:
            return sum(pool.map(insert_batch, batches))

    @staticmethod
    def _insert_batch_in_own_session(
        session_factory: Callable[[], Session], batch: List[Dict[str, Any]]
    ) -> int:
        session = session_factory()
        try:
            inserted = RepositoryFactory.create_time_slot_repository(session).insert_slots(batch)
            session.commit()
            return inserted
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _find_preexisting(
        self, requested: Sequence[SlotKey], batches: Sequence[List[Dict[str, Any]]]
    ) -> List[SlotKey]:
        """Requested keys whose stored row is not one we just inserted."""
        our_ids = {row["id"] for batch in batches for row in batch}
        skipped: List[SlotKey] = []
        for slot_date, start, end in requested:
            stored = self.repository.find_one_off(slot_date, start, end)
            if stored is None or stored.id not in our_ids:
                skipped.append((slot_date, start, end))
        return skipped
