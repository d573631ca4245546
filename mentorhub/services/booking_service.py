# mentorhub/services/booking_service.py
"""
Booking Engine for MentorHub

Orchestrates mentorship bookings on top of the ledger and the availability
calendar. It never writes wallet balances or ``is_booked`` itself: money moves
through ``LedgerService`` and slots through ``AvailabilityService``, both
joined to this service's unit of work so a booking, its payment and its slot
hold commit together or not at all.

State machine:
    PENDING   -> CONFIRMED | CANCELLED
    CONFIRMED -> COMPLETED | CANCELLED
    COMPLETED, CANCELLED are terminal
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BOOKING_TRANSITIONS, BookingStatus, SessionType, TransactionType
from ..core.exceptions import (
    AlreadyPurchased,
    BookingNotFound,
    InvalidTransition,
    MentorNotFound,
    MissingContact,
    RecordedSessionNotFound,
    SlotAlreadyBooked,
    SlotNotFound,
    UniqueViolation,
    ValidationException,
)
from ..models.availability import TimeSlot
from ..models.booking import MentorshipBooking
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.money import session_price
from ..utils.time_utils import Clock, utc_now
from .availability_service import AvailabilityService
from .base import BaseService
from .ledger_service import LedgerService

logger = logging.getLogger(__name__)

REFUND_DESCRIPTION = "Refund for cancelled mentorship session"


@dataclass(frozen=True)
class BookingAdminUpdate:
    """
    Typed partial update an admin may apply to a booking.

    ``session_date`` or ``slot_id`` moves a face-to-face booking to another
    free slot; ``slot_id`` wins when both are given.
    """

    status: Optional[BookingStatus] = None
    meeting_link: Optional[str] = None
    video_link: Optional[str] = None
    session_date: Optional[datetime] = None
    slot_id: Optional[str] = None
    admin_notes: Optional[str] = None

    @property
    def changes_schedule(self) -> bool:
        return self.session_date is not None or self.slot_id is not None

    @property
    def only_notes(self) -> bool:
        return (
            self.status is None
            and self.meeting_link is None
            and self.video_link is None
            and not self.changes_schedule
        )


class BookingService(BaseService):
    """Recorded and face-to-face mentorship bookings plus admin transitions."""

    def __init__(
        self,
        db: Session,
        ledger: Optional[LedgerService] = None,
        availability: Optional[AvailabilityService] = None,
        clock: Clock = utc_now,
    ):
        super().__init__(db)
        self.ledger = ledger or LedgerService(db)
        self.availability = availability or AvailabilityService(db)
        self.clock = clock
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.recorded_session_repository = RepositoryFactory.create_recorded_session_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("book_recorded")
    def book_recorded(
        self,
        student_id: str,
        recorded_session_id: str,
        notes: Optional[str] = None,
    ) -> MentorshipBooking:
        """
        Purchase a recorded session. The booking starts CONFIRMED.

        Raises:
            RecordedSessionNotFound: unknown or inactive session
            AlreadyPurchased: the student already holds a confirmed purchase
            InsufficientBalance: wallet does not cover the price
        """
        with self.transaction():
            session = self.recorded_session_repository.get_active(recorded_session_id)
            if session is None:
                raise RecordedSessionNotFound(
                    "Recorded session not found",
                    details={"recorded_session_id": recorded_session_id},
                )
            if self.repository.find_confirmed_purchase(student_id, recorded_session_id):
                raise AlreadyPurchased(
                    "You have already purchased this session",
                    details={"recorded_session_id": recorded_session_id},
                )

            price = Decimal(session.price)
            if price > 0:
                self.ledger.debit(
                    student_id,
                    price,
                    TransactionType.MENTORSHIP_PAYMENT,
                    f"Recorded session purchase: {session.title}",
                    use_transaction=False,
                )

            mentor = self.user_repository.get_default_mentor()
            now = self.clock()
            try:
                booking = self.repository.create(
                    student_id=student_id,
                    mentor_id=mentor.id if mentor else None,
                    session_type=SessionType.RECORDED.value,
                    duration=settings.default_session_minutes,
                    amount=price,
                    status=BookingStatus.CONFIRMED.value,
                    recorded_session_id=recorded_session_id,
                    video_link=session.video_link,
                    student_notes=_clean(notes),
                    confirmed_at=now,
                )
            except UniqueViolation as exc:
                raise AlreadyPurchased(
                    "You have already purchased this session",
                    details={"recorded_session_id": recorded_session_id},
                ) from exc

        self.log_operation(
            "recorded_session_booked",
            booking_id=booking.id,
            student_id=student_id,
            recorded_session_id=recorded_session_id,
            amount=str(price),
        )
        return booking

    @BaseService.measure_operation("book_face_to_face")
    def book_face_to_face(
        self,
        student_id: str,
        mentor_id: Optional[str],
        slot_id: str,
        whatsapp: Optional[str],
        duration: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> MentorshipBooking:
        """
        Book a live session in a calendar slot. The booking starts PENDING.

        The slot claim, the debit and the booking insert are one unit of work.

        Raises:
            MissingContact: no WhatsApp number given
            ValidationException: duration outside the allowed bounds or longer than the slot
            MentorNotFound: unknown mentor, or mentor without a rate
            SlotNotFound / SlotAlreadyBooked: from the calendar claim
            InsufficientBalance: wallet does not cover the price
        """
        contact = _clean(whatsapp)
        if not contact:
            raise MissingContact(
                "WhatsApp number is required for face-to-face sessions",
                details={"field": "whatsapp_number"},
            )
        minutes = duration if duration is not None else settings.default_session_minutes
        if not settings.min_session_minutes <= minutes <= settings.max_session_minutes:
            raise ValidationException(
                f"Duration must be between {settings.min_session_minutes} and "
                f"{settings.max_session_minutes} minutes",
                details={"duration": minutes},
            )

        with self.transaction():
            mentor = self._resolve_mentor(mentor_id)
            price = session_price(Decimal(mentor.mentor_rate), minutes)

            slot = self.availability.claim(slot_id, use_transaction=False)
            _ensure_fits(slot, minutes)
            self.ledger.debit(
                student_id,
                price,
                TransactionType.MENTORSHIP_PAYMENT,
                f"Mentorship session booking ({minutes} minutes)",
                use_transaction=False,
            )
            try:
                booking = self.repository.create(
                    student_id=student_id,
                    mentor_id=mentor.id,
                    session_type=SessionType.FACE_TO_FACE.value,
                    duration=minutes,
                    amount=price,
                    status=BookingStatus.PENDING.value,
                    session_date=slot.starts_at,
                    available_date_id=slot.id,
                    whatsapp_number=contact,
                    student_notes=_clean(notes),
                )
            except UniqueViolation as exc:
                raise SlotAlreadyBooked(
                    "This time slot is already booked", details={"slot_id": slot_id}
                ) from exc

        self.log_operation(
            "face_to_face_booked",
            booking_id=booking.id,
            student_id=student_id,
            mentor_id=mentor.id,
            slot_id=slot_id,
            amount=str(price),
        )
        return booking

    @BaseService.measure_operation("admin_update")
    def admin_update(self, booking_id: str, update: BookingAdminUpdate) -> MentorshipBooking:
        """
        Apply an admin change, validated against the booking's current state.

        Cancelling releases a held slot and, when enabled, refunds the student.
        Rescheduling claims the new slot before releasing the old one.

        Raises:
            BookingNotFound: no such booking
            InvalidTransition: status change not allowed, or booking is finalized
            ValidationException: field not applicable to the session type
        """
        with self.transaction():
            booking = self.repository.get_by_id(booking_id, for_update=True)
            if booking is None:
                raise BookingNotFound("Booking not found", details={"booking_id": booking_id})

            current = booking.booking_status
            self._validate_update(booking, current, update)
            now = self.clock()

            # A cancellation releases the slot, so a simultaneous reschedule is moot.
            if update.changes_schedule and update.status != BookingStatus.CANCELLED:
                self._reschedule(booking, update)

            if update.meeting_link is not None:
                booking.meeting_link = update.meeting_link.strip() or None
            if update.video_link is not None:
                booking.video_link = update.video_link.strip() or None
            if update.admin_notes is not None:
                booking.admin_notes = update.admin_notes

            if update.status is not None and update.status != current:
                self._transition(booking, current, update.status, now)

            self.db.flush()

        self.log_operation(
            "booking_updated",
            booking_id=booking_id,
            from_status=current.value,
            to_status=booking.status,
            rescheduled=update.changes_schedule,
        )
        return booking

    @BaseService.measure_operation("update_mentor_settings")
    def update_mentor_settings(self, mentor_id: str, rate: Decimal, bio: str) -> User:
        """Set the hourly rate and bio used for face-to-face pricing."""
        with self.transaction():
            mentor = self.user_repository.update_mentor_settings(mentor_id, rate, bio)
            if mentor is None:
                raise MentorNotFound("Mentor not found", details={"mentor_id": mentor_id})
        self.log_operation("mentor_settings_updated", mentor_id=mentor_id, rate=str(rate))
        return mentor

    def list_bookings(
        self,
        *,
        student_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> List[MentorshipBooking]:
        return self.repository.list_bookings(
            student_id=student_id, status=status, page=page, page_size=page_size
        )

    # Internals

    def _resolve_mentor(self, mentor_id: Optional[str]) -> User:
        mentor = (
            self.user_repository.get_mentor(mentor_id)
            if mentor_id
            else self.user_repository.get_default_mentor()
        )
        if mentor is None or mentor.mentor_rate is None:
            raise MentorNotFound("Mentor not found", details={"mentor_id": mentor_id})
        return mentor

    @staticmethod
    def _validate_update(
        booking: MentorshipBooking, current: BookingStatus, update: BookingAdminUpdate
    ) -> None:
        if current.is_terminal and not update.only_notes:
            raise InvalidTransition(
                f"Booking is {current.value}; only admin notes can be changed",
                details={"booking_id": booking.id, "status": current.value},
            )

        if update.status is not None and update.status != current:
            if update.status not in BOOKING_TRANSITIONS[current]:
                raise InvalidTransition(
                    f"Cannot change booking from {current.value} to {update.status.value}",
                    details={
                        "booking_id": booking.id,
                        "from": current.value,
                        "to": update.status.value,
                    },
                )

        if not booking.is_face_to_face:
            if update.meeting_link is not None:
                raise ValidationException(
                    "Meeting links apply to face-to-face sessions only",
                    details={"booking_id": booking.id, "field": "meeting_link"},
                )
            if update.changes_schedule:
                raise ValidationException(
                    "Recorded sessions have no schedule to change",
                    details={"booking_id": booking.id, "field": "session_date"},
                )

    def _reschedule(self, booking: MentorshipBooking, update: BookingAdminUpdate) -> None:
        if update.slot_id is not None:
            target_id = update.slot_id
        elif update.session_date is not None:
            target = self.availability.find_free_slot_at(
                update.session_date.date(), update.session_date.time()
            )
            if target is None:
                raise SlotNotFound(
                    "No free slot at the requested date and time",
                    details={"session_date": update.session_date.isoformat()},
                )
            target_id = target.id
        else:
            return

        if target_id == booking.available_date_id:
            return

        new_slot = self.availability.claim(target_id, use_transaction=False)
        _ensure_fits(new_slot, booking.duration)
        previous_slot_id = booking.available_date_id
        if previous_slot_id is not None:
            self.availability.release(previous_slot_id, use_transaction=False)

        booking.available_date_id = new_slot.id
        booking.session_date = new_slot.starts_at
        booking.date_changed = True
        self.log_operation(
            "booking_rescheduled",
            booking_id=booking.id,
            from_slot_id=previous_slot_id,
            to_slot_id=new_slot.id,
        )

    def _transition(
        self,
        booking: MentorshipBooking,
        current: BookingStatus,
        target: BookingStatus,
        now: datetime,
    ) -> None:
        booking.status = target.value
        if target == BookingStatus.CONFIRMED:
            booking.confirmed_at = now
        elif target == BookingStatus.COMPLETED:
            booking.completed_at = now
        elif target == BookingStatus.CANCELLED:
            booking.cancelled_at = now
            if booking.available_date_id is not None:
                self.availability.release(booking.available_date_id, use_transaction=False)
            if settings.refund_on_cancel and Decimal(booking.amount) > 0:
                self.ledger.credit(
                    booking.student_id,
                    Decimal(booking.amount),
                    TransactionType.TOP_UP,
                    REFUND_DESCRIPTION,
                    use_transaction=False,
                )
        prometheus_metrics.record_booking_transition(current.value, target.value)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _ensure_fits(slot: TimeSlot, minutes: int) -> None:
    if minutes > slot.length_minutes:
        raise ValidationException(
            "Duration exceeds the length of the selected slot",
            details={"duration": minutes, "slot_minutes": slot.length_minutes},
        )
