"""Tests for BookingService purchases, slot bookings and admin transitions."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, time
from decimal import Decimal
import threading

import pytest

from mentorhub.core.enums import BookingStatus, SessionType, TransactionType
from mentorhub.core.exceptions import (
    AlreadyPurchased,
    BookingNotFound,
    InsufficientBalance,
    InvalidTransition,
    MentorNotFound,
    MissingContact,
    RecordedSessionNotFound,
    SlotAlreadyBooked,
    SlotNotFound,
    ValidationException,
)
from mentorhub.models.availability import TimeSlot
from mentorhub.models.booking import MentorshipBooking
from mentorhub.models.transaction import Transaction
from mentorhub.services.booking_service import BookingAdminUpdate, BookingService

from ..conftest import NEXT_MONDAY


@pytest.fixture
def bookings(db):
    return BookingService(db)


def _slot_is_booked(session_factory, slot_id):
    with session_factory() as session:
        return session.get(TimeSlot, slot_id).is_booked


def _book_slot(bookings, student, mentor, slot, duration=60):
    return bookings.book_face_to_face(
        student.id, mentor.id, slot.id, "+201000000000", duration=duration
    )


# Recorded sessions


def test_recorded_purchase_is_confirmed_and_charged(
    bookings, test_student, test_mentor, recorded_session, wallet_balance
):
    booking = bookings.book_recorded(test_student.id, recorded_session.id, notes="  ")

    assert booking.status == BookingStatus.CONFIRMED.value
    assert booking.session_type == SessionType.RECORDED.value
    assert booking.video_link == recorded_session.video_link
    assert booking.confirmed_at is not None
    assert booking.student_notes is None
    assert booking.mentor_id == test_mentor.id
    assert wallet_balance(test_student.id) == Decimal("380.00")


def test_recorded_session_cannot_be_bought_twice(
    bookings, db, test_student, recorded_session, wallet_balance
):
    bookings.book_recorded(test_student.id, recorded_session.id)

    with pytest.raises(AlreadyPurchased):
        bookings.book_recorded(test_student.id, recorded_session.id)
    assert wallet_balance(test_student.id) == Decimal("380.00")
    assert db.query(MentorshipBooking).count() == 1


def test_free_recorded_session_records_no_payment(bookings, db, test_student, recorded_session):
    recorded_session.price = Decimal("0.00")
    db.commit()

    booking = bookings.book_recorded(test_student.id, recorded_session.id)

    assert Decimal(booking.amount) == Decimal("0.00")
    assert db.query(Transaction).count() == 0


def test_unknown_recorded_session(bookings, test_student):
    with pytest.raises(RecordedSessionNotFound):
        bookings.book_recorded(test_student.id, "01HZZZZZZZZZZZZZZZZZZZZZZZ")


# Face-to-face


def test_face_to_face_booking_claims_slot_and_charges_rate(
    bookings, db, test_student, test_mentor, free_slot, session_factory, wallet_balance
):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)

    assert booking.status == BookingStatus.PENDING.value
    assert booking.available_date_id == free_slot.id
    assert booking.session_date == datetime.combine(NEXT_MONDAY, time(10, 0))
    assert Decimal(booking.amount) == Decimal("250.00")
    assert booking.whatsapp_number == "+201000000000"
    assert _slot_is_booked(session_factory, free_slot.id) is True
    assert wallet_balance(test_student.id) == Decimal("250.00")

    payment = db.query(Transaction).one()
    assert payment.type == TransactionType.MENTORSHIP_PAYMENT.value
    assert payment.description == "Mentorship session booking (30 minutes)"


def test_underfunded_booking_leaves_slot_free(
    bookings, db, make_user, test_mentor, free_slot, session_factory, wallet_balance
):
    student = make_user(balance="50.00")

    with pytest.raises(InsufficientBalance):
        _book_slot(bookings, student, test_mentor, free_slot)

    assert wallet_balance(student.id) == Decimal("50.00")
    assert _slot_is_booked(session_factory, free_slot.id) is False
    assert db.query(MentorshipBooking).count() == 0
    assert db.query(Transaction).count() == 0


def test_missing_contact_is_rejected_before_any_write(
    bookings, test_student, test_mentor, free_slot, session_factory
):
    with pytest.raises(MissingContact) as exc_info:
        bookings.book_face_to_face(test_student.id, test_mentor.id, free_slot.id, "   ")

    assert exc_info.value.code == "MISSING_CONTACT"
    assert _slot_is_booked(session_factory, free_slot.id) is False


@pytest.mark.parametrize("duration", [15, 181])
def test_duration_outside_bounds(bookings, test_student, test_mentor, free_slot, duration):
    with pytest.raises(ValidationException):
        _book_slot(bookings, test_student, test_mentor, free_slot, duration=duration)


def test_duration_longer_than_slot_is_rejected(
    bookings, test_student, test_mentor, free_slot, session_factory, wallet_balance
):
    with pytest.raises(ValidationException) as exc_info:
        _book_slot(bookings, test_student, test_mentor, free_slot, duration=90)

    assert exc_info.value.details == {"duration": 90, "slot_minutes": 60}
    assert _slot_is_booked(session_factory, free_slot.id) is False
    assert wallet_balance(test_student.id) == Decimal("500.00")


def test_duration_filling_the_slot_is_accepted(bookings, test_student, test_mentor, free_slot):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=60)
    assert booking.duration == 60


def test_booked_slot_cannot_be_taken_again(
    bookings, make_user, test_student, test_mentor, free_slot, wallet_balance
):
    _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)
    rival = make_user(balance="500.00")

    with pytest.raises(SlotAlreadyBooked):
        _book_slot(bookings, rival, test_mentor, free_slot, duration=30)
    assert wallet_balance(rival.id) == Decimal("500.00")


def test_default_mentor_is_used_when_none_given(bookings, test_student, test_mentor, free_slot):
    booking = bookings.book_face_to_face(
        test_student.id, None, free_slot.id, "+201000000000", duration=30
    )
    assert booking.mentor_id == test_mentor.id


def test_unknown_mentor(bookings, test_student, free_slot):
    with pytest.raises(MentorNotFound):
        bookings.book_face_to_face(
            test_student.id, "01HZZZZZZZZZZZZZZZZZZZZZZZ", free_slot.id, "+20100"
        )


def test_two_students_racing_for_one_slot(session_factory, make_user, test_mentor, free_slot):
    students = [make_user(balance="500.00"), make_user(balance="500.00")]
    barrier = threading.Barrier(len(students))

    def attempt(student):
        session = session_factory()
        try:
            service = BookingService(session)
            barrier.wait()
            try:
                service.book_face_to_face(
                    student.id, test_mentor.id, free_slot.id, "+201000000000", duration=30
                )
                return "booked"
            except SlotAlreadyBooked:
                return "lost"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(students)) as pool:
        outcomes = list(pool.map(attempt, students))

    assert sorted(outcomes) == ["booked", "lost"]
    with session_factory() as session:
        holders = (
            session.query(MentorshipBooking)
            .filter(MentorshipBooking.available_date_id == free_slot.id)
            .all()
        )
        assert len(holders) == 1
        assert session.get(TimeSlot, free_slot.id).is_booked is True
        assert session.query(Transaction).count() == 1


# Admin updates


def test_admin_confirms_then_completes(bookings, test_student, test_mentor, free_slot):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)

    confirmed = bookings.admin_update(
        booking.id,
        BookingAdminUpdate(status=BookingStatus.CONFIRMED, meeting_link="https://meet.example.com/a"),
    )
    assert confirmed.status == BookingStatus.CONFIRMED.value
    assert confirmed.confirmed_at is not None
    assert confirmed.meeting_link == "https://meet.example.com/a"

    completed = bookings.admin_update(booking.id, BookingAdminUpdate(status=BookingStatus.COMPLETED))
    assert completed.status == BookingStatus.COMPLETED.value
    assert completed.completed_at is not None


def test_pending_cannot_jump_to_completed(bookings, test_student, test_mentor, free_slot):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)

    with pytest.raises(InvalidTransition) as exc_info:
        bookings.admin_update(booking.id, BookingAdminUpdate(status=BookingStatus.COMPLETED))
    assert exc_info.value.code == "INVALID_TRANSITION"


def test_cancel_releases_slot_and_refunds(
    bookings, db, test_student, test_mentor, free_slot, session_factory, wallet_balance
):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)

    cancelled = bookings.admin_update(booking.id, BookingAdminUpdate(status=BookingStatus.CANCELLED))

    assert cancelled.status == BookingStatus.CANCELLED.value
    assert cancelled.cancelled_at is not None
    assert _slot_is_booked(session_factory, free_slot.id) is False
    assert wallet_balance(test_student.id) == Decimal("500.00")

    refund = (
        db.query(Transaction)
        .filter(Transaction.description == "Refund for cancelled mentorship session")
        .one()
    )
    assert Decimal(refund.amount) == Decimal("250.00")


def test_cancel_without_refund_when_disabled(
    bookings, test_student, test_mentor, free_slot, restore_settings, wallet_balance
):
    restore_settings(refund_on_cancel=False)
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)

    bookings.admin_update(booking.id, BookingAdminUpdate(status=BookingStatus.CANCELLED))

    assert wallet_balance(test_student.id) == Decimal("250.00")


def test_cancelled_slot_can_be_booked_again(
    bookings, make_user, test_student, test_mentor, free_slot
):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)
    bookings.admin_update(booking.id, BookingAdminUpdate(status=BookingStatus.CANCELLED))

    other = make_user(balance="500.00")
    rebooked = _book_slot(bookings, other, test_mentor, free_slot, duration=30)
    assert rebooked.available_date_id == free_slot.id


def test_terminal_booking_accepts_only_notes(bookings, test_student, test_mentor, free_slot):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)
    bookings.admin_update(booking.id, BookingAdminUpdate(status=BookingStatus.CANCELLED))

    with pytest.raises(InvalidTransition):
        bookings.admin_update(booking.id, BookingAdminUpdate(status=BookingStatus.CONFIRMED))
    with pytest.raises(InvalidTransition):
        bookings.admin_update(booking.id, BookingAdminUpdate(meeting_link="https://x.example.com"))

    noted = bookings.admin_update(booking.id, BookingAdminUpdate(admin_notes="Student cancelled by phone"))
    assert noted.admin_notes == "Student cancelled by phone"


def test_reschedule_moves_slot_hold(
    bookings, test_student, test_mentor, free_slot, make_slot, session_factory
):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)
    target = make_slot(start=time(15, 0), end=time(16, 0))

    moved = bookings.admin_update(booking.id, BookingAdminUpdate(slot_id=target.id))

    assert moved.available_date_id == target.id
    assert moved.session_date == datetime.combine(NEXT_MONDAY, time(15, 0))
    assert moved.date_changed is True
    assert _slot_is_booked(session_factory, target.id) is True
    assert _slot_is_booked(session_factory, free_slot.id) is False


def test_reschedule_by_session_date(bookings, test_student, test_mentor, free_slot, make_slot):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)
    target = make_slot(start=time(17, 0), end=time(18, 0))

    moved = bookings.admin_update(
        booking.id,
        BookingAdminUpdate(session_date=datetime.combine(NEXT_MONDAY, time(17, 0))),
    )
    assert moved.available_date_id == target.id


def test_reschedule_to_taken_slot_keeps_original(
    bookings, test_student, test_mentor, free_slot, make_slot, session_factory
):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)
    taken = make_slot(start=time(15, 0), end=time(16, 0), is_booked=True)

    with pytest.raises(SlotAlreadyBooked):
        bookings.admin_update(booking.id, BookingAdminUpdate(slot_id=taken.id))
    assert _slot_is_booked(session_factory, free_slot.id) is True


def test_reschedule_to_shorter_slot_keeps_original(
    bookings, test_student, test_mentor, free_slot, make_slot, session_factory
):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=60)
    short = make_slot(start=time(15, 0), end=time(15, 30))

    with pytest.raises(ValidationException):
        bookings.admin_update(booking.id, BookingAdminUpdate(slot_id=short.id))
    assert _slot_is_booked(session_factory, free_slot.id) is True
    assert _slot_is_booked(session_factory, short.id) is False


def test_reschedule_to_missing_time(bookings, test_student, test_mentor, free_slot):
    booking = _book_slot(bookings, test_student, test_mentor, free_slot, duration=30)
    with pytest.raises(SlotNotFound):
        bookings.admin_update(
            booking.id,
            BookingAdminUpdate(session_date=datetime.combine(NEXT_MONDAY, time(6, 0))),
        )


def test_recorded_booking_rejects_meeting_link_and_schedule(
    bookings, test_student, recorded_session, free_slot
):
    booking = bookings.book_recorded(test_student.id, recorded_session.id)

    with pytest.raises(ValidationException):
        bookings.admin_update(booking.id, BookingAdminUpdate(meeting_link="https://meet.example.com"))
    with pytest.raises(ValidationException):
        bookings.admin_update(booking.id, BookingAdminUpdate(slot_id=free_slot.id))

    updated = bookings.admin_update(
        booking.id, BookingAdminUpdate(video_link="https://videos.example.com/v2")
    )
    assert updated.video_link == "https://videos.example.com/v2"


def test_update_unknown_booking(bookings):
    with pytest.raises(BookingNotFound):
        bookings.admin_update("01HZZZZZZZZZZZZZZZZZZZZZZZ", BookingAdminUpdate(admin_notes="x"))


def test_update_mentor_settings_changes_pricing(bookings, test_student, test_mentor, make_slot):
    bookings.update_mentor_settings(test_mentor.id, Decimal("120.00"), "Backend mentoring since 2015")
    long_slot = make_slot(start=time(14, 0), end=time(16, 0))

    booking = _book_slot(bookings, test_student, test_mentor, long_slot, duration=90)
    assert Decimal(booking.amount) == Decimal("180.00")


def test_list_bookings_scopes_to_student(bookings, make_user, test_student, test_mentor, recorded_session, free_slot):
    bookings.book_recorded(test_student.id, recorded_session.id)
    other = make_user(balance="500.00")
    _book_slot(bookings, other, test_mentor, free_slot, duration=30)

    assert len(bookings.list_bookings(student_id=test_student.id)) == 1
    assert len(bookings.list_bookings()) == 2
    pending = bookings.list_bookings(status=BookingStatus.PENDING)
    assert [b.student_id for b in pending] == [other.id]
