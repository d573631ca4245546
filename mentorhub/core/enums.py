# mentorhub/core/enums.py
"""
Shared enumerations for the ledger, calendar, enrollment and booking models.

String enums so values round-trip through the database and JSON unchanged.
"""

from enum import Enum


class RoleName(str, Enum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class TransactionType(str, Enum):
    TOP_UP = "TOP_UP"
    PLATFORM_PURCHASE = "PLATFORM_PURCHASE"
    MENTORSHIP_PAYMENT = "MENTORSHIP_PAYMENT"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SessionType(str, Enum):
    RECORDED = "RECORDED"
    FACE_TO_FACE = "FACE_TO_FACE"


class BookingStatus(str, Enum):
    """Mentorship booking lifecycle."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
