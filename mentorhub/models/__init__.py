"""
Models package: importing it registers every table on ``Base.metadata``.
"""

from .availability import TimeSlot
from .booking import MentorshipBooking, RecordedSession
from .platform import Enrollment, Platform
from .transaction import Transaction
from .user import User, Wallet

__all__ = [
    "Enrollment",
    "MentorshipBooking",
    "Platform",
    "RecordedSession",
    "TimeSlot",
    "Transaction",
    "User",
    "Wallet",
]
