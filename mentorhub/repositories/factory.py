# mentorhub/repositories/factory.py
"""
Repository Factory for MentorHub

Central place to build repositories so services never construct data-access
classes inline and tests can swap them by monkeypatching one seam.
"""

from sqlalchemy.orm import Session

from .booking_repository import BookingRepository
from .catalog_repository import PlatformRepository, RecordedSessionRepository, UserRepository
from .enrollment_repository import EnrollmentRepository
from .time_slot_repository import TimeSlotRepository
from .transaction_repository import TransactionRepository
from .wallet_repository import WalletRepository


class RepositoryFactory:
    """Factory for creating repository instances."""

    @staticmethod
    def create_wallet_repository(db: Session) -> WalletRepository:
        return WalletRepository(db)

    @staticmethod
    def create_transaction_repository(db: Session) -> TransactionRepository:
        return TransactionRepository(db)

    @staticmethod
    def create_time_slot_repository(db: Session) -> TimeSlotRepository:
        return TimeSlotRepository(db)

    @staticmethod
    def create_enrollment_repository(db: Session) -> EnrollmentRepository:
        return EnrollmentRepository(db)

    @staticmethod
    def create_platform_repository(db: Session) -> PlatformRepository:
        return PlatformRepository(db)

    @staticmethod
    def create_recorded_session_repository(db: Session) -> RecordedSessionRepository:
        return RecordedSessionRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> UserRepository:
        return UserRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        return BookingRepository(db)
