"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Composite services
share the request session with their collaborators so one unit of work
spans the whole operation.
"""

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.enrollment_service import EnrollmentService
from ...services.ledger_service import LedgerService
from .database import get_db


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    return LedgerService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """
    Get availability service instance.

    Range creation may fan batches out to worker sessions bound to the
    same engine as the request session.
    """
    worker_sessions = sessionmaker(
        bind=db.get_bind(), autoflush=False, expire_on_commit=False
    )
    return AvailabilityService(db, session_factory=worker_sessions)


def get_enrollment_service(
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service),
) -> EnrollmentService:
    return EnrollmentService(db, ledger=ledger)


def get_booking_service(
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service),
    availability: AvailabilityService = Depends(get_availability_service),
) -> BookingService:
    """
    Get booking service instance with its ledger and calendar collaborators.

    Returns:
        BookingService instance
    """
    return BookingService(db, ledger=ledger, availability=availability)
