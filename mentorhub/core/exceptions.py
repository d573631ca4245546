# mentorhub/core/exceptions.py
"""
Domain-specific exceptions for the MentorHub back office.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every exception carries a stable machine-readable ``code`` and a
``retryable`` flag so callers can tell "pick another slot" apart
from "top up your wallet first".
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: Optional[str] = None
    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "retryable": self.retryable,
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the stable error payload."""
        return HTTPException(status_code=self.status_code, detail=self.to_payload())


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "BUSINESS_RULE_VIOLATION"


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_payload(),
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "SERVICE_ERROR"
    retryable = True

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["message"] = self.message or "An error occurred processing your request"
        return payload


class RepositoryException(Exception):
    """Raised when a data-access operation fails."""


class UniqueViolation(RepositoryException):
    """Raised when an insert or update violates a uniqueness constraint."""


# Ledger


class InsufficientBalance(BusinessRuleException):
    default_code = "INSUFFICIENT_BALANCE"

    def __init__(self, balance: Decimal, required: Decimal) -> None:
        super().__init__(
            "Insufficient balance",
            details={"balance": str(balance), "required": str(required)},
        )


class AlreadyResolved(BusinessRuleException):
    default_code = "ALREADY_RESOLVED"

    def __init__(self, transaction_id: str, current_status: str) -> None:
        super().__init__(
            "Transaction already processed",
            details={"transaction_id": transaction_id, "status": current_status},
        )


class WalletNotFound(NotFoundException):
    default_code = "WALLET_NOT_FOUND"


class TransactionNotFound(NotFoundException):
    default_code = "TRANSACTION_NOT_FOUND"


# Availability calendar


class SlotNotFound(NotFoundException):
    default_code = "SLOT_NOT_FOUND"


class SlotAlreadyBooked(BusinessRuleException):
    default_code = "SLOT_ALREADY_BOOKED"
    retryable = True


class SlotInUse(BusinessRuleException):
    default_code = "SLOT_IN_USE"


class DuplicateSlot(BusinessRuleException):
    default_code = "DUPLICATE_SLOT"

    def __init__(self, message: str, existing_slot_id: Optional[str] = None) -> None:
        super().__init__(message, details={"existing_slot_id": existing_slot_id})
        self.existing_slot_id = existing_slot_id


# Enrollment lifecycle


class AlreadyEnrolled(BusinessRuleException):
    default_code = "ALREADY_ENROLLED"


class StillActive(BusinessRuleException):
    default_code = "STILL_ACTIVE"


class PlatformNotFound(NotFoundException):
    default_code = "PLATFORM_NOT_FOUND"


class EnrollmentNotFound(NotFoundException):
    default_code = "ENROLLMENT_NOT_FOUND"


# Booking engine


class AlreadyPurchased(BusinessRuleException):
    default_code = "ALREADY_PURCHASED"


class MissingContact(ValidationException):
    default_code = "MISSING_CONTACT"


class InvalidTransition(ValidationException):
    default_code = "INVALID_TRANSITION"


class BookingNotFound(NotFoundException):
    default_code = "BOOKING_NOT_FOUND"


class RecordedSessionNotFound(NotFoundException):
    default_code = "RECORDED_SESSION_NOT_FOUND"


class MentorNotFound(NotFoundException):
    default_code = "MENTOR_NOT_FOUND"
