# mentorhub/services/enrollment_service.py
"""
Enrollment Lifecycle Service for MentorHub

Per-user, per-platform access windows. Paid enrollments and renewals charge
the wallet through the ledger inside the same unit of work as the grant, so
access and payment always land together.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import math
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import EnrollmentStatus, TransactionType
from ..core.exceptions import (
    AlreadyEnrolled,
    EnrollmentNotFound,
    PlatformNotFound,
    ServiceException,
    StillActive,
    UniqueViolation,
)
from ..models.platform import Enrollment
from ..repositories.factory import RepositoryFactory
from ..utils.time_utils import Clock, as_utc, utc_now
from .base import BaseService
from .ledger_service import LedgerService

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def enrollment_status(
    expires_at: datetime,
    now: datetime,
    expiring_soon_window: timedelta = timedelta(days=7),
) -> EnrollmentStatus:
    """
    Derive the status of an access window. Pure: depends only on its arguments.

    expired        when now > expires_at
    expiring_soon  when 0 < expires_at - now <= window
    active         otherwise
    """
    remaining = as_utc(expires_at) - as_utc(now)
    if remaining < timedelta(0):
        return EnrollmentStatus.EXPIRED
    if timedelta(0) < remaining <= expiring_soon_window:
        return EnrollmentStatus.EXPIRING_SOON
    return EnrollmentStatus.ACTIVE


def days_remaining(expires_at: datetime, now: datetime) -> int:
    seconds = (as_utc(expires_at) - as_utc(now)).total_seconds()
    return max(0, math.ceil(seconds / SECONDS_PER_DAY))


@dataclass(frozen=True)
class EnrollmentView:
    enrollment: Enrollment
    status: EnrollmentStatus
    is_expired: bool
    days_remaining: int


class EnrollmentService(BaseService):
    def __init__(
        self,
        db: Session,
        ledger: Optional[LedgerService] = None,
        clock: Clock = utc_now,
    ):
        super().__init__(db)
        self.ledger = ledger or LedgerService(db)
        self.clock = clock
        self.enrollment_repository = RepositoryFactory.create_enrollment_repository(db)
        self.platform_repository = RepositoryFactory.create_platform_repository(db)

    @property
    def period(self) -> timedelta:
        return timedelta(days=settings.enrollment_period_days)

    @property
    def expiring_soon_window(self) -> timedelta:
        return timedelta(days=settings.expiring_soon_days)

    def status_of(self, enrollment: Enrollment, now: Optional[datetime] = None) -> EnrollmentStatus:
        return enrollment_status(
            enrollment.expires_at, now or self.clock(), self.expiring_soon_window
        )

    def describe(self, enrollment: Enrollment, now: Optional[datetime] = None) -> EnrollmentView:
        moment = now or self.clock()
        status = self.status_of(enrollment, moment)
        return EnrollmentView(
            enrollment=enrollment,
            status=status,
            is_expired=status == EnrollmentStatus.EXPIRED,
            days_remaining=days_remaining(enrollment.expires_at, moment),
        )

    @BaseService.measure_operation("enroll")
    def enroll(self, user_id: str, platform_id: str) -> Enrollment:
        """
        Grant access to a platform, charging its price when it is paid.

        Raises:
            AlreadyEnrolled: the user already has an enrollment for the platform
            PlatformNotFound: unknown or inactive platform
            InsufficientBalance: wallet does not cover a paid platform
        """
        now = self.clock()
        with self.transaction():
            if self.enrollment_repository.find_for_user_platform(user_id, platform_id):
                raise AlreadyEnrolled(
                    "Already enrolled in this platform",
                    details={"platform_id": platform_id},
                )

            platform = self.platform_repository.get_active(platform_id)
            if platform is None:
                raise PlatformNotFound(
                    "Platform not found", details={"platform_id": platform_id}
                )

            if platform.requires_payment:
                self.ledger.debit(
                    user_id,
                    platform.price,
                    TransactionType.PLATFORM_PURCHASE,
                    f"Enrolled in {platform.name}",
                    use_transaction=False,
                )

            try:
                enrollment = self.enrollment_repository.create(
                    user_id=user_id,
                    platform_id=platform_id,
                    created_at=now,
                    expires_at=now + self.period,
                    is_active=True,
                )
            except UniqueViolation as exc:
                raise AlreadyEnrolled(
                    "Already enrolled in this platform",
                    details={"platform_id": platform_id},
                ) from exc

        self.log_operation(
            "enrolled",
            user_id=user_id,
            platform_id=platform_id,
            enrollment_id=enrollment.id,
            paid=platform.requires_payment,
        )
        return enrollment

    @BaseService.measure_operation("renew")
    def renew(self, enrollment_id: str, user_id: str) -> Enrollment:
        """
        Extend a lapsed enrollment by another period, charging paid platforms.

        Raises:
            EnrollmentNotFound: no enrollment with that id for this user
            StillActive: access has not lapsed (and early renewal does not apply)
            InsufficientBalance: wallet does not cover a paid platform
        """
        now = self.clock()
        with self.transaction():
            enrollment = self.enrollment_repository.get_for_user(
                enrollment_id, user_id, for_update=True
            )
            if enrollment is None:
                raise EnrollmentNotFound(
                    "Enrollment not found", details={"enrollment_id": enrollment_id}
                )

            stored_expires_at = enrollment.expires_at
            status = self.status_of(enrollment, now)
            new_expires_at = self._next_expiry(status, stored_expires_at, now, enrollment_id)

            platform = enrollment.platform
            if platform is not None and platform.requires_payment:
                self.ledger.debit(
                    user_id,
                    platform.price,
                    TransactionType.PLATFORM_PURCHASE,
                    f"Renewed {platform.name}",
                    use_transaction=False,
                )

            if not self.enrollment_repository.extend_if_unchanged(
                enrollment_id,
                expected_expires_at=stored_expires_at,
                new_expires_at=new_expires_at,
                renewed_at=now,
            ):
                raise StillActive(
                    "Enrollment was renewed concurrently",
                    details={"enrollment_id": enrollment_id},
                )
            renewed = self.enrollment_repository.get_for_user(enrollment_id, user_id)
            if renewed is None:
                raise ServiceException(
                    "Failed to reload enrollment", code="enrollment_reload_failed"
                )

        self.log_operation(
            "enrollment_renewed",
            user_id=user_id,
            enrollment_id=enrollment_id,
            previous_status=status.value,
        )
        return renewed

    def list_for_user(self, user_id: str) -> List[EnrollmentView]:
        now = self.clock()
        return [
            self.describe(enrollment, now)
            for enrollment in self.enrollment_repository.list_for_user(user_id)
        ]

    def _next_expiry(
        self,
        status: EnrollmentStatus,
        expires_at: datetime,
        now: datetime,
        enrollment_id: str,
    ) -> datetime:
        if status == EnrollmentStatus.EXPIRED:
            return now + self.period

        mode = settings.enrollment_early_renewal
        if status == EnrollmentStatus.EXPIRING_SOON and mode != "disabled":
            base = as_utc(expires_at) if mode == "extend_from_expiry" else now
            return base + self.period

        raise StillActive(
            "Enrollment is still active",
            details={
                "enrollment_id": enrollment_id,
                "status": status.value,
                "expires_at": as_utc(expires_at).isoformat(),
            },
        )
