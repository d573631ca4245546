"""Enrollment request/response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import EnrollmentStatus
from ..services.enrollment_service import EnrollmentView
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money


class EnrollRequest(StrictRequestModel):
    platform_id: str = Field(..., min_length=1, max_length=26)


class RenewRequest(StrictRequestModel):
    enrollment_id: str = Field(..., min_length=1, max_length=26)


class PlatformSummary(StrictModel):
    id: str
    name: str
    price: Money
    is_paid: bool


class EnrollmentResponse(StrictModel):
    id: str
    user_id: str
    platform_id: str
    created_at: datetime
    expires_at: datetime
    is_active: bool
    last_renewal_at: Optional[datetime] = None
    status: EnrollmentStatus
    is_expired: bool
    days_remaining: int
    platform: Optional[PlatformSummary] = None

    @classmethod
    def from_view(cls, view: EnrollmentView) -> "EnrollmentResponse":
        enrollment = view.enrollment
        return cls(
            id=enrollment.id,
            user_id=enrollment.user_id,
            platform_id=enrollment.platform_id,
            created_at=enrollment.created_at,
            expires_at=enrollment.expires_at,
            is_active=enrollment.is_active,
            last_renewal_at=enrollment.last_renewal_at,
            status=view.status,
            is_expired=view.is_expired,
            days_remaining=view.days_remaining,
            platform=(
                PlatformSummary.model_validate(enrollment.platform)
                if enrollment.platform is not None
                else None
            ),
        )


class EnrollmentEnvelope(StrictModel):
    enrollment: EnrollmentResponse


class EnrollmentListResponse(StrictModel):
    enrollments: List[EnrollmentResponse]
