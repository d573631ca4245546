"""Mentorship booking request/response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from ..core.enums import BookingStatus, SessionType
from ..services.booking_service import BookingAdminUpdate
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money


class BookingCreateRequest(StrictRequestModel):
    """
    Create a booking.

    RECORDED needs ``recordedSessionId``; FACE_TO_FACE needs ``slotId``. The
    WhatsApp contact is checked by the service so a missing number surfaces as
    ``MISSING_CONTACT`` rather than a generic validation error.
    """

    session_type: SessionType
    recorded_session_id: Optional[str] = Field(None, max_length=26)
    slot_id: Optional[str] = Field(None, max_length=26)
    whatsapp_number: Optional[str] = Field(None, max_length=32)
    duration: Optional[int] = Field(None, gt=0)
    mentor_id: Optional[str] = Field(None, max_length=26)
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _required_for_type(self) -> "BookingCreateRequest":
        if self.session_type == SessionType.RECORDED and not self.recorded_session_id:
            raise ValueError("recordedSessionId is required for recorded sessions")
        if self.session_type == SessionType.FACE_TO_FACE and not self.slot_id:
            raise ValueError("slotId is required for face-to-face sessions")
        return self


class BookingAdminUpdateRequest(StrictRequestModel):
    booking_id: str = Field(..., min_length=1, max_length=26)
    status: Optional[BookingStatus] = None
    meeting_link: Optional[str] = Field(None, max_length=1000)
    video_link: Optional[str] = Field(None, max_length=1000)
    session_date: Optional[datetime] = None
    slot_id: Optional[str] = Field(None, max_length=26)
    admin_notes: Optional[str] = Field(None, max_length=2000)

    def to_update(self) -> BookingAdminUpdate:
        session_date = self.session_date
        if session_date is not None and session_date.tzinfo is not None:
            # Slots are wall-clock; compare on the naive value the caller sent.
            session_date = session_date.replace(tzinfo=None)
        return BookingAdminUpdate(
            status=self.status,
            meeting_link=self.meeting_link,
            video_link=self.video_link,
            session_date=session_date,
            slot_id=self.slot_id,
            admin_notes=self.admin_notes,
        )


class BookingResponse(StrictModel):
    id: str
    student_id: str
    mentor_id: Optional[str] = None
    session_type: SessionType
    duration: int
    amount: Money
    status: BookingStatus
    session_date: Optional[datetime] = None
    available_date_id: Optional[str] = None
    recorded_session_id: Optional[str] = None
    video_link: Optional[str] = None
    meeting_link: Optional[str] = None
    whatsapp_number: Optional[str] = None
    student_notes: Optional[str] = None
    admin_notes: Optional[str] = None
    date_changed: bool = False
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class BookingListResponse(StrictModel):
    bookings: List[BookingResponse]


class MentorSettingsRequest(StrictRequestModel):
    rate: Money
    bio: str = Field(..., min_length=10, max_length=500)

    @model_validator(mode="after")
    def _rate_bounds(self) -> "MentorSettingsRequest":
        if not 10 <= self.rate <= 200:
            raise ValueError("rate must be between 10 and 200")
        if self.rate.as_tuple().exponent < -2:
            raise ValueError("rate must have at most two decimal places")
        return self


class MentorSettingsResponse(StrictModel):
    id: str
    mentor_rate: Money
    mentor_bio: Optional[str] = None
