# mentorhub/repositories/booking_repository.py
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..models.booking import MentorshipBooking
from .base_repository import BaseRepository


class BookingRepository(BaseRepository[MentorshipBooking]):
    def __init__(self, db: Session):
        super().__init__(db, MentorshipBooking)

    def find_confirmed_purchase(
        self, student_id: str, recorded_session_id: str
    ) -> Optional[MentorshipBooking]:
        stmt = select(MentorshipBooking).where(
            MentorshipBooking.student_id == student_id,
            MentorshipBooking.recorded_session_id == recorded_session_id,
            MentorshipBooking.status == BookingStatus.CONFIRMED.value,
        )
        return self.db.execute(stmt).unique().scalars().first()

    def list_bookings(
        self,
        *,
        student_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> List[MentorshipBooking]:
        stmt = select(MentorshipBooking)
        if student_id is not None:
            stmt = stmt.where(MentorshipBooking.student_id == student_id)
        if status is not None:
            stmt = stmt.where(MentorshipBooking.status == status.value)
        stmt = stmt.order_by(MentorshipBooking.created_at.desc(), MentorshipBooking.id.desc())
        return self.list_page(stmt, page=page, page_size=page_size)
