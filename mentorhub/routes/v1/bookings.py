# mentorhub/routes/v1/bookings.py
"""
Mentorship booking routes - API v1

All business logic delegated to BookingService.

Endpoints:
    POST /booking - Purchase a recorded session or book a face-to-face slot
    PATCH /booking - Admin status/link/schedule update
    GET /booking - Caller's bookings (all bookings for admins)
"""

import asyncio
import logging
from typing import Optional, cast

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_booking_service, get_current_principal, require_admin
from ...core.enums import BookingStatus, SessionType
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...principal import Principal
from ...schemas.booking import (
    BookingAdminUpdateRequest,
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-v1"])


@router.post(
    "/booking",
    response_model=BookingResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: BookingCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Create a booking.

    RECORDED purchases are confirmed immediately. FACE_TO_FACE bookings claim
    the slot, charge the mentor's rate for the duration and start PENDING.
    """
    try:
        if payload.session_type == SessionType.RECORDED:
            booking = await asyncio.to_thread(
                service.book_recorded,
                principal.id,
                cast(str, payload.recorded_session_id),
                payload.notes,
            )
        else:
            booking = await asyncio.to_thread(
                service.book_face_to_face,
                principal.id,
                payload.mentor_id,
                cast(str, payload.slot_id),
                payload.whatsapp_number,
                payload.duration,
                payload.notes,
            )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/booking", response_model=BookingResponse, response_model_by_alias=True)
async def admin_update_booking(
    payload: BookingAdminUpdateRequest,
    admin: Principal = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            service.admin_update, payload.booking_id, payload.to_update()
        )
        logger.info(
            "booking_updated_by_admin",
            extra={
                "event": "booking_updated_by_admin",
                "admin_id": admin.id,
                "booking_id": payload.booking_id,
            },
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/booking", response_model=BookingListResponse, response_model_by_alias=True)
async def list_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(
        service.list_bookings,
        student_id=None if principal.is_admin else principal.id,
        status=booking_status,
        page=page,
        page_size=page_size,
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(booking) for booking in bookings]
    )
