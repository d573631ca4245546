# mentorhub/routes/v1/mentor.py
"""
Mentor settings routes - API v1

Endpoints:
    PUT /mentor/settings - Update the caller's hourly rate and bio
"""

import asyncio

from fastapi import APIRouter, Depends

from ...api.dependencies import get_booking_service, require_admin
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...principal import Principal
from ...schemas.booking import MentorSettingsRequest, MentorSettingsResponse
from ...services.booking_service import BookingService

router = APIRouter(tags=["mentor-v1"])


@router.put(
    "/mentor/settings", response_model=MentorSettingsResponse, response_model_by_alias=True
)
async def update_mentor_settings(
    payload: MentorSettingsRequest,
    admin: Principal = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> MentorSettingsResponse:
    try:
        mentor = await asyncio.to_thread(
            service.update_mentor_settings, admin.id, payload.rate, payload.bio
        )
        return MentorSettingsResponse.model_validate(mentor)
    except DomainException as e:
        handle_domain_exception(e)
