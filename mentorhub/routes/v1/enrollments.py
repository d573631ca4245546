# mentorhub/routes/v1/enrollments.py
"""
Enrollment routes - API v1

Endpoints:
    POST /enroll - Enroll in a platform (charges paid platforms)
    PUT /enroll - Renew a lapsed enrollment
    GET /enroll - List the caller's enrollments with derived status
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, status

from ...api.dependencies import get_current_principal, get_enrollment_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...principal import Principal
from ...schemas.enrollment import (
    EnrollmentEnvelope,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollRequest,
    RenewRequest,
)
from ...services.enrollment_service import EnrollmentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["enrollments-v1"])


@router.post(
    "/enroll",
    response_model=EnrollmentEnvelope,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def enroll(
    payload: EnrollRequest,
    principal: Principal = Depends(get_current_principal),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentEnvelope:
    try:
        enrollment = await asyncio.to_thread(service.enroll, principal.id, payload.platform_id)
        view = service.describe(enrollment)
        return EnrollmentEnvelope(enrollment=EnrollmentResponse.from_view(view))
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/enroll", response_model=EnrollmentEnvelope, response_model_by_alias=True)
async def renew_enrollment(
    payload: RenewRequest,
    principal: Principal = Depends(get_current_principal),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentEnvelope:
    """Renew an expired enrollment for another period."""
    try:
        enrollment = await asyncio.to_thread(service.renew, payload.enrollment_id, principal.id)
        view = service.describe(enrollment)
        return EnrollmentEnvelope(enrollment=EnrollmentResponse.from_view(view))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/enroll", response_model=EnrollmentListResponse, response_model_by_alias=True)
async def list_enrollments(
    principal: Principal = Depends(get_current_principal),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentListResponse:
    views = await asyncio.to_thread(service.list_for_user, principal.id)
    return EnrollmentListResponse(
        enrollments=[EnrollmentResponse.from_view(view) for view in views]
    )
