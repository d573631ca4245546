# mentorhub/routes/v1/slots.py
"""
Availability calendar routes - API v1

Endpoints:
    GET /slot - List slots (students see free one-off slots only)
    POST /slot - Create one slot; a duplicate returns the existing slot
    POST /slot/bulk - Create many slots on one date
    POST /slot/range - Create slots for every day in a date range
    PUT /slot/{slot_id} - Re-time an unbooked slot
    POST /slot/{slot_id}/release - Unbook a slot
    DELETE /slot/{slot_id} - Delete an unbooked slot
    DELETE /slot?deleteAll=true - Delete every unbooked slot
"""

import asyncio
from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from ...api.dependencies import get_availability_service, get_current_principal, require_admin
from ...core.config import settings
from ...core.exceptions import DomainException, DuplicateSlot, ValidationException
from ...errors import handle_domain_exception
from ...principal import Principal
from ...schemas.availability import (
    SkippedSlot,
    SlotBatchResponse,
    SlotBulkRequest,
    SlotCreateRequest,
    SlotCreateResponse,
    SlotListResponse,
    SlotPurgeResponse,
    SlotRangeRequest,
    SlotResponse,
    SlotUpdateRequest,
)
from ...services.availability_service import AvailabilityService, SlotBatchResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["slots-v1"])


def _batch_response(result: SlotBatchResult) -> SlotBatchResponse:
    response = SlotBatchResponse(
        created_count=result.created_count, total_requested=result.total_requested
    )
    if settings.slot_duplicate_report in ("summary", "detailed"):
        response.skipped_count = result.skipped_count
    if settings.slot_duplicate_report == "detailed":
        response.skipped = [
            SkippedSlot(date=slot_date, start_time=start, end_time=end)
            for slot_date, start, end in result.skipped
        ]
    return response


@router.get("/slot", response_model=SlotListResponse, response_model_by_alias=True)
async def list_slots(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    include_booked: bool = Query(True, alias="includeBooked"),
    principal: Principal = Depends(get_current_principal),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotListResponse:
    slots = await asyncio.to_thread(
        service.list_slots,
        start_date=start_date,
        end_date=end_date,
        include_booked=include_booked and principal.is_admin,
        include_recurring=principal.is_admin,
    )
    return SlotListResponse(slots=[SlotResponse.model_validate(slot) for slot in slots])


@router.post("/slot", response_model=SlotCreateResponse, response_model_by_alias=True)
async def create_slot(
    payload: SlotCreateRequest,
    response: Response,
    _: Principal = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotCreateResponse:
    """Create a slot. Re-submitting an existing one-off slot is a no-op."""
    try:
        slot = await asyncio.to_thread(
            service.create_slot,
            payload.date,
            payload.start_time,
            payload.end_time,
            payload.is_recurring,
            payload.day_of_week,
        )
        response.status_code = status.HTTP_201_CREATED
        return SlotCreateResponse(slot=SlotResponse.model_validate(slot), created=True)
    except DuplicateSlot as e:
        if e.existing_slot_id is None:
            handle_domain_exception(e)
        existing = await asyncio.to_thread(service.get_slot, e.existing_slot_id)
        return SlotCreateResponse(slot=SlotResponse.model_validate(existing), created=False)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/slot/bulk",
    response_model=SlotBatchResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_slots_bulk(
    payload: SlotBulkRequest,
    _: Principal = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotBatchResponse:
    try:
        ranges = [(item.start_time, item.end_time) for item in payload.slots]
        result = await asyncio.to_thread(service.create_bulk, payload.date, ranges)
        return _batch_response(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/slot/range",
    response_model=SlotBatchResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_slots_range(
    payload: SlotRangeRequest,
    _: Principal = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotBatchResponse:
    """Create the given time ranges on every day from startDate to endDate."""
    try:
        ranges = [(item.start_time, item.end_time) for item in payload.slots]
        result = await asyncio.to_thread(
            service.create_range,
            payload.start_date,
            payload.end_date,
            ranges,
            payload.exclude_weekends,
        )
        return _batch_response(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/slot/{slot_id}", response_model=SlotResponse, response_model_by_alias=True)
async def update_slot(
    payload: SlotUpdateRequest,
    slot_id: str = Path(..., min_length=1, max_length=26),
    _: Principal = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotResponse:
    try:
        slot = await asyncio.to_thread(
            service.update_slot, slot_id, payload.start_time, payload.end_time
        )
        return SlotResponse.model_validate(slot)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/slot/{slot_id}/release", response_model=SlotResponse, response_model_by_alias=True
)
async def release_slot(
    slot_id: str = Path(..., min_length=1, max_length=26),
    _: Principal = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotResponse:
    try:
        slot = await asyncio.to_thread(service.release, slot_id)
        return SlotResponse.model_validate(slot)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/slot/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: str = Path(..., min_length=1, max_length=26),
    _: Principal = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete, slot_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/slot", response_model=SlotPurgeResponse, response_model_by_alias=True)
async def delete_unbooked_slots(
    delete_all: bool = Query(False, alias="deleteAll"),
    _: Principal = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> SlotPurgeResponse:
    try:
        if not delete_all:
            raise ValidationException(
                "Pass deleteAll=true to delete every unbooked slot",
                details={"field": "deleteAll"},
            )
        deleted = await asyncio.to_thread(service.delete_all_unbooked)
        return SlotPurgeResponse(deleted_count=deleted)
    except DomainException as e:
        handle_domain_exception(e)
