"""Availability calendar request/response schemas."""

import datetime as dt
from typing import List, Optional

from pydantic import Field, model_validator

from ._strict_base import StrictModel, StrictRequestModel
from .base import ClockTime

MAX_RANGE_DAYS = 366


class TimeRangeIn(StrictRequestModel):
    start_time: ClockTime
    end_time: ClockTime

    @model_validator(mode="after")
    def _ordered(self) -> "TimeRangeIn":
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class SlotCreateRequest(TimeRangeIn):
    date: dt.date
    is_recurring: bool = False
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0 = Monday ... 6 = Sunday")


class SlotUpdateRequest(TimeRangeIn):
    pass


class SlotBulkRequest(StrictRequestModel):
    date: dt.date
    slots: List[TimeRangeIn] = Field(..., min_length=1, max_length=100)


class SlotRangeRequest(StrictRequestModel):
    start_date: dt.date
    end_date: dt.date
    slots: List[TimeRangeIn] = Field(..., min_length=1, max_length=48)
    exclude_weekends: bool = True

    @model_validator(mode="after")
    def _bounded(self) -> "SlotRangeRequest":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        if (self.end_date - self.start_date).days >= MAX_RANGE_DAYS:
            raise ValueError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")
        return self


class SlotResponse(StrictModel):
    id: str
    date: dt.date
    start_time: ClockTime
    end_time: ClockTime
    is_booked: bool
    is_recurring: bool
    day_of_week: Optional[int] = None


class SlotCreateResponse(StrictModel):
    slot: SlotResponse
    created: bool


class SkippedSlot(StrictModel):
    date: dt.date
    start_time: ClockTime
    end_time: ClockTime


class SlotBatchResponse(StrictModel):
    created_count: int
    total_requested: int
    skipped_count: Optional[int] = None
    skipped: Optional[List[SkippedSlot]] = None


class SlotListResponse(StrictModel):
    slots: List[SlotResponse]


class SlotPurgeResponse(StrictModel):
    deleted_count: int
